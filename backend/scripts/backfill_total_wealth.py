#!/usr/bin/env python
"""Backfill total-wealth snapshots for one user.

Writes one snapshot per distinct purchase date, valuing the ledger as of
that date with historical closing prices. Re-running overwrites the
backfilled rows instead of duplicating them.

Usage:
    python -m scripts.backfill_total_wealth <user_id>
    python -m scripts.backfill_total_wealth <user_id> --dry-run
"""

import argparse
import sys

from database import get_session_local, init_db
from logging_config import setup_logging
from services.errors import PortfolioError
from services.portfolio_valuation_service import PortfolioValuationService


def backfill_total_wealth(user_id: str, dry_run: bool = False, service=None) -> int:
    """Run the backfill and print each snapshot. Returns the snapshot count."""
    service = service or PortfolioValuationService()
    SessionLocal = get_session_local()
    db = SessionLocal()

    try:
        result = service.backfill(db, user_id, dry_run=dry_run)

        print(f"{len(result.snapshots)} snapshots for user {user_id}")
        for s in result.snapshots:
            line = (
                f"  {s.calculation_date.date()}: wealth={s.total_wealth} "
                f"invested={s.total_invested}"
            )
            if s.unavailable_tickers:
                line += f" (no price: {s.unavailable_tickers})"
            print(line)

        if dry_run:
            db.rollback()
            print("\n[DRY RUN] No changes made. Run without --dry-run to apply.")
        else:
            db.commit()
            print("\nBackfill complete!")
        return len(result.snapshots)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Backfill total-wealth snapshots for a user")
    parser.add_argument("user_id", help="User whose snapshots to rebuild")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be written without making changes",
    )
    args = parser.parse_args(argv)

    setup_logging()
    init_db()
    try:
        backfill_total_wealth(args.user_id, dry_run=args.dry_run)
    except PortfolioError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
