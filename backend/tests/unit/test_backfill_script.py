"""Tests for scripts/backfill_total_wealth.py."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

from integrations.market_data_protocol import PriceResult
from models import WealthSnapshot
from scripts.backfill_total_wealth import backfill_total_wealth, main
from services.errors import NotFoundError
from services.market_data_service import MarketDataService
from services.portfolio_valuation_service import PortfolioValuationService
from tests.fixtures import make_acme_ledger
from tests.fixtures.mocks import MockMarketDataProvider


def _service() -> PortfolioValuationService:
    history = MockMarketDataProvider(
        {
            "ACME": [
                PriceResult("ACME", date(2023, 12, 29), Decimal("95"), "mock"),
                PriceResult("ACME", date(2024, 1, 2), Decimal("105"), "mock"),
            ]
        }
    )
    return PortfolioValuationService(
        MarketDataService(quote_sources=[], history_providers=[history])
    )


class TestBackfillTotalWealth:
    def test_commits_snapshots(self, db, capsys):
        make_acme_ledger(db)
        db.commit()

        with patch("scripts.backfill_total_wealth.get_session_local", return_value=lambda: db):
            count = backfill_total_wealth("user-1", service=_service())

        assert count == 2
        rows = db.query(WealthSnapshot).order_by(WealthSnapshot.calculation_date).all()
        assert [r.total_wealth for r in rows] == [Decimal("950.00"), Decimal("1575.00")]
        assert all(r.is_backfill for r in rows)

        out = capsys.readouterr().out
        assert "2 snapshots for user user-1" in out
        assert "2024-01-02: wealth=1575.00 invested=1560.00" in out
        assert "Backfill complete!" in out

    def test_dry_run_writes_nothing(self, db, capsys):
        make_acme_ledger(db)
        db.commit()

        with patch("scripts.backfill_total_wealth.get_session_local", return_value=lambda: db):
            count = backfill_total_wealth("user-1", dry_run=True, service=_service())

        assert count == 2
        assert db.query(WealthSnapshot).count() == 0
        assert "[DRY RUN]" in capsys.readouterr().out


class TestMain:
    def test_returns_zero_on_success(self):
        with (
            patch("scripts.backfill_total_wealth.setup_logging"),
            patch("scripts.backfill_total_wealth.init_db"),
            patch("scripts.backfill_total_wealth.backfill_total_wealth", return_value=3) as run,
        ):
            assert main(["user-1", "--dry-run"]) == 0
        run.assert_called_once_with("user-1", dry_run=True)

    def test_domain_error_returns_one(self, capsys):
        with (
            patch("scripts.backfill_total_wealth.setup_logging"),
            patch("scripts.backfill_total_wealth.init_db"),
            patch(
                "scripts.backfill_total_wealth.backfill_total_wealth",
                side_effect=NotFoundError("No portfolio found for user ghost"),
            ),
        ):
            assert main(["ghost"]) == 1
        assert "No portfolio found for user ghost" in capsys.readouterr().err
