"""Computes and stores total-wealth snapshots."""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.orm import Session

from config import settings
from database import get_session_local
from models import PurchaseLot, SaleEvent, WealthSnapshot
from services.errors import NotFoundError
from services.holdings_service import Holding, HoldingsService, fold_holdings
from services.market_data_service import MarketDataService
from services.price_resolver import PriceResolution, PriceResolver

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Days of price history fetched before the first backfill date so the
# carry-forward has a close to start from on weekends and holidays.
HISTORY_LOOKBACK_DAYS = 10


@dataclass
class ValuationResult:
    """A persisted snapshot plus the price resolutions behind it."""

    snapshot: WealthSnapshot
    resolutions: dict[str, PriceResolution] = field(default_factory=dict)


@dataclass
class BackfillResult:
    """Summary of a historical backfill run."""

    user_id: str
    snapshots: list[WealthSnapshot] = field(default_factory=list)
    missing_prices: dict[str, list[date]] = field(default_factory=dict)


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _utcnow() -> datetime:
    """Naive UTC timestamp, matching how calculation_date is stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def months_before(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` earlier, clamped to the month's length."""
    total = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def value_holdings(
    holdings: list[Holding], prices: dict[str, Optional[Decimal]]
) -> tuple[Decimal, Decimal, list[str]]:
    """Total market value and invested cost of ``holdings``.

    A holding without a price contributes nothing to the market value and
    is listed in the returned unavailable tickers. Invested cost never
    depends on prices.

    Returns:
        (total_wealth, total_invested, unavailable_tickers), money rounded
        to cents.
    """
    total_wealth = Decimal("0")
    total_invested = Decimal("0")
    unavailable: list[str] = []

    for holding in holdings:
        total_invested += holding.total_cost
        price = prices.get(holding.ticker)
        if price is None:
            unavailable.append(holding.ticker)
            continue
        total_wealth += price * holding.total_quantity

    return _money(total_wealth), _money(total_invested), unavailable


def build_price_lookup(
    market_data: dict[str, list],
    start_date: date,
    end_date: date,
) -> dict[str, dict[date, Decimal]]:
    """Build a symbol -> date -> price mapping with carry-forward.

    For each calendar day in the range, if no price exists for that day,
    the most recent prior price is used. This handles weekends, holidays,
    and symbols with sparse data.
    """
    lookup: dict[str, dict[date, Decimal]] = {}

    for symbol, prices in market_data.items():
        sorted_prices = sorted(prices, key=lambda p: p.price_date)

        price_map: dict[date, Decimal] = {}
        last_price: Optional[Decimal] = None
        price_idx = 0

        current = start_date
        while current <= end_date:
            while (
                price_idx < len(sorted_prices)
                and sorted_prices[price_idx].price_date <= current
            ):
                last_price = sorted_prices[price_idx].close_price
                price_idx += 1

            if last_price is not None:
                price_map[current] = last_price

            current += timedelta(days=1)

        lookup[symbol] = price_map

    return lookup


class PortfolioValuationService:
    """Computes total wealth from derived holdings and current prices.

    Live valuations append a new snapshot each time. The historical
    backfill writes one snapshot per distinct purchase date and overwrites
    its own earlier rows for the same date.
    """

    def __init__(self, market_data: Optional[MarketDataService] = None):
        self._market_data = market_data

    @property
    def market_data(self) -> MarketDataService:
        if self._market_data is None:
            self._market_data = MarketDataService()
        return self._market_data

    def compute_and_snapshot(
        self,
        db: Session,
        user_id: str,
        resolver: Optional[PriceResolver] = None,
    ) -> ValuationResult:
        """Value the user's holdings now and persist a snapshot.

        Args:
            db: Database session
            user_id: Owner of the portfolio
            resolver: Price resolver to use; defaults to the market data
                      service's chain with the daily cache on ``db``.
        """
        holdings = HoldingsService.aggregate(db, user_id)

        resolutions: dict[str, PriceResolution] = {}
        if holdings:
            resolver = resolver or self.market_data.build_price_resolver(db)
            resolutions = resolver.resolve_many([h.ticker for h in holdings])

        total_wealth, total_invested, unavailable = value_holdings(
            holdings, {ticker: r.price for ticker, r in resolutions.items()}
        )

        snapshot = WealthSnapshot(
            user_id=user_id,
            total_wealth=total_wealth,
            total_invested=total_invested,
            calculation_date=_utcnow(),
            is_backfill=False,
            unavailable_tickers=",".join(unavailable) or None,
        )
        db.add(snapshot)
        db.flush()

        logger.info(
            "Valued portfolio for user %s: wealth=%s invested=%s (%d holdings, %d unpriced)",
            user_id,
            total_wealth,
            total_invested,
            len(holdings),
            len(unavailable),
        )
        return ValuationResult(snapshot=snapshot, resolutions=resolutions)

    def backfill(self, db: Session, user_id: str, dry_run: bool = False) -> BackfillResult:
        """Reconstruct snapshots for every distinct purchase date.

        Each date is valued with the lots bought and sales made on or
        before it, priced at the latest historical close on or before that
        date. Rows are keyed by (user_id, calculation_date at midnight);
        re-running overwrites them. A user with no lots gets the zero
        initial snapshot instead.

        Args:
            db: Database session
            user_id: Owner of the portfolio
            dry_run: Compute the snapshots without adding them to the session.
        """
        lots = db.query(PurchaseLot).filter(PurchaseLot.user_id == user_id).all()
        if not lots:
            if dry_run:
                return BackfillResult(user_id=user_id)
            snapshot, _ = self.create_initial(db, user_id)
            return BackfillResult(user_id=user_id, snapshots=[snapshot])

        sales = db.query(SaleEvent).filter(SaleEvent.user_id == user_id).all()
        dates = sorted({lot.purchase_date for lot in lots})
        tickers = list(dict.fromkeys(lot.ticker for lot in sorted(lots, key=lambda l: l.id)))

        start = dates[0] - timedelta(days=HISTORY_LOOKBACK_DAYS)
        end = dates[-1]
        history = self.market_data.get_price_history(tickers, start, end)
        lookup = build_price_lookup(history, start, end)

        result = BackfillResult(user_id=user_id)
        for day in dates:
            holdings = fold_holdings(
                [lot for lot in lots if lot.purchase_date <= day],
                [sale for sale in sales if sale.sell_date <= day],
                strict=False,
            )
            prices = {h.ticker: lookup.get(h.ticker, {}).get(day) for h in holdings}
            total_wealth, total_invested, unavailable = value_holdings(holdings, prices)
            for ticker in unavailable:
                result.missing_prices.setdefault(ticker, []).append(day)

            calculation_date = datetime.combine(day, time.min)
            if dry_run:
                snapshot = WealthSnapshot(
                    user_id=user_id,
                    calculation_date=calculation_date,
                    is_backfill=True,
                )
            else:
                snapshot = (
                    db.query(WealthSnapshot)
                    .filter(
                        WealthSnapshot.user_id == user_id,
                        WealthSnapshot.calculation_date == calculation_date,
                    )
                    .first()
                )
                if snapshot is None:
                    snapshot = WealthSnapshot(user_id=user_id, calculation_date=calculation_date)
                    db.add(snapshot)
                snapshot.is_backfill = True

            snapshot.total_wealth = total_wealth
            snapshot.total_invested = total_invested
            snapshot.unavailable_tickers = ",".join(unavailable) or None
            result.snapshots.append(snapshot)

        if not dry_run:
            db.flush()

        logger.info(
            "Backfilled %d snapshots for user %s (%s to %s)%s",
            len(result.snapshots),
            user_id,
            dates[0],
            dates[-1],
            " [dry run]" if dry_run else "",
        )
        if result.missing_prices:
            logger.warning(
                "Backfill for user %s had no historical close for %s",
                user_id,
                ", ".join(sorted(result.missing_prices)),
            )
        return result

    @staticmethod
    def get_latest(db: Session, user_id: str) -> WealthSnapshot:
        """Most recent snapshot by calculation date."""
        snapshot = (
            db.query(WealthSnapshot)
            .filter(WealthSnapshot.user_id == user_id)
            .order_by(WealthSnapshot.calculation_date.desc(), WealthSnapshot.created_at.desc())
            .first()
        )
        if snapshot is None:
            raise NotFoundError(f"No total wealth data found for user {user_id}")
        return snapshot

    @staticmethod
    def get_monthly_history(
        db: Session,
        user_id: str,
        months: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[WealthSnapshot]:
        """Latest snapshot of each calendar month in the trailing window.

        Returns:
            At most one snapshot per (year, month), oldest month first.
        """
        months = settings.WEALTH_HISTORY_MONTHS if months is None else months
        window_start = months_before(now or _utcnow(), months)

        snapshots = (
            db.query(WealthSnapshot)
            .filter(
                WealthSnapshot.user_id == user_id,
                WealthSnapshot.calculation_date >= window_start,
            )
            .order_by(WealthSnapshot.calculation_date, WealthSnapshot.created_at)
            .all()
        )

        latest_by_month: dict[tuple[int, int], WealthSnapshot] = {}
        for snapshot in snapshots:
            key = (snapshot.calculation_date.year, snapshot.calculation_date.month)
            latest_by_month[key] = snapshot
        return list(latest_by_month.values())

    @staticmethod
    def create_initial(db: Session, user_id: str) -> tuple[WealthSnapshot, bool]:
        """Create a zero snapshot unless the user already has one.

        Returns:
            (snapshot, created)
        """
        existing = (
            db.query(WealthSnapshot)
            .filter(WealthSnapshot.user_id == user_id)
            .order_by(WealthSnapshot.calculation_date.desc())
            .first()
        )
        if existing is not None:
            return existing, False

        snapshot = WealthSnapshot(
            user_id=user_id,
            total_wealth=Decimal("0.00"),
            total_invested=Decimal("0.00"),
            calculation_date=_utcnow(),
            is_backfill=False,
        )
        db.add(snapshot)
        db.flush()
        logger.info("Created initial wealth snapshot for user %s", user_id)
        return snapshot, True

    def recompute_in_background(self, user_id: str) -> None:
        """Run ``compute_and_snapshot`` in a fresh session and commit.

        Meant for FastAPI background tasks scheduled after a sale. Errors
        are logged and not re-raised.
        """
        SessionLocal = get_session_local()
        db = SessionLocal()
        try:
            self.compute_and_snapshot(db, user_id)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Background wealth recomputation failed for user %s", user_id)
        finally:
            db.close()
