"""Tests for the database-backed DailyPriceCache."""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

from models import DailyStockPrice
from services.price_cache import DailyPriceCache


class TestDailyPriceCache:
    def test_get_miss(self, db):
        assert DailyPriceCache(db).get("ACME") is None

    def test_put_then_get_today(self, db):
        cache = DailyPriceCache(db)
        cache.put("acme", Decimal("10.5"), "tiingo", open=Decimal("10"))

        row = cache.get("ACME")
        assert row.close == Decimal("10.5")
        assert row.open == Decimal("10")
        assert row.price_date == cache.today()

    def test_put_upserts(self, db):
        cache = DailyPriceCache(db)
        cache.put("ACME", Decimal("10"), "tiingo", open=Decimal("9"))
        cache.put("ACME", Decimal("11"), "alphavantage_intraday")

        row = cache.get("ACME")
        assert db.query(DailyStockPrice).count() == 1
        assert row.close == Decimal("11")
        assert row.source == "alphavantage_intraday"
        # open survives a close-only write
        assert row.open == Decimal("9")

    def test_entries_are_per_day(self, db):
        cache = DailyPriceCache(db)
        cache.put("ACME", Decimal("10"), "x", day=date(2024, 1, 1))

        assert cache.get("ACME", day=date(2024, 1, 1)) is not None
        assert cache.get("ACME", day=date(2024, 1, 2)) is None

    def test_put_updates_row_inserted_by_another_writer(self, db):
        cache = DailyPriceCache(db)
        day = date(2024, 1, 2)
        db.add(DailyStockPrice(ticker="ACME", price_date=day, close=Decimal("100"), source="tiingo"))
        db.flush()

        real_get = cache.get
        lookups = []

        def stale_first_lookup(ticker, day=None):
            lookups.append(ticker)
            # the other writer's row is not visible to the first lookup
            return None if len(lookups) == 1 else real_get(ticker, day)

        with patch.object(cache, "get", side_effect=stale_first_lookup):
            row = cache.put("ACME", Decimal("120"), "alphavantage_intraday", day=day)

        assert db.query(DailyStockPrice).count() == 1
        assert row.close == Decimal("120")
        assert row.source == "alphavantage_intraday"
        assert real_get("ACME", day).close == Decimal("120")

    def test_prune_removes_older_rows(self, db):
        cache = DailyPriceCache(db)
        today = cache.today()
        cache.put("ACME", Decimal("1"), "x", day=today - timedelta(days=2))
        cache.put("ACME", Decimal("2"), "x", day=today)

        assert cache.prune() == 1
        assert [r.price_date for r in db.query(DailyStockPrice).all()] == [today]

    def test_today_uses_configured_timezone(self, db):
        tokyo = DailyPriceCache(db, timezone_name="Asia/Tokyo")
        honolulu = DailyPriceCache(db, timezone_name="Pacific/Honolulu")
        # 19 hours apart, so never more than a day
        assert 0 <= (tokyo.today() - honolulu.today()).days <= 1
