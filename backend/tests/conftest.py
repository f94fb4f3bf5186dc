"""Pytest configuration and fixtures."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.market_data import get_market_data_service
from api.portfolio import get_wealth_recompute
from database import Base, get_db
from main import app
from services.market_data_service import MarketDataService
from tests.fixtures.mocks import (
    MockAlphaVantageClient,
    MockMarketDataProvider,
    MockPredictionClient,
    MockQuoteSource,
    MockTiingoClient,
)


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="quote_source")
def quote_source_fixture():
    """Primary quote source with ACME priced at 120."""
    return MockQuoteSource({"ACME": Decimal("120")}, name="alphavantage_intraday")


@pytest.fixture(name="market_data")
def market_data_fixture(quote_source):
    """MarketDataService wired entirely to mocks."""
    return MarketDataService(
        alpha_vantage=MockAlphaVantageClient(),
        tiingo=MockTiingoClient(),
        prediction=MockPredictionClient(),
        quote_sources=[quote_source],
        history_providers=[MockMarketDataProvider()],
    )


@pytest.fixture(name="recompute_calls")
def recompute_calls_fixture():
    """User ids passed to the post-sale recompute hook."""
    return []


@pytest.fixture(name="client")
def client_fixture(db, market_data, recompute_calls):
    """Create a test client with the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_market_data_service] = lambda: market_data
    app.dependency_overrides[get_wealth_recompute] = lambda: recompute_calls.append
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
