"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import market_data, portfolio, total_wealth, user_profiles
from config import settings
from database import get_session_local, init_db
from logging_config import setup_logging
from services.errors import PortfolioError
from services.price_cache import DailyPriceCache

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and drop cached prices from previous days on startup."""
    init_db()

    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        DailyPriceCache(db).prune()
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Price cache pruning failed on startup", exc_info=True)
    finally:
        db.close()
    yield


app = FastAPI(
    title="InvestWise",
    description="Portfolio ledger, holdings and total-wealth tracking",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError):
    """Render domain errors as ``{"detail": ..., "kind": ...}``."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Keep FastAPI's 422 body but tag it like the domain errors."""
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "kind": "validation_error"},
    )


# Include API routers
app.include_router(portfolio.router)
app.include_router(total_wealth.router)
app.include_router(market_data.router)
app.include_router(user_profiles.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
