"""
FastAPI application for Football Edge Analyzer
Thin HTTP shell over the prediction, scan and arbitrage services
"""

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging
import os

from dotenv import load_dotenv

from football_edge.core.data_source import FootballDataSource
from football_edge.core.exceptions import (
    FootballEdgeError,
    IncompleteDataError,
    InvariantViolationError,
    UpstreamUnavailableError,
)
from football_edge.core.leagues import LEAGUES
from football_edge.schemas import (
    ArbitrageResponse,
    FixturesResponse,
    HealthResponse,
    LeaguesResponse,
    MarketFilter,
)
from football_edge.services.api_football import ApiFootballClient
from football_edge.services.arbitrage import find_arbitrage_for_fixture
from football_edge.services.cache import ExpiringCache
from football_edge.services.fixtures import FIXTURES_CACHE_TTL_SECONDS, FixtureService
from football_edge.services.injuries import LEADERS_CACHE_TTL_SECONDS, InjuryService
from football_edge.services.predict import PREFERRED_BOOKMAKER, predict_fixture
from football_edge.services.scan import SCAN_CACHE_TTL_SECONDS, FixtureScanner, ScanRequest

load_dotenv()

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_NAME = "Football Edge Analyzer"
APP_VERSION = "1.0"

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]


def build_state(app: FastAPI, source: Optional[FootballDataSource]) -> None:
    """Wire the caches and services onto ``app.state`` once per process."""
    app.state.source = source
    app.state.fixtures_cache = ExpiringCache(FIXTURES_CACHE_TTL_SECONDS, name="fixtures")
    app.state.scan_cache = ExpiringCache(SCAN_CACHE_TTL_SECONDS, name="scan")
    app.state.leaders_cache = ExpiringCache(LEADERS_CACHE_TTL_SECONDS, name="leaders")

    if source is None:
        app.state.fixture_service = None
        app.state.scanner = None
        app.state.injury_service = None
        return

    app.state.fixture_service = FixtureService(source, app.state.fixtures_cache)
    app.state.scanner = FixtureScanner(source, app.state.fixture_service, app.state.scan_cache)
    app.state.injury_service = InjuryService(source, app.state.leaders_cache)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting %s", APP_NAME)

    # Tests wire their own data source before startup
    if getattr(app.state, "source", None) is None:
        try:
            source = ApiFootballClient()
        except ValueError as exc:
            logger.warning("API-Football client not configured: %s", exc)
            source = None
        build_state(app, source)

    yield

    logger.info("Shutting down %s", APP_NAME)


app = FastAPI(
    title=APP_NAME,
    description="Football match predictions (Elo + Poisson), value edges and arbitrage",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# DEPENDENCIES
# ============================================================================

def _require(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail="Data source not configured (APIFOOTBALL_API_KEY)")
    return service


def get_source(request: Request) -> FootballDataSource:
    return _require(request, "source")


def get_fixture_service(request: Request) -> FixtureService:
    return _require(request, "fixture_service")


def get_scanner(request: Request) -> FixtureScanner:
    return _require(request, "scanner")


def get_injury_service(request: Request) -> Optional[InjuryService]:
    return getattr(request.app.state, "injury_service", None)


def _check_date_range(date_from: str, date_to: str) -> None:
    try:
        start = datetime.strptime(date_from, "%Y-%m-%d").date()
        end = datetime.strptime(date_to, "%Y-%m-%d").date()
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid date: {exc}")
    if start > end:
        raise HTTPException(status_code=422, detail="'from' must not be after 'to'")


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Service banner"""
    return {
        "app": APP_NAME,
        "version": APP_VERSION,
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint"""
    state = request.app.state
    configured = getattr(state, "source", None) is not None
    scan_cache = getattr(state, "scan_cache", None)
    fixtures_cache = getattr(state, "fixtures_cache", None)
    return {
        "status": "healthy" if configured else "degraded",
        "data_source": "configured" if configured else "missing api key",
        "scan_cache_entries": len(scan_cache) if scan_cache is not None else 0,
        "fixtures_cache_entries": len(fixtures_cache) if fixtures_cache is not None else 0,
    }


@app.get("/api/leagues", response_model=LeaguesResponse)
async def list_leagues():
    """Supported league keys"""
    leagues = [
        {"key": key, "id": lg.id, "name": lg.name, "country": lg.country, "type": lg.type}
        for key, lg in LEAGUES.items()
    ]
    return {"count": len(leagues), "leagues": leagues}


@app.get("/api/fixtures", response_model=FixturesResponse)
async def get_fixtures(
    league_key: str = Query(..., alias="leagueKey", min_length=1),
    season: int = Query(..., ge=1900, le=2100),
    date_from: str = Query(..., alias="from", pattern=DATE_PATTERN),
    date_to: str = Query(..., alias="to", pattern=DATE_PATTERN),
    fixture_service: FixtureService = Depends(get_fixture_service),
):
    """Fixtures for a league between two dates (YYYY-MM-DD)"""
    _check_date_range(date_from, date_to)
    return await fixture_service.get_fixtures(league_key, season, date_from, date_to)


@app.get("/api/predict_fixture")
async def get_fixture_prediction(
    fixture_id: int = Query(..., alias="fixtureId", gt=0),
    min_edge: float = Query(default=0.05, alias="minEdge", ge=0, le=0.5),
    bookmaker: Optional[str] = Query(
        default=None, min_length=1, max_length=64, description="Preferred bookmaker name"
    ),
    injuries: bool = Query(default=True, description="Attach injury flags"),
    source: FootballDataSource = Depends(get_source),
    injury_service: Optional[InjuryService] = Depends(get_injury_service),
):
    """Model markets and ranked edges for one fixture"""
    return await predict_fixture(
        source,
        fixture_id,
        min_edge=min_edge,
        preferred_bookmaker=bookmaker or PREFERRED_BOOKMAKER,
        injury_service=injury_service if injuries else None,
    )


@app.get("/api/scan")
async def scan_league(
    league_key: str = Query(..., alias="leagueKey", min_length=1),
    season: int = Query(..., ge=1900, le=2100),
    date_from: str = Query(..., alias="from", pattern=DATE_PATTERN),
    date_to: str = Query(..., alias="to", pattern=DATE_PATTERN),
    min_edge: float = Query(default=0.05, alias="minEdge", ge=0, le=0.5),
    only_value: bool = Query(default=False, alias="onlyValue"),
    min_odds: Optional[float] = Query(default=None, alias="minOdds", ge=1, le=1000),
    market: MarketFilter = Query(default="all"),
    concurrency: int = Query(default=6, ge=1, le=12),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    scanner: FixtureScanner = Depends(get_scanner),
):
    """Predict every fixture of a league in a date range and rank the edges"""
    _check_date_range(date_from, date_to)
    return await scanner.scan(
        ScanRequest(
            league_key=league_key,
            season=season,
            date_from=date_from,
            date_to=date_to,
            min_edge=min_edge,
            only_value=only_value,
            min_odds=min_odds,
            market=market,
            concurrency=concurrency,
            limit=limit,
        )
    )


@app.get("/api/arbitrage", response_model=ArbitrageResponse)
async def get_arbitrage(
    fixture_id: int = Query(..., alias="fixtureId", gt=0),
    min_roi: float = Query(default=0.0, alias="minRoi", ge=0, le=0.5),
    source: FootballDataSource = Depends(get_source),
):
    """Cross-bookmaker arbitrage on 1X2, BTTS and O/U 2.5"""
    return await find_arbitrage_for_fixture(source, fixture_id, min_roi=min_roi)


# ============================================================================
# ERROR HANDLING
# ============================================================================

@app.exception_handler(UpstreamUnavailableError)
async def upstream_exception_handler(request, exc: UpstreamUnavailableError):
    """Provider failures: upstream 4xx passes through, everything else is 502"""
    status = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else 502
    logger.warning("Upstream failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={"detail": str(exc), "type": type(exc).__name__, "upstream": exc.body},
    )


@app.exception_handler(IncompleteDataError)
async def incomplete_data_exception_handler(request, exc: IncompleteDataError):
    logger.warning("Incomplete data on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "type": type(exc).__name__},
    )


@app.exception_handler(FootballEdgeError)
async def football_edge_exception_handler(request, exc: FootballEdgeError):
    """Invariant violations and any other typed failure"""
    log = logger.error if isinstance(exc, InvariantViolationError) else logger.warning
    log("Request %s failed: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "type": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
