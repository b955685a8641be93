"""
League scan: predict every fixture in a date range and rank the edges.

State machine per request:

    1. cache lookup (hit → stored payload with ``cached: True``)
    2. resolve fixtures through ``FixtureService`` (own cache), truncate to
       ``limit``
    3. ``concurrency`` workers pull fixtures off one shared cursor and run
       ``predict_fixture`` for each
    4. a failed fixture becomes an ``{"fixtureId", "error"}`` entry; the
       scan continues
    5. each fixture's ranked list is filtered (``market`` / ``only_value``
       / ``min_odds``), falling back to the unfiltered list when the filter
       empties it, and every entry gets a ``severity``
    6. results sorted by their best entry's score (edge when score is
       absent) descending; fixtures with nothing ranked go last, ties break
       on fixture id
    7. payload stored in the scan cache

Injury enrichment is off inside scans.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from football_edge.core.data_source import FootballDataSource
from football_edge.core.markets import MARKET_FILTERS
from football_edge.services.cache import ExpiringCache
from football_edge.services.fixtures import FixtureService
from football_edge.services.predict import PREFERRED_BOOKMAKER, RECENT_MATCHES_WINDOW, predict_fixture

logger = logging.getLogger(__name__)

SCAN_CACHE_TTL_SECONDS = float(os.getenv("SCAN_CACHE_TTL_SECONDS", "60"))

DEFAULT_CONCURRENCY = 6

# A bet is "huge" when the model disagrees strongly on a longer price
HUGE_EDGE = 0.10
HUGE_MIN_ODDS = 3.0


@dataclass
class ScanRequest:
    """Parameters of one league scan."""

    league_key: str
    season: int
    date_from: str
    date_to: str
    min_edge: float = 0.05
    only_value: bool = False
    min_odds: Optional[float] = None
    market: str = "all"
    concurrency: int = DEFAULT_CONCURRENCY
    limit: Optional[int] = None

    def __post_init__(self):
        if self.market not in MARKET_FILTERS:
            raise ValueError(f"market must be one of {MARKET_FILTERS}, got {self.market!r}")

    def cache_key(self) -> str:
        return ExpiringCache.make_key(
            leagueKey=self.league_key,
            season=self.season,
            date_from=self.date_from,
            date_to=self.date_to,
            minEdge=self.min_edge,
            onlyValue=bool(self.only_value),
            minOdds=self.min_odds,
            market=self.market,
            concurrency=self.concurrency,
            limit=self.limit,
        )


# ---------------------------------------------------------------------------
# Filters and ranking
# ---------------------------------------------------------------------------

def passes_filters(
    bet: Dict[str, Any],
    market: str = "all",
    only_value: bool = False,
    min_odds: Optional[float] = None,
) -> bool:
    """Whether one published edge entry survives the scan filters."""
    if not bet:
        return False
    if market == "draw":
        if bet.get("market") != "1x2" or bet.get("selection") != "draw":
            return False
    elif market != "all" and bet.get("market") != market:
        return False
    if only_value and not bet.get("value"):
        return False
    if min_odds is not None and not float(bet.get("odds") or 0) >= min_odds:
        return False
    return True


def severity_from_bet(bet: Dict[str, Any]) -> str:
    edge = bet.get("edge")
    odds = bet.get("odds")
    if edge is not None and odds is not None and edge >= HUGE_EDGE and odds >= HUGE_MIN_ODDS:
        return "huge"
    if bet.get("value"):
        return "value"
    return "none"


def filter_top(prediction: Dict[str, Any], request: ScanRequest) -> Dict[str, Any]:
    """Apply the scan filters to a prediction's ranked list."""
    if not prediction.get("oddsAvailable") or not isinstance(prediction.get("top"), list):
        return prediction

    original = prediction["top"]
    filtered = [
        b for b in original
        if passes_filters(b, request.market, request.only_value, request.min_odds)
    ]
    final = [{**b, "severity": severity_from_bet(b)} for b in (filtered or original)]
    return {**prediction, "top": final}


def _best_score(result: Dict[str, Any]) -> Optional[float]:
    top = (result.get("prediction") or {}).get("top") or []
    if not top:
        return None
    first = top[0]
    return first.get("score") if first.get("score") is not None else first.get("edge")


def _sort_key(result: Dict[str, Any]):
    best = _best_score(result)
    return (best is None, -(best or 0.0), result["fixtureId"])


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

class FixtureScanner:
    """Bounded-concurrency league scanner with a result cache."""

    def __init__(
        self,
        source: FootballDataSource,
        fixture_service: FixtureService,
        cache: ExpiringCache,
        preferred_bookmaker: Optional[str] = PREFERRED_BOOKMAKER,
        recent_window: int = RECENT_MATCHES_WINDOW,
    ):
        self.source = source
        self.fixture_service = fixture_service
        self.cache = cache
        self.preferred_bookmaker = preferred_bookmaker
        self.recent_window = recent_window

    async def _predict_one(self, fixture_id: int, request: ScanRequest) -> Dict[str, Any]:
        prediction = await predict_fixture(
            self.source,
            fixture_id,
            min_edge=request.min_edge,
            preferred_bookmaker=self.preferred_bookmaker,
            recent_window=self.recent_window,
        )
        return {"fixtureId": fixture_id, "prediction": filter_top(prediction, request)}

    async def scan(self, request: ScanRequest) -> Dict[str, Any]:
        """
        Run one scan.

        Raises:
            IncompleteDataError: Unknown league key.
            UpstreamUnavailableError: The fixture list could not be fetched.
        """
        key = request.cache_key()
        hit = self.cache.get(key)
        if hit is not None:
            return {**hit, "cached": True}

        fx = await self.fixture_service.get_fixtures(
            request.league_key, request.season, request.date_from, request.date_to,
        )
        fixtures: List[Dict[str, Any]] = fx.get("fixtures") or []
        if request.limit is not None:
            fixtures = fixtures[: max(0, request.limit)]

        results: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []
        cursor = 0
        lock = asyncio.Lock()

        async def worker() -> None:
            nonlocal cursor
            while True:
                async with lock:
                    if cursor >= len(fixtures):
                        return
                    item = fixtures[cursor]
                    cursor += 1

                raw_id = (item or {}).get("fixtureId")
                if isinstance(raw_id, bool) or not isinstance(raw_id, int):
                    logger.warning("Skipping fixture without an integer id: %r", raw_id)
                    continue

                try:
                    results.append(await self._predict_one(raw_id, request))
                except Exception as e:
                    logger.error("Scan: fixture %s failed: %s", raw_id, e, exc_info=True)
                    errors.append({"fixtureId": raw_id, "error": str(e)})

        workers = max(1, request.concurrency)
        await asyncio.gather(*(worker() for _ in range(workers)))

        results.sort(key=_sort_key)
        errors.sort(key=lambda e: e["fixtureId"])

        payload = {
            "leagueKey": request.league_key,
            "season": request.season,
            "from": request.date_from,
            "to": request.date_to,
            "count": len(fixtures),
            "fixtures": fixtures,
            "results": results,
            "errors": errors,
            "filters": {
                "minEdge": request.min_edge,
                "onlyValue": request.only_value,
                "minOdds": request.min_odds,
                "market": request.market,
            },
            "cached": False,
        }
        self.cache.set(key, payload)

        logger.info(
            "Scan %s %s %s→%s: %d fixtures, %d predicted, %d errors",
            request.league_key, request.season, request.date_from, request.date_to,
            len(fixtures), len(results), len(errors),
        )
        return payload
