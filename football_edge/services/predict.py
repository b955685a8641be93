"""
Single-fixture prediction: model markets plus edges against one bookmaker.

Pipeline::

    fixture meta
      → last N results for both teams (fetched concurrently)
      → Elo ratings → goal rates → Poisson markets
      → odds from one bookmaker → edge per outcome → top ranked edges

Errors from the data source propagate to the caller.  A fixture with no
odds is not an error: the model markets are returned with
``oddsAvailable: False`` and a note.
"""

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from football_edge.core.data_source import FootballDataSource
from football_edge.core.edge import EdgeResult, rank_edges, score_market
from football_edge.core.goal_model import predict_football_markets
from football_edge.core.markets import MARKET_OUTCOMES
from football_edge.core.model_config import DEFAULT_MODEL_CONFIG, FootballModelConfig
from football_edge.core.odds_math import margin_pct
from football_edge.services.odds import complete_markets, market_odds_for_bookmaker, pick_bookmaker

load_dotenv()

logger = logging.getLogger(__name__)

PREFERRED_BOOKMAKER = os.getenv("PREFERRED_BOOKMAKER", "Bet365")
RECENT_MATCHES_WINDOW = int(os.getenv("RECENT_MATCHES_WINDOW", "20"))

TOP_EDGES = 6

NO_ODDS_NOTE = "No odds available for this fixture (coverage or plan limits)."
NO_COMPLETE_MARKET_NOTE = "No bookmaker prices a complete supported market for this fixture."


async def predict_fixture(
    source: FootballDataSource,
    fixture_id: int,
    min_edge: float = 0.05,
    preferred_bookmaker: Optional[str] = PREFERRED_BOOKMAKER,
    recent_window: int = RECENT_MATCHES_WINDOW,
    injury_service=None,
    config: FootballModelConfig = DEFAULT_MODEL_CONFIG,
) -> Dict[str, Any]:
    """
    Predict one fixture and compare the model with bookmaker prices.

    Args:
        source: Football data provider.
        fixture_id: Provider fixture id.
        min_edge: Edge at or above which an outcome is flagged as value.
        preferred_bookmaker: Bookmaker whose prices are scored when quoted.
        recent_window: Number of recent results per team fed to Elo.
        injury_service: Optional ``InjuryService``; adds an ``injuries`` block.
        config: Model constants.

    Raises:
        UpstreamUnavailableError: A provider call failed.
        IncompleteDataError: The fixture is missing teams, ids or season.
    """
    meta = await source.fetch_fixture_meta(fixture_id)

    home_recent, away_recent = await asyncio.gather(
        source.fetch_recent_results(meta.home_team_id, meta.season, last=recent_window),
        source.fetch_recent_results(meta.away_team_id, meta.season, last=recent_window),
    )

    prediction = predict_football_markets(home_recent, away_recent, config)
    markets = prediction.markets

    base: Dict[str, Any] = {
        "fixtureId": meta.fixture_id,
        "homeTeam": meta.home_team_name,
        "awayTeam": meta.away_team_name,
        "modelInfo": prediction.model_info(),
        "markets": {
            **markets.to_dict(),
            "draw": {"draw": markets.match_winner.draw},
        },
    }
    if injury_service is not None:
        base["injuries"] = await injury_service.injury_block(meta)

    bookmakers = await source.fetch_odds_for_fixture(meta.fixture_id)
    if not bookmakers:
        logger.info("Fixture %s: no odds available", meta.fixture_id)
        return {**base, "oddsAvailable": False, "note": NO_ODDS_NOTE}

    bookmaker = pick_bookmaker(bookmakers, preferred_bookmaker)
    if bookmaker is None:
        logger.info("Fixture %s: no complete market from any bookmaker", meta.fixture_id)
        return {**base, "oddsAvailable": False, "note": NO_COMPLETE_MARKET_NOTE}

    market_odds = market_odds_for_bookmaker(bookmaker)
    model_probs = markets.by_market()

    edges: List[EdgeResult] = []
    margins: Dict[str, float] = {}
    for market in complete_markets(market_odds):
        prices = market_odds[market]
        margins[market.value] = round(
            margin_pct([prices[o.value] for o in MARKET_OUTCOMES[market]]), 2
        )
        edges.extend(
            score_market(market, model_probs[market.value], market_odds[market], min_edge, config)
        )

    top = rank_edges(edges)[:TOP_EDGES]
    logger.debug(
        "Fixture %s: %d scored outcomes from %s",
        meta.fixture_id, len(edges), bookmaker.get("name"),
    )

    return {
        **base,
        "oddsAvailable": True,
        "bookmaker": {"id": bookmaker.get("id"), "name": bookmaker.get("name")},
        "marginPct": margins,
        "top": [e.to_dict() for e in top],
    }
