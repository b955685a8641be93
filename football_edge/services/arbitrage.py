"""
Arbitrage check for one fixture across every quoted bookmaker.
"""

import logging
from typing import Any, Dict

from football_edge.core.arbitrage import find_arbitrage
from football_edge.core.data_source import FootballDataSource
from football_edge.core.markets import ARBITRAGE_MARKETS
from football_edge.services.odds import extract_quotes

logger = logging.getLogger(__name__)


async def find_arbitrage_for_fixture(
    source: FootballDataSource,
    fixture_id: int,
    min_roi: float = 0.0,
) -> Dict[str, Any]:
    """
    Fetch all bookmakers' odds for a fixture and look for arbitrage.

    Returns:
        ``{"fixtureId", "marketsChecked", "legsCount", "arbs"}`` where
        ``legsCount`` is the number of recognised quotes and ``arbs`` the
        published opportunities.

    Raises:
        UpstreamUnavailableError: The odds fetch failed.
    """
    bookmakers = await source.fetch_odds_for_fixture(fixture_id)
    quotes = extract_quotes(bookmakers)
    arbs = find_arbitrage(quotes, min_roi=min_roi)

    if arbs:
        logger.info(
            "Fixture %s: %d arbitrage opportunities (best roi %.4f)",
            fixture_id, len(arbs), max(a.roi for a in arbs),
        )

    return {
        "fixtureId": fixture_id,
        "marketsChecked": [m.value for m in ARBITRAGE_MARKETS],
        "legsCount": len(quotes),
        "arbs": [a.to_dict(fixture_id) for a in arbs],
    }
