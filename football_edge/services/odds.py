"""
Bookmaker odds parsing for API-Football ``/odds`` payloads.

Two views of the same raw bookmaker blocks are produced:

  market_odds_for_bookmaker:
      One bookmaker's prices as ``{market: {outcome: odds}}``.  This is the
      input to edge scoring, where a market's implied probabilities must
      all come from the same book.

  extract_quotes:
      Every parseable price from every bookmaker as a flat list of
      ``BookmakerQuote``.  This is the input to arbitrage detection, which
      shops the best price per outcome across books.

Market and outcome names are matched through the synonym table in
``football_edge.core.markets``.  Unknown markets, unknown outcome labels
and prices that are not valid decimal odds are skipped silently; a market
missing one of its outcomes is left incomplete and the scorer skips it.
"""

import logging
from typing import Any, Dict, List, Optional

from football_edge.core.arbitrage import BookmakerQuote
from football_edge.core.markets import (
    MARKET_OUTCOMES,
    Market,
    normalize_market_name,
    normalize_outcome,
)
from football_edge.core.odds_math import parse_decimal_odds

logger = logging.getLogger(__name__)


def _iter_prices(bookmaker: Dict[str, Any]):
    """Yield ``(market, outcome, odds)`` for every recognised price."""
    for bet in bookmaker.get("bets") or []:
        market = normalize_market_name(bet.get("name"))
        if market is None:
            continue
        for val in bet.get("values") or []:
            outcome = normalize_outcome(market, val.get("value"))
            if outcome is None:
                continue
            odds = parse_decimal_odds(val.get("odd"))
            if odds is None:
                continue
            yield market, outcome, odds


def market_odds_for_bookmaker(bookmaker: Dict[str, Any]) -> Dict[Market, Dict[str, float]]:
    """
    One bookmaker's prices keyed by market then outcome value.

    When a provider lists the same market under two synonyms (e.g.
    "Match Winner" and "1X2") the first price seen for an outcome wins.
    """
    out: Dict[Market, Dict[str, float]] = {}
    for market, outcome, odds in _iter_prices(bookmaker):
        out.setdefault(market, {}).setdefault(outcome.value, odds)
    return out


def complete_markets(market_odds: Dict[Market, Dict[str, float]]) -> List[Market]:
    """Markets for which every required outcome is priced."""
    return [
        m for m, prices in market_odds.items()
        if all(o.value in prices for o in MARKET_OUTCOMES[m])
    ]


def extract_quotes(bookmakers: List[Dict[str, Any]]) -> List[BookmakerQuote]:
    """Flatten every bookmaker's recognised prices into quotes."""
    quotes: List[BookmakerQuote] = []
    for bk in bookmakers:
        book_id = bk.get("id")
        book_name = bk.get("name")
        for market, outcome, odds in _iter_prices(bk):
            quotes.append(
                BookmakerQuote(
                    market=market,
                    outcome=outcome,
                    odds=odds,
                    bookmaker_id=book_id,
                    bookmaker_name=book_name,
                )
            )
    return quotes


def pick_bookmaker(
    bookmakers: List[Dict[str, Any]],
    preferred: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Choose the bookmaker whose prices are used for edge scoring.

    The ``preferred`` book (case-insensitive name match) wins when it prices
    at least one complete market.
    Otherwise the first book that prices at least one complete market is
    used, so a fixture is not reported as odds-less just because one
    bookmaker is missing.  Returns None when no book qualifies.
    """
    if preferred:
        wanted = preferred.strip().lower()
        for bk in bookmakers:
            if str(bk.get("name") or "").strip().lower() != wanted:
                continue
            if complete_markets(market_odds_for_bookmaker(bk)):
                return bk
            logger.debug("Preferred bookmaker %s prices no complete market", preferred)
            break
        else:
            logger.debug("Preferred bookmaker %s not quoted; falling back", preferred)

    for bk in bookmakers:
        if complete_markets(market_odds_for_bookmaker(bk)):
            return bk
    return None
