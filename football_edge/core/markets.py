"""Closed market/outcome vocabulary and the provider synonym table.

Provider payloads name markets and outcomes in free text ("Match Winner",
"Goals Over/Under", "Over 2.5"…).  Every comparison against those strings
goes through :func:`normalize_market_name` and :func:`normalize_outcome`,
which look the trimmed, lower-cased text up in one table.  Add new
synonyms here and nowhere else.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Final, Optional, Tuple


class Market(str, Enum):
    """Markets that are modelled, scored and checked for arbitrage."""

    MATCH_WINNER = "1x2"
    BTTS = "btts"
    OVER_UNDER_25 = "ou25"


class Outcome(str, Enum):
    HOME = "home"
    DRAW = "draw"
    AWAY = "away"
    YES = "yes"
    NO = "no"
    OVER = "over"
    UNDER = "under"


#: Required outcomes per market, in publication order.
MARKET_OUTCOMES: Final[Dict[Market, Tuple[Outcome, ...]]] = {
    Market.MATCH_WINNER: (Outcome.HOME, Outcome.DRAW, Outcome.AWAY),
    Market.BTTS: (Outcome.YES, Outcome.NO),
    Market.OVER_UNDER_25: (Outcome.OVER, Outcome.UNDER),
}

#: Order in which markets are evaluated for arbitrage.
ARBITRAGE_MARKETS: Final[Tuple[Market, ...]] = (
    Market.OVER_UNDER_25,
    Market.BTTS,
    Market.MATCH_WINNER,
)

#: Scan ``market`` filter values.  ``draw`` selects the 1X2 draw outcome.
MARKET_FILTERS: Final[Tuple[str, ...]] = ("all", "1x2", "btts", "ou25", "draw")

_MARKET_SYNONYMS: Final[Dict[str, Market]] = {
    "match winner": Market.MATCH_WINNER,
    "winner": Market.MATCH_WINNER,
    "1x2": Market.MATCH_WINNER,
    "both teams score": Market.BTTS,
    "both teams to score": Market.BTTS,
    "btts": Market.BTTS,
    "goals over/under": Market.OVER_UNDER_25,
    "over/under": Market.OVER_UNDER_25,
}

_OUTCOME_SYNONYMS: Final[Dict[Market, Dict[str, Outcome]]] = {
    Market.MATCH_WINNER: {
        "home": Outcome.HOME,
        "1": Outcome.HOME,
        "draw": Outcome.DRAW,
        "x": Outcome.DRAW,
        "away": Outcome.AWAY,
        "2": Outcome.AWAY,
    },
    Market.BTTS: {
        "yes": Outcome.YES,
        "no": Outcome.NO,
    },
    # Only the 2.5 line; other lines in the same provider market are ignored.
    Market.OVER_UNDER_25: {
        "over 2.5": Outcome.OVER,
        "over2.5": Outcome.OVER,
        "o2.5": Outcome.OVER,
        "under 2.5": Outcome.UNDER,
        "under2.5": Outcome.UNDER,
        "u2.5": Outcome.UNDER,
    },
}


def _norm(text: object) -> str:
    return str(text if text is not None else "").strip().lower()


def normalize_market_name(name: object) -> Optional[Market]:
    """Map a provider market name to a :class:`Market`, or ``None``."""
    return _MARKET_SYNONYMS.get(_norm(name))


def normalize_outcome(market: Market, label: object) -> Optional[Outcome]:
    """Map a provider outcome label within ``market`` to an :class:`Outcome`."""
    return _OUTCOME_SYNONYMS[market].get(_norm(label))
