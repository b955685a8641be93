"""Fundamental decimal-odds mathematics: the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

Design decisions
----------------
* API-Football returns European decimal odds, often as strings
  (``"2.10"``).  :func:`parse_decimal_odds` is the only place that turns a
  raw provider value into a float and rejects anything that is not a real
  price (``<= 1``, NaN, infinite, unparseable).
* Vig removal is **proportional** normalisation: invert each price, divide
  by the overround.  It is exact for markets with evenly applied margin and
  works for any number of outcomes (1X2 has three), which the two-outcome
  Shin solver does not.
* A normalised set is only meaningful when every outcome of a market is
  priced by the same bookmaker.  Completeness is the caller's job; this
  module refuses empty or invalid inputs.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from typing import Final, Optional, Sequence

from football_edge.core.exceptions import IncompleteDataError

#: Decimal odds must be strictly above this to represent a real price.
_MIN_DECIMAL_ODDS: Final[float] = 1.0


def parse_decimal_odds(value: object) -> Optional[float]:
    """Parse a raw provider price into decimal odds.

    Returns:
        The price as a float, or ``None`` when the value is missing,
        unparseable, not finite, or not strictly greater than 1.

    Examples::

        parse_decimal_odds("2.10") → 2.1
        parse_decimal_odds(1.0)    → None   (no payout)
        parse_decimal_odds("n/a")  → None
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        odds = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(odds) or odds <= _MIN_DECIMAL_ODDS:
        return None
    return odds


def implied_prob(decimal_odds: float) -> float:
    """Raw implied probability of one price (vig-inclusive)."""
    if decimal_odds <= _MIN_DECIMAL_ODDS:
        raise IncompleteDataError(
            f"Decimal odds {decimal_odds!r} must be > 1 to imply a probability."
        )
    return 1.0 / decimal_odds


def overround(odds: Sequence[float]) -> float:
    """Sum of raw implied probabilities across a market's outcomes.

    Above 1 for a normally priced market (the excess is the bookmaker's
    margin); below 1 only when the prices come from different books and
    form an arbitrage.
    """
    if not odds:
        raise IncompleteDataError("Cannot compute overround of an empty market.")
    return sum(implied_prob(o) for o in odds)


def implied_probabilities(odds: Sequence[float]) -> list[float]:
    """Margin-free implied probabilities for one bookmaker's full market.

    Args:
        odds: Decimal odds for every outcome of the market, in outcome
            order.  Each must be > 1.

    Returns:
        One probability per outcome, summing to 1.

    Raises:
        IncompleteDataError: If ``odds`` is empty or contains a price ≤ 1.

    Examples::

        implied_probabilities([1.90, 1.90]) → [0.5, 0.5]
        implied_probabilities([2.0, 3.5, 4.0]) → [0.4827…, 0.2758…, 0.2413…]
    """
    inverses = [implied_prob(o) for o in odds]
    if not inverses:
        raise IncompleteDataError("Cannot normalise an empty market.")
    total = sum(inverses)
    return [x / total for x in inverses]


def margin_pct(odds: Sequence[float]) -> float:
    """Bookmaker margin as a percentage (e.g. 5.2 for a 1.052 overround)."""
    return (overround(odds) - 1.0) * 100.0
