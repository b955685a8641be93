"""Cross-bookmaker arbitrage detection and stake sizing.

For each market the best (highest) price of every outcome is taken across
all bookmakers.  Backing every outcome at those prices locks in a profit
when the inverse prices sum to less than one::

    inv  = Σ 1 / odds_i
    roi  = 1 / inv - 1                      (> 0 ⇔ inv < 1)
    stake_i % = (1 / odds_i) / inv * 100

With that split every leg returns ``100 / inv`` per 100 staked, whichever
outcome wins.

A market with no quote for one of its outcomes is skipped: a real
arbitrage needs a simultaneous price on every outcome, even if each comes
from a different book.

Run tests with::

    pytest tests/test_arbitrage.py -v
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from football_edge.core.markets import ARBITRAGE_MARKETS, MARKET_OUTCOMES, Market, Outcome


@dataclass(frozen=True, slots=True)
class BookmakerQuote:
    """A single price from one bookmaker on one outcome."""

    market: Market
    outcome: Outcome
    odds: float
    bookmaker_id: Optional[int] = None
    bookmaker_name: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "market": self.market.value,
            "selection": self.outcome.value,
            "odds": self.odds,
            "bookmakerId": self.bookmaker_id,
            "bookmakerName": self.bookmaker_name,
        }


@dataclass(frozen=True, slots=True)
class StakeLeg:
    outcome: Outcome
    odds: float
    stake_pct: float
    bookmaker_name: Optional[str] = None


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """Best-price combination on one market that guarantees a profit."""

    market: Market
    legs: List[BookmakerQuote]
    inverse_odds_sum: float
    roi: float
    stake_plan: List[StakeLeg] = field(default_factory=list)

    def to_dict(self, fixture_id: Optional[int] = None) -> Dict[str, object]:
        out: Dict[str, object] = {
            "market": self.market.value,
            "legs": [leg.to_dict() for leg in self.legs],
            "invSum": round(self.inverse_odds_sum, 4),
            "roi": round(self.roi, 4),
            "stakePlan": [
                {
                    "selection": s.outcome.value,
                    "bookmakerName": s.bookmaker_name,
                    "odds": s.odds,
                    "stakePct": round(s.stake_pct, 2),
                }
                for s in self.stake_plan
            ],
        }
        if fixture_id is not None:
            out = {"fixtureId": fixture_id, **out}
        return out


def best_prices(
    quotes: Iterable[BookmakerQuote],
    market: Market,
) -> Dict[Outcome, BookmakerQuote]:
    """Highest-priced quote per outcome of ``market``.

    Outcomes without any quote are absent from the result.  On equal prices
    the first quote seen wins.
    """
    best: Dict[Outcome, BookmakerQuote] = {}
    for quote in quotes:
        if quote.market != market:
            continue
        current = best.get(quote.outcome)
        if current is None or quote.odds > current.odds:
            best[quote.outcome] = quote
    return best


def stake_plan(legs: Sequence[BookmakerQuote]) -> List[StakeLeg]:
    """Split 100% of the stake so every leg pays out the same amount."""
    inv = sum(1.0 / leg.odds for leg in legs)
    return [
        StakeLeg(
            outcome=leg.outcome,
            odds=leg.odds,
            stake_pct=(1.0 / leg.odds) / inv * 100.0,
            bookmaker_name=leg.bookmaker_name,
        )
        for leg in legs
    ]


def find_arbitrage(
    quotes: Iterable[BookmakerQuote],
    min_roi: float = 0.0,
) -> List[ArbitrageOpportunity]:
    """Check every supported market for a risk-free best-price combination.

    Args:
        quotes: Every quote for one fixture, across bookmakers and markets.
        min_roi: Minimum guaranteed return (0.01 = 1%) to report.

    Returns:
        Zero or more opportunities, at most one per market, in
        :data:`ARBITRAGE_MARKETS` order.  Every returned opportunity has
        ``roi > 0`` and ``roi >= min_roi``.
    """
    quotes = list(quotes)
    out: List[ArbitrageOpportunity] = []

    for market in ARBITRAGE_MARKETS:
        best = best_prices(quotes, market)
        outcomes = MARKET_OUTCOMES[market]
        if any(o not in best for o in outcomes):
            continue

        legs = [best[o] for o in outcomes]
        inv = sum(1.0 / leg.odds for leg in legs)
        roi = 1.0 / inv - 1.0
        if roi <= 0 or roi < min_roi:
            continue

        out.append(
            ArbitrageOpportunity(
                market=market,
                legs=legs,
                inverse_odds_sum=inv,
                roi=roi,
                stake_plan=stake_plan(legs),
            )
        )
    return out
