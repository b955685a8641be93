"""Edge, EV score and value flag for modelled outcomes against market odds.

Two numbers describe each (market, outcome) pair:

* **edge** = model probability − margin-free implied probability.  This is
  what the ``min_edge`` value threshold applies to.
* **score**: an expected-value figure meant to rank bets across markets
  on one scale::

      ev    = model_prob * odds - 1
      score = clamp(ev, -0.25, 0.5) / sqrt(max(1, odds)) * market_weight

  The square-root penalty discounts long prices whose EV is noisier; the
  market weight reflects how far the model is trusted on that market
  (1X2 1.0, over/under 0.9, BTTS and anything else 0.85).

A market is scored only when the bookmaker prices every one of its
outcomes; the implied set cannot be normalised otherwise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from football_edge.core.markets import MARKET_OUTCOMES, Market, Outcome
from football_edge.core.model_config import DEFAULT_MODEL_CONFIG, FootballModelConfig
from football_edge.core.odds_math import implied_probabilities


@dataclass(frozen=True, slots=True)
class EdgeResult:
    """Model vs market comparison for one outcome."""

    market: str
    outcome: str
    odds: float
    model_prob: float
    implied_prob: float
    edge: float
    is_value: bool
    score: Optional[float] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "market": self.market,
            "selection": self.outcome,
            "odds": self.odds,
            "modelProb": self.model_prob,
            "impliedProb": self.implied_prob,
            "edge": self.edge,
            "value": self.is_value,
            "score": self.score,
        }


def variance_penalty(odds: float) -> float:
    return 1.0 / math.sqrt(max(1.0, odds))


def normalized_score(
    market: str,
    model_prob: float,
    odds: float,
    config: FootballModelConfig = DEFAULT_MODEL_CONFIG,
) -> float:
    """Clamped, variance-penalised, market-weighted EV per unit staked."""
    ev = model_prob * odds - 1.0
    clamped = max(config.min_ev, min(config.max_ev, ev))
    score = clamped * variance_penalty(odds) * config.market_weight(market)
    return round(score, 3)


def is_value(edge: float, min_edge: float) -> bool:
    return edge >= min_edge


def score_market(
    market: Market,
    model_probs: Mapping[str, float],
    market_odds: Mapping[str, float],
    min_edge: float,
    config: FootballModelConfig = DEFAULT_MODEL_CONFIG,
) -> List[EdgeResult]:
    """Score every outcome of one market priced by one bookmaker.

    Args:
        market: Market being scored.
        model_probs: Model probability per outcome key (``"home"``…).
        market_odds: Decimal odds per outcome key from a single bookmaker.
        min_edge: Edge at or above which an outcome is flagged as value.
        config: Model constants.

    Returns:
        One :class:`EdgeResult` per outcome in publication order, or an
        empty list when any outcome lacks odds or a model probability.
    """
    outcomes: Iterable[Outcome] = MARKET_OUTCOMES[market]
    keys = [o.value for o in outcomes]
    if any(market_odds.get(k) is None or model_probs.get(k) is None for k in keys):
        return []

    prices = [float(market_odds[k]) for k in keys]
    implied = implied_probabilities(prices)

    results: List[EdgeResult] = []
    for key, odds, imp in zip(keys, prices, implied):
        model_prob = float(model_probs[key])
        edge = model_prob - imp
        results.append(
            EdgeResult(
                market=market.value,
                outcome=key,
                odds=odds,
                model_prob=round(model_prob, 3),
                implied_prob=round(imp, 3),
                edge=round(edge, 3),
                is_value=is_value(edge, min_edge),
                score=normalized_score(market.value, model_prob, odds, config),
            )
        )
    return results


def _rank_key(result: EdgeResult) -> float:
    return result.score if result.score is not None else result.edge


def rank_edges(results: Iterable[EdgeResult]) -> List[EdgeResult]:
    """Sort by score descending, falling back to edge when score is absent."""
    return sorted(results, key=_rank_key, reverse=True)
