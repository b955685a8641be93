"""Elo difference → expected goals → market probabilities.

Goal-rate model
---------------
Two baseline rates (home 1.45, away 1.15) encode home advantage.  The Elo
difference shifts goals from one side to the other::

    delta = clamp((home_elo - away_elo) / 400, -1.5, 1.5) * 0.35
    λ_home = clamp(1.45 + delta, 0.2, 3.2)
    λ_away = clamp(1.15 - delta, 0.2, 3.2)

Market distribution
-------------------
Home and away goals are independent Poisson variables.  The joint grid is
truncated at ``max_goals`` per side (10 by default, 121 cells) and summed
into the published markets:

* **1X2**: lower triangle / diagonal / upper triangle.  The three sums are
  renormalised by their total to absorb the truncated tail.
* **BTTS yes**: every cell with both scores ≥ 1.
* **Over 2.5**: every cell with ``h + a ≥ 3``.

BTTS and over/under are read directly as truncated sums; only 1X2 is
renormalised.  At the largest rate (λ = 3.2) the truncated tail holds
roughly 5e-4 of the mass per side.

Run tests with::

    pytest tests/test_goal_model.py -v
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import numpy as np
from scipy.stats import poisson

from football_edge.core.elo import TeamMatchResult, elo_from_matches
from football_edge.core.exceptions import InvariantViolationError
from football_edge.core.model_config import DEFAULT_MODEL_CONFIG, FootballModelConfig

#: Identifier published with every prediction.
MODEL_NAME = "elo+poisson"


def _r3(x: float) -> float:
    return round(x, 3)


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


# ---------------------------------------------------------------------------
# Data transfer objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExpectedGoalRates:
    """Poisson means for the two sides of a fixture."""

    home: float
    away: float


@dataclass(frozen=True, slots=True)
class MatchWinnerProbs:
    home: float
    draw: float
    away: float


@dataclass(frozen=True, slots=True)
class DoubleChanceProbs:
    home_or_draw: float
    home_or_away: float
    draw_or_away: float


@dataclass(frozen=True, slots=True)
class BttsProbs:
    yes: float
    no: float


@dataclass(frozen=True, slots=True)
class OverUnderProbs:
    over: float
    under: float


@dataclass(frozen=True, slots=True)
class MarketProbabilities:
    """All supported markets derived from one pair of goal rates."""

    match_winner: MatchWinnerProbs
    double_chance: DoubleChanceProbs
    btts: BttsProbs
    over_under_25: OverUnderProbs

    def by_market(self) -> Dict[str, Dict[str, float]]:
        """Outcome probabilities keyed by market key then outcome key.

        Only the partitioned markets (those that can be priced by a
        bookmaker and normalised) are included.
        """
        return {
            "1x2": {
                "home": self.match_winner.home,
                "draw": self.match_winner.draw,
                "away": self.match_winner.away,
            },
            "btts": {"yes": self.btts.yes, "no": self.btts.no},
            "ou25": {"over": self.over_under_25.over, "under": self.over_under_25.under},
        }

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        """Published JSON shape."""
        return {
            "1x2": {
                "home": self.match_winner.home,
                "draw": self.match_winner.draw,
                "away": self.match_winner.away,
            },
            "doubleChance": {
                "1X": self.double_chance.home_or_draw,
                "12": self.double_chance.home_or_away,
                "X2": self.double_chance.draw_or_away,
            },
            "btts": {"yes": self.btts.yes, "no": self.btts.no},
            "ou25": {"over": self.over_under_25.over, "under": self.over_under_25.under},
        }


@dataclass(frozen=True, slots=True)
class FootballPrediction:
    """Model output for one fixture: ratings, rates and markets."""

    home_elo: float
    away_elo: float
    rates: ExpectedGoalRates
    markets: MarketProbabilities

    def model_info(self) -> Dict[str, object]:
        return {
            "name": MODEL_NAME,
            "homeElo": _r3(self.home_elo),
            "awayElo": _r3(self.away_elo),
            "lambdaHome": _r3(self.rates.home),
            "lambdaAway": _r3(self.rates.away),
        }


# ---------------------------------------------------------------------------
# Goal rates
# ---------------------------------------------------------------------------


def expected_goal_rates(
    home_rating: float,
    away_rating: float,
    config: FootballModelConfig = DEFAULT_MODEL_CONFIG,
) -> ExpectedGoalRates:
    """Map the Elo difference onto Poisson means for both sides."""
    diff = home_rating - away_rating
    shift = _clamp(
        diff / config.rating_diff_scale,
        -config.max_rating_shift,
        config.max_rating_shift,
    )
    delta = shift * config.lambda_shift_per_unit

    return ExpectedGoalRates(
        home=_clamp(config.base_lambda_home + delta, config.min_lambda, config.max_lambda),
        away=_clamp(config.base_lambda_away - delta, config.min_lambda, config.max_lambda),
    )


# ---------------------------------------------------------------------------
# Market distribution
# ---------------------------------------------------------------------------


def _check_unit_sum(name: str, total: float, tolerance: float) -> None:
    if abs(total - 1.0) > tolerance:
        raise InvariantViolationError(
            f"{name} probabilities sum to {total!r}, expected 1 ± {tolerance}"
        )


def poisson_markets(
    lambda_home: float,
    lambda_away: float,
    max_goals: Optional[int] = None,
    config: FootballModelConfig = DEFAULT_MODEL_CONFIG,
) -> MarketProbabilities:
    """Compute 1X2, double chance, BTTS and O/U 2.5 from two Poisson means.

    Args:
        lambda_home: Expected home goals (> 0).
        lambda_away: Expected away goals (> 0).
        max_goals: Per-side truncation of the joint grid.  Defaults to
            ``config.max_goals``.
        config: Model constants.

    Returns:
        :class:`MarketProbabilities` rounded to 3 decimals.  The away 1X2
        value is published as ``1 - home - draw`` of the rounded values so
        the rounded triple still sums to one.

    Raises:
        ValueError: If either mean is not positive.
        InvariantViolationError: If any sub-market fails its unit-sum check.
    """
    if lambda_home <= 0 or lambda_away <= 0:
        raise ValueError(
            f"Poisson means must be positive, got {lambda_home!r}, {lambda_away!r}"
        )
    n = config.max_goals if max_goals is None else int(max_goals)
    tol = config.probability_tolerance

    goals = np.arange(n + 1)
    grid = np.outer(poisson.pmf(goals, lambda_home), poisson.pmf(goals, lambda_away))

    # Rows are home goals, columns away goals.
    home_win = float(np.tril(grid, k=-1).sum())
    draw = float(np.trace(grid))
    away_win = float(np.triu(grid, k=1).sum())
    btts_yes = float(grid[1:, 1:].sum())
    total_goals = goals[:, None] + goals[None, :]
    over25 = float(grid[total_goals >= 3].sum())

    # Tail truncation: renormalise the three-way split only.
    total = home_win + draw + away_win
    home_win /= total
    draw /= total
    away_win /= total
    _check_unit_sum("1x2", home_win + draw + away_win, tol)

    home_r = _r3(home_win)
    draw_r = _r3(draw)
    away_r = _r3(1.0 - home_r - draw_r)
    yes_r = _r3(btts_yes)
    over_r = _r3(over25)

    markets = MarketProbabilities(
        match_winner=MatchWinnerProbs(home=home_r, draw=draw_r, away=away_r),
        double_chance=DoubleChanceProbs(
            home_or_draw=_r3(home_r + draw_r),
            home_or_away=_r3(home_r + away_r),
            draw_or_away=_r3(draw_r + away_r),
        ),
        btts=BttsProbs(yes=yes_r, no=_r3(1.0 - yes_r)),
        over_under_25=OverUnderProbs(over=over_r, under=_r3(1.0 - over_r)),
    )

    mw = markets.match_winner
    _check_unit_sum("1x2", mw.home + mw.draw + mw.away, tol)
    _check_unit_sum("btts", markets.btts.yes + markets.btts.no, tol)
    _check_unit_sum("ou25", markets.over_under_25.over + markets.over_under_25.under, tol)
    return markets


def predict_football_markets(
    home_recent: Iterable[TeamMatchResult],
    away_recent: Iterable[TeamMatchResult],
    config: FootballModelConfig = DEFAULT_MODEL_CONFIG,
) -> FootballPrediction:
    """Full model: both teams' recent results → ratings → rates → markets."""
    home_elo = elo_from_matches(home_recent, config=config)
    away_elo = elo_from_matches(away_recent, config=config)
    rates = expected_goal_rates(home_elo, away_elo, config)
    markets = poisson_markets(rates.home, rates.away, config=config)
    return FootballPrediction(
        home_elo=home_elo,
        away_elo=away_elo,
        rates=rates,
        markets=markets,
    )
