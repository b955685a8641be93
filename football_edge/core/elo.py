"""Elo-style team strength from a list of recent results.

The rating is recomputed from scratch on every prediction; nothing is
persisted.  Each result is scored against a constant baseline opponent
(1500 by default) rather than the real opponent's rating at the time,
because opponent ratings are not tracked across the league graph.

Update rule per match::

    expected = 1 / (1 + 10 ** ((baseline - rating) / 400))
    mult     = 1 + min(2, |goals_for - goals_against|) * 0.25
    rating  += K * mult * (result - expected)

with ``result`` = 1 / 0.5 / 0 for a win / draw / loss and K = 20.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from football_edge.core.model_config import DEFAULT_MODEL_CONFIG, FootballModelConfig


@dataclass(frozen=True, slots=True)
class TeamMatchResult:
    """One completed match seen from a single team's perspective."""

    goals_for: int
    goals_against: int
    is_home: Optional[bool] = None
    date: Optional[str] = None  # ISO-8601 as delivered by the provider

    def __post_init__(self) -> None:
        if self.goals_for < 0 or self.goals_against < 0:
            raise ValueError(
                f"Goals must be non-negative, got {self.goals_for}-{self.goals_against}"
            )


def match_score(result: TeamMatchResult) -> float:
    """1.0 for a win, 0.5 for a draw, 0.0 for a loss."""
    if result.goals_for > result.goals_against:
        return 1.0
    if result.goals_for == result.goals_against:
        return 0.5
    return 0.0


def expected_score(
    rating: float,
    config: FootballModelConfig = DEFAULT_MODEL_CONFIG,
) -> float:
    """Logistic expected score of ``rating`` against the baseline opponent."""
    return 1.0 / (
        1.0 + 10.0 ** ((config.baseline_opponent_rating - rating) / config.elo_scale)
    )


def goal_diff_multiplier(
    result: TeamMatchResult,
    config: FootballModelConfig = DEFAULT_MODEL_CONFIG,
) -> float:
    gd = abs(result.goals_for - result.goals_against)
    return 1.0 + min(config.max_goal_diff_bonus, gd) * config.goal_diff_step


def elo_from_matches(
    matches: Iterable[TeamMatchResult],
    initial: Optional[float] = None,
    config: FootballModelConfig = DEFAULT_MODEL_CONFIG,
) -> float:
    """Fold ``matches`` into a single rating, in the order supplied.

    Args:
        matches: Recent results from the team's perspective.
        initial: Starting rating; defaults to ``config.initial_rating``.
        config: Model constants.

    Returns:
        The final rating.  An empty history returns ``initial`` unchanged.
    """
    rating = config.initial_rating if initial is None else float(initial)

    for match in matches:
        expected = expected_score(rating, config)
        mult = goal_diff_multiplier(match, config)
        rating += config.k_factor * mult * (match_score(match) - expected)

    return rating
