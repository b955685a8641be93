"""Model configuration: every Elo/Poisson/scoring constant in one place.

Nowhere else in the codebase should the K-factor, baseline goal rates or
market trust weights be hard-coded.  Functions in :mod:`elo`,
:mod:`goal_model` and :mod:`edge` accept a :class:`FootballModelConfig`
and default to :data:`DEFAULT_MODEL_CONFIG`.

Typical usage::

    from dataclasses import replace
    from football_edge.core.model_config import DEFAULT_MODEL_CONFIG

    # Stronger home advantage for a league with long away trips:
    cfg = replace(DEFAULT_MODEL_CONFIG, base_lambda_home=1.55)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Final


@dataclass(frozen=True)
class FootballModelConfig:
    """Immutable constants for the Elo + Poisson football model.

    Attributes:
        initial_rating: Starting Elo for a team with no history.
        baseline_opponent_rating: Fixed opponent strength each result is
            scored against.  Opponent ratings are not tracked across the
            league graph, so every match is treated as against a 1500 side.
        k_factor: Base Elo update magnitude.
        elo_scale: Logistic scale of the expected-score curve.
        max_goal_diff_bonus: Goal differences beyond this do not increase
            the update multiplier.
        goal_diff_step: Multiplier increment per goal of margin
            (``1 + min(2, gd) * 0.25`` → 1.0 to 1.5).

        base_lambda_home: Expected home goals between equal teams.
        base_lambda_away: Expected away goals between equal teams.
        rating_diff_scale: Elo difference that maps to one unit of shift.
        max_rating_shift: Clamp on ``diff / rating_diff_scale``.
        lambda_shift_per_unit: Goals moved from one side to the other per
            unit of (clamped) rating shift.
        min_lambda / max_lambda: Bounds on each expected-goals rate.
        max_goals: Truncation of the joint Poisson grid per side.

        min_ev / max_ev: Clamp on expected value before scoring.
        market_weights: Trust multiplier per market key; markets not listed
            use ``default_market_weight``.
        probability_tolerance: Allowed deviation from a unit sum.
    """

    # --- Elo rating ---
    initial_rating: float = 1500.0
    baseline_opponent_rating: float = 1500.0
    k_factor: float = 20.0
    elo_scale: float = 400.0
    max_goal_diff_bonus: int = 2
    goal_diff_step: float = 0.25

    # --- Goal rates ---
    base_lambda_home: float = 1.45
    base_lambda_away: float = 1.15
    rating_diff_scale: float = 400.0
    max_rating_shift: float = 1.5
    lambda_shift_per_unit: float = 0.35
    min_lambda: float = 0.2
    max_lambda: float = 3.2
    max_goals: int = 10

    # --- Edge scoring ---
    min_ev: float = -0.25
    max_ev: float = 0.5
    market_weights: Dict[str, float] = field(
        default_factory=lambda: {"1x2": 1.0, "ou25": 0.9, "btts": 0.85}
    )
    default_market_weight: float = 0.85

    probability_tolerance: float = 1e-6

    def market_weight(self, market: str) -> float:
        """Trust multiplier for ``market`` (case-insensitive key)."""
        key = str(getattr(market, "value", market)).lower()
        return self.market_weights.get(key, self.default_market_weight)


#: Shared default instance.  Frozen, so safe to pass around.
DEFAULT_MODEL_CONFIG: Final[FootballModelConfig] = FootballModelConfig()
