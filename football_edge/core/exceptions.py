"""Typed failures raised by the core and the services.

Three kinds are distinguished because batch callers treat them differently
from single-fixture callers:

* :class:`UpstreamUnavailableError`: a provider call failed or returned a
  non-success status.  Never retried here.
* :class:`IncompleteDataError`: required fields are missing (team ids,
  season, a complete odds set).  Batch callers skip the affected market or
  fixture; single-fixture callers report it.
* :class:`InvariantViolationError`: computed probabilities do not sum to
  one.  This is a programming defect and aborts the computation.
"""

from __future__ import annotations

from typing import Any, Optional


class FootballEdgeError(Exception):
    """Base class for every error raised by ``football_edge``."""


class UpstreamUnavailableError(FootballEdgeError):
    """A data-provider request failed or returned a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class IncompleteDataError(FootballEdgeError):
    """Required input data is missing or unparseable."""


class InvariantViolationError(FootballEdgeError):
    """A probability distribution failed its unit-sum check."""
