"""League registry: short league keys → API-Football league ids.

Routes and the scanner accept the short key; only this module knows the
provider's numeric ids.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Final, Literal, Optional

from football_edge.core.exceptions import IncompleteDataError


@dataclass(frozen=True, slots=True)
class League:
    id: int
    name: str
    country: Optional[str] = None
    type: Literal["League", "Cup"] = "League"


LEAGUES: Final[Dict[str, League]] = {
    # Europe
    "epl": League(39, "Premier League", "England"),
    "laliga": League(140, "La Liga", "Spain"),
    "seriea": League(135, "Serie A", "Italy"),
    "bundesliga": League(78, "Bundesliga", "Germany"),
    "ligue1": League(61, "Ligue 1", "France"),
    "ucl": League(2, "UEFA Champions League", type="Cup"),
    "uel": League(3, "UEFA Europa League", type="Cup"),
    # South America: international
    "libertadores": League(13, "CONMEBOL Libertadores", type="Cup"),
    "sudamericana": League(11, "CONMEBOL Sudamericana", type="Cup"),
    # South America: domestic
    "br_serie_a": League(71, "Serie A", "Brazil"),
    "ar_primera": League(128, "Primera Division", "Argentina"),
    "cl_primera": League(265, "Primera Division", "Chile"),
    "co_primera_a": League(239, "Primera A", "Colombia"),
    "pe_liga1": League(281, "Liga 1", "Peru"),
    "uy_primera": League(268, "Primera Division", "Uruguay"),
    "ec_serie_a": League(242, "Serie A", "Ecuador"),
    "py_primera": League(250, "Primera Division", "Paraguay"),
    "bo_primera": League(253, "Primera Division", "Bolivia"),
    "ve_primera": League(297, "Primera Division", "Venezuela"),
}


def get_league(league_key: str) -> League:
    """Look up a league by key.

    Raises:
        IncompleteDataError: If the key is not registered.
    """
    league = LEAGUES.get(league_key)
    if league is None:
        raise IncompleteDataError(f"Unknown leagueKey: {league_key}")
    return league
