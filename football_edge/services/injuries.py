"""
Injury flags for fixture explainability.

Injuries do not move the model's probabilities.  They are attached to a
single-fixture prediction so a reader can see when a price may already
reflect a key absence.

Sources:
    1. ``/injuries?fixture=``: players listed out for the fixture
    2. ``/players?team=&season=``: season stats used to find each team's
       leaders (top scorer, top assister, first-choice goalkeeper), cached
       12 hours per team and season

Flags raised per team:
    TOP_SCORER_OUT, TOP_ASSISTER_OUT, FIRST_CHOICE_GK_OUT: a leader is out
    DEF_CORE_OUT, ATTACK_CORE_OUT: two or more defenders / attackers out

Provider failures never fail a prediction: the block degrades to
``available: False``.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from football_edge.core.data_source import FixtureMeta, FootballDataSource
from football_edge.core.exceptions import FootballEdgeError
from football_edge.services.cache import ExpiringCache

logger = logging.getLogger(__name__)

LEADERS_CACHE_TTL_SECONDS = float(os.getenv("LEADERS_CACHE_TTL_SECONDS", str(12 * 60 * 60)))

# Minimum absences in a positional group before a core-out flag is raised
CORE_OUT_MIN_PLAYERS = 2
CORE_OUT_LISTED = 3

_DEFENCE_TOKENS = ("back", "def")
_ATTACK_TOKENS = ("forward", "wing", "att")
_GOALKEEPER_POSITIONS = ("GOALKEEPER", "GK")


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class OutPlayer:
    """A player listed as missing the fixture."""

    player_id: int
    name: str
    position: str = ""


@dataclass
class TeamLeaders:
    """Season leaders for one team; any of them may be unknown."""

    top_scorer: Optional[Dict[str, Any]] = None
    top_assister: Optional[Dict[str, Any]] = None
    first_choice_gk: Optional[Dict[str, Any]] = None


@dataclass
class TeamInjuryBlock:
    team_id: int
    team_name: str
    out_players: List[OutPlayer] = field(default_factory=list)
    flags: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teamId": self.team_id,
            "teamName": self.team_name,
            "outCount": len(self.out_players),
            "flags": self.flags,
            "outPlayers": [
                {"playerId": p.player_id, "name": p.name, "position": p.position}
                for p in self.out_players
            ],
        }


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def _int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def pick_leaders(players: List[Dict[str, Any]]) -> TeamLeaders:
    """
    Leaders from a ``/players`` response.

    Uses the first statistics block of each player (usually the league
    season).  A leader with zero goals / assists / minutes is not reported.
    """
    rows = []
    for x in players or []:
        p = x.get("player") or {}
        stats = (x.get("statistics") or [{}])[0] or {}
        goals = stats.get("goals") or {}
        games = stats.get("games") or {}
        player_id = p.get("id")
        name = str(p.get("name") or "")
        if player_id is None or not name:
            continue
        rows.append(
            {
                "playerId": _int(player_id),
                "name": name,
                "pos": str(games.get("position") or ""),
                "goals": _int(goals.get("total")),
                "assists": _int(goals.get("assists")),
                "minutes": _int(games.get("minutes")),
                # API-Football spells it "appearences"
                "apps": _int(games.get("appearences", games.get("appearances"))),
            }
        )

    leaders = TeamLeaders()
    if not rows:
        return leaders

    scorer = max(rows, key=lambda r: r["goals"])
    if scorer["goals"]:
        leaders.top_scorer = {
            "playerId": scorer["playerId"], "name": scorer["name"], "goals": scorer["goals"],
        }

    assister = max(rows, key=lambda r: r["assists"])
    if assister["assists"]:
        leaders.top_assister = {
            "playerId": assister["playerId"], "name": assister["name"],
            "assists": assister["assists"],
        }

    keepers = [r for r in rows if r["pos"].upper() in _GOALKEEPER_POSITIONS]
    if keepers:
        gk = max(keepers, key=lambda r: (r["minutes"], r["apps"]))
        if gk["minutes"]:
            leaders.first_choice_gk = {
                "playerId": gk["playerId"], "name": gk["name"],
                "minutes": gk["minutes"], "appearances": gk["apps"],
            }
    return leaders


def _matches(position: str, tokens) -> bool:
    pos = position.lower()
    return any(t in pos for t in tokens)


def build_injury_flags(
    team_id: int,
    team_name: str,
    out_players: List[OutPlayer],
    leaders: TeamLeaders,
) -> List[Dict[str, Any]]:
    """Flags for one team given who is out and who the leaders are."""
    out_ids = {p.player_id for p in out_players}
    flags: List[Dict[str, Any]] = []

    def _leader_flag(code: str, leader: Optional[Dict[str, Any]], stat_keys) -> None:
        if leader and leader["playerId"] in out_ids:
            flags.append(
                {
                    "code": code,
                    "teamId": team_id,
                    "teamName": team_name,
                    "playerId": leader["playerId"],
                    "playerName": leader["name"],
                    "stat": {"rank": 1, **{k: leader[k] for k in stat_keys}},
                }
            )

    _leader_flag("TOP_SCORER_OUT", leaders.top_scorer, ("goals",))
    _leader_flag("TOP_ASSISTER_OUT", leaders.top_assister, ("assists",))
    _leader_flag("FIRST_CHOICE_GK_OUT", leaders.first_choice_gk, ("minutes", "appearances"))

    for code, tokens in (("DEF_CORE_OUT", _DEFENCE_TOKENS), ("ATTACK_CORE_OUT", _ATTACK_TOKENS)):
        group = [p for p in out_players if _matches(p.position, tokens)]
        if len(group) >= CORE_OUT_MIN_PLAYERS:
            flags.append(
                {
                    "code": code,
                    "teamId": team_id,
                    "teamName": team_name,
                    "players": [
                        {"playerId": p.player_id, "playerName": p.name, "position": p.position}
                        for p in group[:CORE_OUT_LISTED]
                    ],
                    "stat": {"count": len(group)},
                }
            )
    return flags


def out_players_for_team(injuries: List[Dict[str, Any]], team_id: int) -> List[OutPlayer]:
    out = []
    for x in injuries or []:
        if _int((x.get("team") or {}).get("id"), -1) != team_id:
            continue
        player = x.get("player") or {}
        player_id = player.get("id")
        name = str(player.get("name") or "")
        if player_id is None or not name:
            continue
        out.append(
            OutPlayer(
                player_id=_int(player_id),
                name=name,
                position=str(player.get("position") or ""),
            )
        )
    return out


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class InjuryService:
    """Builds the per-fixture injury block with cached team leaders."""

    def __init__(self, source: FootballDataSource, leaders_cache: ExpiringCache):
        self.source = source
        self.leaders_cache = leaders_cache

    async def get_team_leaders(self, team_id: int, season: int) -> TeamLeaders:
        key = f"{team_id}|{season}"
        hit = self.leaders_cache.get(key)
        if hit is not None:
            return hit

        try:
            players = await self.source.fetch_team_players(team_id, season)
        except (FootballEdgeError, requests.exceptions.RequestException) as exc:
            logger.warning("Team leaders unavailable for team %s: %s", team_id, exc)
            return TeamLeaders()
        if players is None:
            return TeamLeaders()

        leaders = pick_leaders(players)
        self.leaders_cache.set(key, leaders)
        return leaders

    async def injury_block(self, meta: FixtureMeta) -> Dict[str, Any]:
        """
        Injury summary for both teams of a fixture.

        Returns ``{"available": bool, "home": {...}, "away": {...}}``.
        """
        try:
            injuries = await self.source.fetch_injuries(meta.fixture_id)
        except (FootballEdgeError, requests.exceptions.RequestException) as exc:
            logger.warning("Injuries unavailable for fixture %s: %s", meta.fixture_id, exc)
            injuries = None

        available = injuries is not None
        injuries = injuries or []

        blocks = {}
        for side, team_id, team_name in (
            ("home", meta.home_team_id, meta.home_team_name),
            ("away", meta.away_team_id, meta.away_team_name),
        ):
            out = out_players_for_team(injuries, team_id)
            leaders = await self.get_team_leaders(team_id, meta.season)
            blocks[side] = TeamInjuryBlock(
                team_id=team_id,
                team_name=team_name,
                out_players=out,
                flags=build_injury_flags(team_id, team_name, out, leaders),
            ).to_dict()

        logger.debug(
            "Injuries for fixture %s: available=%s home_out=%d away_out=%d",
            meta.fixture_id, available,
            blocks["home"]["outCount"], blocks["away"]["outCount"],
        )
        return {"available": available, **blocks}
