"""
Pydantic response schemas for the Football Edge API.

Prediction and scan payloads carry free-form nested market blocks and are
returned as plain dicts; the fixed-shape payloads are declared here so the
OpenAPI docs describe them accurately.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


MarketFilter = Literal["all", "1x2", "btts", "ou25", "draw"]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    data_source: str = Field(..., description='"configured" or "missing api key"')
    scan_cache_entries: int = Field(..., ge=0)
    fixtures_cache_entries: int = Field(..., ge=0)


class LeagueOut(BaseModel):
    key: str = Field(..., description='Registry key, e.g. "epl"')
    id: int = Field(..., description="API-Football league id")
    name: str
    country: Optional[str] = None
    type: str = "League"


class LeaguesResponse(BaseModel):
    count: int
    leagues: List[LeagueOut]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

class FixtureItem(BaseModel):
    fixtureId: Optional[int] = None
    date: Optional[str] = None
    status: Optional[str] = None
    league: Optional[str] = None
    round: Optional[str] = None
    home: Optional[str] = None
    away: Optional[str] = None


class FixturesResponse(BaseModel):
    count: int
    fixtures: List[FixtureItem]
    cached: bool = False


# ---------------------------------------------------------------------------
# Arbitrage
# ---------------------------------------------------------------------------

class ArbitrageLeg(BaseModel):
    market: str
    selection: str
    odds: float = Field(..., gt=1.0)
    bookmakerId: Optional[int] = None
    bookmakerName: Optional[str] = None


class StakePlanEntry(BaseModel):
    selection: str
    bookmakerName: Optional[str] = None
    odds: float = Field(..., gt=1.0)
    stakePct: float = Field(..., ge=0, le=100, description="Share of the total stake, in %")


class ArbitrageOut(BaseModel):
    fixtureId: Optional[int] = None
    market: str
    legs: List[ArbitrageLeg]
    invSum: float = Field(..., description="Sum of inverse best odds (< 1 for an arbitrage)")
    roi: float = Field(..., description="Guaranteed return, 0.02 = 2%")
    stakePlan: List[StakePlanEntry]


class ArbitrageResponse(BaseModel):
    fixtureId: int
    marketsChecked: List[str]
    legsCount: int
    arbs: List[ArbitrageOut]

    model_config = {
        "json_schema_extra": {
            "example": {
                "fixtureId": 1208021,
                "marketsChecked": ["ou25", "btts", "1x2"],
                "legsCount": 42,
                "arbs": [
                    {
                        "fixtureId": 1208021,
                        "market": "btts",
                        "legs": [
                            {"market": "btts", "selection": "yes", "odds": 2.1,
                             "bookmakerId": 8, "bookmakerName": "Bet365"},
                            {"market": "btts", "selection": "no", "odds": 2.05,
                             "bookmakerId": 11, "bookmakerName": "1xBet"},
                        ],
                        "invSum": 0.9640,
                        "roi": 0.0373,
                        "stakePlan": [
                            {"selection": "yes", "bookmakerName": "Bet365",
                             "odds": 2.1, "stakePct": 49.4},
                            {"selection": "no", "bookmakerName": "1xBet",
                             "odds": 2.05, "stakePct": 50.6},
                        ],
                    }
                ],
            }
        }
    }
