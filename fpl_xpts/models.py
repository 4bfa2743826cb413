import math
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field

from fpl_xpts.config import MODEL_CONFIG
from fpl_xpts.constants import (
    POSITION_MAP, HOME_MARKER, DEFAULT_HORIZON,
    to_float, to_optional_float,
)


# ============ ENUMS ============

class Position(str, Enum):
    GKP = "GKP"
    DEF = "DEF"
    MID = "MID"
    FWD = "FWD"


class WeightProfile(str, Enum):
    ATTACKING = "attacking"
    DEFENSIVE = "defensive"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Recommendation(str, Enum):
    STRONG_BUY = "Strong Buy"
    NEUTRAL = "Neutral"
    AVOID = "Avoid"


class PricePressure(str, Enum):
    RISING = "rising"
    LIKELY_RISING = "likely-rising"
    STABLE = "stable"
    LIKELY_FALLING = "likely-falling"
    FALLING = "falling"

    @property
    def is_rising(self) -> bool:
        return self in (PricePressure.RISING, PricePressure.LIKELY_RISING)

    @property
    def is_falling(self) -> bool:
        return self in (PricePressure.FALLING, PricePressure.LIKELY_FALLING)


# =============================================================================
# SNAPSHOT DATA CLASSES
# =============================================================================

def _optional_int(value: Any) -> Optional[int]:
    number = to_optional_float(value)
    return int(number) if number is not None else None


@dataclass
class Fixture:
    """One upcoming match for a player's team."""
    gameweek: Optional[int] = None
    opponent: Optional[str] = None  # e.g. "ARS (H)"
    difficulty: Optional[int] = None  # 1 (easiest) - 5 (hardest)

    @property
    def is_home(self) -> bool:
        return bool(self.opponent) and HOME_MARKER in self.opponent


@dataclass
class TeamStrength:
    """FPL team strength ratings split by venue."""
    id: Optional[int] = None
    name: str = ""
    short_name: str = ""
    strength_attack_home: Optional[float] = None
    strength_attack_away: Optional[float] = None
    strength_defence_home: Optional[float] = None
    strength_defence_away: Optional[float] = None

    @classmethod
    def from_api(cls, team: Dict) -> "TeamStrength":
        return cls(
            id=team.get("id"),
            name=team.get("name") or "",
            short_name=team.get("short_name") or "",
            strength_attack_home=to_optional_float(team.get("strength_attack_home")),
            strength_attack_away=to_optional_float(team.get("strength_attack_away")),
            strength_defence_home=to_optional_float(team.get("strength_defence_home")),
            strength_defence_away=to_optional_float(team.get("strength_defence_away")),
        )


@dataclass
class PlayerMetrics:
    """
    Per-player inputs for the xPts model.

    Every numeric field is optional. The engine substitutes neutral or
    favourable defaults instead of rejecting a player.
    """
    id: int
    name: str = ""
    position: Optional[str] = None
    team_id: Optional[int] = None

    form: Optional[float] = None
    points_per_game: Optional[float] = None
    ict_index: Optional[float] = None
    bonus: Optional[float] = None
    minutes: Optional[float] = None
    appearances: Optional[int] = None
    chance_of_playing: Optional[float] = None  # None = fully available

    # Not scored; used by the decision layer and the API
    price: Optional[float] = None
    ownership: Optional[float] = None
    net_transfers_event: Optional[int] = None
    expected_goal_involvements: Optional[float] = None

    upcoming_fixtures: List[Fixture] = field(default_factory=list)

    @property
    def estimated_appearances(self) -> int:
        """
        Appearances, estimated as minutes / 70 when the feed omits them.

        The estimate is a heuristic: it under-counts sub appearances and
        over-counts nothing, so bonus rates for rotation players run high.
        """
        if self.appearances and self.appearances > 0:
            return int(self.appearances)
        minutes = to_float(self.minutes)
        if minutes <= 0:
            return 0
        # Half-up rounding to match the feed's own rounding
        return int(math.floor(minutes / MODEL_CONFIG["xpts"].minutes_per_appearance + 0.5))

    @property
    def xgi_per_90(self) -> Optional[float]:
        xgi = to_optional_float(self.expected_goal_involvements)
        minutes = to_float(self.minutes)
        if xgi is None or minutes <= 0:
            return None
        return xgi / minutes * 90

    @classmethod
    def from_api(
        cls,
        element: Dict,
        fixtures: Optional[List[Fixture]] = None,
    ) -> "PlayerMetrics":
        """Build from an FPL bootstrap-static `elements` entry."""
        transfers_in = to_optional_float(element.get("transfers_in_event"))
        transfers_out = to_optional_float(element.get("transfers_out_event"))
        net_transfers = None
        if transfers_in is not None or transfers_out is not None:
            net_transfers = int((transfers_in or 0) - (transfers_out or 0))

        now_cost = to_optional_float(element.get("now_cost"))
        return cls(
            id=element["id"],
            name=element.get("web_name") or "",
            position=POSITION_MAP.get(element.get("element_type")),
            team_id=element.get("team"),
            form=to_optional_float(element.get("form")),
            points_per_game=to_optional_float(element.get("points_per_game")),
            ict_index=to_optional_float(element.get("ict_index")),
            bonus=to_optional_float(element.get("bonus")),
            minutes=to_optional_float(element.get("minutes")),
            appearances=_optional_int(element.get("appearances")),
            chance_of_playing=to_optional_float(element.get("chance_of_playing_next_round")),
            price=now_cost / 10 if now_cost is not None else None,
            ownership=to_optional_float(element.get("selected_by_percent")),
            net_transfers_event=net_transfers,
            expected_goal_involvements=to_optional_float(element.get("expected_goal_involvements")),
            upcoming_fixtures=list(fixtures or []),
        )


@dataclass
class Snapshot:
    """A fully resolved view of the data the engine needs."""
    players: Dict[int, PlayerMetrics] = field(default_factory=dict)
    teams: Dict[int, TeamStrength] = field(default_factory=dict)
    current_gw: Optional[int] = None

    def get_player(self, player_id: int) -> Optional[PlayerMetrics]:
        return self.players.get(player_id)


# =============================================================================
# ENGINE RESULT CLASSES
# =============================================================================

@dataclass
class Factor:
    """One weighted input to a single-fixture projection."""
    name: str
    value: float
    norm: float
    weight: float
    impact: float
    label: str


@dataclass
class XptsResult:
    """Single-fixture projection."""
    xpts: float
    factors: List[Factor] = field(default_factory=list)
    top_reasons: List[str] = field(default_factory=list)


@dataclass
class MultiGwResult:
    """Projection over a window of upcoming fixtures."""
    total_xpts: float
    per_gw: List[XptsResult] = field(default_factory=list)
    avg_xpts: float = 0.0
    top_reasons: List[str] = field(default_factory=list)


@dataclass
class RankedPlayer:
    """A player with their averaged projection attached."""
    player: PlayerMetrics
    xpts: float              # average per gameweek
    total_xpts: float        # sum over the horizon
    top_reasons: List[str] = field(default_factory=list)


@dataclass
class SquadRanking:
    ranked: List[RankedPlayer] = field(default_factory=list)
    captain: Optional[RankedPlayer] = None
    vice_captain: Optional[RankedPlayer] = None


@dataclass
class FormationSuggestion:
    """Best starting XI for a squad."""
    formation: str  # "D-M-F"
    starting_xi: List[RankedPlayer] = field(default_factory=list)
    bench: List[RankedPlayer] = field(default_factory=list)
    total_xpts: float = 0.0
    captain: Optional[RankedPlayer] = None
    vice_captain: Optional[RankedPlayer] = None
    is_complete: bool = True  # False when no valid formation could be filled


@dataclass
class TransferAnalysis:
    """Pairwise comparison of an outgoing and an incoming player."""
    points_diff: float
    form_diff: float
    price_diff: float
    fixture_diff: float
    avg_in_difficulty: float
    avg_out_difficulty: float
    risk_level: RiskLevel
    recommendation: Recommendation
    explanation: str
    out_projected: float
    in_projected: float
    gameweeks: int
    momentum_override: bool = False
    in_price_pressure: PricePressure = PricePressure.STABLE
    out_price_pressure: PricePressure = PricePressure.STABLE
    top_reasons: List[str] = field(default_factory=list)


# ============ REQUEST / RESPONSE SCHEMAS ============
# These provide contract stability between frontend and backend

class SquadRequest(BaseModel):
    """Request body for squad ranking and formation suggestion."""
    player_ids: List[int] = Field(..., min_length=1)
    horizon: int = Field(DEFAULT_HORIZON, ge=1, le=10)


class TransferAnalysisRequest(BaseModel):
    """Request body for a transfer comparison."""
    out_id: int
    in_id: int
    horizon: int = Field(DEFAULT_HORIZON, ge=1, le=10)


class TransferTarget(BaseModel):
    """Schema for a player in transfer target rankings."""
    id: int
    name: str
    position: Optional[str]
    team_id: Optional[int]
    price: Optional[float]
    form: Optional[float]
    xpts: float
    total_xpts: float
    top_reasons: List[str]
    price_pressure: str

    class Config:
        extra = "allow"  # Allow additional fields


class RankedPlayerSchema(BaseModel):
    """Schema for a player in squad ranking and formation responses."""
    id: int
    name: str
    position: Optional[str]
    xpts: float
    total_xpts: float
    top_reasons: List[str]
    is_captain: bool = False
    is_vice_captain: bool = False

    class Config:
        extra = "allow"


def ranked_player_schema(
    entry: RankedPlayer,
    captain: Optional[RankedPlayer] = None,
    vice_captain: Optional[RankedPlayer] = None,
) -> Dict[str, Any]:
    """Flatten a RankedPlayer for JSON responses."""
    return RankedPlayerSchema(
        id=entry.player.id,
        name=entry.player.name,
        position=entry.player.position,
        xpts=entry.xpts,
        total_xpts=entry.total_xpts,
        top_reasons=entry.top_reasons,
        is_captain=captain is not None and entry is captain,
        is_vice_captain=vice_captain is not None and entry is vice_captain,
    ).model_dump()
