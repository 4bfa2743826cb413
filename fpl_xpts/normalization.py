"""
FPL xPts - Normalization Module

Maps heterogeneous raw metrics onto a common 0-10 scale so they can be
linearly combined by the factor model.

Every function here is total. Missing data (None, "", NaN) degrades to a
neutral or fully-favourable value instead of raising, because the upstream
feeds are best-effort and a recommendation is more useful than an error.
"""

from typing import Any, Dict, Optional, Union

from fpl_xpts.config import MODEL_CONFIG
from fpl_xpts.constants import DEFAULT_DIFFICULTY, to_float, to_optional_float
from fpl_xpts.models import Position, TeamStrength, WeightProfile

__all__ = [
    "get_weight_profile",
    "clamp",
    "norm_ict",
    "norm_fdr",
    "norm_availability",
    "norm_bonus",
    "norm_team_strength",
    "norm_home_away",
]


_DEFENSIVE_POSITIONS = {Position.GKP.value, Position.DEF.value}


def get_weight_profile(position: Any) -> WeightProfile:
    """
    Map a position onto its weight profile.

    GKP and DEF are DEFENSIVE. MID, FWD and anything unrecognised
    (including None) fall through to ATTACKING.
    """
    if isinstance(position, Position):
        position = position.value
    if isinstance(position, str) and position.strip().upper() in _DEFENSIVE_POSITIONS:
        return WeightProfile.DEFENSIVE
    return WeightProfile.ATTACKING


def clamp(value: Any, lo: float = 0.0, hi: float = 10.0) -> float:
    """Bound value to [lo, hi]. Missing or non-finite values become lo."""
    number = to_float(value, lo)
    return max(lo, min(hi, number))


def _scale(value: float) -> float:
    cfg = MODEL_CONFIG["normalization"]
    return clamp(value, cfg.scale_min, cfg.scale_max)


def norm_ict(ict: Any) -> float:
    """Cumulative ICT index (0-500 over a season) -> 0-10."""
    cfg = MODEL_CONFIG["normalization"]
    return _scale(to_float(ict) / cfg.ict_divisor)


def norm_fdr(difficulty: Any) -> float:
    """FDR 1 (easy) -> 10, FDR 5 (hard) -> 0. Missing difficulty counts as medium."""
    cfg = MODEL_CONFIG["normalization"]
    fdr = to_optional_float(difficulty)
    if fdr is None:
        fdr = DEFAULT_DIFFICULTY
    return _scale((cfg.fdr_ceiling - fdr) * cfg.fdr_step)


def norm_availability(chance: Any) -> float:
    """Chance of playing (%) -> 0-10. No news means fully available."""
    cfg = MODEL_CONFIG["normalization"]
    percent = to_optional_float(chance)
    if percent is None:
        return cfg.scale_max
    return _scale(percent / cfg.availability_divisor)


def norm_bonus(bonus: Any, appearances: Any) -> float:
    """Bonus points per appearance -> 0-10. No appearances is neutral."""
    cfg = MODEL_CONFIG["normalization"]
    apps = to_float(appearances)
    if apps <= 0:
        return cfg.neutral
    rate = to_float(bonus) / apps
    return _scale(rate * cfg.bonus_rate_multiplier)


def norm_team_strength(team: Optional[Union[TeamStrength, Dict]], position: Any, is_home: bool) -> float:
    """
    Team strength rating -> 0-10.

    Defensive profiles read the defence rating, attacking profiles the attack
    rating, each for the fixture venue. Missing team or rating is neutral.
    """
    cfg = MODEL_CONFIG["normalization"]
    if team is None:
        return cfg.neutral
    if isinstance(team, dict):
        team = TeamStrength.from_api(team)

    if get_weight_profile(position) is WeightProfile.DEFENSIVE:
        raw = team.strength_defence_home if is_home else team.strength_defence_away
    else:
        raw = team.strength_attack_home if is_home else team.strength_attack_away

    raw = to_optional_float(raw)
    if not raw:
        return cfg.neutral
    return _scale((raw - cfg.team_strength_offset) / cfg.team_strength_divisor)


def norm_home_away(is_home: bool) -> float:
    cfg = MODEL_CONFIG["normalization"]
    return cfg.home_bias if is_home else cfg.away_bias
