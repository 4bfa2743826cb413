"""
FPL xPts - Calculators Module

Factor model, single-fixture xPts calculator and multi-gameweek aggregator.

Everything here is a pure function of (player, fixtures, team lookup).
Nothing reads the data cache; callers hand in a resolved snapshot.
"""

import logging
from collections import Counter
from typing import Optional, Dict, List, Union, Any

from fpl_xpts.config import MODEL_CONFIG
from fpl_xpts.constants import (
    FACTOR_NAMES, UNKNOWN_OPPONENT, DEFAULT_HORIZON, FDR_MIN, FDR_MAX,
    to_float, to_optional_float, round_to,
)
from fpl_xpts.models import (
    Factor, Fixture, MultiGwResult, PlayerMetrics, TeamStrength,
    WeightProfile, XptsResult,
)
from fpl_xpts.normalization import (
    get_weight_profile, clamp,
    norm_ict, norm_fdr, norm_availability, norm_bonus,
    norm_team_strength, norm_home_away,
)

__all__ = [
    "get_weights",
    "resolve_fixture",
    "lookup_team",
    "compute_factors",
    "calculate_xpts",
    "calculate_multi_gw_xpts",
    "aggregate_reasons",
    # Label generators
    "form_label",
    "fdr_label",
    "ict_label",
    "availability_label",
]

logger = logging.getLogger("fpl_xpts")

TeamLookup = Optional[Dict[Any, TeamStrength]]


def get_weights(profile: WeightProfile) -> Dict[str, float]:
    weights = MODEL_CONFIG["weights"]
    if profile is WeightProfile.DEFENSIVE:
        return weights.defensive
    return weights.attacking


# =============================================================================
# LABEL GENERATORS
# =============================================================================

def form_label(form: float) -> str:
    if form >= 7:
        return "In great form"
    if form >= 5:
        return "Decent form"
    if form >= 3:
        return "Average form"
    return "Poor form"


def fdr_label(difficulty: float, opponent: Optional[str]) -> str:
    opp = opponent or ""
    if difficulty <= 2:
        text = f"Easy fixture {opp}"
    elif difficulty <= 3:
        text = f"Medium fixture {opp}"
    else:
        text = f"Tough fixture {opp}"
    return text.strip()


def ict_label(norm: float) -> str:
    if norm >= 7:
        return "High attacking threat"
    if norm >= 4:
        return "Moderate involvement"
    return "Low attacking involvement"


def availability_label(chance: Optional[float]) -> str:
    if chance is None or chance >= 100:
        return "Fully available"
    if chance >= 75:
        return "Likely to play"
    if chance >= 50:
        return "Fitness doubt"
    if chance >= 25:
        return "Unlikely to play"
    return "Expected to miss"


# =============================================================================
# INPUT RESOLUTION
# =============================================================================

def resolve_fixture(fixture: Union[Fixture, Dict, None]) -> Fixture:
    """
    Normalise a fixture, filling gaps with a neutral away match.

    Accepts a Fixture, a provider dict ({gw, opponent, difficulty}) or None.
    """
    if fixture is None:
        return Fixture(difficulty=MODEL_CONFIG["xpts"].default_difficulty)
    if isinstance(fixture, dict):
        fixture = Fixture(
            gameweek=fixture.get("gameweek", fixture.get("gw")),
            opponent=fixture.get("opponent"),
            difficulty=fixture.get("difficulty"),
        )

    # 0 and out-of-scale ratings are missing data, not an easy fixture
    difficulty = to_optional_float(fixture.difficulty)
    if difficulty is None or not FDR_MIN <= difficulty <= FDR_MAX:
        return Fixture(
            gameweek=fixture.gameweek,
            opponent=fixture.opponent,
            difficulty=MODEL_CONFIG["xpts"].default_difficulty,
        )
    return fixture


def lookup_team(teams: TeamLookup, team_id: Any) -> Optional[TeamStrength]:
    """Find a team by id. JSON-sourced lookups may be keyed by strings."""
    if not teams or team_id is None:
        return None
    team = teams.get(team_id)
    if team is None:
        team = teams.get(str(team_id))
    return team


# =============================================================================
# FACTOR MODEL
# =============================================================================

def compute_factors(
    player: PlayerMetrics,
    fixture: Union[Fixture, Dict, None],
    teams: TeamLookup,
) -> List[Factor]:
    """
    Build the eight weighted factors for one player in one fixture.

    Order: form, ppg, ict, fdr, homeAway, teamStr, availability, bonus.
    impact = norm * weight, rounded to 2 decimals.
    """
    norm_cfg = MODEL_CONFIG["normalization"]
    xpts_cfg = MODEL_CONFIG["xpts"]

    profile = get_weight_profile(player.position)
    weights = get_weights(profile)

    fixture = resolve_fixture(fixture)
    is_home = fixture.is_home
    difficulty = to_float(fixture.difficulty, xpts_cfg.default_difficulty)
    team = lookup_team(teams, player.team_id)

    form = to_float(player.form)
    ppg = to_float(player.points_per_game)
    ict = to_float(player.ict_index)
    bonus = to_float(player.bonus)
    chance = to_optional_float(player.chance_of_playing)
    appearances = player.estimated_appearances

    ict_norm = norm_ict(ict)
    side = "defence" if profile is WeightProfile.DEFENSIVE else "attack"

    # (value, norm, label) per factor
    raw = {
        "form": (form, clamp(form, norm_cfg.scale_min, norm_cfg.scale_max), form_label(form)),
        "ppg": (
            ppg,
            clamp(ppg * norm_cfg.ppg_multiplier, norm_cfg.scale_min, norm_cfg.scale_max),
            f"{ppg:.1f} pts/game average",
        ),
        "ict": (ict, ict_norm, ict_label(ict_norm)),
        "fdr": (difficulty, norm_fdr(difficulty), fdr_label(difficulty, fixture.opponent)),
        "homeAway": (
            1.0 if is_home else 0.0,
            norm_home_away(is_home),
            "Home advantage" if is_home else "Away match",
        ),
        "teamStr": (0.0, norm_team_strength(team, player.position, is_home), f"Team {side} strength"),
        "availability": (
            100.0 if chance is None else chance,
            norm_availability(chance),
            availability_label(chance),
        ),
        "bonus": (
            bonus,
            norm_bonus(bonus, appearances),
            f"{bonus / max(appearances, 1):.1f} bonus/game",
        ),
    }

    factors = []
    for name in FACTOR_NAMES:
        value, norm, label = raw[name]
        weight = weights[name]
        factors.append(Factor(
            name=name,
            value=value,
            norm=norm,
            weight=weight,
            impact=round_to(norm * weight, xpts_cfg.impact_decimals),
            label=label,
        ))
    return factors


# =============================================================================
# SINGLE-FIXTURE XPTS
# =============================================================================

def calculate_xpts(
    player: PlayerMetrics,
    fixture: Union[Fixture, Dict, None],
    teams: TeamLookup,
) -> XptsResult:
    """
    Expected points for one player in one fixture.

    The weighted total (0-10) is scaled by `points_scale` to an FPL-like
    range. Reasons are the factors clearing the materiality floor, highest
    impact first, never padded.
    """
    cfg = MODEL_CONFIG["xpts"]
    factors = compute_factors(player, fixture, teams)

    total = sum(f.impact for f in factors)
    xpts = round_to(total * cfg.points_scale, cfg.xpts_decimals)

    material = [f for f in factors if f.impact > cfg.materiality_floor]
    material.sort(key=lambda f: -f.impact)
    top_reasons = [f.label for f in material[:cfg.max_reasons]]

    return XptsResult(xpts=xpts, factors=factors, top_reasons=top_reasons)


# =============================================================================
# MULTI-GAMEWEEK XPTS
# =============================================================================

def aggregate_reasons(results: List[XptsResult], limit: int) -> List[str]:
    """
    Rank reasons by how many gameweeks they appear in.

    Ties keep first-seen order, so a persistent factor beats a one-off spike
    regardless of its impact in any single fixture.
    """
    counts = Counter()
    for result in results:
        for reason in result.top_reasons:
            counts[reason] += 1
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [reason for reason, _ in ranked[:limit]]


def calculate_multi_gw_xpts(
    player: PlayerMetrics,
    fixtures: Optional[List[Union[Fixture, Dict]]],
    teams: TeamLookup,
    horizon: int = DEFAULT_HORIZON,
) -> MultiGwResult:
    """
    Projection over the next `horizon` fixtures.

    With no fixture data a neutral placeholder (FDR 3, opponent TBD) is
    projected once and repeated for every gameweek in the horizon, so a
    missing schedule reads as "average" instead of zero.
    """
    cfg = MODEL_CONFIG["xpts"]
    if horizon is None or horizon < 1:
        logger.debug(f"Horizon {horizon} for player {player.id} raised to 1")
        horizon = 1

    if fixtures is None:
        fixtures = player.upcoming_fixtures
    target = list(fixtures or [])[:horizon]

    if not target:
        logger.debug(f"No fixtures for player {player.id}, using neutral placeholder")
        placeholder = Fixture(
            difficulty=cfg.default_difficulty,
            opponent=UNKNOWN_OPPONENT,
        )
        single = calculate_xpts(player, placeholder, teams)
        return MultiGwResult(
            total_xpts=round_to(single.xpts * horizon, cfg.xpts_decimals),
            per_gw=[single] * horizon,
            avg_xpts=single.xpts,
            top_reasons=list(single.top_reasons),
        )

    per_gw = [calculate_xpts(player, fixture, teams) for fixture in target]
    total_xpts = round_to(sum(r.xpts for r in per_gw), cfg.xpts_decimals)
    avg_xpts = round_to(total_xpts / len(per_gw), cfg.xpts_decimals)

    return MultiGwResult(
        total_xpts=total_xpts,
        per_gw=per_gw,
        avg_xpts=avg_xpts,
        top_reasons=aggregate_reasons(per_gw, cfg.max_reasons),
    )
