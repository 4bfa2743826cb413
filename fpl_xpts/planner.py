"""
FPL xPts - Planner Module

Decision layer built on the multi-gameweek aggregator: squad ranking and
captaincy, best-XI formation suggestion, transfer target ranking and
pairwise transfer analysis.
"""

import logging
from collections import defaultdict
from typing import Optional, List, Dict, Sequence

from fpl_xpts.config import MODEL_CONFIG
from fpl_xpts.constants import (
    VALID_FORMATIONS, STARTING_XI_SIZE, DEFAULT_HORIZON,
    to_float, to_optional_float, round_to,
)
from fpl_xpts.models import (
    FormationSuggestion, PlayerMetrics, Position, PricePressure, RankedPlayer,
    Recommendation, RiskLevel, SquadRanking, TransferAnalysis,
)
from fpl_xpts.calculators import (
    TeamLookup, calculate_multi_gw_xpts, resolve_fixture,
)

__all__ = [
    "rank_players",
    "rank_squad",
    "rank_transfer_targets",
    "suggest_formation",
    "classify_price_pressure",
    "apply_momentum_override",
    "analyze_transfer",
]

logger = logging.getLogger("fpl_xpts")


# ============ RANKING ============

def rank_players(
    players: Sequence[PlayerMetrics],
    teams: TeamLookup,
    horizon: int = DEFAULT_HORIZON,
) -> List[RankedPlayer]:
    """Average xPts per player, best first. Equal scores keep input order."""
    ranked = []
    for player in players:
        result = calculate_multi_gw_xpts(player, player.upcoming_fixtures, teams, horizon)
        ranked.append(RankedPlayer(
            player=player,
            xpts=result.avg_xpts,
            total_xpts=result.total_xpts,
            top_reasons=result.top_reasons,
        ))
    # list.sort is stable
    ranked.sort(key=lambda r: -r.xpts)
    return ranked


def rank_squad(
    players: Sequence[PlayerMetrics],
    teams: TeamLookup,
    horizon: int = DEFAULT_HORIZON,
) -> SquadRanking:
    """Rank a squad and pick captain / vice-captain from the top two."""
    ranked = rank_players(players, teams, horizon)
    return SquadRanking(
        ranked=ranked,
        captain=ranked[0] if ranked else None,
        vice_captain=ranked[1] if len(ranked) > 1 else None,
    )


def rank_transfer_targets(
    candidates: Sequence[PlayerMetrics],
    teams: TeamLookup,
    horizon: int = DEFAULT_HORIZON,
) -> List[RankedPlayer]:
    """
    Rank a candidate pool by average xPts.

    No filtering happens here; narrowing by position or price is the
    caller's job.
    """
    return rank_players(candidates, teams, horizon)


# ============ FORMATION ============

def _position_key(player: PlayerMetrics) -> Optional[str]:
    position = player.position
    if isinstance(position, Position):
        return position.value
    if isinstance(position, str):
        # Same leniency as get_weight_profile
        return position.strip().upper()
    return position


def _formation_string(xi: List[RankedPlayer]) -> str:
    counts = {"DEF": 0, "MID": 0, "FWD": 0}
    for entry in xi:
        position = _position_key(entry.player)
        if position in counts:
            counts[position] += 1
    return f"{counts['DEF']}-{counts['MID']}-{counts['FWD']}"


def suggest_formation(
    players: Sequence[PlayerMetrics],
    teams: TeamLookup,
    horizon: int = DEFAULT_HORIZON,
) -> FormationSuggestion:
    """
    Select the best valid starting XI from a squad.

    Tries every legal formation (1 GKP, 3-5 DEF, 2-5 MID, 1-3 FWD) and keeps
    the one with the highest summed average xPts. Bench order follows the
    FPL convention: goalkeepers first, then outfielders by xPts.
    """
    ranked = rank_players(players, teams, horizon)

    by_pos: Dict[str, List[RankedPlayer]] = defaultdict(list)
    for entry in ranked:
        by_pos[_position_key(entry.player)].append(entry)

    best_xi: List[RankedPlayer] = []
    best_total = None
    best_formation = None

    for defs, mids, fwds in VALID_FORMATIONS:
        if (len(by_pos["GKP"]) < 1 or len(by_pos["DEF"]) < defs
                or len(by_pos["MID"]) < mids or len(by_pos["FWD"]) < fwds):
            continue
        xi = by_pos["GKP"][:1] + by_pos["DEF"][:defs] + by_pos["MID"][:mids] + by_pos["FWD"][:fwds]
        total = sum(entry.xpts for entry in xi)
        if best_total is None or total > best_total:
            best_total = total
            best_xi = xi
            best_formation = f"{defs}-{mids}-{fwds}"

    is_complete = best_formation is not None
    if not is_complete:
        logger.warning(f"No valid formation for a squad of {len(ranked)}, using top {STARTING_XI_SIZE}")
        best_xi = ranked[:STARTING_XI_SIZE]
        best_formation = _formation_string(best_xi)

    # Keep the XI in ranked order
    starter_ids = {id(entry) for entry in best_xi}
    starting_xi = [entry for entry in ranked if id(entry) in starter_ids]
    remaining = [entry for entry in ranked if id(entry) not in starter_ids]
    bench = (
        [entry for entry in remaining if _position_key(entry.player) == "GKP"]
        + [entry for entry in remaining if _position_key(entry.player) != "GKP"]
    )

    return FormationSuggestion(
        formation=best_formation,
        starting_xi=starting_xi,
        bench=bench,
        total_xpts=round_to(sum(entry.xpts for entry in starting_xi), 1),
        captain=starting_xi[0] if starting_xi else None,
        vice_captain=starting_xi[1] if len(starting_xi) > 1 else None,
        is_complete=is_complete,
    )


# ============ PRICE PRESSURE ============

def classify_price_pressure(net_transfers: Optional[float]) -> PricePressure:
    """Bucket this gameweek's net transfers into a price movement signal."""
    cfg = MODEL_CONFIG["price_pressure"]
    net = to_float(net_transfers)
    if net >= cfg.rising_threshold:
        return PricePressure.RISING
    if net >= cfg.likely_threshold:
        return PricePressure.LIKELY_RISING
    if net <= -cfg.rising_threshold:
        return PricePressure.FALLING
    if net <= -cfg.likely_threshold:
        return PricePressure.LIKELY_FALLING
    return PricePressure.STABLE


def apply_momentum_override(
    recommendation: Recommendation,
    points_diff: float,
    in_pressure: PricePressure,
    out_pressure: PricePressure,
) -> Recommendation:
    """
    Promote Neutral to Strong Buy on opposing price momentum.

    Kept apart from the scoring so it can be switched off via
    MODEL_CONFIG["transfer"].momentum_override_enabled.
    """
    cfg = MODEL_CONFIG["transfer"]
    if not cfg.momentum_override_enabled:
        return recommendation
    if (recommendation is Recommendation.NEUTRAL
            and in_pressure.is_rising
            and out_pressure.is_falling
            and points_diff >= cfg.momentum_min_points_diff):
        return Recommendation.STRONG_BUY
    return recommendation


# ============ TRANSFER ANALYSIS ============

def _average_difficulty(player: PlayerMetrics, horizon: int) -> float:
    fixtures = [resolve_fixture(f) for f in player.upcoming_fixtures[:horizon]]
    if not fixtures:
        return float(MODEL_CONFIG["xpts"].default_difficulty)
    return sum(to_float(f.difficulty) for f in fixtures) / len(fixtures)


def _quality_signal(player_out: PlayerMetrics, player_in: PlayerMetrics) -> Optional[float]:
    """xGI per 90 differential, None when either side lacks data."""
    out_xgi = player_out.xgi_per_90
    in_xgi = player_in.xgi_per_90
    if out_xgi is None or in_xgi is None:
        return None
    return in_xgi - out_xgi


def _risk_level(points_diff: float, form_diff: float, avg_in_difficulty: float) -> RiskLevel:
    cfg = MODEL_CONFIG["transfer"]
    if abs(points_diff) <= cfg.low_risk_max_points_diff and abs(form_diff) < cfg.low_risk_max_form_diff:
        return RiskLevel.LOW
    if abs(points_diff) > cfg.high_risk_min_points_diff or avg_in_difficulty > cfg.high_risk_min_difficulty:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def _recommendation(points_diff: float, form_diff: float, quality_diff: Optional[float]) -> Recommendation:
    cfg = MODEL_CONFIG["transfer"]
    if points_diff > cfg.strong_buy_min_points_diff and (
        form_diff >= cfg.strong_buy_min_form_diff
        or (quality_diff is not None and quality_diff > 0)
    ):
        return Recommendation.STRONG_BUY
    if points_diff < cfg.avoid_max_points_diff or form_diff < cfg.avoid_max_form_diff:
        return Recommendation.AVOID
    return Recommendation.NEUTRAL


def _explanation(
    recommendation: Recommendation,
    player_out: PlayerMetrics,
    player_in: PlayerMetrics,
    points_diff: float,
    horizon: int,
    reasons: List[str],
) -> str:
    out_name = player_out.name or f"Player {player_out.id}"
    in_name = player_in.name or f"Player {player_in.id}"

    if recommendation is Recommendation.STRONG_BUY:
        text = (
            f"{in_name} is projected to outscore {out_name} by {points_diff:.1f} points "
            f"over the next {horizon} gameweeks."
        )
    elif recommendation is Recommendation.AVOID:
        text = (
            f"{out_name} is the better option here. Keeping the current player saves a "
            f"transfer and is projected to yield {abs(points_diff):.1f} more points "
            f"over {horizon} gameweeks."
        )
    else:
        sign = "+" if points_diff > 0 else ""
        text = (
            f"This is a sideways move. {in_name} and {out_name} are projected similarly "
            f"over the next {horizon} gameweeks ({sign}{points_diff:.1f} point difference). "
            f"Consider saving the transfer for a better opportunity."
        )

    if reasons:
        leader = in_name if points_diff >= 0 else out_name
        text += f" Key factors for {leader}: {', '.join(reasons)}."
    return text


def analyze_transfer(
    player_out: PlayerMetrics,
    player_in: PlayerMetrics,
    horizon: int,
    teams: TeamLookup,
) -> TransferAnalysis:
    """
    Compare selling `player_out` for `player_in` over `horizon` gameweeks.

    pointsDiff is antisymmetric in the two players; the recommendation
    built on top of it is not.
    """
    if horizon is None or horizon < 1:
        horizon = 1

    out_result = calculate_multi_gw_xpts(player_out, player_out.upcoming_fixtures, teams, horizon)
    in_result = calculate_multi_gw_xpts(player_in, player_in.upcoming_fixtures, teams, horizon)

    points_diff = round_to(in_result.total_xpts - out_result.total_xpts, 1)
    # Thresholds compare the unrounded difference; only the output is rounded
    raw_form_diff = to_float(player_in.form) - to_float(player_out.form)
    price_diff = round_to(to_float(player_in.price) - to_float(player_out.price), 1)

    avg_in_difficulty = _average_difficulty(player_in, horizon)
    avg_out_difficulty = _average_difficulty(player_out, horizon)
    fixture_diff = round_to(avg_out_difficulty - avg_in_difficulty, 1)

    risk_level = _risk_level(points_diff, raw_form_diff, avg_in_difficulty)
    base = _recommendation(points_diff, raw_form_diff, _quality_signal(player_out, player_in))

    in_pressure = classify_price_pressure(to_optional_float(player_in.net_transfers_event))
    out_pressure = classify_price_pressure(to_optional_float(player_out.net_transfers_event))
    recommendation = apply_momentum_override(base, points_diff, in_pressure, out_pressure)
    override_fired = recommendation is not base
    if override_fired:
        logger.debug(
            f"Price momentum promoted {player_in.id} over {player_out.id} to {recommendation.value}"
        )

    reasons = in_result.top_reasons if points_diff >= 0 else out_result.top_reasons

    return TransferAnalysis(
        points_diff=points_diff,
        form_diff=round_to(raw_form_diff, 1),
        price_diff=price_diff,
        fixture_diff=fixture_diff,
        avg_in_difficulty=round_to(avg_in_difficulty, 1),
        avg_out_difficulty=round_to(avg_out_difficulty, 1),
        risk_level=risk_level,
        recommendation=recommendation,
        explanation=_explanation(recommendation, player_out, player_in, points_diff, horizon, reasons),
        out_projected=out_result.total_xpts,
        in_projected=in_result.total_xpts,
        gameweeks=horizon,
        momentum_override=override_fired,
        in_price_pressure=in_pressure,
        out_price_pressure=out_pressure,
        top_reasons=list(reasons),
    )
