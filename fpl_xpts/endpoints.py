"""
FPL xPts - Endpoints Module

FastAPI app initialization, CORS middleware, lifespan handler and the API
endpoints that expose the xPts engine.
"""

import os
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Optional, List, Dict

from fastapi import Depends, FastAPI, HTTPException, Query, Path
from fastapi.middleware.cors import CORSMiddleware

from fpl_xpts.config import MODEL_CONFIG
from fpl_xpts.constants import DEFAULT_HORIZON
from fpl_xpts.models import (
    Position, PlayerMetrics, Snapshot,
    SquadRequest, TransferAnalysisRequest, TransferTarget,
    ranked_player_schema,
)
from fpl_xpts.cache import cache
from fpl_xpts.calculators import calculate_multi_gw_xpts
from fpl_xpts.planner import (
    rank_squad, rank_transfer_targets, suggest_formation,
    analyze_transfer, classify_price_pressure,
)
from fpl_xpts.services import load_snapshot, close_http_client


logger = logging.getLogger("fpl_xpts")


# ============ LIFESPAN ============

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("FPL xPts API starting")
    yield
    # Shutdown - close HTTP client
    await close_http_client()


# ============ APP INITIALIZATION ============

app = FastAPI(title="FPL xPts API", version="1.0.0", lifespan=lifespan)

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,  # Set to True only with specific origins, not "*"
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============ DEPENDENCIES ============

async def get_snapshot() -> Snapshot:
    """Snapshot for one request. Overridden in tests."""
    return await load_snapshot(cache)


def _get_player_or_404(snapshot: Snapshot, player_id: int) -> PlayerMetrics:
    player = snapshot.get_player(player_id)
    if player is None:
        raise HTTPException(status_code=404, detail=f"Player {player_id} not found")
    return player


def _get_players_or_404(snapshot: Snapshot, player_ids: List[int]) -> List[PlayerMetrics]:
    missing = [pid for pid in player_ids if snapshot.get_player(pid) is None]
    if missing:
        raise HTTPException(status_code=404, detail=f"Players not found: {missing}")
    return [snapshot.players[pid] for pid in player_ids]


# ============ PLAYER ENDPOINTS ============

@app.get("/api/players/{player_id}/xpts")
async def get_player_xpts(
    player_id: int = Path(..., ge=1),
    horizon: int = Query(DEFAULT_HORIZON, ge=1, le=10),
    snapshot: Snapshot = Depends(get_snapshot),
):
    """Multi-gameweek projection with the per-fixture factor breakdown."""
    player = _get_player_or_404(snapshot, player_id)
    result = calculate_multi_gw_xpts(player, player.upcoming_fixtures, snapshot.teams, horizon)
    return {
        "id": player.id,
        "name": player.name,
        "position": player.position,
        "horizon": horizon,
        "fixtures": [asdict(f) for f in player.upcoming_fixtures[:horizon]],
        **asdict(result),
    }


# ============ SQUAD ENDPOINTS ============

@app.post("/api/squad/rank")
async def post_rank_squad(
    request: SquadRequest,
    snapshot: Snapshot = Depends(get_snapshot),
):
    """Rank a squad and pick captain and vice-captain."""
    players = _get_players_or_404(snapshot, request.player_ids)
    ranking = rank_squad(players, snapshot.teams, request.horizon)
    return {
        "horizon": request.horizon,
        "ranked": [ranked_player_schema(r, ranking.captain, ranking.vice_captain) for r in ranking.ranked],
        "captain": ranked_player_schema(ranking.captain) if ranking.captain else None,
        "vice_captain": ranked_player_schema(ranking.vice_captain) if ranking.vice_captain else None,
    }


@app.post("/api/squad/formation")
async def post_suggest_formation(
    request: SquadRequest,
    snapshot: Snapshot = Depends(get_snapshot),
):
    """Best starting XI and bench order for a squad."""
    players = _get_players_or_404(snapshot, request.player_ids)
    suggestion = suggest_formation(players, snapshot.teams, request.horizon)
    return {
        "formation": suggestion.formation,
        "is_complete": suggestion.is_complete,
        "total_xpts": suggestion.total_xpts,
        "starting_xi": [
            ranked_player_schema(r, suggestion.captain, suggestion.vice_captain)
            for r in suggestion.starting_xi
        ],
        "bench": [ranked_player_schema(r) for r in suggestion.bench],
    }


# ============ TRANSFER ENDPOINTS ============

@app.get("/api/transfers/targets")
async def get_transfer_targets(
    position: Optional[Position] = Query(None),
    max_price: Optional[float] = Query(None, gt=0),
    horizon: int = Query(DEFAULT_HORIZON, ge=1, le=10),
    limit: int = Query(20, ge=1, le=100),
    snapshot: Snapshot = Depends(get_snapshot),
):
    """
    Transfer targets ranked by average xPts.

    Filtering happens here, before ranking; the ranking itself never drops
    players.
    """
    candidates = list(snapshot.players.values())
    if position is not None:
        candidates = [p for p in candidates if p.position == position.value]
    if max_price is not None:
        candidates = [p for p in candidates if p.price is not None and p.price <= max_price]

    ranked = rank_transfer_targets(candidates, snapshot.teams, horizon)
    return {
        "horizon": horizon,
        "count": len(ranked),
        "targets": [
            TransferTarget(
                id=r.player.id,
                name=r.player.name,
                position=r.player.position,
                team_id=r.player.team_id,
                price=r.player.price,
                form=r.player.form,
                xpts=r.xpts,
                total_xpts=r.total_xpts,
                top_reasons=r.top_reasons,
                price_pressure=classify_price_pressure(r.player.net_transfers_event).value,
            ).model_dump()
            for r in ranked[:limit]
        ],
    }


@app.post("/api/transfers/analyze")
async def post_analyze_transfer(
    request: TransferAnalysisRequest,
    snapshot: Snapshot = Depends(get_snapshot),
):
    """Compare selling one player for another."""
    if request.out_id == request.in_id:
        raise HTTPException(status_code=400, detail="out_id and in_id must differ")
    player_out = _get_player_or_404(snapshot, request.out_id)
    player_in = _get_player_or_404(snapshot, request.in_id)

    analysis = analyze_transfer(player_out, player_in, request.horizon, snapshot.teams)
    result = asdict(analysis)
    result["out_id"] = player_out.id
    result["in_id"] = player_in.id
    return result


# ============ CONFIG / HEALTH ============

@app.get("/api/config")
async def get_model_config() -> Dict:
    """
    Get current model configuration.

    Useful for understanding calibration values and debugging.
    """
    return {name: asdict(section) for name, section in MODEL_CONFIG.items()}


@app.get("/api/health")
async def health_check():
    """Health check endpoint with cache status."""
    return {
        "status": "ok",
        "cache": {
            "bootstrap_data": cache.bootstrap_data is not None,
            "fixtures_data": cache.fixtures_data is not None,
            "snapshot_players": len(cache.snapshot.players) if cache.snapshot else 0,
        },
        "snapshot_last_update": (
            cache.snapshot_last_update.isoformat() if cache.snapshot_last_update else None
        ),
    }
