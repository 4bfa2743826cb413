"""
FPL xPts - Services Module

HTTP client, FPL API fetchers and the snapshot builder that turns raw
bootstrap/fixture payloads into the data the engine consumes.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict

import httpx
from fastapi import HTTPException

from fpl_xpts.config import MODEL_CONFIG
from fpl_xpts.constants import FPL_BASE_URL, HOME_MARKER, AWAY_MARKER
from fpl_xpts.models import Fixture, PlayerMetrics, Snapshot, TeamStrength
from fpl_xpts.cache import cache, DataCache


logger = logging.getLogger("fpl_xpts")


# ============ HTTP CLIENT ============

# Global HTTP client (initialized lazily, closed in lifespan)
http_client: Optional[httpx.AsyncClient] = None


async def get_http_client() -> httpx.AsyncClient:
    """Get the shared HTTP client, creating one if needed."""
    global http_client
    if http_client is None:
        http_client = httpx.AsyncClient(
            timeout=MODEL_CONFIG["provider"].request_timeout,
            headers={"User-Agent": "FPL-xPts/1.0"},
        )
    return http_client


async def close_http_client():
    global http_client
    if http_client is not None:
        await http_client.aclose()
        http_client = None


# ============ FPL API FETCHERS ============

async def fetch_fpl_data(data_cache: DataCache = cache) -> Dict:
    """bootstrap-static payload, served from cache while fresh."""
    if data_cache.bootstrap_data and not data_cache.is_stale():
        return data_cache.bootstrap_data
    try:
        client = await get_http_client()
        response = await client.get(f"{FPL_BASE_URL}/bootstrap-static/")
        response.raise_for_status()
        data_cache.set_bootstrap(response.json())
        return data_cache.bootstrap_data
    # ValueError covers non-JSON bodies such as the maintenance page
    except (httpx.HTTPError, ValueError) as e:
        if data_cache.bootstrap_data:
            logger.warning(f"Bootstrap refresh failed, serving stale data: {e}")
            return data_cache.bootstrap_data
        logger.error(f"Failed to fetch bootstrap data: {e}")
        raise HTTPException(status_code=503, detail=f"FPL API unavailable: {str(e)}")


async def fetch_fixtures(data_cache: DataCache = cache) -> List[Dict]:
    if data_cache.fixtures_data is not None and not data_cache.fixtures_is_stale():
        return data_cache.fixtures_data
    try:
        client = await get_http_client()
        response = await client.get(f"{FPL_BASE_URL}/fixtures/")
        response.raise_for_status()
        data_cache.set_fixtures(response.json())
        return data_cache.fixtures_data
    except (httpx.HTTPError, ValueError) as e:
        if data_cache.fixtures_data is not None:
            logger.warning(f"Fixtures refresh failed, serving stale data: {e}")
            return data_cache.fixtures_data
        logger.error(f"Failed to fetch fixtures: {e}")
        raise HTTPException(status_code=503, detail=f"FPL API unavailable: {str(e)}")


# ============ SNAPSHOT BUILDING ============

def get_current_gameweek(bootstrap: Dict) -> int:
    """Current GW from the events list. 0 before the season starts."""
    events = bootstrap.get("events") or []
    for event in events:
        if event.get("is_current"):
            return event["id"]
    for event in events:
        if event.get("is_next"):
            return event["id"] - 1
    return 0


def get_upcoming_fixtures_by_team(
    fixtures: List[Dict],
    teams: Dict[int, TeamStrength],
    current_gw: int,
    lookahead: Optional[int] = None,
) -> Dict[int, List[Fixture]]:
    """
    Future, unplayed fixtures per team, ordered by gameweek.

    Labels carry the venue from the team's point of view: "ARS (H)" means
    at home to Arsenal.
    """
    if lookahead is None:
        lookahead = MODEL_CONFIG["provider"].fixture_lookahead

    future = [
        f for f in fixtures
        if f.get("event") and f["event"] > current_gw and not f.get("finished")
    ]
    future.sort(key=lambda f: (f["event"], f.get("kickoff_time") or ""))

    def short_name(team_id: int) -> str:
        team = teams.get(team_id)
        return team.short_name if team and team.short_name else "?"

    upcoming: Dict[int, List[Fixture]] = {}
    for fix in future:
        home, away = fix.get("team_h"), fix.get("team_a")
        home_list = upcoming.setdefault(home, [])
        if len(home_list) < lookahead:
            home_list.append(Fixture(
                gameweek=fix["event"],
                opponent=f"{short_name(away)} {HOME_MARKER}",
                difficulty=fix.get("team_h_difficulty"),
            ))
        away_list = upcoming.setdefault(away, [])
        if len(away_list) < lookahead:
            away_list.append(Fixture(
                gameweek=fix["event"],
                opponent=f"{short_name(home)} {AWAY_MARKER}",
                difficulty=fix.get("team_a_difficulty"),
            ))
    return upcoming


def build_snapshot(bootstrap: Dict, fixtures: List[Dict]) -> Snapshot:
    """Resolve raw FPL payloads into players, team strengths and fixtures."""
    teams = {t["id"]: TeamStrength.from_api(t) for t in bootstrap.get("teams") or []}
    current_gw = get_current_gameweek(bootstrap)
    upcoming = get_upcoming_fixtures_by_team(fixtures or [], teams, current_gw)

    players = {}
    skipped = 0
    for element in bootstrap.get("elements") or []:
        if "id" not in element:
            skipped += 1
            continue
        players[element["id"]] = PlayerMetrics.from_api(
            element, upcoming.get(element.get("team"), []),
        )
    if skipped:
        logger.warning(f"Skipped {skipped} player records without an id")

    return Snapshot(players=players, teams=teams, current_gw=current_gw)


async def load_snapshot(data_cache: DataCache = cache) -> Snapshot:
    """Current snapshot, rebuilt when the cached one has expired."""
    if not data_cache.snapshot_is_stale():
        return data_cache.snapshot

    started = datetime.now()
    bootstrap = await fetch_fpl_data(data_cache)
    fixtures = await fetch_fixtures(data_cache)
    snapshot = build_snapshot(bootstrap, fixtures)
    data_cache.set_snapshot(snapshot)
    logger.info(f"Snapshot rebuilt in {(datetime.now() - started).total_seconds():.2f}s")
    return snapshot
