"""API tests against an in-memory snapshot."""
from fastapi.testclient import TestClient

from main import app, Snapshot
from fpl_xpts.endpoints import get_snapshot

import pytest


@pytest.fixture
def snapshot(make_player, make_fixture, teams):
    fixtures = [make_fixture(gameweek=gw) for gw in (24, 25, 26, 27)]
    layout = [
        ("GKP", 4.0, 4.5), ("GKP", 2.0, 4.0),
        ("DEF", 6.0, 5.0), ("DEF", 5.5, 4.5), ("DEF", 5.0, 4.5), ("DEF", 1.0, 4.0), ("DEF", 0.5, 4.0),
        ("MID", 9.0, 10.0), ("MID", 8.0, 8.5), ("MID", 7.0, 7.0), ("MID", 6.5, 6.0), ("MID", 6.0, 5.5),
        ("FWD", 8.5, 9.0), ("FWD", 4.0, 6.0), ("FWD", 0.0, 4.5),
    ]
    players = {
        i + 1: make_player(
            id=i + 1, name=f"P{i + 1}", position=pos, form=form, price=price,
            upcoming_fixtures=fixtures,
        )
        for i, (pos, form, price) in enumerate(layout)
    }
    players[8].net_transfers_event = 90_000
    return Snapshot(players=players, teams=teams, current_gw=23)


@pytest.fixture
def client(snapshot):
    async def _override():
        return snapshot

    app.dependency_overrides[get_snapshot] = _override
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Player projection
# =============================================================================

class TestPlayerXpts:
    def test_projection(self, client):
        resp = client.get("/api/players/8/xpts", params={"horizon": 2})
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == 8
        assert data["horizon"] == 2
        assert len(data["per_gw"]) == 2
        assert len(data["fixtures"]) == 2
        assert len(data["per_gw"][0]["factors"]) == 8
        assert data["total_xpts"] > 0

    def test_unknown_player(self, client):
        assert client.get("/api/players/999/xpts").status_code == 404

    def test_horizon_out_of_range(self, client):
        assert client.get("/api/players/8/xpts", params={"horizon": 0}).status_code == 422
        assert client.get("/api/players/8/xpts", params={"horizon": 11}).status_code == 422


# =============================================================================
# Squad endpoints
# =============================================================================

class TestSquadEndpoints:
    def test_rank(self, client):
        resp = client.post("/api/squad/rank", json={"player_ids": [1, 8, 13]})
        assert resp.status_code == 200
        data = resp.json()
        assert [p["id"] for p in data["ranked"]] == [8, 13, 1]
        assert data["captain"]["id"] == 8
        assert data["vice_captain"]["id"] == 13
        assert data["ranked"][0]["is_captain"] is True
        assert data["ranked"][1]["is_vice_captain"] is True
        assert data["ranked"][2]["is_captain"] is False

    def test_rank_unknown_player(self, client):
        resp = client.post("/api/squad/rank", json={"player_ids": [1, 404]})
        assert resp.status_code == 404

    def test_rank_empty_squad_rejected(self, client):
        assert client.post("/api/squad/rank", json={"player_ids": []}).status_code == 422

    def test_formation(self, client):
        resp = client.post("/api/squad/formation", json={"player_ids": list(range(1, 16))})
        assert resp.status_code == 200
        data = resp.json()
        assert data["formation"] == "3-5-2"
        assert data["is_complete"] is True
        assert len(data["starting_xi"]) == 11
        assert len(data["bench"]) == 4
        assert data["bench"][0]["position"] == "GKP"
        assert data["starting_xi"][0]["is_captain"] is True


# =============================================================================
# Transfer endpoints
# =============================================================================

class TestTransferTargets:
    def test_all_players(self, client):
        data = client.get("/api/transfers/targets").json()
        assert data["count"] == 15
        xpts = [t["xpts"] for t in data["targets"]]
        assert xpts == sorted(xpts, reverse=True)

    def test_position_filter(self, client):
        data = client.get("/api/transfers/targets", params={"position": "FWD"}).json()
        assert data["count"] == 3
        assert {t["position"] for t in data["targets"]} == {"FWD"}

    def test_max_price_filter(self, client):
        data = client.get("/api/transfers/targets", params={"position": "MID", "max_price": 7.0}).json()
        assert {t["id"] for t in data["targets"]} == {10, 11, 12}

    def test_limit(self, client):
        data = client.get("/api/transfers/targets", params={"limit": 5}).json()
        assert len(data["targets"]) == 5
        assert data["count"] == 15

    def test_price_pressure(self, client):
        data = client.get("/api/transfers/targets", params={"position": "MID"}).json()
        top = data["targets"][0]
        assert top["id"] == 8
        assert top["price_pressure"] == "rising"

    def test_invalid_position(self, client):
        resp = client.get("/api/transfers/targets", params={"position": "WINGER"})
        assert resp.status_code == 422


class TestAnalyzeTransfer:
    def test_analysis(self, client):
        resp = client.post("/api/transfers/analyze", json={"out_id": 15, "in_id": 13})
        assert resp.status_code == 200
        data = resp.json()
        assert data["out_id"] == 15
        assert data["in_id"] == 13
        assert data["gameweeks"] == 3
        assert data["points_diff"] > 0
        assert data["recommendation"] in ("Strong Buy", "Neutral", "Avoid")
        assert data["risk_level"] in ("Low", "Medium", "High")

    def test_same_player_rejected(self, client):
        resp = client.post("/api/transfers/analyze", json={"out_id": 8, "in_id": 8})
        assert resp.status_code == 400

    def test_unknown_player(self, client):
        resp = client.post("/api/transfers/analyze", json={"out_id": 8, "in_id": 404})
        assert resp.status_code == 404


# =============================================================================
# Config / health
# =============================================================================

class TestConfigAndHealth:
    def test_config(self, client):
        data = client.get("/api/config").json()
        assert set(data) == {"normalization", "weights", "xpts", "transfer", "price_pressure", "provider"}
        assert data["xpts"]["points_scale"] == 0.85
        assert data["weights"]["attacking"]["form"] == 0.18

    def test_health(self, client):
        data = client.get("/api/health").json()
        assert data["status"] == "ok"
        assert "cache" in data
