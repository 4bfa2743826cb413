"""Tests for multi-gameweek aggregation."""
from main import (
    calculate_xpts,
    calculate_multi_gw_xpts,
    aggregate_reasons,
    XptsResult,
    Fixture,
)

import pytest


class TestCalculateMultiGwXpts:
    def test_single_fixture_identity(self, make_player, make_fixture, teams):
        player = make_player(form=7.2, points_per_game=5.1)
        fixture = make_fixture(difficulty=2)
        single = calculate_xpts(player, fixture, teams)
        multi = calculate_multi_gw_xpts(player, [fixture], teams, 1)
        assert multi.total_xpts == single.xpts
        assert multi.avg_xpts == single.xpts
        assert multi.top_reasons == single.top_reasons
        assert len(multi.per_gw) == 1

    def test_empty_fixture_placeholder(self, make_player, teams):
        player = make_player()
        neutral = calculate_xpts(player, Fixture(difficulty=3, opponent="TBD"), teams)
        result = calculate_multi_gw_xpts(player, [], teams, 3)
        assert result.total_xpts == pytest.approx(round(neutral.xpts * 3, 1))
        assert result.total_xpts > 0
        assert result.avg_xpts == neutral.xpts
        assert len(result.per_gw) == 3
        assert result.top_reasons == neutral.top_reasons

    def test_window_truncated_to_horizon(self, make_player, make_fixture, teams):
        fixtures = [make_fixture(gameweek=gw, difficulty=2) for gw in range(20, 26)]
        result = calculate_multi_gw_xpts(make_player(), fixtures, teams, 3)
        assert len(result.per_gw) == 3

    def test_fewer_fixtures_than_horizon(self, make_player, make_fixture, teams):
        fixtures = [make_fixture(gameweek=20), make_fixture(gameweek=21)]
        result = calculate_multi_gw_xpts(make_player(), fixtures, teams, 5)
        assert len(result.per_gw) == 2

    def test_total_and_average(self, make_player, make_fixture, teams):
        player = make_player()
        fixtures = [
            make_fixture(gameweek=20, opponent="BUR (H)", difficulty=2),
            make_fixture(gameweek=21, opponent="LIV (A)", difficulty=5),
            make_fixture(gameweek=22, opponent="EVE (H)", difficulty=3),
        ]
        singles = [calculate_xpts(player, f, teams).xpts for f in fixtures]
        result = calculate_multi_gw_xpts(player, fixtures, teams, 3)
        assert result.total_xpts == pytest.approx(round(sum(singles), 1))
        assert result.avg_xpts == pytest.approx(round(result.total_xpts / 3, 1))

    def test_defaults_to_player_fixtures(self, make_player, make_fixture, teams):
        fixtures = [make_fixture(gameweek=20), make_fixture(gameweek=21)]
        player = make_player(upcoming_fixtures=fixtures)
        explicit = calculate_multi_gw_xpts(player, fixtures, teams, 3)
        implicit = calculate_multi_gw_xpts(player, None, teams, 3)
        assert implicit == explicit

    def test_non_positive_horizon_treated_as_one(self, make_player, make_fixture, teams):
        fixtures = [make_fixture(gameweek=20), make_fixture(gameweek=21)]
        result = calculate_multi_gw_xpts(make_player(), fixtures, teams, 0)
        assert len(result.per_gw) == 1

    def test_persistent_reason_beats_spike(self, make_player, make_fixture, teams):
        """A reason present every week outranks a one-off easy fixture."""
        player = make_player(form=8, points_per_game=6)
        fixtures = [
            make_fixture(gameweek=20, opponent="BUR (H)", difficulty=1),
            make_fixture(gameweek=21, opponent="LIV (A)", difficulty=5),
            make_fixture(gameweek=22, opponent="MCI (A)", difficulty=5),
        ]
        result = calculate_multi_gw_xpts(player, fixtures, teams, 3)
        assert result.top_reasons[0] == "In great form"
        assert len(result.top_reasons) <= 3


class TestAggregateReasons:
    def _result(self, reasons):
        return XptsResult(xpts=0.0, factors=[], top_reasons=reasons)

    def test_ranked_by_frequency(self):
        results = [
            self._result(["A", "B"]),
            self._result(["B", "C"]),
            self._result(["B", "C"]),
        ]
        assert aggregate_reasons(results, 3) == ["B", "C", "A"]

    def test_ties_keep_first_seen_order(self):
        results = [self._result(["X", "Y"]), self._result(["Z"])]
        assert aggregate_reasons(results, 3) == ["X", "Y", "Z"]

    def test_limit(self):
        results = [self._result(["A", "B", "C"]), self._result(["D"])]
        assert aggregate_reasons(results, 3) == ["A", "B", "C"]

    def test_empty(self):
        assert aggregate_reasons([], 3) == []
