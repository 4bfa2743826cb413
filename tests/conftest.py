"""Shared fixtures for FPL xPts test suite."""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from main import Fixture, PlayerMetrics, TeamStrength


@pytest.fixture
def make_player():
    """Factory for PlayerMetrics with sensible mid-table MID defaults."""
    def _make(**overrides):
        base = {
            "id": 1,
            "name": "TestPlayer",
            "position": "MID",
            "team_id": 1,
            "form": 5.0,
            "points_per_game": 4.5,
            "ict_index": 120.0,
            "bonus": 8,
            "minutes": 1400,
            "appearances": None,
            "chance_of_playing": None,
            "price": 7.0,
            "ownership": 10.0,
            "net_transfers_event": 0,
            "expected_goal_involvements": None,
            "upcoming_fixtures": [],
        }
        base.update(overrides)
        return PlayerMetrics(**base)
    return _make


@pytest.fixture
def make_fixture():
    """Factory for upcoming fixtures."""
    def _make(gameweek=24, opponent="BUR (H)", difficulty=3):
        return Fixture(gameweek=gameweek, opponent=opponent, difficulty=difficulty)
    return _make


@pytest.fixture
def make_team():
    """Factory for team strength records matching FPL API ranges."""
    def _make(**overrides):
        base = {
            "id": 1,
            "name": "Arsenal",
            "short_name": "ARS",
            "strength_attack_home": 1200,
            "strength_attack_away": 1150,
            "strength_defence_home": 1250,
            "strength_defence_away": 1180,
        }
        base.update(overrides)
        return TeamStrength(**base)
    return _make


@pytest.fixture
def teams(make_team):
    return {
        1: make_team(),
        2: make_team(
            id=2, name="Burnley", short_name="BUR",
            strength_attack_home=1000, strength_attack_away=960,
            strength_defence_home=1010, strength_defence_away=970,
        ),
    }


@pytest.fixture
def make_element():
    """Factory for FPL bootstrap-static `elements` entries."""
    def _make(**overrides):
        base = {
            "id": 1,
            "web_name": "TestPlayer",
            "team": 1,
            "element_type": 3,  # MID
            "now_cost": 70,  # £7.0m
            "minutes": 1400,
            "form": "5.0",
            "points_per_game": "4.5",
            "ict_index": "120.0",
            "bonus": 8,
            "chance_of_playing_next_round": None,
            "selected_by_percent": "10.0",
            "transfers_in_event": 1000,
            "transfers_out_event": 500,
            "expected_goal_involvements": "6.50",
        }
        base.update(overrides)
        return base
    return _make
