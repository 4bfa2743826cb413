"""
FPL xPts - Constants Module

Constant values, lookup tables and small value-coercion helpers shared by
the engine, the data provider and the API.
"""

import math
from typing import Optional, Any, List, Tuple

from fpl_xpts.config import MODEL_CONFIG


# ============ CONSTANTS ============

FPL_BASE_URL = "https://fantasy.premierleague.com/api"
POSITION_MAP = {1: "GKP", 2: "DEF", 3: "MID", 4: "FWD"}
POSITION_ID_MAP = {"GKP": 1, "DEF": 2, "MID": 3, "FWD": 4}

# Factor order is part of the output contract
FACTOR_NAMES = [
    "form", "ppg", "ict", "fdr", "homeAway", "teamStr", "availability", "bonus",
]

# Opponent labels carry the venue as a suffix, e.g. "ARS (H)"
HOME_MARKER = "(H)"
AWAY_MARKER = "(A)"
UNKNOWN_OPPONENT = "TBD"

# FPL fixture difficulty ratings run 1 (easiest) to 5 (hardest)
FDR_MIN = 1
FDR_MAX = 5

# Valid formations as (DEF, MID, FWD) with exactly one GKP.
# Order is the tie-break when two formations score the same.
VALID_FORMATIONS: List[Tuple[int, int, int]] = [
    (3, 4, 3), (3, 5, 2), (4, 3, 3), (4, 4, 2), (4, 5, 1),
    (5, 3, 2), (5, 4, 1), (5, 2, 3),
]
STARTING_XI_SIZE = 11

# Horizon defaults from config
DEFAULT_HORIZON = MODEL_CONFIG["xpts"].default_horizon
DEFAULT_DIFFICULTY = MODEL_CONFIG["xpts"].default_difficulty


# ============ VALUE COERCION ============

def to_optional_float(value: Any) -> Optional[float]:
    """
    Coerce a loosely-typed feed value to float.

    The FPL API serialises most decimals as strings ("5.2"), and third-party
    feeds send "" or null for missing values. Returns None for anything that
    is missing, unparseable or not finite.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce to float, falling back to `default` for missing values."""
    number = to_optional_float(value)
    return default if number is None else number


def round_to(value: float, decimals: int) -> float:
    """Round and normalise negative zero."""
    result = round(value, decimals)
    return 0.0 if result == 0 else result
