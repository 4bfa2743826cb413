from dataclasses import dataclass, field
from typing import Dict


# =============================================================================
# MODEL CONFIGURATION - All calibration constants with documentation
# =============================================================================

@dataclass
class NormalizationConfig:
    """
    Scaling constants that map raw FPL metrics onto a common 0-10 scale.

    None of these come from a model fit. They were tuned by eye against a
    season of FPL data so that a typical starter lands mid-scale.
    """

    scale_min: float = 0.0
    scale_max: float = 10.0

    # Neutral value used whenever an input is missing
    neutral: float = 5.0

    # Cumulative ICT runs 0-500 over a season, so /50 puts elite players at 10
    ict_divisor: float = 50.0

    # FDR 1 (easy) -> 10, FDR 5 (hard) -> 0
    fdr_ceiling: float = 5.0
    fdr_step: float = 2.5

    # chance_of_playing is a percentage
    availability_divisor: float = 10.0

    # Bonus per appearance, typically 0-3 per game
    bonus_rate_multiplier: float = 3.3

    # FPL team strength ratings sit roughly in the 1000-1400 band
    team_strength_offset: float = 900.0
    team_strength_divisor: float = 60.0

    # Points-per-game is doubled so that 5 ppg reaches the top of the scale
    ppg_multiplier: float = 2.0

    # Constant venue bias, not derived from data
    home_bias: float = 7.5
    away_bias: float = 4.5


@dataclass
class WeightConfig:
    """
    Factor weights per profile. Each profile must sum to 1.0.

    DEFENSIVE (GKP/DEF) leans on form, fixture and team strength because
    clean sheets follow match control more than individual involvement.
    """

    attacking: Dict[str, float] = field(default_factory=lambda: {
        "form": 0.18,
        "ppg": 0.14,
        "ict": 0.18,
        "fdr": 0.14,
        "homeAway": 0.10,
        "teamStr": 0.12,
        "availability": 0.09,
        "bonus": 0.05,
    })

    defensive: Dict[str, float] = field(default_factory=lambda: {
        "form": 0.20,
        "ppg": 0.16,
        "ict": 0.10,
        "fdr": 0.16,
        "homeAway": 0.10,
        "teamStr": 0.14,
        "availability": 0.09,
        "bonus": 0.05,
    })


@dataclass
class XptsConfig:
    """Expected points calculation configuration."""

    # Maps the 0-10 weighted total onto a realistic FPL range (~0-8.5).
    # Calibration choice, tune freely.
    points_scale: float = 0.85

    # Factors need more impact than this to be quoted as a reason
    materiality_floor: float = 0.5
    max_reasons: int = 3

    # Used when a fixture has no difficulty
    default_difficulty: int = 3
    default_horizon: int = 3

    # Appearances estimated from minutes when the feed omits them.
    # Heuristic, not measured data.
    minutes_per_appearance: float = 70.0

    impact_decimals: int = 2
    xpts_decimals: int = 1


@dataclass
class TransferConfig:
    """Risk and recommendation thresholds for transfer comparison."""

    # Risk
    low_risk_max_points_diff: float = 2.0
    low_risk_max_form_diff: float = 1.0
    high_risk_min_points_diff: float = 5.0
    high_risk_min_difficulty: float = 3.5

    # Recommendation
    strong_buy_min_points_diff: float = 3.0
    strong_buy_min_form_diff: float = 0.0
    avoid_max_points_diff: float = -2.0
    avoid_max_form_diff: float = -1.5

    # Price momentum can promote Neutral -> Strong Buy
    momentum_override_enabled: bool = True
    momentum_min_points_diff: float = 0.0


@dataclass
class PricePressureConfig:
    """
    Net transfer thresholds for price movement pressure.

    Uncalibrated: chosen from observed price-change nights, not fitted.
    """

    rising_threshold: int = 50_000
    likely_threshold: int = 20_000


@dataclass
class ProviderConfig:
    """FPL data provider configuration."""

    cache_duration: int = 300       # seconds
    fixture_lookahead: int = 5      # upcoming fixtures kept per team
    request_timeout: float = 30.0


# Initialize global config
MODEL_CONFIG = {
    "normalization": NormalizationConfig(),
    "weights": WeightConfig(),
    "xpts": XptsConfig(),
    "transfer": TransferConfig(),
    "price_pressure": PricePressureConfig(),
    "provider": ProviderConfig(),
}
