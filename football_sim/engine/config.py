"""
Central configuration for the match simulation engine.

Every tunable curve constant and event threshold lives here as a named
field so the engine can be recalibrated without touching control flow.
Build a variant with ``dataclasses.replace`` and pass it to the engine.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True, slots=True)
class ClockConfig:
    """
    Time structure of a match.

    Attributes:
        tick_seconds: Simulated seconds advanced per tick (must divide 60)
        half_minutes: Length of each regulation half
        half_time_break_minutes: Interval between halves (not played)
        injury_time_min: Smallest injury time added to a half
        injury_time_max: Largest injury time added to a half
        extra_time_half_minutes: Length of each extra-time half
        extra_time_break_minutes: Interval between extra-time halves
    """
    tick_seconds: int = 10
    half_minutes: int = 45
    half_time_break_minutes: int = 15
    injury_time_min: int = 1
    injury_time_max: int = 5
    extra_time_half_minutes: int = 15
    extra_time_break_minutes: int = 5


@dataclass(frozen=True, slots=True)
class StaminaConfig:
    """
    Energy capacity, decay and recovery tuning.

    Every player starts with the same capacity. The stamina attribute only
    decides how many minutes a player can play before energy falls under
    the threshold (``safe_minutes`` interpolated over ``stamina_points``).
    """
    capacity: float = 100.0
    threshold: float = 30.0
    performance_floor: float = 0.5
    half_time_recovery: float = 30.0
    stamina_points: Tuple[float, ...] = (1.0, 3.0, 5.0)
    safe_minutes: Tuple[float, ...] = (25.0, 50.0, 100.0)


@dataclass(frozen=True, slots=True)
class ModifierConfig:
    """Experience bonus and status factor curve constants."""
    # bonus = base * experience ** power, experience capped
    experience_base: float = 0.04
    experience_power: float = 0.57
    experience_cap: float = 20.0

    # factor = floor + (ceiling - floor) * normalised_status ** exponent
    status_min: float = 1.0
    status_max: float = 5.0
    status_floor: float = 0.5
    status_ceiling: float = 1.0
    status_exponent: float = 0.85


@dataclass(frozen=True, slots=True)
class ZoneOutcomes:
    """
    Per-tick outcome probabilities for one ball zone.

    ``advance`` outcomes are counted up from 0 and ``loss`` outcomes down
    from 1; anything in between is a quiet tick.
    """
    advance: Dict[str, float]
    loss: Dict[str, float]


def _attack_outcomes() -> ZoneOutcomes:
    return ZoneOutcomes(
        advance={"goal": 0.016, "shot_saved": 0.03, "shot_off_target": 0.045, "corner": 0.02},
        loss={"tackle": 0.07, "interception": 0.05, "offside": 0.012, "foul": 0.03},
    )


def _midfield_outcomes() -> ZoneOutcomes:
    return ZoneOutcomes(
        advance={"pass": 0.13},
        loss={"tackle": 0.05, "interception": 0.07, "foul": 0.04},
    )


def _defense_outcomes() -> ZoneOutcomes:
    return ZoneOutcomes(
        advance={"pass": 0.2},
        loss={"tackle": 0.02, "interception": 0.04, "foul": 0.02},
    )


@dataclass(frozen=True, slots=True)
class OutcomeConfig:
    """Zone outcome tables and skill scaling."""
    attack: ZoneOutcomes = field(default_factory=_attack_outcomes)
    midfield: ZoneOutcomes = field(default_factory=_midfield_outcomes)
    defense: ZoneOutcomes = field(default_factory=_defense_outcomes)
    skill_exponent: float = 1.0
    ratio_min: float = 0.5
    ratio_max: float = 2.0
    # Pace and physicality duels shade fouls and tackles more gently than skill
    duel_exponent: float = 0.5


@dataclass(frozen=True, slots=True)
class TacticsConfig:
    """How team instructions scale zone outcomes."""
    attacking_advance: float = 1.15
    attacking_loss: float = 1.1
    defensive_advance: float = 0.85
    defensive_loss: float = 0.9
    # multiplier = base + range * pressing_intensity
    pressing_turnover_base: float = 0.8
    pressing_turnover_range: float = 0.4
    pressing_foul_base: float = 0.7
    pressing_foul_range: float = 0.6
    fast_transition: float = 1.2
    slow_transition: float = 0.85


@dataclass(frozen=True, slots=True)
class DisciplineConfig:
    """Card probabilities applied to every foul."""
    yellow_card_chance: float = 0.15
    straight_red_chance: float = 0.01


def _trigger_chances() -> Dict[str, float]:
    return {"tackle": 0.008, "collision": 0.01, "sprint": 0.002}


def _type_weights() -> Dict[str, Tuple[float, ...]]:
    # Order: muscle, ligament, joint, head, other
    return {
        "tackle": (0.35, 0.3, 0.2, 0.05, 0.1),
        "collision": (0.2, 0.2, 0.2, 0.3, 0.1),
        "sprint": (0.7, 0.15, 0.1, 0.0, 0.05),
    }


def _injury_values() -> Dict[str, Tuple[Tuple[int, int], ...]]:
    # Order: severity 1, 2, 3
    return {
        "muscle": ((20, 40), (50, 80), (100, 150)),
        "ligament": ((30, 50), (60, 100), (120, 180)),
        "joint": ((25, 45), (55, 90), (110, 160)),
        "head": ((35, 55), (70, 110), (130, 190)),
        "other": ((20, 40), (50, 80), (100, 150)),
    }


@dataclass(frozen=True, slots=True)
class InjuryConfig:
    """Injury risk, type, severity and recovery tuning."""
    trigger_chances: Dict[str, float] = field(default_factory=_trigger_chances)
    type_weights: Dict[str, Tuple[float, ...]] = field(default_factory=_type_weights)
    severity_weights: Tuple[float, ...] = (0.6, 0.3, 0.1)
    injury_values: Dict[str, Tuple[Tuple[int, int], ...]] = field(default_factory=_injury_values)
    treatment_seconds: Tuple[int, ...] = (30, 90, 180)
    # (minimum age, multiplier), checked from the oldest band down
    age_bands: Tuple[Tuple[int, float], ...] = ((34, 1.5), (31, 1.2), (25, 1.0), (0, 0.8))
    home_multiplier: float = 0.9
    fatigue_weight: float = 1.0
    min_daily_recovery: float = 2.55
    max_daily_recovery: float = 13.8


@dataclass(frozen=True, slots=True)
class ShootoutConfig:
    """Penalty shootout tuning; conversion starts from the penalty xG."""
    conversion_min: float = 0.5
    conversion_max: float = 0.95
    skill_exponent: float = 0.5
    regulation_kicks: int = 5
    max_rounds: int = 30


@dataclass(frozen=True, slots=True)
class SquadConfig:
    """Lineup and substitution limits."""
    lineup_size: int = 11
    max_substitutions: int = 5


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """All engine tuning grouped together."""
    clock: ClockConfig = field(default_factory=ClockConfig)
    stamina: StaminaConfig = field(default_factory=StaminaConfig)
    modifiers: ModifierConfig = field(default_factory=ModifierConfig)
    outcomes: OutcomeConfig = field(default_factory=OutcomeConfig)
    tactics: TacticsConfig = field(default_factory=TacticsConfig)
    discipline: DisciplineConfig = field(default_factory=DisciplineConfig)
    injury: InjuryConfig = field(default_factory=InjuryConfig)
    shootout: ShootoutConfig = field(default_factory=ShootoutConfig)
    squad: SquadConfig = field(default_factory=SquadConfig)


ENGINE_CONFIG = EngineConfig()
