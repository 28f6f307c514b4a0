"""
Injury generation.

Injuries are rolled on qualifying actions (tackles, collisions) and by a
periodic fatigue check for players running on low energy. A triggered
injury gets a type, a severity tier, an injury value inside the bucket
for that type and severity, and a recovery window derived from the value.
"""

import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from ..errors import ConfigurationError
from .config import ENGINE_CONFIG, InjuryConfig
from .events import Injury, MatchEvent, Substitution
from .player import Player
from .team import SquadState

_log = logging.getLogger("football_sim.injury")


class InjuryType(Enum):
    MUSCLE = "muscle"
    LIGAMENT = "ligament"
    JOINT = "joint"
    HEAD = "head"
    OTHER = "other"


class InjuryTrigger(Enum):
    """What caused the injury roll."""
    TACKLE = "tackle"
    COLLISION = "collision"
    SPRINT = "sprint"


INJURY_TYPE_ORDER = (
    InjuryType.MUSCLE,
    InjuryType.LIGAMENT,
    InjuryType.JOINT,
    InjuryType.HEAD,
    InjuryType.OTHER,
)


@dataclass
class InjuryRecord:
    """
    Injury handed to the persistence layer.

    ``is_recovered`` and ``recovered_at`` are owned by an external recovery
    process; the engine always creates records as not recovered.
    """
    player_id: str
    match_id: Optional[str]
    injury_type: InjuryType
    severity: int
    injury_value: int
    estimated_min_days: int
    estimated_max_days: int
    occurred_minute: int
    trigger: InjuryTrigger
    occurred_at: Optional[datetime] = None
    is_recovered: bool = False
    recovered_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.severity not in (1, 2, 3):
            raise ConfigurationError(f"Injury severity must be 1-3, got {self.severity}")
        if self.estimated_min_days > self.estimated_max_days:
            raise ConfigurationError(
                f"Recovery window is inverted: {self.estimated_min_days} > {self.estimated_max_days}"
            )

    def mark_recovered(self, recovered_at: datetime) -> None:
        self.is_recovered = True
        self.recovered_at = recovered_at

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["injury_type"] = self.injury_type.value
        data["trigger"] = self.trigger.value
        return data


class InjuryGenerator:
    """
    Rolls and builds injuries for one match.

    Args:
        config: Injury tuning
        match_id: Written onto every record
        kickoff_at: Real-world kickoff; records get ``occurred_at`` when set
    """

    def __init__(self,
                 config: InjuryConfig = ENGINE_CONFIG.injury,
                 match_id: Optional[str] = None,
                 kickoff_at: Optional[datetime] = None,
                 performance_floor: float = ENGINE_CONFIG.stamina.performance_floor):
        for trigger in InjuryTrigger:
            if trigger.value not in config.trigger_chances or trigger.value not in config.type_weights:
                raise ConfigurationError(f"Injury config has no entry for trigger {trigger.value!r}")
        for injury_type in InjuryType:
            if len(config.injury_values.get(injury_type.value, ())) != len(config.severity_weights):
                raise ConfigurationError(f"Injury values for {injury_type.value!r} must cover every severity")
        self.config = config
        self.match_id = match_id
        self.kickoff_at = kickoff_at
        self.performance_floor = performance_floor

    # Probability

    def age_multiplier(self, age: int) -> float:
        for min_age, multiplier in self.config.age_bands:
            if age >= min_age:
                return multiplier
        return 1.0

    def fatigue_multiplier(self, performance_factor: float) -> float:
        """1.0 for a fresh player, ``1 + fatigue_weight`` at the performance floor."""
        fatigue = (1.0 - performance_factor) / (1.0 - self.performance_floor)
        return 1.0 + self.config.fatigue_weight * float(np.clip(fatigue, 0.0, 1.0))

    def injury_chance(self,
                      trigger: InjuryTrigger,
                      player: Player,
                      performance_factor: float,
                      is_home: bool) -> float:
        """
        Probability that ``trigger`` injures ``player``.

        Args:
            trigger: Qualifying action
            player: Player at risk
            performance_factor: Current stamina performance factor
            is_home: Whether the player's team plays at home

        Returns:
            float: Chance in [0, 1]
        """
        chance = self.config.trigger_chances[trigger.value]
        chance *= self.age_multiplier(player.age)
        chance *= self.fatigue_multiplier(performance_factor)
        if is_home:
            chance *= self.config.home_multiplier
        return float(np.clip(chance, 0.0, 1.0))

    # Record construction

    def choose_type(self, trigger: InjuryTrigger, rng: np.random.Generator) -> InjuryType:
        weights = np.asarray(self.config.type_weights[trigger.value], dtype=float)
        return INJURY_TYPE_ORDER[int(rng.choice(len(INJURY_TYPE_ORDER), p=weights / weights.sum()))]

    def choose_severity(self, rng: np.random.Generator) -> int:
        weights = np.asarray(self.config.severity_weights, dtype=float)
        return int(rng.choice(len(weights), p=weights / weights.sum())) + 1

    def injury_value(self, injury_type: InjuryType, severity: int, rng: np.random.Generator) -> int:
        low, high = self.config.injury_values[injury_type.value][severity - 1]
        return int(rng.integers(low, high + 1))

    def recovery_range(self, injury_value: int) -> Tuple[int, int]:
        """Min/max recovery days: fastest and slowest daily recovery rates."""
        min_days = max(1, math.ceil(injury_value / self.config.max_daily_recovery))
        max_days = max(min_days, math.ceil(injury_value / self.config.min_daily_recovery))
        return min_days, max_days

    def treatment_seconds(self, severity: int) -> int:
        return self.config.treatment_seconds[severity - 1]

    def create_record(self,
                      player: Player,
                      trigger: InjuryTrigger,
                      elapsed_seconds: int,
                      rng: np.random.Generator) -> InjuryRecord:
        injury_type = self.choose_type(trigger, rng)
        severity = self.choose_severity(rng)
        value = self.injury_value(injury_type, severity, rng)
        min_days, max_days = self.recovery_range(value)
        occurred_at = None
        if self.kickoff_at is not None:
            occurred_at = self.kickoff_at + timedelta(seconds=elapsed_seconds)
        return InjuryRecord(
            player_id=player.player_id,
            match_id=self.match_id,
            injury_type=injury_type,
            severity=severity,
            injury_value=value,
            estimated_min_days=min_days,
            estimated_max_days=max_days,
            occurred_minute=elapsed_seconds // 60,
            trigger=trigger,
            occurred_at=occurred_at,
        )

    # Match integration

    def maybe_injure(self,
                     trigger: InjuryTrigger,
                     player: Player,
                     squad: SquadState,
                     is_home: bool,
                     elapsed_seconds: int,
                     rng: np.random.Generator) -> List[MatchEvent]:
        """
        Roll for an injury and build the resulting events.

        Returns an Injury event, followed by a Substitution when a bench
        player can replace the injured one. Empty when nothing happens.
        """
        chance = self.injury_chance(trigger, player, squad.performance_factor(player.player_id), is_home)
        if rng.random() >= chance:
            return []

        record = self.create_record(player, trigger, elapsed_seconds, rng)
        minute, second = divmod(elapsed_seconds, 60)
        _log.debug("Injury to %s (%s, severity %d) at %d:%02d",
                   player.player_id, record.injury_type.value, record.severity, minute, second)

        events: List[MatchEvent] = [Injury(
            minute=minute,
            second=second,
            team_id=squad.team_id,
            player_id=player.player_id,
            record=record,
            treatment_seconds=self.treatment_seconds(record.severity),
        )]
        replacement = squad.replacement_for(player)
        if replacement is not None:
            events.append(Substitution(
                minute=minute,
                second=second,
                team_id=squad.team_id,
                player_id=player.player_id,
                player_in_id=replacement.player_id,
                reason="injury",
            ))
        else:
            _log.info("No replacement for injured %s, %s continue short-handed",
                      player.player_id, squad.team_id)
        return events
