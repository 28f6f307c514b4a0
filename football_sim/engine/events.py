"""
Match events as a closed set of typed records.

Every event carries the clock position (minute, second), the acting team
and the acting player. Each kind adds exactly the fields it needs. The
event log is the single source of truth for post-match statistics.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Union

from .pitch import Zone

if TYPE_CHECKING:
    from .injury import InjuryRecord


class EventType(Enum):
    """Activity names used in the event log."""
    PHASE_CHANGE = "phase_change"
    PASS = "pass"
    INTERCEPTION = "interception"
    TACKLE = "tackle"
    FOUL = "foul"
    CARD = "card"
    CORNER = "corner"
    OFFSIDE = "offside"
    GOAL = "goal"
    SHOT_SAVED = "shot_saved"
    SHOT_OFF_TARGET = "shot_off_target"
    INJURY = "injury"
    SUBSTITUTION = "substitution"
    PENALTY_KICK = "penalty_kick"


class MatchPhase(Enum):
    """High-level match states, in the order they can occur."""
    NOT_STARTED = "not_started"
    FIRST_HALF = "first_half"
    HALF_TIME = "half_time"
    SECOND_HALF = "second_half"
    EXTRA_TIME_FIRST_HALF = "extra_time_first_half"
    EXTRA_TIME_BREAK = "extra_time_break"
    EXTRA_TIME_SECOND_HALF = "extra_time_second_half"
    PENALTY_SHOOTOUT = "penalty_shootout"
    COMPLETED = "completed"

    @property
    def is_playing(self) -> bool:
        """Whether the clock runs and play events can happen."""
        return self in PLAYING_PHASES


PLAYING_PHASES = frozenset({
    MatchPhase.FIRST_HALF,
    MatchPhase.SECOND_HALF,
    MatchPhase.EXTRA_TIME_FIRST_HALF,
    MatchPhase.EXTRA_TIME_SECOND_HALF,
})


class CardColor(Enum):
    YELLOW = "yellow"
    RED = "red"


_BASE_FIELDS = ("minute", "second", "team_id", "player_id")


@dataclass(frozen=True)
class _Event:
    minute: int
    second: int
    team_id: Optional[str]
    player_id: Optional[str]

    kind: ClassVar[EventType]

    @property
    def related_player_id(self) -> Optional[str]:
        """Second player involved in the event, if any."""
        return None

    @property
    def timestamp_seconds(self) -> int:
        return self.minute * 60 + self.second

    def payload(self) -> Dict[str, Any]:
        """Kind-specific fields, with enums flattened to their values."""
        data = {}
        for f in fields(self):
            if f.name in _BASE_FIELDS:
                continue
            value = getattr(self, f.name)
            data[f.name] = value.value if isinstance(value, Enum) else value
        return data

    def to_dict(self) -> Dict[str, Any]:
        """Flat representation used by exporters."""
        return {
            "minute": self.minute,
            "second": self.second,
            "type": self.kind.value,
            "team_id": self.team_id,
            "player_id": self.player_id,
            "related_player_id": self.related_player_id,
            "payload": self.payload(),
        }


@dataclass(frozen=True)
class PhaseChange(_Event):
    """Marker appended on every phase transition; carries no team."""
    phase: MatchPhase
    kind: ClassVar[EventType] = EventType.PHASE_CHANGE


@dataclass(frozen=True)
class Pass(_Event):
    """Successful forward pass, the ball moves up one zone."""
    receiver_id: Optional[str]
    from_zone: Zone
    to_zone: Zone
    kind: ClassVar[EventType] = EventType.PASS

    @property
    def related_player_id(self) -> Optional[str]:
        return self.receiver_id


@dataclass(frozen=True)
class Interception(_Event):
    """Ball won by ``team_id`` from a pass by ``lost_by_player_id``."""
    lost_by_player_id: str
    kind: ClassVar[EventType] = EventType.INTERCEPTION

    @property
    def related_player_id(self) -> Optional[str]:
        return self.lost_by_player_id


@dataclass(frozen=True)
class Tackle(_Event):
    tackled_player_id: str
    kind: ClassVar[EventType] = EventType.TACKLE

    @property
    def related_player_id(self) -> Optional[str]:
        return self.tackled_player_id


@dataclass(frozen=True)
class Foul(_Event):
    """Foul committed by ``player_id``; the fouled team keeps the ball."""
    fouled_player_id: str
    kind: ClassVar[EventType] = EventType.FOUL

    @property
    def related_player_id(self) -> Optional[str]:
        return self.fouled_player_id


@dataclass(frozen=True)
class Card(_Event):
    color: CardColor
    second_yellow: bool = False
    kind: ClassVar[EventType] = EventType.CARD

    @property
    def is_sending_off(self) -> bool:
        return self.color is CardColor.RED


@dataclass(frozen=True)
class Corner(_Event):
    kind: ClassVar[EventType] = EventType.CORNER


@dataclass(frozen=True)
class Offside(_Event):
    kind: ClassVar[EventType] = EventType.OFFSIDE


@dataclass(frozen=True)
class Goal(_Event):
    assist_player_id: Optional[str]
    xg: float
    kind: ClassVar[EventType] = EventType.GOAL

    @property
    def related_player_id(self) -> Optional[str]:
        return self.assist_player_id


@dataclass(frozen=True)
class ShotSaved(_Event):
    keeper_id: str
    xg: float
    kind: ClassVar[EventType] = EventType.SHOT_SAVED

    @property
    def related_player_id(self) -> Optional[str]:
        return self.keeper_id


@dataclass(frozen=True)
class ShotOffTarget(_Event):
    xg: float
    kind: ClassVar[EventType] = EventType.SHOT_OFF_TARGET


@dataclass(frozen=True)
class Injury(_Event):
    """The injured player leaves the pitch; ``record`` goes to persistence."""
    record: "InjuryRecord"
    treatment_seconds: int
    kind: ClassVar[EventType] = EventType.INJURY

    def payload(self) -> Dict[str, Any]:
        return {
            "injury_type": self.record.injury_type.value,
            "severity": self.record.severity,
            "injury_value": self.record.injury_value,
            "estimated_min_days": self.record.estimated_min_days,
            "estimated_max_days": self.record.estimated_max_days,
            "trigger": self.record.trigger.value,
            "treatment_seconds": self.treatment_seconds,
        }


@dataclass(frozen=True)
class Substitution(_Event):
    """``player_id`` leaves, ``player_in_id`` comes on."""
    player_in_id: str
    reason: str = "tactical"
    kind: ClassVar[EventType] = EventType.SUBSTITUTION

    @property
    def related_player_id(self) -> Optional[str]:
        return self.player_in_id


@dataclass(frozen=True)
class PenaltyKick(_Event):
    """Shootout kick; never counted in the match score or shot statistics."""
    keeper_id: str
    scored: bool
    round: int
    kind: ClassVar[EventType] = EventType.PENALTY_KICK

    @property
    def related_player_id(self) -> Optional[str]:
        return self.keeper_id


MatchEvent = Union[
    PhaseChange, Pass, Interception, Tackle, Foul, Card, Corner, Offside,
    Goal, ShotSaved, ShotOffTarget, Injury, Substitution, PenaltyKick,
]

SHOT_EVENTS = (Goal, ShotSaved, ShotOffTarget)
