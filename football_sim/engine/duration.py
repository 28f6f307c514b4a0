"""
Match duration calculation.

Fixes the temporal structure of a match: half lengths, injury time per
half, extra time and the penalty shootout flag.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Union

import numpy as np

from ..errors import ConfigurationError, InvariantViolation
from .config import ClockConfig, ENGINE_CONFIG

_log = logging.getLogger("football_sim.duration")


class MatchType(Enum):
    """Competition format of a fixture."""
    LEAGUE = "league"
    CUP = "cup"
    FRIENDLY = "friendly"
    TOURNAMENT = "tournament"

    @classmethod
    def parse(cls, value: Union["MatchType", str]) -> "MatchType":
        """Coerce a name or value into a MatchType, rejecting unknown types."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationError(f"Unknown match type: {value!r}") from None

    @property
    def is_elimination(self) -> bool:
        """Only elimination fixtures can go to extra time and penalties."""
        return self is MatchType.TOURNAMENT


@dataclass(frozen=True)
class MatchDuration:
    """
    Temporal structure of one match, in whole minutes.

    Breaks are listed for completeness but are not played time. Extra time
    never carries injury time.
    """
    first_half_minutes: int
    second_half_minutes: int
    half_time_break_minutes: int
    first_half_injury_time: int
    second_half_injury_time: int
    has_extra_time: bool = False
    extra_time_first_half: Optional[int] = None
    extra_time_second_half: Optional[int] = None
    extra_time_break: Optional[int] = None
    has_penalty_shootout: bool = False

    @property
    def first_half_length(self) -> int:
        return self.first_half_minutes + self.first_half_injury_time

    @property
    def second_half_length(self) -> int:
        return self.second_half_minutes + self.second_half_injury_time

    @property
    def regulation_minutes(self) -> int:
        """Played minutes in regulation, injury time included."""
        return self.first_half_length + self.second_half_length

    @property
    def extra_time_minutes(self) -> int:
        if not self.has_extra_time:
            return 0
        return (self.extra_time_first_half or 0) + (self.extra_time_second_half or 0)

    @property
    def max_played_minutes(self) -> int:
        """Upper bound on the match clock; the engine never runs past it."""
        return self.regulation_minutes + self.extra_time_minutes

    def max_ticks(self, tick_seconds: int) -> int:
        """Number of ticks needed to play every phase of this duration."""
        return self.max_played_minutes * 60 // tick_seconds


def random_injury_time(min_minutes: int, max_minutes: int,
                       rng: Optional[np.random.Generator] = None) -> int:
    """
    Draw injury time uniformly from [min_minutes, max_minutes].

    Args:
        min_minutes: Lower bound (inclusive)
        max_minutes: Upper bound (inclusive)
        rng: Random source; a fresh unseeded generator when omitted

    Returns:
        int: Injury time in minutes
    """
    if min_minutes > max_minutes:
        raise ConfigurationError(
            f"Injury time range is empty: [{min_minutes}, {max_minutes}]"
        )
    rng = rng if rng is not None else np.random.default_rng()
    return int(rng.integers(min_minutes, max_minutes + 1))


def _extra_time_fields(match_type: MatchType, ended_level: bool,
                       clock: ClockConfig) -> Dict[str, object]:
    if match_type.is_elimination and ended_level:
        return {
            "has_extra_time": True,
            "extra_time_first_half": clock.extra_time_half_minutes,
            "extra_time_second_half": clock.extra_time_half_minutes,
            "extra_time_break": clock.extra_time_break_minutes,
        }
    return {"has_extra_time": False}


def calculate_match_duration(match_type: Union[MatchType, str],
                             ended_level_in_regulation: bool = False,
                             rng: Optional[np.random.Generator] = None,
                             clock: ClockConfig = ENGINE_CONFIG.clock) -> MatchDuration:
    """
    Compute the duration of a match.

    Both halves last ``clock.half_minutes`` for every match type. Injury
    time is drawn independently for each half. Extra time is only added for
    tournament fixtures that ended level in regulation; whether a shootout
    follows is decided by the engine after extra time.

    Args:
        match_type: Competition format
        ended_level_in_regulation: Whether regulation ended level; ignored
            for non-elimination formats
        rng: Random source for injury time
        clock: Time structure constants

    Returns:
        MatchDuration: The fixed timeline
    """
    match_type = MatchType.parse(match_type)
    rng = rng if rng is not None else np.random.default_rng()

    duration = MatchDuration(
        first_half_minutes=clock.half_minutes,
        second_half_minutes=clock.half_minutes,
        half_time_break_minutes=clock.half_time_break_minutes,
        first_half_injury_time=random_injury_time(clock.injury_time_min, clock.injury_time_max, rng),
        second_half_injury_time=random_injury_time(clock.injury_time_min, clock.injury_time_max, rng),
        **_extra_time_fields(match_type, ended_level_in_regulation, clock),
    )
    _log.debug("Duration for %s match: %s", match_type.value, duration)
    return duration


def extend_with_extra_time(duration: MatchDuration,
                           match_type: Union[MatchType, str],
                           ended_level_in_regulation: bool,
                           clock: ClockConfig = ENGINE_CONFIG.clock) -> MatchDuration:
    """
    Re-evaluate extra time at the end of regulation.

    Injury times already played are kept; only the extra-time fields are
    recomputed from the regulation outcome.
    """
    match_type = MatchType.parse(match_type)
    return replace(duration, **_extra_time_fields(match_type, ended_level_in_regulation, clock))


def with_penalty_shootout(duration: MatchDuration) -> MatchDuration:
    """Mark a duration as ending in a shootout; only valid after extra time."""
    if not duration.has_extra_time:
        raise InvariantViolation("A penalty shootout requires extra time to have been played")
    return replace(duration, has_penalty_shootout=True)
