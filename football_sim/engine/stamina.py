"""
Stamina model: energy decay, interval recovery and the performance factor.

Every player starts a match with the same energy capacity. The stamina
attribute decides how quickly that energy drains, i.e. when a player
drops under the threshold and how fast the decline progresses after it.
"""

import math

import numpy as np

from ..errors import ConfigurationError
from .config import ENGINE_CONFIG, StaminaConfig
from .player import Player


class StaminaModel:
    """
    Energy bookkeeping curves for one engine configuration.

    Performance is 1.0 while energy sits at or above the threshold and falls
    linearly towards ``performance_floor`` as energy approaches zero.
    """

    def __init__(self, config: StaminaConfig = ENGINE_CONFIG.stamina):
        if len(config.stamina_points) != len(config.safe_minutes):
            raise ConfigurationError("stamina_points and safe_minutes must be the same length")
        if not 0.0 < config.threshold <= config.capacity:
            raise ConfigurationError("Energy threshold must lie in (0, capacity]")
        self.config = config

    @property
    def capacity(self) -> float:
        return self.config.capacity

    def safe_minutes(self, stamina: float) -> float:
        """Minutes of play from full energy before the threshold is reached."""
        stamina = float(stamina)
        if not math.isfinite(stamina):
            raise ConfigurationError(f"stamina must be a finite number, got {stamina!r}")
        return float(np.interp(stamina, self.config.stamina_points, self.config.safe_minutes))

    def decay_rate(self, stamina: float) -> float:
        """Energy lost per minute played."""
        return (self.config.capacity - self.config.threshold) / self.safe_minutes(stamina)

    def drain(self, energy: float, stamina: float, minutes: float) -> float:
        """Energy left after playing ``minutes`` more; never below zero."""
        return max(0.0, energy - self.decay_rate(stamina) * minutes)

    def energy_after(self, stamina: float, minutes_played: float) -> float:
        """Energy after ``minutes_played`` of uninterrupted play from full capacity."""
        return self.drain(self.config.capacity, stamina, minutes_played)

    def recover(self, energy: float) -> float:
        """Interval recovery, capped at the starting capacity."""
        return min(self.config.capacity, energy + self.config.half_time_recovery)

    def performance_factor(self, energy: float) -> float:
        """
        Convert an energy level into a performance multiplier.

        Args:
            energy: Current energy (0..capacity)

        Returns:
            float: Factor in [performance_floor, 1.0]
        """
        threshold = self.config.threshold
        if energy >= threshold:
            return 1.0
        floor = self.config.performance_floor
        return floor + (1.0 - floor) * max(0.0, energy) / threshold

    def current_performance_factor(self, player: Player, minutes_played: float) -> float:
        """Performance factor of ``player`` after ``minutes_played`` within one half."""
        return self.performance_factor(self.energy_after(player.stamina, minutes_played))
