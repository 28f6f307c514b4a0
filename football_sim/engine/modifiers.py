"""
Form, experience and status modifiers.

Pure curves mapping a player's experience count and status/form rating
onto multiplicative performance terms. Out-of-range inputs are clamped
onto the curve's domain; non-numeric values are rejected.
"""

import math

import numpy as np

from ..errors import ConfigurationError
from .config import ENGINE_CONFIG, ModifierConfig


def _finite(value: float, name: str) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
    return value


def experience_bonus(experience: float, config: ModifierConfig = ENGINE_CONFIG.modifiers) -> float:
    """
    Concave bonus for match experience.

    ``base * experience ** power`` with experience clamped to
    [0, experience_cap]: about 4% at 1, 14.8% at 10 and 22% at the cap.

    Args:
        experience: Experience count (negative values count as 0)
        config: Curve constants

    Returns:
        float: Non-negative bonus, applied as ``1 + bonus``
    """
    experience = float(np.clip(_finite(experience, "experience"), 0.0, config.experience_cap))
    return config.experience_base * experience ** config.experience_power


def status_factor(status: float, config: ModifierConfig = ENGINE_CONFIG.modifiers) -> float:
    """
    Map a status/form rating onto [status_floor, status_ceiling].

    Status 1 gives exactly the floor and status 5 exactly the ceiling. An
    exponent below 1 bends the curve so above-average status lands closer
    to the ceiling than a linear mapping would.

    Args:
        status: Form rating on the 1..5 scale
        config: Curve constants

    Returns:
        float: Performance factor
    """
    status = float(np.clip(_finite(status, "status"), config.status_min, config.status_max))
    normalised = (status - config.status_min) / (config.status_max - config.status_min)
    span = config.status_ceiling - config.status_floor
    return config.status_floor + span * normalised ** config.status_exponent


def effective_skill(raw_attribute: float,
                    performance_factor: float,
                    experience: float,
                    status: float,
                    config: ModifierConfig = ENGINE_CONFIG.modifiers) -> float:
    """
    Combine a raw attribute with every performance modifier.

    Args:
        raw_attribute: Attribute rating (0-100)
        performance_factor: Stamina performance factor in (0, 1]
        experience: Experience count
        status: Form rating on the 1..5 scale
        config: Curve constants

    Returns:
        float: Effective skill fed into event probabilities
    """
    return (raw_attribute
            * performance_factor
            * (1.0 + experience_bonus(experience, config))
            * status_factor(status, config))
