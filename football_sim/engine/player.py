"""
Player snapshot model with tactical role and attribute profile.

Players are immutable for the duration of a match; everything that
changes during play (energy, cards, availability) lives in the squad state.
"""

import numpy as np
from typing import Optional
from dataclasses import dataclass
from enum import Enum

from ..errors import ConfigurationError


class PlayerRole(Enum):
    """
    Tactical role of a player.

    The role decides the attribute profile of generated players and how
    likely the player is to be on the ball or marking in each zone
    (see ``PitchZones``). Substitutes replace players of the same role
    where the bench allows it.
    """
    GOALKEEPER = "GK"
    CENTRE_BACK = "CB"
    FULLBACK = "FB"
    DEFENSIVE_MIDFIELDER = "DM"
    CENTRE_MIDFIELDER = "CM"
    ATTACKING_MIDFIELDER = "AM"
    WINGER = "W"
    STRIKER = "ST"


# Role-specific attribute profiles
ROLE_PROFILES = {
    PlayerRole.GOALKEEPER: {"pace": 45, "passing": 60, "shooting": 20, "defending": 85, "physicality": 75},
    PlayerRole.CENTRE_BACK: {"pace": 55, "passing": 70, "shooting": 30, "defending": 85, "physicality": 80},
    PlayerRole.FULLBACK: {"pace": 75, "passing": 75, "shooting": 45, "defending": 75, "physicality": 70},
    PlayerRole.DEFENSIVE_MIDFIELDER: {"pace": 65, "passing": 80, "shooting": 55, "defending": 80, "physicality": 75},
    PlayerRole.CENTRE_MIDFIELDER: {"pace": 70, "passing": 85, "shooting": 65, "defending": 70, "physicality": 75},
    PlayerRole.ATTACKING_MIDFIELDER: {"pace": 75, "passing": 85, "shooting": 80, "defending": 55, "physicality": 65},
    PlayerRole.WINGER: {"pace": 85, "passing": 75, "shooting": 75, "defending": 60, "physicality": 65},
    PlayerRole.STRIKER: {"pace": 80, "passing": 70, "shooting": 90, "defending": 40, "physicality": 80},
}


@dataclass(frozen=True)
class PlayerAttributes:
    """Player attributes affecting performance."""
    pace: float       # 0-100: Speed and acceleration
    passing: float    # 0-100: Pass accuracy and range
    shooting: float   # 0-100: Finishing ability
    defending: float  # 0-100: Tackling, positioning and shot stopping
    physicality: float  # 0-100: Strength in challenges

    def __post_init__(self) -> None:
        for name in ("pace", "passing", "shooting", "defending", "physicality"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ConfigurationError(f"{name} must be between 0 and 100, got {value}")

    @classmethod
    def generate_for_role(cls,
                          role: PlayerRole,
                          rng: np.random.Generator,
                          base_skill: float = 70.0) -> 'PlayerAttributes':
        """
        Generate realistic attributes for a player role.

        Args:
            role: Tactical role whose profile is used
            rng: Random source
            base_skill: Overall level; 70 reproduces the profile means

        Returns:
            PlayerAttributes: Profile with normal noise, clipped to 1-99
        """
        variance = 10.0
        shift = base_skill - 70.0
        profile = ROLE_PROFILES[role]

        def draw(name: str) -> float:
            return float(np.clip(rng.normal(profile[name] + shift, variance), 1, 99))

        return cls(
            pace=draw("pace"),
            passing=draw("passing"),
            shooting=draw("shooting"),
            defending=draw("defending"),
            physicality=draw("physicality"),
        )


@dataclass(frozen=True)
class Player:
    """
    Immutable player snapshot fed into a match.

    Args:
        player_id: Unique identifier
        name: Player name
        role: Tactical role
        attributes: Attribute ratings
        age: Age in years, used for injury risk
        stamina: Stamina attribute on the 1..5 scale
        experience: Experience count (0 or more)
        status: Current form on the 1..5 scale
    """
    player_id: str
    name: str
    role: PlayerRole
    attributes: PlayerAttributes
    age: int = 25
    stamina: float = 3.0
    experience: float = 10.0
    status: float = 3.0

    def __post_init__(self) -> None:
        if not self.player_id:
            raise ConfigurationError("Player id must not be empty")
        if not isinstance(self.role, PlayerRole):
            raise ConfigurationError(f"Player {self.player_id} has unknown role {self.role!r}")
        if not 1.0 <= self.stamina <= 5.0:
            raise ConfigurationError(f"Player {self.player_id}: stamina must be in [1, 5]")
        if not 1.0 <= self.status <= 5.0:
            raise ConfigurationError(f"Player {self.player_id}: status must be in [1, 5]")
        if self.experience < 0:
            raise ConfigurationError(f"Player {self.player_id}: experience must be non-negative")
        if not 15 <= self.age <= 45:
            raise ConfigurationError(f"Player {self.player_id}: age must be in [15, 45]")

    @property
    def is_goalkeeper(self) -> bool:
        return self.role is PlayerRole.GOALKEEPER

    @classmethod
    def generate(cls,
                 player_id: str,
                 name: str,
                 role: PlayerRole,
                 rng: np.random.Generator,
                 base_skill: float = 70.0,
                 age: Optional[int] = None) -> 'Player':
        """Create a random player for ``role`` from a seeded generator."""
        return cls(
            player_id=player_id,
            name=name,
            role=role,
            attributes=PlayerAttributes.generate_for_role(role, rng, base_skill),
            age=int(age if age is not None else rng.integers(18, 36)),
            stamina=float(np.round(rng.uniform(2.0, 5.0), 1)),
            experience=float(rng.integers(0, 21)),
            status=float(rng.integers(2, 6)),
        )
