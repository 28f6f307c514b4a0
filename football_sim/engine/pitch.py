"""
Zone abstraction of the pitch.

The ball is tracked only as a coarse zone relative to the team in
possession. Zones decide which event outcomes are possible and which
players are most likely to be involved.
"""

from enum import Enum
from typing import Dict

from .player import PlayerRole


class Zone(Enum):
    """Ball position relative to the possessing team."""
    DEFENSE = "Defense"
    MIDFIELD = "Midfield"
    ATTACK = "Attack"

    @property
    def forward(self) -> 'Zone':
        """Zone reached by a successful forward pass."""
        if self is Zone.DEFENSE:
            return Zone.MIDFIELD
        return Zone.ATTACK

    @property
    def mirrored(self) -> 'Zone':
        """The same area of the pitch seen from the other team."""
        if self is Zone.ATTACK:
            return Zone.DEFENSE
        if self is Zone.DEFENSE:
            return Zone.ATTACK
        return Zone.MIDFIELD


class PitchZones:
    """
    Role involvement per zone.

    Carrier weights pick the player of the possessing team acting on the
    ball; marker weights pick the opponent contesting it. Both are keyed by
    the zone relative to the possessing team.
    """

    # Ball restarts here after kickoffs and turnovers
    RESTART_ZONE = Zone.MIDFIELD

    CARRIER_WEIGHTS: Dict[Zone, Dict[PlayerRole, float]] = {
        Zone.DEFENSE: {
            PlayerRole.GOALKEEPER: 0.1,
            PlayerRole.CENTRE_BACK: 0.35,
            PlayerRole.FULLBACK: 0.25,
            PlayerRole.DEFENSIVE_MIDFIELDER: 0.2,
            PlayerRole.CENTRE_MIDFIELDER: 0.1,
        },
        Zone.MIDFIELD: {
            PlayerRole.CENTRE_BACK: 0.05,
            PlayerRole.FULLBACK: 0.1,
            PlayerRole.DEFENSIVE_MIDFIELDER: 0.2,
            PlayerRole.CENTRE_MIDFIELDER: 0.3,
            PlayerRole.ATTACKING_MIDFIELDER: 0.2,
            PlayerRole.WINGER: 0.1,
            PlayerRole.STRIKER: 0.05,
        },
        Zone.ATTACK: {
            PlayerRole.CENTRE_BACK: 0.05,
            PlayerRole.FULLBACK: 0.05,
            PlayerRole.DEFENSIVE_MIDFIELDER: 0.05,
            PlayerRole.CENTRE_MIDFIELDER: 0.1,
            PlayerRole.ATTACKING_MIDFIELDER: 0.2,
            PlayerRole.WINGER: 0.2,
            PlayerRole.STRIKER: 0.35,
        },
    }

    MARKER_WEIGHTS: Dict[Zone, Dict[PlayerRole, float]] = {
        Zone.DEFENSE: {
            PlayerRole.CENTRE_MIDFIELDER: 0.15,
            PlayerRole.ATTACKING_MIDFIELDER: 0.2,
            PlayerRole.WINGER: 0.25,
            PlayerRole.STRIKER: 0.4,
        },
        Zone.MIDFIELD: {
            PlayerRole.CENTRE_BACK: 0.1,
            PlayerRole.FULLBACK: 0.1,
            PlayerRole.DEFENSIVE_MIDFIELDER: 0.3,
            PlayerRole.CENTRE_MIDFIELDER: 0.3,
            PlayerRole.ATTACKING_MIDFIELDER: 0.1,
            PlayerRole.WINGER: 0.1,
        },
        Zone.ATTACK: {
            PlayerRole.CENTRE_BACK: 0.45,
            PlayerRole.FULLBACK: 0.3,
            PlayerRole.DEFENSIVE_MIDFIELDER: 0.2,
            PlayerRole.CENTRE_MIDFIELDER: 0.05,
        },
    }

    @classmethod
    def carrier_weight(cls, zone: Zone, role: PlayerRole) -> float:
        return cls.CARRIER_WEIGHTS[zone].get(role, 0.0)

    @classmethod
    def marker_weight(cls, zone: Zone, role: PlayerRole) -> float:
        return cls.MARKER_WEIGHTS[zone].get(role, 0.0)
