"""
Team tactics snapshots and live squad state.

``TeamTactics`` is the immutable input for one side: formation, lineup,
bench, instructions and scheduled substitutions. ``SquadState`` is the
mutable per-match view of that squad: who is on the pitch, energy levels,
cards, injuries and substitutions used.
"""

import numpy as np
from typing import Callable, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, field

from ..errors import ConfigurationError, InvariantViolation
from .config import ENGINE_CONFIG, SquadConfig
from .player import Player, PlayerRole
from .stamina import StaminaModel


POSSESSION_STYLES = ("defensive", "balanced", "attacking")
TRANSITION_SPEEDS = ("slow", "medium", "fast")

# Starting eleven roles per formation, goalkeeper first
FORMATION_ROLES: Dict[str, Tuple[PlayerRole, ...]] = {
    "4-4-2": (
        PlayerRole.GOALKEEPER,
        PlayerRole.FULLBACK,      # Left back
        PlayerRole.CENTRE_BACK,
        PlayerRole.CENTRE_BACK,
        PlayerRole.FULLBACK,      # Right back
        PlayerRole.WINGER,        # Left mid
        PlayerRole.CENTRE_MIDFIELDER,
        PlayerRole.CENTRE_MIDFIELDER,
        PlayerRole.WINGER,        # Right mid
        PlayerRole.STRIKER,
        PlayerRole.STRIKER,
    ),
    "4-3-3": (
        PlayerRole.GOALKEEPER,
        PlayerRole.FULLBACK,
        PlayerRole.CENTRE_BACK,
        PlayerRole.CENTRE_BACK,
        PlayerRole.FULLBACK,
        PlayerRole.DEFENSIVE_MIDFIELDER,
        PlayerRole.CENTRE_MIDFIELDER,
        PlayerRole.CENTRE_MIDFIELDER,
        PlayerRole.WINGER,
        PlayerRole.STRIKER,
        PlayerRole.WINGER,
    ),
    "4-2-3-1": (
        PlayerRole.GOALKEEPER,
        PlayerRole.FULLBACK,
        PlayerRole.CENTRE_BACK,
        PlayerRole.CENTRE_BACK,
        PlayerRole.FULLBACK,
        PlayerRole.DEFENSIVE_MIDFIELDER,
        PlayerRole.DEFENSIVE_MIDFIELDER,
        PlayerRole.WINGER,
        PlayerRole.ATTACKING_MIDFIELDER,
        PlayerRole.WINGER,
        PlayerRole.STRIKER,
    ),
}

BENCH_ROLES = (
    PlayerRole.GOALKEEPER,
    PlayerRole.CENTRE_BACK,
    PlayerRole.FULLBACK,
    PlayerRole.CENTRE_MIDFIELDER,
    PlayerRole.ATTACKING_MIDFIELDER,
    PlayerRole.WINGER,
    PlayerRole.STRIKER,
)


@dataclass(frozen=True)
class TeamInstructions:
    """
    Team tactical instructions.

    Defines the high-level approach:
    - Pressing intensity (0-1): more turnovers forced, more fouls given away
    - Possession style: how eagerly the team plays forward
    - Transition speed: how quickly the ball leaves the defensive zone
    """
    pressing_intensity: float = 0.5
    possession_style: str = "balanced"
    transition_speed: str = "medium"

    def __post_init__(self) -> None:
        if not 0.0 <= self.pressing_intensity <= 1.0:
            raise ConfigurationError("pressing_intensity must be between 0 and 1")
        if self.possession_style not in POSSESSION_STYLES:
            raise ConfigurationError(f"Unknown possession style {self.possession_style!r}")
        if self.transition_speed not in TRANSITION_SPEEDS:
            raise ConfigurationError(f"Unknown transition speed {self.transition_speed!r}")


@dataclass(frozen=True)
class SubstitutionInstruction:
    """Planned substitution: bring ``player_in_id`` on for ``player_out_id`` at ``minute``."""
    minute: int
    player_out_id: str
    player_in_id: str


@dataclass(frozen=True)
class TeamTactics:
    """
    Immutable tactics snapshot for one team, fixed for the whole match.

    Args:
        team_id: Unique team identifier
        name: Team name
        lineup: Starting eleven
        formation: Formation label
        bench: Available substitutes
        instructions: Tactical instructions
        substitutions: Scheduled substitutions
    """
    team_id: str
    name: str
    lineup: Tuple[Player, ...]
    formation: str = "4-4-2"
    bench: Tuple[Player, ...] = ()
    instructions: TeamInstructions = field(default_factory=TeamInstructions)
    substitutions: Tuple[SubstitutionInstruction, ...] = ()

    def validate(self, squad_config: SquadConfig = ENGINE_CONFIG.squad) -> None:
        """Reject lineups the engine cannot simulate."""
        if not self.team_id:
            raise ConfigurationError("Team id must not be empty")
        if len(self.lineup) != squad_config.lineup_size:
            raise ConfigurationError(
                f"Team {self.team_id} lineup has {len(self.lineup)} players, "
                f"expected {squad_config.lineup_size}"
            )
        keepers = [p for p in self.lineup if p.is_goalkeeper]
        if len(keepers) != 1:
            raise ConfigurationError(f"Team {self.team_id} must start exactly one goalkeeper")

        ids = [p.player_id for p in self.lineup + self.bench]
        if len(ids) != len(set(ids)):
            raise ConfigurationError(f"Team {self.team_id} lists a player more than once")

        lineup_ids = {p.player_id for p in self.lineup}
        bench_ids = {p.player_id for p in self.bench}
        for sub in self.substitutions:
            if sub.minute < 1:
                raise ConfigurationError(f"Substitution minute must be positive, got {sub.minute}")
            if sub.player_out_id not in lineup_ids | bench_ids:
                raise ConfigurationError(f"Substitution references unknown player {sub.player_out_id}")
            if sub.player_in_id not in bench_ids:
                raise ConfigurationError(f"Substitute {sub.player_in_id} is not on the bench")

    @property
    def player_ids(self) -> Set[str]:
        return {p.player_id for p in self.lineup + self.bench}


def create_default_tactics(team_id: str,
                           name: str,
                           rng: np.random.Generator,
                           formation: str = "4-4-2",
                           instructions: Optional[TeamInstructions] = None,
                           base_skill: float = 70.0,
                           with_bench: bool = True) -> TeamTactics:
    """
    Create a randomly generated squad for ``formation``.

    Args:
        team_id: Team identifier, also used as player id prefix
        name: Team name
        rng: Random source for player generation
        formation: Key of FORMATION_ROLES
        instructions: Tactical instructions (defaults if None)
        base_skill: Overall level of generated players
        with_bench: Whether to generate substitutes

    Returns:
        TeamTactics: Snapshot ready for simulation
    """
    if formation not in FORMATION_ROLES:
        raise ConfigurationError(f"Unknown formation {formation!r}")

    lineup = tuple(
        Player.generate(f"{team_id}_P{i+1:02d}", f"Player {i+1}", role, rng, base_skill)
        for i, role in enumerate(FORMATION_ROLES[formation])
    )
    bench: Tuple[Player, ...] = ()
    if with_bench:
        bench = tuple(
            Player.generate(f"{team_id}_S{i+1:02d}", f"Substitute {i+1}", role, rng, base_skill - 5.0)
            for i, role in enumerate(BENCH_ROLES)
        )

    return TeamTactics(
        team_id=team_id,
        name=name,
        lineup=lineup,
        formation=formation,
        bench=bench,
        instructions=instructions or TeamInstructions(),
    )


class SquadState:
    """
    Live state of one team's squad during a match.

    Owned by MatchState and only mutated through its reducer or the engine
    loop's energy bookkeeping.
    """

    def __init__(self,
                 tactics: TeamTactics,
                 stamina_model: StaminaModel,
                 squad_config: SquadConfig = ENGINE_CONFIG.squad):
        self.tactics = tactics
        self.team_id = tactics.team_id
        self.stamina_model = stamina_model
        self.max_substitutions = squad_config.max_substitutions

        self.players: Dict[str, Player] = {p.player_id: p for p in tactics.lineup + tactics.bench}
        self.on_pitch: List[str] = [p.player_id for p in tactics.lineup]
        self.bench: List[str] = [p.player_id for p in tactics.bench]
        self.energy: Dict[str, float] = {pid: stamina_model.capacity for pid in self.on_pitch}
        self.yellow_cards: Dict[str, int] = {}
        self.sent_off: Set[str] = set()
        self.injured: Set[str] = set()
        self.substituted: Set[str] = set()
        self.substitutions_used = 0

    # Availability

    def available_players(self) -> List[Player]:
        """Players currently on the pitch and able to act."""
        return [self.players[pid] for pid in self.on_pitch]

    def is_on_pitch(self, player_id: str) -> bool:
        return player_id in self.on_pitch

    def goalkeeper(self) -> Player:
        """Player in goal: the keeper, or the best defender if none is left."""
        players = self.available_players()
        if not players:
            raise InvariantViolation(f"Team {self.team_id} has no players left on the pitch")
        for player in players:
            if player.is_goalkeeper:
                return player
        return max(players, key=lambda p: p.attributes.defending)

    def pick(self, rng: np.random.Generator, weight: Callable[[Player], float]) -> Player:
        """
        Pick an on-pitch player with probability proportional to ``weight``.

        Falls back to a uniform choice when no player has a positive weight.
        """
        players = self.available_players()
        if not players:
            raise InvariantViolation(f"Team {self.team_id} has no players left on the pitch")
        weights = np.array([weight(p) for p in players], dtype=float)
        if weights.sum() <= 0:
            weights = np.ones(len(players))
        index = int(rng.choice(len(players), p=weights / weights.sum()))
        return players[index]

    # Energy

    def performance_factor(self, player_id: str) -> float:
        return self.stamina_model.performance_factor(self.energy[player_id])

    def tire(self, minutes: float) -> None:
        """Drain energy of everyone on the pitch for ``minutes`` of play."""
        for pid in self.on_pitch:
            player = self.players[pid]
            self.energy[pid] = self.stamina_model.drain(self.energy[pid], player.stamina, minutes)

    def recover(self) -> None:
        """Interval recovery for everyone still on the pitch."""
        for pid in self.on_pitch:
            self.energy[pid] = self.stamina_model.recover(self.energy[pid])

    # Squad changes

    def can_substitute(self) -> bool:
        return self.substitutions_used < self.max_substitutions and bool(self.bench)

    def replacement_for(self, player: Player) -> Optional[Player]:
        """Best bench player to replace ``player``: same role first, keepers only for keepers."""
        if not self.can_substitute():
            return None
        candidates = [self.players[pid] for pid in self.bench]
        same_role = [p for p in candidates if p.role is player.role]
        if same_role:
            return same_role[0]
        if player.is_goalkeeper:
            return None
        outfield = [p for p in candidates if not p.is_goalkeeper]
        return outfield[0] if outfield else None

    def keeper_cover(self) -> Optional[Tuple[Player, Player]]:
        """
        Outfield player to take off and bench keeper to bring on.

        None while a keeper is on the pitch, or when the bench has no keeper
        or no substitutions are left.
        """
        players = self.available_players()
        if any(p.is_goalkeeper for p in players) or not self.can_substitute():
            return None
        keepers = [self.players[pid] for pid in self.bench if self.players[pid].is_goalkeeper]
        if not keepers or not players:
            return None
        # The most tired outfield player makes way
        player_out = min(players, key=lambda p: self.energy[p.player_id])
        return player_out, keepers[0]

    def substitute(self, player_out_id: str, player_in_id: str) -> None:
        """Swap a player for a bench player; an injured player may already be off."""
        if player_out_id not in self.on_pitch and player_out_id not in self.injured:
            raise InvariantViolation(f"{player_out_id} is not on the pitch for {self.team_id}")
        if player_out_id in self.sent_off:
            raise InvariantViolation(f"{player_out_id} was sent off and cannot be replaced")
        if player_in_id not in self.bench:
            raise InvariantViolation(f"{player_in_id} is not on the bench for {self.team_id}")
        if self.substitutions_used >= self.max_substitutions:
            raise InvariantViolation(f"Team {self.team_id} has no substitutions left")

        # Replacement takes the same slot so selection order stays stable
        if player_out_id in self.on_pitch:
            self.on_pitch[self.on_pitch.index(player_out_id)] = player_in_id
        else:
            self.on_pitch.append(player_in_id)
        self.bench.remove(player_in_id)
        self.energy[player_in_id] = self.stamina_model.capacity
        self.substituted.add(player_out_id)
        self.substitutions_used += 1

    def send_off(self, player_id: str) -> None:
        self.sent_off.add(player_id)
        self._remove(player_id)

    def injure(self, player_id: str) -> None:
        self.injured.add(player_id)
        self._remove(player_id)

    def _remove(self, player_id: str) -> None:
        if player_id not in self.on_pitch:
            raise InvariantViolation(f"{player_id} is not on the pitch for {self.team_id}")
        self.on_pitch.remove(player_id)

    def book(self, player_id: str) -> int:
        """Record a yellow card and return the player's total."""
        self.yellow_cards[player_id] = self.yellow_cards.get(player_id, 0) + 1
        return self.yellow_cards[player_id]
