"""
Match state aggregate and its event reducer.

``MatchState`` owns the clock, score, possession, ball zone, per-team
statistics, squads and the append-only event log of one match. Events are
produced elsewhere and applied here through ``apply``, the only place
statistics and score change.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Tuple

from ..errors import InvariantViolation
from .config import ENGINE_CONFIG, SquadConfig
from .duration import MatchDuration
from .events import (
    Card, CardColor, Corner, Foul, Goal, Injury, Interception, MatchEvent,
    MatchPhase, Offside, Pass, PenaltyKick, PhaseChange, ShotOffTarget,
    ShotSaved, Substitution, Tackle,
)
from .injury import InjuryRecord
from .pitch import PitchZones, Zone
from .stamina import StaminaModel
from .team import SquadState, TeamTactics

_log = logging.getLogger("football_sim.match_state")


@dataclass
class TeamMatchStats:
    """Per-team counters; all non-negative and never decreasing."""
    possession_seconds: int = 0
    shots: int = 0
    shots_on_target: int = 0
    passes_attempted: int = 0
    passes_completed: int = 0
    tackles: int = 0
    fouls: int = 0
    corners: int = 0
    offsides: int = 0
    yellow_cards: int = 0
    red_cards: int = 0

    def increment(self, name: str, amount: int = 1) -> None:
        if amount < 0:
            raise InvariantViolation(f"Statistic {name} cannot decrease (amount {amount})")
        value = getattr(self, name) + amount
        if value < 0:
            raise InvariantViolation(f"Statistic {name} became negative")
        setattr(self, name, value)

    def get_pass_accuracy(self) -> float:
        """Pass completion percentage."""
        if self.passes_attempted == 0:
            return 0.0
        return (self.passes_completed / self.passes_attempted) * 100

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class MatchState:
    """
    Mutable aggregate for one match in progress.

    Home and away team ids are fixed at construction; every mutation names
    the side it affects. After ``finalize`` the state is read-only.
    """

    def __init__(self,
                 match_id: str,
                 home: TeamTactics,
                 away: TeamTactics,
                 duration: MatchDuration,
                 stamina_model: StaminaModel,
                 squad_config: SquadConfig = ENGINE_CONFIG.squad):
        if home.team_id == away.team_id:
            raise InvariantViolation(f"Home and away share the team id {home.team_id}")
        self.match_id = match_id
        self.home_team_id = home.team_id
        self.away_team_id = away.team_id
        self.duration = duration

        self.elapsed_seconds = 0
        self.phase = MatchPhase.NOT_STARTED
        self.home_score = 0
        self.away_score = 0
        self.possession: Optional[str] = None
        self.zone: Zone = PitchZones.RESTART_ZONE
        self.kickoff_team_id: str = self.home_team_id
        self.last_passer_id: Optional[str] = None

        self.stats: Dict[str, TeamMatchStats] = {
            self.home_team_id: TeamMatchStats(),
            self.away_team_id: TeamMatchStats(),
        }
        self.squads: Dict[str, SquadState] = {
            self.home_team_id: SquadState(home, stamina_model, squad_config),
            self.away_team_id: SquadState(away, stamina_model, squad_config),
        }
        self.shootout_goals: Dict[str, int] = {self.home_team_id: 0, self.away_team_id: 0}
        self.injuries: List[InjuryRecord] = []
        self._events: List[MatchEvent] = []
        self._finalized = False

    # Read access

    @property
    def minute(self) -> int:
        return self.elapsed_seconds // 60

    @property
    def second(self) -> int:
        return self.elapsed_seconds % 60

    @property
    def events(self) -> Tuple[MatchEvent, ...]:
        return tuple(self._events)

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    @property
    def is_level(self) -> bool:
        return self.home_score == self.away_score

    @property
    def max_seconds(self) -> int:
        return self.duration.max_played_minutes * 60

    def side_of(self, team_id: Optional[str]) -> str:
        """'home' or 'away'; anything else is a logic defect."""
        if team_id == self.home_team_id:
            return "home"
        if team_id == self.away_team_id:
            return "away"
        raise InvariantViolation(f"Team {team_id!r} is not playing in match {self.match_id}")

    def opponent_of(self, team_id: str) -> str:
        return self.away_team_id if self.side_of(team_id) == "home" else self.home_team_id

    def squad(self, team_id: str) -> SquadState:
        self.side_of(team_id)
        return self.squads[team_id]

    def is_home(self, team_id: str) -> bool:
        return self.side_of(team_id) == "home"

    # Engine-loop mutations

    def _check_mutable(self) -> None:
        if self._finalized:
            raise InvariantViolation(f"Match {self.match_id} is finalized and cannot change")

    def extend_duration(self, duration: MatchDuration) -> None:
        """Swap in a re-evaluated duration; the clock limit may only grow."""
        self._check_mutable()
        if duration.max_played_minutes < self.duration.max_played_minutes:
            raise InvariantViolation("Match duration cannot shrink during a match")
        self.duration = duration

    def advance_clock(self, seconds: int) -> None:
        self._check_mutable()
        if seconds <= 0:
            raise InvariantViolation(f"Clock must advance, got {seconds} seconds")
        if self.elapsed_seconds + seconds > self.max_seconds:
            raise InvariantViolation(
                f"Clock overrun: {self.elapsed_seconds + seconds}s past limit of {self.max_seconds}s"
            )
        self.elapsed_seconds += seconds

    def set_kickoff(self, team_id: str) -> None:
        """Clear possession; ``team_id`` gets the ball on the next tick."""
        self._check_mutable()
        self.side_of(team_id)
        self.kickoff_team_id = team_id
        self.possession = None
        self.zone = PitchZones.RESTART_ZONE
        self.last_passer_id = None

    def resolve_kickoff(self) -> str:
        """Hand the ball to the kickoff team. Emits no event."""
        self._check_mutable()
        self._give_ball(self.kickoff_team_id, PitchZones.RESTART_ZONE)
        return self.kickoff_team_id

    def accrue_possession(self, seconds: int) -> None:
        self._check_mutable()
        if self.possession is None:
            raise InvariantViolation("Possession time accrued while no team holds the ball")
        self.stats[self.possession].increment("possession_seconds", seconds)

    def finalize(self) -> None:
        if self.phase is not MatchPhase.COMPLETED:
            raise InvariantViolation(f"Cannot finalize match in phase {self.phase.value}")
        self._finalized = True
        _log.debug("Match %s finalized with %d events", self.match_id, len(self._events))

    def _give_ball(self, team_id: str, zone: Zone) -> None:
        self.side_of(team_id)
        if team_id != self.possession:
            self.last_passer_id = None
        self.possession = team_id
        self.zone = zone

    # Reducer

    def apply(self, event: MatchEvent) -> None:
        """
        Append ``event`` to the log and apply its effects.

        Statistics, score, possession, zone and squads change here and
        nowhere else. Events must carry the current clock.
        """
        self._check_mutable()
        if (event.minute, event.second) != (self.minute, self.second):
            raise InvariantViolation(
                f"{event.kind.value} stamped {event.minute}:{event.second:02d} "
                f"applied at {self.minute}:{self.second:02d}"
            )
        if event.team_id is not None:
            self.side_of(event.team_id)

        if isinstance(event, PhaseChange):
            self.phase = event.phase
        elif isinstance(event, Pass):
            stats = self.stats[event.team_id]
            stats.increment("passes_attempted")
            stats.increment("passes_completed")
            self.zone = event.to_zone
            self.last_passer_id = event.player_id
        elif isinstance(event, Interception):
            # The losing side's pass counts as attempted but not completed
            self.stats[self.opponent_of(event.team_id)].increment("passes_attempted")
            self._give_ball(event.team_id, PitchZones.RESTART_ZONE)
        elif isinstance(event, Tackle):
            self.stats[event.team_id].increment("tackles")
            self._give_ball(event.team_id, PitchZones.RESTART_ZONE)
        elif isinstance(event, Foul):
            self.stats[event.team_id].increment("fouls")
        elif isinstance(event, Card):
            self._apply_card(event)
        elif isinstance(event, Corner):
            self.stats[event.team_id].increment("corners")
        elif isinstance(event, Offside):
            self.stats[event.team_id].increment("offsides")
            self._give_ball(self.opponent_of(event.team_id), Zone.DEFENSE)
        elif isinstance(event, Goal):
            self._apply_goal(event)
        elif isinstance(event, ShotSaved):
            stats = self.stats[event.team_id]
            stats.increment("shots")
            stats.increment("shots_on_target")
            self._give_ball(self.opponent_of(event.team_id), Zone.DEFENSE)
        elif isinstance(event, ShotOffTarget):
            self.stats[event.team_id].increment("shots")
            self._give_ball(self.opponent_of(event.team_id), Zone.DEFENSE)
        elif isinstance(event, Injury):
            self.squads[event.team_id].injure(event.player_id)
            self.injuries.append(event.record)
        elif isinstance(event, Substitution):
            self.squads[event.team_id].substitute(event.player_id, event.player_in_id)
        elif isinstance(event, PenaltyKick):
            if self.phase is not MatchPhase.PENALTY_SHOOTOUT:
                raise InvariantViolation("Penalty kick outside of a shootout")
            if event.scored:
                self.shootout_goals[event.team_id] += 1
        else:
            raise InvariantViolation(f"Unhandled event {type(event).__name__}")

        self._events.append(event)

    def _apply_goal(self, event: Goal) -> None:
        stats = self.stats[event.team_id]
        stats.increment("shots")
        stats.increment("shots_on_target")
        if self.side_of(event.team_id) == "home":
            self.home_score += 1
        else:
            self.away_score += 1
        _log.debug("Goal %s at %d:%02d, %d-%d", event.team_id, event.minute, event.second,
                   self.home_score, self.away_score)
        # Conceding team restarts from the centre
        self.set_kickoff(self.opponent_of(event.team_id))

    def _apply_card(self, event: Card) -> None:
        stats = self.stats[event.team_id]
        squad = self.squads[event.team_id]
        if event.color is CardColor.YELLOW or event.second_yellow:
            stats.increment("yellow_cards")
            squad.book(event.player_id)
        if event.is_sending_off:
            stats.increment("red_cards")
            squad.send_off(event.player_id)
