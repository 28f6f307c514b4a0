"""
Main match engine for football simulation.

Drives one match tick by tick through every phase of its duration: both
halves, optional extra time and an optional penalty shootout. Each match
owns a single seeded random generator, so a simulation is a pure function
of its setup and independent matches can run in parallel.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import ConfigurationError, SimulationCancelled
from .config import ENGINE_CONFIG, EngineConfig
from .duration import (
    MatchDuration, MatchType, calculate_match_duration, extend_with_extra_time,
    with_penalty_shootout,
)
from .event_generator import EventGenerator
from .events import (
    SHOT_EVENTS, MatchEvent, MatchPhase, PenaltyKick, PhaseChange, Substitution,
)
from .injury import InjuryGenerator, InjuryRecord, InjuryTrigger
from .match_state import MatchState, TeamMatchStats
from .modifiers import effective_skill
from .player import Player
from .stamina import StaminaModel
from .team import SquadState, SubstitutionInstruction, TeamTactics

_log = logging.getLogger("football_sim.match")


@dataclass(frozen=True)
class MatchSetup:
    """
    Everything needed to simulate one match.

    Args:
        match_id: Unique identifier for the match
        home: Home tactics snapshot
        away: Away tactics snapshot
        match_type: Competition format
        seed: Random seed; a fresh entropy seed when None
        ended_level: Overrides the regulation level check for extra time,
            for ties decided on aggregate outside this match
        kickoff_at: Real-world kickoff, used to timestamp injuries and the
            event log
        config: Engine tuning
    """
    match_id: str
    home: TeamTactics
    away: TeamTactics
    match_type: Union[MatchType, str] = MatchType.LEAGUE
    seed: Optional[int] = None
    ended_level: Optional[bool] = None
    kickoff_at: Optional[datetime] = None
    config: EngineConfig = ENGINE_CONFIG

    def validate(self) -> MatchType:
        """Check the setup and return the parsed match type."""
        if not self.match_id:
            raise ConfigurationError("Match id must not be empty")
        for side, tactics in (("home", self.home), ("away", self.away)):
            if not isinstance(tactics, TeamTactics):
                raise ConfigurationError(f"Missing or invalid {side} tactics for match {self.match_id}")
            tactics.validate(self.config.squad)
        if self.home.team_id == self.away.team_id:
            raise ConfigurationError(f"Both sides use team id {self.home.team_id}")
        shared = self.home.player_ids & self.away.player_ids
        if shared:
            raise ConfigurationError(f"Players listed for both teams: {sorted(shared)}")
        tick_seconds = self.config.clock.tick_seconds
        if tick_seconds <= 0 or 60 % tick_seconds != 0:
            raise ConfigurationError(f"tick_seconds must be a positive divisor of 60, got {tick_seconds}")
        return MatchType.parse(self.match_type)


@dataclass(frozen=True)
class ShootoutResult:
    home_goals: int
    away_goals: int
    rounds: int
    winner_team_id: str
    decided_by_draw: bool = False


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a completed simulation, ready for persistence."""
    match_id: str
    match_type: MatchType
    home_team_id: str
    away_team_id: str
    home_score: int
    away_score: int
    events: Tuple[MatchEvent, ...]
    home_stats: TeamMatchStats
    away_stats: TeamMatchStats
    injuries: Tuple[InjuryRecord, ...]
    elapsed_minutes: int
    duration: MatchDuration
    seed_entropy: int
    shootout: Optional[ShootoutResult] = None
    winner_team_id: Optional[str] = None
    team_names: Dict[str, str] = field(default_factory=dict)
    kickoff_at: Optional[datetime] = None

    @property
    def score(self) -> Tuple[int, int]:
        return self.home_score, self.away_score

    def stats_for(self, team_id: str) -> TeamMatchStats:
        if team_id == self.home_team_id:
            return self.home_stats
        if team_id == self.away_team_id:
            return self.away_stats
        raise KeyError(team_id)

    def xg_for(self, team_id: str) -> float:
        return sum(e.xg for e in self.events if isinstance(e, SHOT_EVENTS) and e.team_id == team_id)

    def get_possession_percentage(self, team_id: str) -> float:
        """Share of played time the team had the ball."""
        total = self.home_stats.possession_seconds + self.away_stats.possession_seconds
        if total == 0:
            return 50.0
        return (self.stats_for(team_id).possession_seconds / total) * 100

    def summary(self) -> Dict[str, Any]:
        """Compact match summary."""
        home, away = self.home_team_id, self.away_team_id
        return {
            "match_id": self.match_id,
            "match_type": self.match_type.value,
            "final_score": {"home": self.home_score, "away": self.away_score},
            "teams": {
                "home": self.team_names.get(home, home),
                "away": self.team_names.get(away, away),
            },
            "possession": {
                "home": self.get_possession_percentage(home),
                "away": self.get_possession_percentage(away),
            },
            "shots": {"home": self.home_stats.shots, "away": self.away_stats.shots},
            "xg": {"home": self.xg_for(home), "away": self.xg_for(away)},
            "pass_accuracy": {
                "home": self.home_stats.get_pass_accuracy(),
                "away": self.away_stats.get_pass_accuracy(),
            },
            "injuries": len(self.injuries),
            "elapsed_minutes": self.elapsed_minutes,
            "shootout": None if self.shootout is None else {
                "home": self.shootout.home_goals, "away": self.shootout.away_goals,
            },
            "winner": self.winner_team_id,
        }


class MatchEngine:
    """
    Tick-driven match simulation.

    Implements:
    - Regulation halves with random injury time
    - Extra time and a penalty shootout for level elimination ties
    - Fatigue, half-time recovery and scheduled substitutions
    - Event generation through a pure generator and a single state reducer
    """

    def __init__(self, setup: MatchSetup):
        """
        Validate the setup and prepare the match.

        Args:
            setup: Match inputs; invalid setups raise ConfigurationError
                before any tick runs
        """
        self.match_type = setup.validate()
        self.setup = setup
        self.config = setup.config

        self.seed_sequence = np.random.SeedSequence(setup.seed)
        self.rng = np.random.default_rng(self.seed_sequence)

        self.stamina_model = StaminaModel(self.config.stamina)
        self.duration = calculate_match_duration(self.match_type, False, self.rng, self.config.clock)
        self.state = MatchState(setup.match_id, setup.home, setup.away, self.duration,
                                self.stamina_model, self.config.squad)
        self.injuries = InjuryGenerator(self.config.injury, setup.match_id, setup.kickoff_at,
                                        self.config.stamina.performance_floor)
        self.generator = EventGenerator(self.config, self.injuries)

        self._pending_substitutions: Dict[str, List[SubstitutionInstruction]] = {
            tactics.team_id: sorted(tactics.substitutions, key=lambda s: s.minute)
            for tactics in (setup.home, setup.away)
        }
        self._cancel: Optional[threading.Event] = None

    def simulate(self, cancel: Optional[threading.Event] = None) -> MatchResult:
        """
        Simulate the match to completion.

        Args:
            cancel: Checked before every tick; when set the simulation
                stops with SimulationCancelled and no result

        Returns:
            MatchResult: Final score, events, statistics and injuries
        """
        self._cancel = cancel
        state = self.state
        home, away = state.home_team_id, state.away_team_id
        _log.info("Starting match %s: %s vs %s (%s)", state.match_id,
                  self.setup.home.name, self.setup.away.name, self.match_type.value)

        self._play_period(MatchPhase.FIRST_HALF, self.duration.first_half_length, home)
        self._interval(MatchPhase.HALF_TIME)
        self._play_period(MatchPhase.SECOND_HALF, self.duration.second_half_length, away)

        shootout = None
        ended_level = self.setup.ended_level if self.setup.ended_level is not None else state.is_level
        self.duration = extend_with_extra_time(self.duration, self.match_type, ended_level, self.config.clock)
        if self.duration.has_extra_time:
            _log.info("Match %s goes to extra time at %d-%d", state.match_id,
                      state.home_score, state.away_score)
            state.extend_duration(self.duration)
            self._play_period(MatchPhase.EXTRA_TIME_FIRST_HALF, self.duration.extra_time_first_half, home)
            self._interval(MatchPhase.EXTRA_TIME_BREAK)
            self._play_period(MatchPhase.EXTRA_TIME_SECOND_HALF, self.duration.extra_time_second_half, away)

            if state.is_level:
                self.duration = with_penalty_shootout(self.duration)
                state.extend_duration(self.duration)
                shootout = self._penalty_shootout()

        self._warn_unused_substitutions()
        self._enter_phase(MatchPhase.COMPLETED)
        state.finalize()
        _log.info("Full-time %s: %s %d-%d %s", state.match_id, self.setup.home.name,
                  state.home_score, state.away_score, self.setup.away.name)
        return self._build_result(shootout)

    # Phases

    def _enter_phase(self, phase: MatchPhase) -> None:
        state = self.state
        state.apply(PhaseChange(minute=state.minute, second=state.second,
                                team_id=None, player_id=None, phase=phase))

    def _play_period(self, phase: MatchPhase, minutes: int, kickoff_team_id: str) -> None:
        self._enter_phase(phase)
        self.state.set_kickoff(kickoff_team_id)
        end = self.state.elapsed_seconds + minutes * 60
        while self.state.elapsed_seconds < end:
            if self._cancel is not None and self._cancel.is_set():
                _log.warning("Match %s cancelled at minute %d", self.state.match_id, self.state.minute)
                raise SimulationCancelled(self.state.match_id, self.state.minute)
            self._tick()

    def _interval(self, phase: MatchPhase) -> None:
        """Break between periods: not played, players recover energy."""
        self._enter_phase(phase)
        for squad in self.state.squads.values():
            squad.recover()

    def _tick(self) -> None:
        state = self.state
        tick_seconds = self.config.clock.tick_seconds
        state.advance_clock(tick_seconds)
        for squad in state.squads.values():
            squad.tire(tick_seconds / 60)

        if state.possession is None:
            state.resolve_kickoff()
            state.accrue_possession(tick_seconds)
        else:
            state.accrue_possession(tick_seconds)
            for event in self.generator.generate(state, self.rng):
                state.apply(event)

        if state.second == 0:
            for event in self._fatigue_checks():
                state.apply(event)
            self._scheduled_substitutions()
        self.cover_missing_goalkeepers()

    def cover_missing_goalkeepers(self) -> None:
        """Bring a bench keeper on for a side whose keeper has left the pitch."""
        state = self.state
        for team_id in (state.home_team_id, state.away_team_id):
            cover = state.squads[team_id].keeper_cover()
            if cover is None:
                continue
            player_out, keeper_in = cover
            _log.info("%s brings on keeper %s for %s", team_id, keeper_in.player_id, player_out.player_id)
            state.apply(Substitution(
                minute=state.minute,
                second=state.second,
                team_id=team_id,
                player_id=player_out.player_id,
                player_in_id=keeper_in.player_id,
                reason="keeper",
            ))

    def _fatigue_checks(self) -> List[MatchEvent]:
        """Once per played minute, tired players risk a muscle strain."""
        state = self.state
        events: List[MatchEvent] = []
        for team_id in (state.home_team_id, state.away_team_id):
            squad = state.squads[team_id]
            for player in squad.available_players():
                if squad.performance_factor(player.player_id) >= 1.0:
                    continue
                events.extend(self.injuries.maybe_injure(
                    InjuryTrigger.SPRINT, player, squad, state.is_home(team_id),
                    state.elapsed_seconds, self.rng,
                ))
                if events:
                    # At most one fatigue injury per minute
                    return events
        return events

    def _scheduled_substitutions(self) -> None:
        state = self.state
        for team_id, pending in self._pending_substitutions.items():
            squad = state.squads[team_id]
            while pending and pending[0].minute <= state.minute:
                instruction = pending.pop(0)
                reason = self._substitution_blocker(squad, instruction)
                if reason is not None:
                    _log.warning("Skipping substitution %s -> %s for %s: %s",
                                 instruction.player_out_id, instruction.player_in_id, team_id, reason)
                    continue
                state.apply(Substitution(
                    minute=state.minute,
                    second=state.second,
                    team_id=team_id,
                    player_id=instruction.player_out_id,
                    player_in_id=instruction.player_in_id,
                ))

    @staticmethod
    def _substitution_blocker(squad: SquadState, instruction: SubstitutionInstruction) -> Optional[str]:
        if instruction.player_out_id not in squad.on_pitch:
            return "player is not on the pitch"
        if instruction.player_in_id not in squad.bench:
            return "substitute is no longer on the bench"
        if squad.substitutions_used >= squad.max_substitutions:
            return "no substitutions left"
        return None

    def _warn_unused_substitutions(self) -> None:
        for team_id, pending in self._pending_substitutions.items():
            for instruction in pending:
                _log.warning("Substitution at minute %d for %s was never reached",
                             instruction.minute, team_id)
            pending.clear()

    # Penalty shootout

    def _kick_order(self, squad: SquadState) -> List[Player]:
        """Best finishers first, goalkeeper last."""
        players = squad.available_players()
        outfield = sorted((p for p in players if not p.is_goalkeeper),
                          key=lambda p: p.attributes.shooting, reverse=True)
        return outfield + [p for p in players if p.is_goalkeeper]

    def shootout_orders(self) -> Dict[str, List[Player]]:
        """Kick orders for both sides, cut to the smaller squad so neither repeats a kicker early."""
        state = self.state
        orders = {team_id: self._kick_order(state.squads[team_id])
                  for team_id in (state.home_team_id, state.away_team_id)}
        size = min(len(order) for order in orders.values())
        return {team_id: order[:size] for team_id, order in orders.items()}

    def conversion_chance(self, kicker: Player, kicker_squad: SquadState,
                          keeper: Player, keeper_squad: SquadState) -> float:
        shootout = self.config.shootout
        modifiers = self.config.modifiers
        kick = effective_skill(kicker.attributes.shooting, kicker_squad.performance_factor(kicker.player_id),
                               kicker.experience, kicker.status, modifiers)
        save = effective_skill(keeper.attributes.defending, keeper_squad.performance_factor(keeper.player_id),
                               keeper.experience, keeper.status, modifiers)
        base = self.generator.xg_model.expected_goal({}, is_penalty=True)
        chance = base * (kick / max(save, 1e-9)) ** shootout.skill_exponent
        return float(np.clip(chance, shootout.conversion_min, shootout.conversion_max))

    def _penalty_shootout(self) -> ShootoutResult:
        state = self.state
        shootout = self.config.shootout
        self._enter_phase(MatchPhase.PENALTY_SHOOTOUT)

        teams = (state.home_team_id, state.away_team_id)
        orders = self.shootout_orders()
        kicks = {team_id: 0 for team_id in teams}
        goals = state.shootout_goals

        def decided_in_regulation() -> bool:
            home, away = teams
            home_left = shootout.regulation_kicks - kicks[home]
            away_left = shootout.regulation_kicks - kicks[away]
            return goals[home] + home_left < goals[away] or goals[away] + away_left < goals[home]

        rounds = 0
        decided = False
        while not decided and rounds < shootout.max_rounds:
            rounds += 1
            for team_id in teams:
                opponent = state.squads[state.opponent_of(team_id)]
                squad = state.squads[team_id]
                kicker = orders[team_id][kicks[team_id] % len(orders[team_id])]
                keeper = opponent.goalkeeper()
                scored = bool(self.rng.random() < self.conversion_chance(kicker, squad, keeper, opponent))
                kicks[team_id] += 1
                state.apply(PenaltyKick(
                    minute=state.minute, second=state.second, team_id=team_id,
                    player_id=kicker.player_id, keeper_id=keeper.player_id,
                    scored=scored, round=rounds,
                ))
                if rounds <= shootout.regulation_kicks and decided_in_regulation():
                    decided = True
                    break
            if not decided and rounds >= shootout.regulation_kicks:
                decided = goals[teams[0]] != goals[teams[1]]

        home_goals, away_goals = goals[teams[0]], goals[teams[1]]
        if home_goals != away_goals:
            winner = teams[0] if home_goals > away_goals else teams[1]
            return ShootoutResult(home_goals, away_goals, rounds, winner)

        winner = teams[int(self.rng.integers(0, 2))]
        _log.warning("Shootout in match %s still level after %d rounds, %s drawn as winner",
                     state.match_id, rounds, winner)
        return ShootoutResult(home_goals, away_goals, rounds, winner, decided_by_draw=True)

    # Result

    def _build_result(self, shootout: Optional[ShootoutResult]) -> MatchResult:
        state = self.state
        if state.home_score != state.away_score:
            winner = state.home_team_id if state.home_score > state.away_score else state.away_team_id
        elif shootout is not None:
            winner = shootout.winner_team_id
        else:
            winner = None

        return MatchResult(
            match_id=state.match_id,
            match_type=self.match_type,
            home_team_id=state.home_team_id,
            away_team_id=state.away_team_id,
            home_score=state.home_score,
            away_score=state.away_score,
            events=state.events,
            home_stats=replace(state.stats[state.home_team_id]),
            away_stats=replace(state.stats[state.away_team_id]),
            injuries=tuple(state.injuries),
            elapsed_minutes=state.minute,
            duration=self.duration,
            seed_entropy=self.seed_sequence.entropy,
            shootout=shootout,
            winner_team_id=winner,
            team_names={self.setup.home.team_id: self.setup.home.name,
                        self.setup.away.team_id: self.setup.away.name},
            kickoff_at=self.setup.kickoff_at,
        )


def simulate_match(setup: MatchSetup, cancel: Optional[threading.Event] = None) -> MatchResult:
    """Simulate one match; a pure function of ``setup``."""
    return MatchEngine(setup).simulate(cancel)


def run_matches(setups: Sequence[MatchSetup],
                max_workers: Optional[int] = None,
                cancel: Optional[threading.Event] = None) -> List[MatchResult]:
    """
    Simulate independent matches, in parallel when ``max_workers`` > 1.

    Every match has its own state and generator, so results are identical
    to a sequential run. Results come back in input order; the first
    failure is re-raised.

    Args:
        setups: Matches to simulate
        max_workers: Thread pool size; None or 1 runs sequentially
        cancel: Shared cancel signal for all matches

    Returns:
        List of MatchResult in the order of ``setups``
    """
    if max_workers is None or max_workers <= 1:
        return [simulate_match(setup, cancel) for setup in setups]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(simulate_match, setup, cancel) for setup in setups]
        return [future.result() for future in futures]
