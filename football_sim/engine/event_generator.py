"""
Probabilistic event generation for one tick of play.

The generator reads the match state, decides what happens this tick and
returns the resulting events. It never mutates the state itself; the
match state's reducer applies the returned events in order.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..errors import ConfigurationError, InvariantViolation
from .config import ENGINE_CONFIG, EngineConfig, ZoneOutcomes
from .events import (
    Card, CardColor, Corner, Foul, Goal, Interception, MatchEvent, Offside,
    Pass, ShotOffTarget, ShotSaved, Tackle,
)
from .injury import InjuryGenerator, InjuryTrigger
from .match_state import MatchState
from .modifiers import effective_skill
from .pitch import PitchZones, Zone
from .player import Player
from .team import SquadState, TeamInstructions
from .xg import ExpectedGoalsModel

_log = logging.getLogger("football_sim.event_generator")

# Attribute used by the player on the ball in each zone
ACTING_ATTRIBUTE = {
    Zone.DEFENSE: "passing",
    Zone.MIDFIELD: "passing",
    Zone.ATTACK: "shooting",
}

TURNOVER_OUTCOMES = ("tackle", "interception")


class EventGenerator:
    """
    Zone and threshold based event model.

    Each zone has "advance" outcomes counted up from 0 and "loss" outcomes
    counted down from 1 on a single uniform roll; the gap in between is a
    quiet tick. Probabilities are scaled by the effective skill ratio of the
    player on the ball against his marker (against the goalkeeper for the
    goal itself) and by both teams' instructions.
    """

    def __init__(self,
                 config: EngineConfig = ENGINE_CONFIG,
                 injuries: Optional[InjuryGenerator] = None,
                 xg_model: Optional[ExpectedGoalsModel] = None):
        self.config = config
        self.injuries = injuries or InjuryGenerator(config.injury,
                                                    performance_floor=config.stamina.performance_floor)
        self.xg_model = xg_model or ExpectedGoalsModel()

    def zone_outcomes(self, zone: Zone) -> ZoneOutcomes:
        outcomes = self.config.outcomes
        if zone is Zone.ATTACK:
            return outcomes.attack
        if zone is Zone.MIDFIELD:
            return outcomes.midfield
        return outcomes.defense

    def effective(self, squad: SquadState, player: Player, attribute: str) -> float:
        """Effective skill of an on-pitch player for ``attribute``."""
        return effective_skill(
            getattr(player.attributes, attribute),
            squad.performance_factor(player.player_id),
            player.experience,
            player.status,
            self.config.modifiers,
        )

    def skill_ratio(self, attack_skill: float, defence_skill: float) -> float:
        outcomes = self.config.outcomes
        ratio = attack_skill / max(defence_skill, 1e-9)
        return float(np.clip(ratio, outcomes.ratio_min, outcomes.ratio_max)) ** outcomes.skill_exponent

    def duel_ratio(self, winner: Player, loser: Player, attribute: str) -> float:
        """Raw attribute ratio of a physical duel, clamped and damped."""
        outcomes = self.config.outcomes
        ratio = getattr(winner.attributes, attribute) / max(getattr(loser.attributes, attribute), 1e-9)
        return float(np.clip(ratio, outcomes.ratio_min, outcomes.ratio_max)) ** outcomes.duel_exponent

    def outcome_probabilities(self,
                              zone: Zone,
                              ratio: float,
                              keeper_ratio: float,
                              attacking: TeamInstructions,
                              defending: TeamInstructions,
                              strength_ratio: float = 1.0,
                              pace_ratio: float = 1.0) -> Tuple[Dict[str, float], Dict[str, float]]:
        """
        Scaled advance and loss probabilities for one tick.

        Args:
            zone: Ball zone relative to the team in possession
            ratio: Carrier vs marker skill ratio
            keeper_ratio: Shooter vs goalkeeper skill ratio
            attacking: Instructions of the team in possession
            defending: Instructions of the team out of possession
            strength_ratio: Marker vs carrier physicality; scales tackles
            pace_ratio: Carrier vs marker pace; scales fouls

        Returns:
            Tuple of (advance, loss) dicts; their total never exceeds 1
        """
        table = self.zone_outcomes(zone)
        tactics = self.config.tactics

        advance = {}
        for name, p in table.advance.items():
            advance[name] = p * (keeper_ratio if name == "goal" else ratio)
        loss = {name: p / ratio for name, p in table.loss.items()}
        if "tackle" in loss:
            loss["tackle"] *= strength_ratio
        if "foul" in loss:
            loss["foul"] *= pace_ratio

        if attacking.possession_style == "attacking":
            advance = {k: v * tactics.attacking_advance for k, v in advance.items()}
            loss = {k: v * tactics.attacking_loss for k, v in loss.items()}
        elif attacking.possession_style == "defensive":
            advance = {k: v * tactics.defensive_advance for k, v in advance.items()}
            loss = {k: v * tactics.defensive_loss for k, v in loss.items()}

        if "pass" in advance:
            if attacking.transition_speed == "fast":
                advance["pass"] *= tactics.fast_transition
            elif attacking.transition_speed == "slow":
                advance["pass"] *= tactics.slow_transition

        pressing = defending.pressing_intensity
        for name in TURNOVER_OUTCOMES:
            if name in loss:
                loss[name] *= tactics.pressing_turnover_base + tactics.pressing_turnover_range * pressing
        if "foul" in loss:
            loss["foul"] *= tactics.pressing_foul_base + tactics.pressing_foul_range * pressing

        total = sum(advance.values()) + sum(loss.values())
        if total > 1.0:
            advance = {k: v / total for k, v in advance.items()}
            loss = {k: v / total for k, v in loss.items()}
        return advance, loss

    @staticmethod
    def resolve(roll: float, advance: Dict[str, float], loss: Dict[str, float]) -> Optional[str]:
        """Map a uniform roll onto an outcome name, or None for a quiet tick."""
        threshold = 0.0
        for name, p in advance.items():
            threshold += p
            if roll < threshold:
                return name
        threshold = 1.0
        for name, p in loss.items():
            threshold -= p
            if roll >= threshold:
                return name
        return None

    def generate(self, state: MatchState, rng: np.random.Generator) -> List[MatchEvent]:
        """
        Decide what happens during the current tick.

        Args:
            state: Match state after the clock has been advanced
            rng: The match's random generator

        Returns:
            List of events: at most one play event, followed by its
            consequences (cards, injuries, substitutions)
        """
        if state.is_finalized or not state.phase.is_playing:
            raise InvariantViolation(f"Event generation requested in phase {state.phase.value}")
        if state.possession is None:
            raise ConfigurationError(f"No team can take possession in match {state.match_id}")

        attacking_id = state.possession
        defending_id = state.opponent_of(attacking_id)
        attackers = state.squad(attacking_id)
        defenders = state.squad(defending_id)
        zone = state.zone

        carrier = attackers.pick(rng, lambda p: PitchZones.carrier_weight(zone, p.role))
        marker = defenders.pick(rng, lambda p: PitchZones.marker_weight(zone, p.role))
        keeper = defenders.goalkeeper()

        carrier_skill = self.effective(attackers, carrier, ACTING_ATTRIBUTE[zone])
        ratio = self.skill_ratio(carrier_skill, self.effective(defenders, marker, "defending"))
        keeper_ratio = self.skill_ratio(carrier_skill, self.effective(defenders, keeper, "defending"))

        advance, loss = self.outcome_probabilities(
            zone, ratio, keeper_ratio,
            attackers.tactics.instructions, defenders.tactics.instructions,
            strength_ratio=self.duel_ratio(marker, carrier, "physicality"),
            pace_ratio=self.duel_ratio(carrier, marker, "pace"),
        )
        outcome = self.resolve(float(rng.random()), advance, loss)
        if outcome is None:
            return []

        minute, second = state.minute, state.second
        base = {"minute": minute, "second": second}
        _log.debug("%d:%02d %s %s in %s", minute, second, attacking_id, outcome, zone.value)

        if outcome == "goal":
            assist = state.last_passer_id
            if assist == carrier.player_id or not attackers.is_on_pitch(assist):
                assist = None
            return [Goal(team_id=attacking_id, player_id=carrier.player_id,
                         assist_player_id=assist, xg=self.xg_model.expected_goal(advance), **base)]
        if outcome == "shot_saved":
            return [ShotSaved(team_id=attacking_id, player_id=carrier.player_id,
                              keeper_id=keeper.player_id, xg=self.xg_model.expected_goal(advance), **base)]
        if outcome == "shot_off_target":
            return [ShotOffTarget(team_id=attacking_id, player_id=carrier.player_id,
                                  xg=self.xg_model.expected_goal(advance), **base)]
        if outcome == "corner":
            return [Corner(team_id=attacking_id, player_id=carrier.player_id, **base)]
        if outcome == "offside":
            return [Offside(team_id=attacking_id, player_id=carrier.player_id, **base)]
        if outcome == "pass":
            return [self._forward_pass(state, attackers, carrier, zone, rng)]
        if outcome == "interception":
            return [Interception(team_id=defending_id, player_id=marker.player_id,
                                 lost_by_player_id=carrier.player_id, **base)]
        if outcome == "tackle":
            events: List[MatchEvent] = [Tackle(team_id=defending_id, player_id=marker.player_id,
                                               tackled_player_id=carrier.player_id, **base)]
            events.extend(self.injuries.maybe_injure(
                InjuryTrigger.TACKLE, carrier, attackers,
                state.is_home(attacking_id), state.elapsed_seconds, rng,
            ))
            return events
        if outcome == "foul":
            events = [Foul(team_id=defending_id, player_id=marker.player_id,
                           fouled_player_id=carrier.player_id, **base)]
            card = self._card_for(state, defenders, marker, rng)
            if card is not None:
                events.append(card)
            events.extend(self.injuries.maybe_injure(
                InjuryTrigger.COLLISION, carrier, attackers,
                state.is_home(attacking_id), state.elapsed_seconds, rng,
            ))
            return events
        raise InvariantViolation(f"Outcome {outcome!r} has no event mapping")

    def _forward_pass(self,
                      state: MatchState,
                      attackers: SquadState,
                      passer: Player,
                      zone: Zone,
                      rng: np.random.Generator) -> Pass:
        to_zone = zone.forward
        receiver = None
        if len(attackers.available_players()) > 1:
            def weight(p: Player) -> float:
                if p.player_id == passer.player_id:
                    return 0.0
                return PitchZones.carrier_weight(to_zone, p.role)
            receiver = attackers.pick(rng, weight)
            if receiver.player_id == passer.player_id:
                receiver = None
        return Pass(
            minute=state.minute,
            second=state.second,
            team_id=attackers.team_id,
            player_id=passer.player_id,
            receiver_id=receiver.player_id if receiver else None,
            from_zone=zone,
            to_zone=to_zone,
        )

    def _card_for(self,
                  state: MatchState,
                  squad: SquadState,
                  offender: Player,
                  rng: np.random.Generator) -> Optional[Card]:
        discipline = self.config.discipline
        roll = float(rng.random())
        base = {"minute": state.minute, "second": state.second,
                "team_id": squad.team_id, "player_id": offender.player_id}
        if roll < discipline.straight_red_chance:
            return Card(color=CardColor.RED, **base)
        if roll < discipline.straight_red_chance + discipline.yellow_card_chance:
            if squad.yellow_cards.get(offender.player_id, 0) >= 1:
                return Card(color=CardColor.RED, second_yellow=True, **base)
            return Card(color=CardColor.YELLOW, **base)
        return None
