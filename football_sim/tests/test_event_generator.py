"""
Test zone outcome probabilities and per-tick event generation.
"""

import numpy as np
import pytest

from football_sim.engine.config import ENGINE_CONFIG
from football_sim.engine.event_generator import EventGenerator
from football_sim.engine.events import (
    Card, Foul, Goal, Injury, MatchPhase, PhaseChange, ShotOffTarget, ShotSaved, Substitution,
)
from football_sim.engine.pitch import Zone
from football_sim.engine.player import Player, PlayerAttributes, PlayerRole
from football_sim.engine.team import TeamInstructions
from football_sim.engine.xg import ExpectedGoalsModel
from football_sim.errors import ConfigurationError, InvariantViolation

CONSEQUENCE_TYPES = (Card, Injury, Substitution)


@pytest.fixture
def generator():
    return EventGenerator()


def test_resolve_counts_advance_up_and_loss_down():
    advance = {"goal": 0.1, "shot_off_target": 0.2}
    loss = {"tackle": 0.1, "foul": 0.05}

    assert EventGenerator.resolve(0.05, advance, loss) == "goal"
    assert EventGenerator.resolve(0.25, advance, loss) == "shot_off_target"
    assert EventGenerator.resolve(0.5, advance, loss) is None
    assert EventGenerator.resolve(0.9, advance, loss) == "tackle"
    assert EventGenerator.resolve(0.87, advance, loss) == "foul"
    assert EventGenerator.resolve(0.99, advance, loss) == "tackle"


def test_neutral_matchup_uses_base_table(generator):
    """Equal skill and default instructions leave the table untouched."""
    neutral = TeamInstructions()
    for zone in Zone:
        advance, loss = generator.outcome_probabilities(zone, 1.0, 1.0, neutral, neutral)
        table = generator.zone_outcomes(zone)
        assert advance == pytest.approx(table.advance)
        assert loss == pytest.approx(table.loss)


def test_skill_ratio_scales_success_and_loss(generator):
    neutral = TeamInstructions()
    advance, loss = generator.outcome_probabilities(Zone.ATTACK, 2.0, 1.0, neutral, neutral)
    table = ENGINE_CONFIG.outcomes.attack

    assert advance["goal"] == pytest.approx(table.advance["goal"])
    assert advance["corner"] == pytest.approx(2 * table.advance["corner"])
    assert loss["tackle"] == pytest.approx(table.loss["tackle"] / 2)

    advance, _ = generator.outcome_probabilities(Zone.ATTACK, 1.0, 2.0, neutral, neutral)
    assert advance["goal"] == pytest.approx(2 * table.advance["goal"])


def test_skill_ratio_clamped(generator):
    assert generator.skill_ratio(1000.0, 1.0) == pytest.approx(ENGINE_CONFIG.outcomes.ratio_max)
    assert generator.skill_ratio(1.0, 1000.0) == pytest.approx(ENGINE_CONFIG.outcomes.ratio_min)


def test_pressing_forces_turnovers_and_fouls(generator):
    neutral = TeamInstructions()
    _, calm = generator.outcome_probabilities(Zone.MIDFIELD, 1.0, 1.0, neutral, TeamInstructions(pressing_intensity=0.0))
    _, press = generator.outcome_probabilities(Zone.MIDFIELD, 1.0, 1.0, neutral, TeamInstructions(pressing_intensity=1.0))

    assert press["tackle"] > calm["tackle"]
    assert press["interception"] > calm["interception"]
    assert press["foul"] > calm["foul"]


def test_fast_transition_moves_ball_quicker(generator):
    neutral = TeamInstructions()
    fast, _ = generator.outcome_probabilities(Zone.DEFENSE, 1.0, 1.0, TeamInstructions(transition_speed="fast"), neutral)
    slow, _ = generator.outcome_probabilities(Zone.DEFENSE, 1.0, 1.0, TeamInstructions(transition_speed="slow"), neutral)
    assert fast["pass"] > slow["pass"]


def _player(player_id, role, pace, physicality):
    attributes = PlayerAttributes(pace=pace, passing=70, shooting=70, defending=70, physicality=physicality)
    return Player(player_id=player_id, name=player_id, role=role, attributes=attributes)


def test_pace_draws_fouls_and_strength_wins_tackles(generator):
    neutral = TeamInstructions()
    quick = _player("ST", PlayerRole.STRIKER, pace=90, physicality=60)
    strong = _player("CB", PlayerRole.CENTRE_BACK, pace=45, physicality=90)

    strength = generator.duel_ratio(strong, quick, "physicality")
    pace = generator.duel_ratio(quick, strong, "pace")
    assert strength == pytest.approx(1.5 ** 0.5)
    assert pace == pytest.approx(2.0 ** 0.5)

    _, even = generator.outcome_probabilities(Zone.ATTACK, 1.0, 1.0, neutral, neutral)
    _, duel = generator.outcome_probabilities(Zone.ATTACK, 1.0, 1.0, neutral, neutral,
                                              strength_ratio=strength, pace_ratio=pace)
    assert duel["tackle"] == pytest.approx(even["tackle"] * strength)
    assert duel["foul"] == pytest.approx(even["foul"] * pace)
    assert duel["interception"] == pytest.approx(even["interception"])


def test_probabilities_never_exceed_one(generator):
    attacking = TeamInstructions(possession_style="attacking", transition_speed="fast")
    pressing = TeamInstructions(pressing_intensity=1.0)
    for zone in Zone:
        for ratio in (0.5, 2.0):
            advance, loss = generator.outcome_probabilities(zone, ratio, ratio, attacking, pressing)
            assert sum(advance.values()) + sum(loss.values()) <= 1.0 + 1e-9


def _playing_state(match_state, zone=Zone.ATTACK):
    match_state.apply(PhaseChange(minute=0, second=0, team_id=None, player_id=None, phase=MatchPhase.FIRST_HALF))
    match_state.set_kickoff("HOME")
    match_state.advance_clock(10)
    match_state.resolve_kickoff()
    match_state.zone = zone
    return match_state


def test_at_most_one_play_event_per_tick(generator, match_state):
    state = _playing_state(match_state)
    rng = np.random.default_rng(21)
    for _ in range(300):
        events = generator.generate(state, rng)
        play = [e for e in events if not isinstance(e, CONSEQUENCE_TYPES)]
        assert len(play) <= 1
        if play:
            assert play[0].minute == state.minute and play[0].second == state.second


def test_generator_does_not_mutate_state(generator, match_state):
    state = _playing_state(match_state)
    rng = np.random.default_rng(3)
    for _ in range(100):
        generator.generate(state, rng)

    assert state.events == (state.events[0],)
    assert state.possession == "HOME"
    assert state.zone is Zone.ATTACK
    assert state.stats["HOME"].shots == 0


def test_shots_carry_bounded_xg(generator, match_state):
    state = _playing_state(match_state)
    rng = np.random.default_rng(8)
    shots = []
    for _ in range(500):
        shots.extend(e for e in generator.generate(state, rng) if isinstance(e, (Goal, ShotSaved, ShotOffTarget)))

    assert shots, "Attack zone should produce shots"
    assert all(0.01 <= s.xg <= 0.99 for s in shots)


def test_fouls_only_in_defending_team(generator, match_state):
    state = _playing_state(match_state, Zone.MIDFIELD)
    rng = np.random.default_rng(5)
    for _ in range(500):
        for event in generator.generate(state, rng):
            if isinstance(event, Foul):
                assert event.team_id == "AWAY"
                assert event.fouled_player_id in state.squads["HOME"].on_pitch


def test_generation_in_terminal_phase_is_a_defect(generator, match_state):
    match_state.apply(PhaseChange(minute=0, second=0, team_id=None, player_id=None, phase=MatchPhase.COMPLETED))
    with pytest.raises(InvariantViolation):
        generator.generate(match_state, np.random.default_rng(0))


def test_generation_without_possession_is_a_configuration_error(generator, match_state):
    match_state.apply(PhaseChange(minute=0, second=0, team_id=None, player_id=None, phase=MatchPhase.FIRST_HALF))
    with pytest.raises(ConfigurationError):
        generator.generate(match_state, np.random.default_rng(0))


class TestExpectedGoals:

    def test_goal_share_of_shot_outcomes(self):
        model = ExpectedGoalsModel()
        assert model.expected_goal({"goal": 0.02, "shot_saved": 0.03, "shot_off_target": 0.05}) == pytest.approx(0.2)

    def test_clipped_and_penalty(self):
        model = ExpectedGoalsModel()
        assert model.expected_goal({"goal": 0.0, "shot_saved": 0.1}) == 0.01
        assert model.expected_goal({}) == 0.01
        assert model.expected_goal({}, is_penalty=True) == 0.76

    def test_big_chance_threshold(self):
        model = ExpectedGoalsModel()
        assert model.is_good_shot_opportunity(0.3)
        assert not model.is_good_shot_opportunity(0.05)
