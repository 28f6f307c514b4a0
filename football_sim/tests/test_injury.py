"""
Test injury generation.
"""

from dataclasses import replace
from datetime import datetime, timedelta

import numpy as np
import pytest

from football_sim.engine.config import ENGINE_CONFIG
from football_sim.engine.events import Injury, Substitution
from football_sim.engine.injury import (
    InjuryGenerator, InjuryRecord, InjuryTrigger, InjuryType,
)
from football_sim.engine.player import Player, PlayerRole
from football_sim.engine.stamina import StaminaModel
from football_sim.engine.team import SquadState
from football_sim.errors import ConfigurationError


def _player(age: int = 25, role: PlayerRole = PlayerRole.STRIKER) -> Player:
    return Player.generate("P1", "Player 1", role, np.random.default_rng(0), age=age)


def _records(n: int = 3000, seed: int = 11):
    generator = InjuryGenerator()
    rng = np.random.default_rng(seed)
    player = _player()
    triggers = list(InjuryTrigger)
    return [generator.create_record(player, triggers[i % 3], 600, rng) for i in range(n)]


def test_recovery_window_never_inverted():
    for record in _records():
        assert record.estimated_min_days <= record.estimated_max_days
        assert record.estimated_min_days >= 1


def test_severity_orders_injury_value():
    records = _records()
    by_severity = {s: [r.injury_value for r in records if r.severity == s] for s in (1, 2, 3)}

    assert all(by_severity[s] for s in (1, 2, 3)), "Every severity should occur in a large sample"
    assert np.mean(by_severity[3]) > np.mean(by_severity[2]) > np.mean(by_severity[1])


def test_higher_severity_is_rarer():
    records = _records()
    counts = [sum(1 for r in records if r.severity == s) for s in (1, 2, 3)]
    assert counts[0] > counts[1] > counts[2]


def test_recovery_range_from_value():
    generator = InjuryGenerator()
    assert generator.recovery_range(20) == (2, 8)
    low = generator.recovery_range(30)
    high = generator.recovery_range(150)
    assert high[0] >= low[0] and high[1] > low[1]


def test_sprint_injuries_are_never_head_injuries():
    generator = InjuryGenerator()
    rng = np.random.default_rng(2)
    types = {generator.choose_type(InjuryTrigger.SPRINT, rng) for _ in range(500)}
    assert InjuryType.HEAD not in types
    assert InjuryType.MUSCLE in types


class TestInjuryChance:

    def test_fatigue_increases_risk(self):
        generator = InjuryGenerator()
        player = _player()
        fresh = generator.injury_chance(InjuryTrigger.TACKLE, player, 1.0, is_home=False)
        tired = generator.injury_chance(InjuryTrigger.TACKLE, player, 0.5, is_home=False)

        assert fresh == pytest.approx(ENGINE_CONFIG.injury.trigger_chances["tackle"])
        assert tired == pytest.approx(2 * fresh)

    def test_age_increases_risk(self):
        generator = InjuryGenerator()
        young = generator.injury_chance(InjuryTrigger.COLLISION, _player(age=21), 1.0, False)
        veteran = generator.injury_chance(InjuryTrigger.COLLISION, _player(age=35), 1.0, False)
        assert veteran > young

    def test_home_side_slightly_safer(self):
        generator = InjuryGenerator()
        player = _player()
        home = generator.injury_chance(InjuryTrigger.SPRINT, player, 1.0, is_home=True)
        away = generator.injury_chance(InjuryTrigger.SPRINT, player, 1.0, is_home=False)
        assert home < away


def test_record_rejects_inverted_window():
    with pytest.raises(ConfigurationError):
        InjuryRecord(
            player_id="P1", match_id=None, injury_type=InjuryType.JOINT, severity=2,
            injury_value=60, estimated_min_days=10, estimated_max_days=5,
            occurred_minute=12, trigger=InjuryTrigger.TACKLE,
        )


def test_record_marked_recovered_externally():
    record = _records(n=1)[0]
    assert not record.is_recovered

    record.mark_recovered(datetime(2024, 1, 10))
    assert record.is_recovered
    assert record.to_dict()["recovered_at"] == datetime(2024, 1, 10)


def test_occurred_at_follows_kickoff():
    kickoff = datetime(2024, 3, 2, 15, 0)
    generator = InjuryGenerator(match_id="M1", kickoff_at=kickoff)
    record = generator.create_record(_player(), InjuryTrigger.TACKLE, 1810, np.random.default_rng(4))

    assert record.match_id == "M1"
    assert record.occurred_minute == 30
    assert record.occurred_at == kickoff + timedelta(seconds=1810)


def test_certain_injury_brings_on_replacement(tactics_pair):
    home, _ = tactics_pair
    config = replace(ENGINE_CONFIG.injury, trigger_chances={"tackle": 1.0, "collision": 1.0, "sprint": 1.0})
    generator = InjuryGenerator(config, match_id="M1")
    squad = SquadState(home, StaminaModel())
    striker = next(p for p in home.lineup if p.role is PlayerRole.STRIKER)

    events = generator.maybe_injure(InjuryTrigger.TACKLE, striker, squad, True, 600, np.random.default_rng(0))

    assert isinstance(events[0], Injury)
    assert events[0].player_id == striker.player_id
    assert events[0].treatment_seconds in ENGINE_CONFIG.injury.treatment_seconds
    assert isinstance(events[1], Substitution)
    assert events[1].reason == "injury"
    assert squad.players[events[1].player_in_id].role is PlayerRole.STRIKER


def test_zero_chance_never_injures(tactics_pair):
    home, _ = tactics_pair
    config = replace(ENGINE_CONFIG.injury, trigger_chances={"tackle": 0.0, "collision": 0.0, "sprint": 0.0})
    generator = InjuryGenerator(config)
    squad = SquadState(home, StaminaModel())
    rng = np.random.default_rng(0)

    for player in home.lineup:
        assert generator.maybe_injure(InjuryTrigger.COLLISION, player, squad, False, 60, rng) == []
