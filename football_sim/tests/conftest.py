"""
Shared fixtures: seeded squads, match setups and simulated matches.
"""

from dataclasses import replace
from datetime import datetime
from typing import Dict, List

import numpy as np
import pandas as pd
import pytest

from football_sim.engine.config import ENGINE_CONFIG, EngineConfig
from football_sim.engine.duration import MatchDuration, MatchType
from football_sim.engine.match import MatchResult, MatchSetup, run_matches
from football_sim.engine.match_state import MatchState
from football_sim.engine.stamina import StaminaModel
from football_sim.engine.team import TeamTactics, create_default_tactics
from football_sim.logger.event_logger import MatchEventLog


def make_tactics(seed: int = 7):
    rng = np.random.default_rng(seed)
    home = create_default_tactics("HOME", "Home United", rng)
    away = create_default_tactics("AWAY", "Away City", rng, formation="4-3-3")
    return home, away


def make_setup(home: TeamTactics, away: TeamTactics, seed: int,
               match_type: MatchType = MatchType.LEAGUE, **kwargs) -> MatchSetup:
    return MatchSetup(match_id=f"match_{seed}", home=home, away=away,
                      match_type=match_type, seed=seed, **kwargs)


def quiet_config(config: EngineConfig = ENGINE_CONFIG) -> EngineConfig:
    """No cards and no injuries: squads stay intact for the whole match."""
    return replace(
        config,
        discipline=replace(config.discipline, yellow_card_chance=0.0, straight_red_chance=0.0),
        injury=replace(config.injury, trigger_chances={"tackle": 0.0, "collision": 0.0, "sprint": 0.0}),
    )


@pytest.fixture
def tactics_pair():
    return make_tactics()


@pytest.fixture
def match_state(tactics_pair):
    """Fresh state for a 45+1 / 45+1 match."""
    home, away = tactics_pair
    duration = MatchDuration(
        first_half_minutes=45,
        second_half_minutes=45,
        half_time_break_minutes=15,
        first_half_injury_time=1,
        second_half_injury_time=1,
    )
    return MatchState("state_test", home, away, duration, StaminaModel())


@pytest.fixture(scope="session")
def league_results() -> List[MatchResult]:
    """A batch of seeded league matches shared by the property tests."""
    home, away = make_tactics()
    setups = [make_setup(home, away, seed) for seed in range(12)]
    return run_matches(setups)


@pytest.fixture(scope="session")
def sample_log(league_results) -> MatchEventLog:
    return MatchEventLog(league_results[0], match_start_time=datetime(2024, 8, 17, 15, 0))


@pytest.fixture(scope="session")
def exported_csv(sample_log, tmp_path_factory) -> pd.DataFrame:
    """The sample log written to CSV and read back, as downstream tools see it."""
    path = tmp_path_factory.mktemp("logs") / f"{sample_log.match_id}.csv"
    sample_log.export_to_csv(str(path))
    return pd.read_csv(path)


@pytest.fixture(scope="session")
def player_roles() -> Dict[str, str]:
    """Role code for every player of both default squads."""
    roles = {}
    for tactics in make_tactics():
        for player in tactics.lineup + tactics.bench:
            roles[player.player_id] = player.role.value
    return roles
