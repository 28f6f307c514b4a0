"""
Test role rules and constraints compliance.

Validates that player roles decide who acts in each zone during simulation.
"""

from collections import Counter

import pandas as pd
import pytest

from football_sim.engine.events import SHOT_EVENTS, Card, Injury, ShotSaved
from football_sim.logger.event_logger import SHOT_ACTIVITIES


@pytest.fixture(scope="module")
def all_events(league_results, player_roles) -> pd.DataFrame:
    """Event tables of every league match, with the acting player's role."""
    frames = []
    for result in league_results:
        rows = [dict(e.to_dict(), match_id=result.match_id) for e in result.events]
        frames.append(pd.DataFrame(rows))
    df = pd.concat(frames, ignore_index=True)
    df['player_role'] = df['player_id'].map(player_roles)
    return df


def test_core_roles_act(all_events):
    """Test that every core role shows up in the event log."""
    actual_roles = set(all_events['player_role'].dropna().unique())

    core_roles = {'GK', 'CB', 'FB', 'CM', 'ST'}
    missing_core = core_roles - actual_roles

    assert len(missing_core) == 0, f"Missing core player roles: {missing_core}"


def test_goalkeeper_never_shoots(all_events):
    """Goalkeepers carry the ball only in their own third."""
    gk_events = all_events[all_events['player_role'] == 'GK']
    gk_shots = gk_events[gk_events['type'].isin(SHOT_ACTIVITIES)]

    assert len(gk_shots) == 0, f"Goalkeeper took {len(gk_shots)} shots"


def test_strikers_take_most_shots(all_events):
    """Test striker-specific shooting share."""
    shots = all_events[all_events['type'].isin(SHOT_ACTIVITIES)]
    by_role = Counter(shots['player_role'])

    assert by_role['ST'] > by_role['CB'], f"Centre-backs outshot strikers: {dict(by_role)}"
    assert by_role['ST'] > by_role['FB'], f"Full-backs outshot strikers: {dict(by_role)}"


def test_saves_credited_to_defending_keeper(league_results, player_roles):
    """A saved shot names the opponent's player in goal."""
    for result in league_results:
        keepers_lost = Counter()
        for event in result.events:
            if isinstance(event, (Injury, Card)) and player_roles[event.player_id] == 'GK':
                if isinstance(event, Injury) or event.is_sending_off:
                    keepers_lost[event.team_id] += 1
            if isinstance(event, ShotSaved):
                defending = result.away_team_id if event.team_id == result.home_team_id else result.home_team_id
                assert event.keeper_id.startswith(defending)
                # Outfield players only go in goal once no keeper is left
                if player_roles[event.keeper_id] != 'GK':
                    assert keepers_lost[defending] > 0


def test_team_role_distribution(all_events):
    """Test that each team has appropriate role distribution."""
    for team_id in all_events['team_id'].dropna().unique():
        team_events = all_events[all_events['team_id'] == team_id]
        team_roles = team_events['player_role'].value_counts()

        # Each team should have a goalkeeper
        assert 'GK' in team_roles.index, f"Team {team_id} has no goalkeeper events"

        # Should have multiple outfield roles
        outfield_roles = team_roles.drop('GK', errors='ignore')
        assert len(outfield_roles) >= 4, f"Team {team_id} has only {len(outfield_roles)} outfield roles"


def test_possession_role_consistency(sample_log):
    """Test that possession events are consistent with the possession chain."""
    df = sample_log.to_dataframe()

    possession_actions = ['pass', 'corner', 'offside'] + SHOT_ACTIVITIES
    possession_events = df[df['activity'].isin(possession_actions)]
    mismatched_possession = possession_events[
        possession_events['team_id'] != possession_events['possession_team']
    ]

    assert len(mismatched_possession) == 0, f"{len(mismatched_possession)} possession mismatches found"


def test_fouls_committed_against_possession(sample_log):
    df = sample_log.to_dataframe()
    fouls = df[df['activity'] == 'foul']
    assert (fouls['team_id'] != fouls['possession_team']).all()


def test_shot_events_carry_xg(league_results):
    for result in league_results:
        for event in result.events:
            if isinstance(event, SHOT_EVENTS):
                assert 0.0 < event.xg < 1.0
