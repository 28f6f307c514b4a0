"""
Football simulation engine components.

This module contains the core simulation engine including:
- Match duration and time structure
- Stamina, experience and status curves
- Player and team snapshots
- Zone-based event generation and injuries
- Main match simulation engine
"""

from .duration import MatchDuration, MatchType, calculate_match_duration, random_injury_time
from .events import EventType, MatchEvent, MatchPhase
from .injury import InjuryGenerator, InjuryRecord, InjuryType
from .match import MatchEngine, MatchResult, MatchSetup, run_matches, simulate_match
from .match_state import MatchState, TeamMatchStats
from .modifiers import effective_skill, experience_bonus, status_factor
from .pitch import PitchZones, Zone
from .player import Player, PlayerAttributes, PlayerRole
from .stamina import StaminaModel
from .team import SubstitutionInstruction, TeamInstructions, TeamTactics, create_default_tactics
from .xg import ExpectedGoalsModel

__all__ = [
    'MatchDuration', 'MatchType', 'calculate_match_duration', 'random_injury_time',
    'EventType', 'MatchEvent', 'MatchPhase',
    'InjuryGenerator', 'InjuryRecord', 'InjuryType',
    'MatchEngine', 'MatchResult', 'MatchSetup', 'run_matches', 'simulate_match',
    'MatchState', 'TeamMatchStats',
    'effective_skill', 'experience_bonus', 'status_factor',
    'PitchZones', 'Zone',
    'Player', 'PlayerAttributes', 'PlayerRole',
    'StaminaModel',
    'SubstitutionInstruction', 'TeamInstructions', 'TeamTactics', 'create_default_tactics',
    'ExpectedGoalsModel',
]
