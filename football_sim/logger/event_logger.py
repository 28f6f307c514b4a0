"""
Football event logging for process mining analysis.

Turns the event log of a simulated match into a PM4Py-compatible table
with possession chains, exports it to CSV and XES, and recomputes team
statistics from the events alone.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd
import pm4py

from ..engine.events import (
    Card, EventType, Foul, Injury, MatchEvent, MatchPhase, Pass, PenaltyKick,
    PhaseChange, Substitution,
)
from ..engine.match import MatchResult
from ..engine.xg import ExpectedGoalsModel

_log = logging.getLogger("football_sim.event_logger")

# Events that win the ball and open a new possession chain
TURNOVER_ACTIVITIES = {EventType.INTERCEPTION.value, EventType.TACKLE.value}

# Events after which the ball is dead or changes hands
CHAIN_ENDING_ACTIVITIES = {
    EventType.GOAL.value,
    EventType.SHOT_SAVED.value,
    EventType.SHOT_OFF_TARGET.value,
    EventType.OFFSIDE.value,
    EventType.PHASE_CHANGE.value,
}

SHOT_ACTIVITIES = [EventType.GOAL.value, EventType.SHOT_SAVED.value, EventType.SHOT_OFF_TARGET.value]

REQUIRED_COLUMNS = ['timestamp', 'case_id', 'activity', 'minute', 'second', 'sequence_number']

COUNTER_COLUMNS = [
    'shots', 'shots_on_target', 'passes_attempted', 'passes_completed', 'tackles',
    'fouls', 'corners', 'offsides', 'yellow_cards', 'red_cards',
]


def _outcome(event: MatchEvent) -> Optional[str]:
    """Short qualifier used to split an activity (card colour, penalty result...)."""
    if isinstance(event, Card):
        return "second_yellow" if event.second_yellow else event.color.value
    if isinstance(event, PenaltyKick):
        return "scored" if event.scored else "missed"
    if isinstance(event, Substitution):
        return event.reason
    if isinstance(event, Injury):
        return event.record.injury_type.value
    if isinstance(event, Pass):
        return event.to_zone.value
    if isinstance(event, PhaseChange):
        return event.phase.value
    return None


class MatchEventLog:
    """
    Event log of one simulated match.

    Captures every match event in PM4Py-compatible format with possession
    chains. Exports to both CSV and XES formats for process mining analysis.
    """

    def __init__(self, result: MatchResult, match_start_time: Optional[datetime] = None):
        """
        Build the event log for a match.

        Args:
            result: Completed simulation
            match_start_time: Timestamp of the kickoff; defaults to the
                match's own kickoff time, or now when it has none
        """
        self.result = result
        self.match_id = result.match_id
        self.match_start_time = match_start_time or result.kickoff_at or datetime.now()
        self.xg_model = ExpectedGoalsModel()
        self.records: List[Dict[str, Any]] = self._build_records()

    def _possessing_team(self, event: MatchEvent) -> Optional[str]:
        if isinstance(event, Foul):
            # The fouled side keeps the ball
            return self.result.away_team_id if event.team_id == self.result.home_team_id \
                else self.result.home_team_id
        if isinstance(event, (Card, Injury, Substitution, PhaseChange, PenaltyKick)):
            return None
        return event.team_id

    def _build_records(self) -> List[Dict[str, Any]]:
        records = []
        chain_id: Optional[str] = None
        chain_team: Optional[str] = None
        phase = MatchPhase.NOT_STARTED.value

        for sequence_number, event in enumerate(self.result.events):
            activity = event.kind.value
            if isinstance(event, PhaseChange):
                phase = event.phase.value

            # Update possession chain (before creating the record)
            team = self._possessing_team(event)
            if team is not None and (activity in TURNOVER_ACTIVITIES or chain_id is None or team != chain_team):
                chain_id = f"{self.match_id}_{team}_{sequence_number}"
                chain_team = team

            records.append({
                'timestamp': self.match_start_time + timedelta(seconds=event.timestamp_seconds),
                'case_id': self.match_id,
                'activity': activity,
                'match_id': self.match_id,
                'team_id': event.team_id,
                'player_id': event.player_id,
                'related_player_id': event.related_player_id,
                'minute': event.minute,
                'second': event.second,
                'phase': phase,
                'outcome': _outcome(event),
                'xg_value': getattr(event, 'xg', None),
                'possession_team': chain_team if chain_id is not None else None,
                'possession_chain_id': chain_id,
                'sequence_number': sequence_number,
                'details': json.dumps(event.payload(), sort_keys=True, default=str),
            })

            if activity in CHAIN_ENDING_ACTIVITIES:
                chain_id = None
                chain_team = None
        return records

    def to_dataframe(self) -> pd.DataFrame:
        """Event log with the PM4Py case, activity and timestamp columns."""
        df = pd.DataFrame(self.records)
        if df.empty:
            return df
        df['case:concept:name'] = df['case_id']
        df['concept:name'] = df['activity']
        df['time:timestamp'] = pd.to_datetime(df['timestamp'])
        return df

    def export_to_csv(self, filepath: str) -> str:
        """
        Export event log to CSV format.

        Args:
            filepath: Output file path

        Returns:
            str: The path written
        """
        df = self.to_dataframe()
        df.to_csv(filepath, index=False)
        _log.info("Event log for %s exported to %s", self.match_id, filepath)
        self.validate_export(df)
        return filepath

    def export_to_xes(self, filepath: str) -> str:
        """
        Export event log to XES format using PM4Py.

        Args:
            filepath: Output file path (.xes)
        """
        df = self.to_dataframe()
        # XES attributes cannot be None
        df = df.fillna({'team_id': '', 'player_id': '', 'related_player_id': '',
                        'outcome': '', 'possession_team': '', 'possession_chain_id': ''})

        event_log = pm4py.format_dataframe(
            df,
            case_id='case:concept:name',
            activity_key='concept:name',
            timestamp_key='time:timestamp'
        )
        pm4py.write_xes(event_log, filepath)
        _log.info("XES event log for %s exported to %s", self.match_id, filepath)
        return filepath

    def validate_export(self, df: pd.DataFrame) -> Dict[str, Any]:
        """
        Check exported event log quality.

        Returns:
            Dict with missing columns, completeness of required columns and
            whether the timestamps are chronological
        """
        missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing_columns:
            _log.warning("Missing required columns: %s", missing_columns)

        present = [col for col in REQUIRED_COLUMNS if col in df.columns]
        if len(df) and present:
            completeness = float(df[present].notnull().to_numpy().mean() * 100)
        else:
            completeness = 0.0

        chronological = bool(df['timestamp'].is_monotonic_increasing) if 'timestamp' in df.columns else False
        if not chronological:
            _log.warning("Timestamps of %s are not in chronological order", self.match_id)

        _log.debug("Event log completeness for %s: %.1f%%", self.match_id, completeness)
        return {
            'missing_columns': missing_columns,
            'completeness': completeness,
            'chronological': chronological,
        }

    def aggregate_team_stats(self) -> Dict[str, Dict[str, int]]:
        """
        Recompute per-team counters from the event log alone.

        Possession time is not an event and is left out.

        Returns:
            Dict mapping team id to counter name and value
        """
        df = self.to_dataframe()
        teams = [self.result.home_team_id, self.result.away_team_id]
        stats = {team: {name: 0 for name in COUNTER_COLUMNS} for team in teams}
        if df.empty:
            return stats

        counts = df.groupby(['team_id', 'activity']).size()
        card_counts = df[df['activity'] == EventType.CARD.value].groupby(['team_id', 'outcome']).size()

        def count(team: str, activity: str) -> int:
            return int(counts.get((team, activity), 0))

        def cards(team: str, outcome: str) -> int:
            return int(card_counts.get((team, outcome), 0))

        for team, opponent in ((teams[0], teams[1]), (teams[1], teams[0])):
            goals = count(team, EventType.GOAL.value)
            saved = count(team, EventType.SHOT_SAVED.value)
            passes = count(team, EventType.PASS.value)
            second_yellows = cards(team, 'second_yellow')
            stats[team].update({
                'shots': goals + saved + count(team, EventType.SHOT_OFF_TARGET.value),
                'shots_on_target': goals + saved,
                # Intercepted passes were attempted by the other side
                'passes_attempted': passes + count(opponent, EventType.INTERCEPTION.value),
                'passes_completed': passes,
                'tackles': count(team, EventType.TACKLE.value),
                'fouls': count(team, EventType.FOUL.value),
                'corners': count(team, EventType.CORNER.value),
                'offsides': count(team, EventType.OFFSIDE.value),
                'yellow_cards': cards(team, 'yellow') + second_yellows,
                'red_cards': cards(team, 'red') + second_yellows,
            })
        return stats

    def get_summary_stats(self) -> Dict[str, Any]:
        """Get summary statistics for the event log."""
        if not self.records:
            return {}

        df = self.to_dataframe()
        duration_minutes = max(1, self.result.elapsed_minutes)
        chains = df['possession_chain_id'].dropna()

        return {
            'total_events': len(df),
            'unique_activities': df['activity'].nunique(),
            'match_duration_minutes': self.result.elapsed_minutes,
            'events_per_minute': len(df) / duration_minutes,
            'possession_chains': chains.nunique(),
            'avg_chain_length': float(chains.value_counts().mean()) if len(chains) else 0.0,
            'shots_logged': int(df['activity'].isin(SHOT_ACTIVITIES).sum()),
            'passes_logged': int((df['activity'] == EventType.PASS.value).sum()),
            'tackles_logged': int((df['activity'] == EventType.TACKLE.value).sum()),
        }

    def analyze_tactical_patterns(self) -> Dict[str, float]:
        """
        Analyze tactical patterns in the event log.

        Returns:
            Dict with pattern frequencies and metrics, keyed per team side
        """
        df = self.to_dataframe()
        if df.empty:
            return {}

        patterns = {}
        for side, team in (('home', self.result.home_team_id), ('away', self.result.away_team_id)):
            team_chains = df[df['possession_team'] == team]
            chain_ids = team_chains['possession_chain_id'].dropna().unique()
            shot_chains = team_chains[team_chains['activity'].isin(SHOT_ACTIVITIES)]['possession_chain_id'].nunique()
            shots = df[(df['team_id'] == team) & df['activity'].isin(SHOT_ACTIVITIES)]

            if len(chain_ids) > 0:
                patterns[f'{side}_chains_ending_in_shot'] = shot_chains / len(chain_ids)
            if len(shots) > 0:
                patterns[f'{side}_goal_conversion'] = (shots['activity'] == EventType.GOAL.value).mean()
                patterns[f'{side}_big_chance_share'] = float(
                    shots['xg_value'].apply(self.xg_model.is_good_shot_opportunity).mean()
                )
            passes = df[(df['team_id'] == team) & (df['activity'] == EventType.PASS.value)]
            if len(passes) > 0:
                patterns[f'{side}_passes_into_attack'] = (passes['outcome'] == 'Attack').mean()
        return patterns
