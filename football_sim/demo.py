#!/usr/bin/env python3
"""
⚽ Knockout Match Demo
=====================

Plays one seeded tournament tie from kickoff to (if needed) penalties and
walks through what the engine produced.

Usage:
    python -m football_sim.demo
"""

import os
import sys
import time
from dataclasses import replace
from datetime import datetime

import pandas as pd
import pm4py

from .engine.events import Card, Goal, Injury, PenaltyKick, PhaseChange, Substitution
from .engine.match import MatchResult, MatchSetup, simulate_match
from .engine.team import SubstitutionInstruction
from .errors import SimulationError
from .logger.event_logger import MatchEventLog
from .scripts.run_sim import create_default_teams, print_match_summary

OUTPUT_DIR = "demo_output"
KICKOFF = datetime(2024, 6, 1, 18, 0)


def _timeline(result: MatchResult) -> None:
    """Phase changes and every notable moment, in clock order."""
    for event in result.events:
        clock = f"{event.minute:3d}:{event.second:02d}"
        if isinstance(event, PhaseChange):
            print(f"  {clock}  -- {event.phase.value.replace('_', ' ')} --")
        elif isinstance(event, Goal):
            assist = f" (assist {event.assist_player_id})" if event.assist_player_id else ""
            print(f"  {clock}  ⚽ {event.player_id}{assist}  xG {event.xg:.2f}")
        elif isinstance(event, Card):
            icon = "🟥" if event.is_sending_off else "🟨"
            print(f"  {clock}  {icon} {event.player_id}")
        elif isinstance(event, Injury):
            print(f"  {clock}  🚑 {event.player_id} ({event.record.injury_type.value}, "
                  f"{event.record.estimated_min_days}-{event.record.estimated_max_days} days)")
        elif isinstance(event, Substitution):
            print(f"  {clock}  🔁 {event.player_in_id} on for {event.player_id} ({event.reason})")
        elif isinstance(event, PenaltyKick):
            print(f"  {clock}  🥅 round {event.round}: {event.player_id} {'scores' if event.scored else 'misses'}")


def main():
    """Simulate the demo tie, print its story and export the logs."""
    print("⚽ Knockout match demo")
    os.makedirs(OUTPUT_DIR, exist_ok=True)

    try:
        home, away = create_default_teams(seed=12345)
        # Fresh legs up front just after the hour
        home = replace(home, substitutions=(
            SubstitutionInstruction(62, home.lineup[9].player_id, home.bench[-1].player_id),
        ))

        started = time.perf_counter()
        result = simulate_match(MatchSetup(
            match_id="demo_final",
            home=home,
            away=away,
            match_type="tournament",
            seed=12345,
            kickoff_at=KICKOFF,
        ))
        print(f"Simulated in {time.perf_counter() - started:.2f}s")
    except SimulationError as e:
        print(f"❌ Demo failed: {e}")
        return False

    event_log = MatchEventLog(result, match_start_time=KICKOFF)
    summary = result.summary()
    summary["event_log_stats"] = event_log.get_summary_stats()
    print_match_summary(summary)

    print("\nTimeline:")
    _timeline(result)

    csv_file = event_log.export_to_csv(os.path.join(OUTPUT_DIR, f"{result.match_id}.csv"))
    xes_file = event_log.export_to_xes(os.path.join(OUTPUT_DIR, f"{result.match_id}.xes"))
    print(f"\n📁 Logs: {csv_file}, {xes_file}")

    df = pd.read_csv(csv_file)
    by_phase = df.groupby('phase')['activity'].value_counts().unstack(fill_value=0)
    print("\nActivities per phase:")
    print(by_phase.to_string())

    chains = df.dropna(subset=['possession_chain_id']).groupby('possession_chain_id')
    chain_lengths = chains.size()
    print(f"\nPossession chains: {len(chain_lengths)}, "
          f"mean length {chain_lengths.mean():.1f}, longest {chain_lengths.max()}")

    pm_log = pm4py.read_xes(xes_file)
    print(f"PM4Py read back {len(pm_log)} events "
          f"over {pm_log['concept:name'].nunique()} activities")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
