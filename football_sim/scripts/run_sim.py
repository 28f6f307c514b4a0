"""
Batch runner for seeded football matches.

Builds default squads, simulates a batch (optionally in parallel), exports
every match log and prints per-match and batch reports.
"""

import argparse
import logging
import os
import sys
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..engine.duration import MatchType
from ..engine.match import MatchResult, MatchSetup, run_matches
from ..engine.team import TeamInstructions, TeamTactics, create_default_tactics
from ..errors import SimulationError
from ..logger.event_logger import MatchEventLog

_log = logging.getLogger("football_sim.run_sim")

FIRST_KICKOFF = datetime(2024, 8, 17, 15, 0)


def create_default_teams(seed: Optional[int] = None) -> Tuple[TeamTactics, TeamTactics]:
    """Home plays a pressing 4-4-2, away a compact 4-3-3 on the break."""
    rng = np.random.default_rng(seed)

    home_team = create_default_tactics(
        "HOME", "Home United", rng, formation="4-4-2",
        instructions=TeamInstructions(pressing_intensity=0.6, possession_style="balanced",
                                      transition_speed="medium"),
    )
    away_team = create_default_tactics(
        "AWAY", "Away City", rng, formation="4-3-3",
        instructions=TeamInstructions(pressing_intensity=0.5, possession_style="defensive",
                                      transition_speed="fast"),
    )
    return home_team, away_team


def build_setups(n_matches: int,
                 random_seed: Optional[int] = None,
                 match_type: str = "league") -> List[MatchSetup]:
    """One setup per match; seeds count up from ``random_seed``, one fixture a week."""
    home_team, away_team = create_default_teams(random_seed)
    parsed_type = MatchType.parse(match_type)
    return [
        MatchSetup(
            match_id=f"match_{n:04d}",
            home=home_team,
            away=away_team,
            match_type=parsed_type,
            seed=None if random_seed is None else random_seed + n - 1,
            kickoff_at=FIRST_KICKOFF + timedelta(weeks=n - 1),
        )
        for n in range(1, n_matches + 1)
    ]


def export_logs(result: MatchResult, out_dir: str) -> Dict[str, str]:
    """
    Write the CSV and XES logs of one match.

    Returns:
        Dict with the csv and xes paths
    """
    os.makedirs(out_dir, exist_ok=True)
    event_log = MatchEventLog(result)
    base = os.path.join(out_dir, result.match_id)
    return {
        "csv": event_log.export_to_csv(base + ".csv"),
        "xes": event_log.export_to_xes(base + ".xes"),
    }


def simulate_matches(n_matches: int = 1,
                     random_seed: Optional[int] = None,
                     out_dir: Optional[str] = "logs",
                     verbose: bool = True,
                     match_type: str = "league",
                     max_workers: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Simulate a batch of matches between the default teams.

    Args:
        n_matches: Batch size
        random_seed: Seed of the first match; None draws fresh entropy
        out_dir: Where to write event logs (None skips export)
        verbose: Print a report per match and for the batch
        match_type: Competition format for every match
        max_workers: Parallel workers (None runs sequentially)

    Returns:
        List of match summaries, in match order
    """
    setups = build_setups(n_matches, random_seed, match_type)
    _log.info("Simulating %d %s matches (workers: %s)", n_matches, match_type, max_workers or 1)

    started = time.perf_counter()
    match_results = run_matches(setups, max_workers=max_workers)
    elapsed = time.perf_counter() - started

    summaries = []
    for match_result in match_results:
        event_log = MatchEventLog(match_result)
        summary = match_result.summary()
        summary["cards"] = {
            "home": match_result.home_stats.yellow_cards + match_result.home_stats.red_cards,
            "away": match_result.away_stats.yellow_cards + match_result.away_stats.red_cards,
        }
        summary["event_log_stats"] = event_log.get_summary_stats()
        summary["tactical_patterns"] = event_log.analyze_tactical_patterns()
        summary["simulation_time_seconds"] = elapsed / max(1, n_matches)
        if out_dir is not None:
            summary["log_files"] = export_logs(match_result, out_dir)
        summaries.append(summary)

        if verbose:
            print_match_summary(summary)

    if verbose:
        print(f"\n{n_matches} matches simulated in {elapsed:.2f}s "
              f"({elapsed / max(1, n_matches):.3f}s per match)")
        if out_dir is not None:
            print(f"Event logs written to {os.path.abspath(out_dir)}")
        print_batch_summary(summaries)

    return summaries


def print_match_summary(summary: Dict[str, Any]) -> None:
    """Print one match report."""
    home, away = summary['teams']['home'], summary['teams']['away']
    score = summary['final_score']
    print(f"\n[{summary['match_id']}] {home} {score['home']}-{score['away']} {away}"
          f"  ({summary['match_type']}, {summary['elapsed_minutes']} min played)")
    if summary.get('shootout'):
        print(f"  Penalties {summary['shootout']['home']}-{summary['shootout']['away']}, "
              f"winner {summary['winner']}")

    rows = [
        ("Possession %", f"{summary['possession']['home']:.1f}", f"{summary['possession']['away']:.1f}"),
        ("Shots", summary['shots']['home'], summary['shots']['away']),
        ("xG", f"{summary['xg']['home']:.2f}", f"{summary['xg']['away']:.2f}"),
        ("Pass accuracy %", f"{summary['pass_accuracy']['home']:.1f}", f"{summary['pass_accuracy']['away']:.1f}"),
    ]
    if 'cards' in summary:
        rows.append(("Cards", summary['cards']['home'], summary['cards']['away']))
    for label, home_value, away_value in rows:
        print(f"  {label:<16}{home_value:>8}{away_value:>8}")

    if summary['injuries']:
        print(f"  Injuries: {summary['injuries']}")
    stats = summary.get('event_log_stats')
    if stats:
        print(f"  Events: {stats['total_events']} ({stats['events_per_minute']:.2f}/min), "
              f"possession chains: {stats['possession_chains']}")


def _batch_frame(summaries: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame([{
        'home_goals': s['final_score']['home'],
        'away_goals': s['final_score']['away'],
        'home_possession': s['possession']['home'],
        'away_possession': s['possession']['away'],
        'total_xg': s['xg']['home'] + s['xg']['away'],
        'injuries': s['injuries'],
        'events_per_minute': s.get('event_log_stats', {}).get('events_per_minute', np.nan),
        'simulation_time': s.get('simulation_time_seconds', np.nan),
    } for s in summaries])


def print_batch_summary(summaries: List[Dict[str, Any]]) -> None:
    """Print result distribution and averages across a batch."""
    if not summaries:
        return

    df = _batch_frame(summaries)
    outcomes = np.sign(df['home_goals'] - df['away_goals']).map({1: 'home win', 0: 'draw', -1: 'away win'})
    distribution = outcomes.value_counts(normalize=True) * 100

    print("\nResults:")
    for outcome in ('home win', 'draw', 'away win'):
        print(f"  {outcome:<10}{distribution.get(outcome, 0.0):6.1f}%")

    print("Per-match averages:")
    print(f"  goals            {(df['home_goals'] + df['away_goals']).mean():.2f}")
    print(f"  home possession  {df['home_possession'].mean():.1f}%")
    print(f"  total xG         {df['total_xg'].mean():.2f}")
    print(f"  injuries         {df['injuries'].mean():.2f}")


def validate_simulation_output(summaries: List[Dict[str, Any]]) -> bool:
    """
    Run batch quality gates and print a pass/fail line for each.

    Returns:
        bool: True if every gate passed
    """
    if not summaries:
        print("No matches to validate")
        return False

    df = _batch_frame(summaries)
    goals = df['home_goals'] + df['away_goals']
    gates = [
        ("possession adds up to 100%",
         bool(((df['home_possession'] + df['away_possession']) - 100).abs().lt(1e-6).all())),
        ("average goals between 1 and 5", 1.0 <= goals.mean() <= 5.0),
        ("average total xG between 1 and 5", 1.0 <= df['total_xg'].mean() <= 5.0),
        ("between 1 and 4 events per played minute", bool(df['events_per_minute'].between(1.0, 4.0).all())),
        ("under 2 minutes per match", bool(df['simulation_time'].lt(120).all())),
    ]

    print("\nQuality gates:")
    for label, passed in gates:
        print(f"  [{'PASS' if passed else 'FAIL'}] {label}")
    passed_count = sum(passed for _, passed in gates)
    print(f"{passed_count}/{len(gates)} gates passed")
    return passed_count == len(gates)


def main():
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description='Simulate football matches and export event logs')
    parser.add_argument('--matches', type=int, default=1, help='Number of matches to simulate')
    parser.add_argument('--seed', type=int, default=42, help='Seed of the first match')
    parser.add_argument('--output-dir', type=str, default='logs', help='Directory for CSV and XES logs')
    parser.add_argument('--match-type', type=str, default='league',
                        choices=[t.value for t in MatchType], help='Competition format')
    parser.add_argument('--workers', type=int, default=None, help='Simulate matches in parallel')
    parser.add_argument('--log-level', type=str, default='WARNING', help='Library log level')
    parser.add_argument('--quiet', action='store_true', help='Only print the final status')
    parser.add_argument('--validate', action='store_true', help='Fail unless every quality gate passes')

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        summaries = simulate_matches(
            n_matches=args.matches,
            random_seed=args.seed,
            out_dir=args.output_dir,
            verbose=not args.quiet,
            match_type=args.match_type,
            max_workers=args.workers,
        )
    except KeyboardInterrupt:
        print("\nSimulation interrupted")
        sys.exit(1)
    except SimulationError as e:
        _log.error("Simulation failed: %s", e)
        print(f"Simulation failed: {e}")
        sys.exit(1)

    if args.validate and not validate_simulation_output(summaries):
        sys.exit(1)
    print("Simulation completed successfully")


if __name__ == "__main__":
    main()
