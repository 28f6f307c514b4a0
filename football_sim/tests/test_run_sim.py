"""
Test the batch simulation script.
"""

import os
from datetime import timedelta

import pytest

from football_sim.engine.duration import MatchType
from football_sim.scripts.run_sim import FIRST_KICKOFF, build_setups, main, simulate_matches


def test_setups_use_consecutive_seeds():
    setups = build_setups(3, random_seed=10, match_type="cup")

    assert [s.seed for s in setups] == [10, 11, 12]
    assert [s.match_id for s in setups] == ["match_0001", "match_0002", "match_0003"]
    assert all(s.match_type is MatchType.CUP for s in setups)
    assert [s.kickoff_at for s in setups] == [FIRST_KICKOFF + timedelta(weeks=n) for n in range(3)]


def test_batch_exports_logs(tmp_path):
    results = simulate_matches(n_matches=2, random_seed=42, out_dir=str(tmp_path), verbose=False)

    assert len(results) == 2
    for summary in results:
        assert os.path.exists(summary["log_files"]["csv"])
        assert os.path.exists(summary["log_files"]["xes"])
        assert summary["event_log_stats"]["total_events"] > 0


def test_batch_is_reproducible():
    first = simulate_matches(n_matches=2, random_seed=5, out_dir=None, verbose=False)
    second = simulate_matches(n_matches=2, random_seed=5, out_dir=None, verbose=False, max_workers=2)
    assert [r["final_score"] for r in first] == [r["final_score"] for r in second]


def test_exported_logs_are_identical_across_runs(tmp_path):
    first = simulate_matches(n_matches=1, random_seed=8, out_dir=str(tmp_path / "a"), verbose=False)
    second = simulate_matches(n_matches=1, random_seed=8, out_dir=str(tmp_path / "b"), verbose=False)

    with open(first[0]["log_files"]["csv"], "rb") as a, open(second[0]["log_files"]["csv"], "rb") as b:
        assert a.read() == b.read()


def test_cli_runs(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", [
        "football-sim", "--matches", "1", "--seed", "3", "--quiet",
        "--output-dir", str(tmp_path),
    ])
    main()
    assert "Simulation completed successfully" in capsys.readouterr().out
    assert (tmp_path / "match_0001.csv").exists()


def test_cli_rejects_unknown_match_type(monkeypatch):
    monkeypatch.setattr("sys.argv", ["football-sim", "--match-type", "exhibition"])
    with pytest.raises(SystemExit):
        main()
