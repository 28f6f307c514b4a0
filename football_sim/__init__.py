"""
Football Match Simulation Package

A zone-based, seeded football match simulator with process mining exports.
"""

__version__ = "1.0.0"
__author__ = "Football Sim Team"

from .engine.match import MatchEngine, MatchSetup, run_matches, simulate_match
from .scripts.run_sim import simulate_matches

__all__ = ["MatchEngine", "MatchSetup", "run_matches", "simulate_match", "simulate_matches"]
