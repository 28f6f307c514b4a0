"""
Exception taxonomy for the match simulation engine.

Configuration problems are raised before the first tick; invariant
violations halt a running simulation. Neither is retried by the engine.
"""


class SimulationError(Exception):
    """Base class for every error raised by the simulation engine."""


class ConfigurationError(SimulationError, ValueError):
    """Invalid or missing input detected while setting up a match."""


class InvariantViolation(SimulationError, RuntimeError):
    """Internal logic defect detected while a match is being simulated."""


class SimulationCancelled(SimulationError):
    """The caller asked for the running simulation to stop."""

    def __init__(self, match_id: str, minute: int):
        super().__init__(f"Simulation of match {match_id} cancelled at minute {minute}")
        self.match_id = match_id
        self.minute = minute
