"""
Expected Goals (xG) calculation for football simulation.

In the zone model a shot's quality is the share of goals among the shot
outcomes that were possible at the moment it was taken.
"""

import numpy as np
from typing import Dict


class ExpectedGoalsModel:
    """
    xG from the shot outcome probabilities of the current attack.

    The probabilities already carry the shooter vs goalkeeper skill ratio
    and tactical scaling, so the goal share is a direct chance estimate.
    """

    SHOT_OUTCOMES = ("goal", "shot_saved", "shot_off_target")
    PENALTY_XG = 0.76  # Historical penalty conversion rate

    def __init__(self, min_xg: float = 0.01, max_xg: float = 0.99):
        self.min_xg = min_xg
        self.max_xg = max_xg

    def expected_goal(self, outcomes: Dict[str, float], is_penalty: bool = False) -> float:
        """
        Calculate expected goal probability for a shot.

        Args:
            outcomes: Outcome probabilities of the attack zone this tick
            is_penalty: Whether this is a penalty kick

        Returns:
            float: xG value between min_xg and max_xg
        """
        if is_penalty:
            return self.PENALTY_XG

        total = sum(outcomes.get(name, 0.0) for name in self.SHOT_OUTCOMES)
        if total <= 0:
            return self.min_xg
        xg = outcomes.get("goal", 0.0) / total
        return float(np.clip(xg, self.min_xg, self.max_xg))

    def is_good_shot_opportunity(self, xg_value: float) -> bool:
        """
        Determine if a shot represents a good scoring opportunity.

        Args:
            xg_value: Expected goal value

        Returns:
            bool: True if xG > 0.1 (reasonable chance)
        """
        return xg_value > 0.1
