"""
Test stamina, experience and status curves.
"""

import math

import numpy as np
import pytest

from football_sim.engine.modifiers import effective_skill, experience_bonus, status_factor
from football_sim.engine.player import Player, PlayerAttributes, PlayerRole
from football_sim.engine.stamina import StaminaModel
from football_sim.errors import ConfigurationError


@pytest.fixture
def model():
    return StaminaModel()


class TestStamina:

    @pytest.mark.parametrize("stamina", [1.0, 2.5, 3.0, 4.2, 5.0])
    def test_performance_non_increasing_within_half(self, model, stamina):
        """Performance factor never rises as minutes played increase."""
        factors = [model.performance_factor(model.energy_after(stamina, m)) for m in range(0, 121)]
        assert all(a >= b for a, b in zip(factors, factors[1:]))
        assert all(0.5 <= f <= 1.0 for f in factors)

    def test_full_effectiveness_above_threshold(self, model):
        assert model.performance_factor(100.0) == 1.0
        assert model.performance_factor(30.0) == 1.0
        assert model.performance_factor(29.0) < 1.0

    def test_floor_at_zero_energy(self, model):
        assert model.performance_factor(0.0) == pytest.approx(0.5)
        assert model.performance_factor(-5.0) == pytest.approx(0.5)

    def test_higher_stamina_degrades_later(self, model):
        assert model.safe_minutes(5.0) > model.safe_minutes(3.0) > model.safe_minutes(1.0)
        for minutes in (30, 60, 90):
            assert model.energy_after(5.0, minutes) >= model.energy_after(1.0, minutes)

    def test_recovery_capped_at_capacity(self, model):
        tired = model.energy_after(1.0, 45)
        recovered = model.recover(tired)

        assert recovered > tired
        assert recovered <= model.capacity
        assert model.recover(95.0) == model.capacity

    def test_energy_never_negative(self, model):
        assert model.energy_after(1.0, 500) == 0.0

    def test_current_performance_factor_for_player(self, model):
        rng = np.random.default_rng(1)
        player = Player.generate("P1", "Player 1", PlayerRole.CENTRE_MIDFIELDER, rng)

        assert model.current_performance_factor(player, 0) == 1.0
        assert model.current_performance_factor(player, 200) == pytest.approx(0.5)

    def test_non_finite_stamina_rejected(self, model):
        with pytest.raises(ConfigurationError):
            model.safe_minutes(float("nan"))


class TestExperienceBonus:

    def test_reference_points(self):
        assert experience_bonus(1) == pytest.approx(0.04, abs=0.002)
        assert experience_bonus(10) == pytest.approx(0.148, abs=0.003)
        assert experience_bonus(20) == pytest.approx(0.22, abs=0.005)

    def test_non_decreasing_and_concave(self):
        values = [experience_bonus(x) for x in np.linspace(0, 30, 61)]
        assert all(a <= b for a, b in zip(values, values[1:]))
        # Each extra 10 experience adds less than the previous 10
        assert experience_bonus(20) - experience_bonus(10) < experience_bonus(10) - experience_bonus(0)

    def test_clamped_outside_domain(self):
        assert experience_bonus(-4) == 0.0
        assert experience_bonus(1000) == experience_bonus(20)

    def test_rejects_non_numeric(self):
        with pytest.raises(ConfigurationError):
            experience_bonus(math.inf)


class TestStatusFactor:

    def test_endpoints_exact(self):
        assert status_factor(1) == 0.5
        assert status_factor(5) == 1.0

    def test_monotonic(self):
        values = [status_factor(s) for s in np.linspace(1, 5, 41)]
        assert all(a <= b for a, b in zip(values, values[1:]))

    def test_above_linear_midpoint(self):
        """Average status lands closer to the ceiling than a linear map."""
        assert status_factor(3) > 0.75

    def test_clamped_outside_domain(self):
        assert status_factor(0) == 0.5
        assert status_factor(9) == 1.0

    def test_rejects_nan(self):
        with pytest.raises(ConfigurationError):
            status_factor(float("nan"))


def test_effective_skill_combines_all_modifiers():
    skill = effective_skill(80.0, 0.9, 10, 5)
    assert skill == pytest.approx(80.0 * 0.9 * (1 + experience_bonus(10)) * 1.0)


def test_attributes_validated():
    with pytest.raises(ConfigurationError):
        PlayerAttributes(pace=120, passing=50, shooting=50, defending=50, physicality=50)
