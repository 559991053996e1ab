"""
Tests for conserved-quantity diagnostics.

Validates:
1. Closed-form values for small configurations
2. Energy behaviour of the integrator over several orbits
"""

import numpy as np
import pytest

from gravwell.diagnostics import (
    center_of_mass,
    kinetic_energy,
    potential_energy,
    summarize,
    total_energy,
    total_mass,
    total_momentum,
)
from gravwell.params import SimParams
from gravwell.presets import add_central_body, add_orbiting_body


class TestClosedForm:
    """Tests against hand-computed values."""

    def test_mass_momentum_com(self, sim):
        sim.add_body(1.0, [0, 0, 0], [2.0, 0, 0])
        sim.add_body(3.0, [4.0, 0, 0], [0, 0, 1.0])
        snap = sim.snapshot()
        assert total_mass(snap) == 4.0
        assert np.allclose(total_momentum(snap), [2.0, 0, 3.0])
        assert np.allclose(center_of_mass(snap), [3.0, 0, 0])

    def test_kinetic_energy(self, sim):
        sim.add_body(2.0, [0, 0, 0], [3.0, 4.0, 0])
        assert kinetic_energy(sim.snapshot()) == pytest.approx(25.0)

    def test_softened_potential_energy(self, sim):
        sim.add_body(2.0, [0, 0, 0], [0, 0, 0])
        sim.add_body(5.0, [3.0, 0, 0], [0, 0, 0])
        params = sim.params
        expected = -params.G * 10.0 / np.sqrt(9.0 + params.softening2)
        assert potential_energy(sim.snapshot(), params) == pytest.approx(expected)

    def test_empty_and_single(self, sim):
        assert total_mass([]) == 0.0
        assert np.array_equal(center_of_mass([]), np.zeros(3))
        sim.add_body(2.0, [0, 0, 0], [1.0, 0, 0])
        assert potential_energy(sim.snapshot(), SimParams()) == 0.0
        assert total_energy(sim.snapshot(), SimParams()) == pytest.approx(1.0)

    def test_summarize(self, sim):
        sim.add_body(2.0, [0, 0, 0], [1.0, 0, 0])
        sim.add_body(2.0, [10.0, 0, 0], [-1.0, 0, 0])
        s = summarize(sim.snapshot(), sim.params)
        assert s['n_bodies'] == 2
        assert s['total_mass'] == 4.0
        assert np.allclose(s['total_momentum'], 0.0)
        assert s['total_energy'] == pytest.approx(s['kinetic_energy'] + s['potential_energy'])


class TestEnergyBehaviour:
    """Leapfrog keeps energy bounded on a clean orbit."""

    def test_energy_bounded(self, sim):
        add_central_body(sim, 300.0)
        add_orbiting_body(sim, 1.0, 25.0, 0.0, central_mass=300.0)
        E0 = total_energy(sim.snapshot(), sim.params)

        worst = 0.0
        for _ in range(3 * 430):
            sim.advance(1.0 / 60.0)
            E = total_energy(sim.snapshot(), sim.params)
            worst = max(worst, abs(E - E0) / abs(E0))

        assert worst < 1e-3
