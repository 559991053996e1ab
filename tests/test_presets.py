"""Tests for procedural scene builders."""

import numpy as np
import pytest

from gravwell.presets import (
    CENTRAL_MASS,
    SOLAR_PLANETS,
    add_central_body,
    add_orbiting_body,
    add_random_body,
    load_solar_preset,
)
from gravwell.simulation import Simulation


class TestSolarPreset:
    """Tests for the sun-plus-eight-planets scene."""

    def test_bodies(self, sim):
        ids = load_solar_preset(sim, np.random.default_rng(1))
        assert len(ids) == 9
        snap = sim.snapshot()
        assert [s.name for s in snap] == ['Sun'] + [p[0] for p in SOLAR_PLANETS]
        assert snap[0].mass == CENTRAL_MASS
        assert np.array_equal(snap[0].position, [0, 0, 0])

    def test_circular_speeds(self, sim):
        """Each planet sits at its distance with speed sqrt(G M / d) in the x-z plane."""
        load_solar_preset(sim, np.random.default_rng(2))
        G = sim.params.G
        for (name, mass, distance, color, height), body in zip(SOLAR_PLANETS, sim.snapshot()[1:]):
            assert body.mass == mass
            assert body.color == color
            assert np.hypot(body.position[0], body.position[2]) == pytest.approx(distance)
            assert body.position[1] == pytest.approx(height)
            assert body.speed == pytest.approx(np.sqrt(G * CENTRAL_MASS / distance))

    def test_replaces_scene(self, sim):
        sim.add_body(1.0, [500, 0, 0], [0, 0, 0], name='Stray')
        load_solar_preset(sim, np.random.default_rng(3))
        assert sim.body_count == 9
        assert 'Stray' not in [s.name for s in sim.snapshot()]

    def test_seeded(self, sim):
        other = Simulation()
        load_solar_preset(sim, np.random.default_rng(42))
        load_solar_preset(other, np.random.default_rng(42))
        for a, b in zip(sim.snapshot(), other.snapshot()):
            assert np.array_equal(a.position, b.position)

    def test_stays_bound_briefly(self, sim):
        """A few seconds of the preset keep every planet in the system."""
        load_solar_preset(sim, np.random.default_rng(4))
        for _ in range(120):
            sim.advance(1.0 / 60.0)
        for body in sim.snapshot()[1:]:
            assert np.linalg.norm(body.position) < 120.0


class TestBuilders:
    """Tests for single-body helpers."""

    def test_central_body(self, sim):
        sun = add_central_body(sim)
        body = sim.get_body(sun)
        assert body.mass == 300.0
        assert body.name == 'Sun'
        assert body.speed == 0.0

    def test_orbiting_body_tangential(self, sim):
        i = add_orbiting_body(sim, 2.0, 20.0, np.pi / 3, central_mass=300.0)
        body = sim.get_body(i)
        assert np.dot(body.position, body.velocity) == pytest.approx(0.0, abs=1e-9)
        assert body.speed == pytest.approx(np.sqrt(40.0 * 300.0 / 20.0))

    def test_random_body_on_ring(self, sim):
        rng = np.random.default_rng(9)
        for _ in range(20):
            i = add_random_body(sim, 1.0, rng)
            body = sim.get_body(i)
            ring = np.hypot(body.position[0], body.position[2])
            assert 10.0 <= ring <= 35.0
            assert -5.0 <= body.position[1] <= 5.0
        assert sim.body_count == 20
