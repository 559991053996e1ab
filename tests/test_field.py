"""
Tests for the Field Sampler.

Validates:
1. Regularized potential sum at a point
2. Self-exclusion and the decorative redshift factor
3. Grid sampling on the x-z plane
4. Purity (no mutation of bodies)
"""

import numpy as np
import pytest

from gravwell.bodies import BodyStore
from gravwell.field import potential_at, redshift_estimate, redshift_map, sample_potential_grid
from gravwell.params import InvalidParameter, SimParams


@pytest.fixture
def store():
    s = BodyStore()
    s.add(300.0, [0, 0, 0], [0, 0, 0])
    s.add(6.0, [25.0, 0, 0], [0, 0, 20.0])
    return s


class TestPotentialAt:
    """Tests for the point sampler."""

    def test_single_body(self):
        s = BodyStore()
        s.add(3.0, [0, 0, 0], [0, 0, 0])
        assert potential_at([1.0, 0, 0], s, SimParams(g_base=1.0)) == pytest.approx(1.5)

    def test_sum_over_bodies(self, store):
        params = SimParams()
        point = [0.0, 10.0, 0.0]
        d2 = np.sqrt(25.0**2 + 10.0**2)
        expected = params.G * 300.0 / (10.0 + 1.0) + params.G * 6.0 / (d2 + 1.0)
        assert potential_at(point, store, params) == pytest.approx(expected)

    def test_finite_at_body_position(self, store):
        """The regularizer keeps the value finite on top of a body."""
        params = SimParams()
        phi = potential_at([0, 0, 0], store, params)
        assert np.isfinite(phi)
        assert phi > params.G * 300.0

    def test_decreases_with_distance(self, store):
        params = SimParams()
        values = [potential_at([0, 0, -z], store, params) for z in (5.0, 10.0, 50.0)]
        assert values[0] > values[1] > values[2]

    def test_empty(self):
        assert potential_at([0, 0, 0], BodyStore(), SimParams()) == 0.0

    def test_exclude(self, store):
        params = SimParams()
        with_all = potential_at([0, 0, 0], store, params)
        without_sun = potential_at([0, 0, 0], store, params, exclude_id=1)
        assert without_sun == pytest.approx(params.G * 6.0 / 26.0)
        assert with_all > without_sun

    @pytest.mark.parametrize('point', [[1.0, 2.0], [0.0, float('nan'), 0.0], 'abc'])
    def test_bad_point(self, store, point):
        with pytest.raises(InvalidParameter, match='point'):
            potential_at(point, store, SimParams())

    def test_works_on_snapshots(self, store):
        params = SimParams()
        assert potential_at([3, 4, 0], store.snapshot(), params) == pytest.approx(
            potential_at([3, 4, 0], store, params)
        )


class TestRedshift:
    """Tests for the decorative redshift factor."""

    def test_alone_is_zero(self):
        s = BodyStore()
        body = s.add(300.0, [0, 0, 0], [0, 0, 0])
        assert redshift_estimate(body, s, SimParams()) == 0.0

    def test_excludes_self(self, store):
        params = SimParams()
        earth = store.get(2)
        expected = params.G * 300.0 / (25.0 + 1.0) / params.redshift_c2
        assert redshift_estimate(earth, store, params) == pytest.approx(expected)

    def test_map(self, store):
        params = SimParams()
        shifts = redshift_map(store, params)
        assert set(shifts) == {1, 2}
        # The light body sits deep in the heavy one's well.
        assert shifts[2] > shifts[1]


class TestGrid:
    """Tests for x-z grid sampling."""

    def test_shape_and_values(self, store):
        params = SimParams()
        xs = np.linspace(-30, 30, 7)
        zs = np.linspace(-20, 20, 5)
        grid = sample_potential_grid(xs, zs, store, params)

        assert grid.shape == (5, 7)
        assert grid[2, 3] == pytest.approx(potential_at([xs[3], 0.0, zs[2]], store, params))
        assert grid[4, 0] == pytest.approx(potential_at([xs[0], 0.0, zs[4]], store, params))

    def test_plane_height(self, store):
        params = SimParams()
        grid = sample_potential_grid([0.0], [0.0], store, params, y=-5.0)
        assert grid[0, 0] == pytest.approx(potential_at([0.0, -5.0, 0.0], store, params))

    def test_empty(self):
        grid = sample_potential_grid(np.zeros(3), np.zeros(2), BodyStore(), SimParams())
        assert np.array_equal(grid, np.zeros((2, 3)))

    def test_pure(self, store):
        """Sampling never changes body state."""
        before = [(b.mass, b.position.copy(), b.velocity.copy()) for b in store]
        sample_potential_grid(np.linspace(-5, 5, 4), np.linspace(-5, 5, 4), store, SimParams())
        potential_at([1, 1, 1], store, SimParams())
        redshift_map(store, SimParams())
        for (m, x, v), body in zip(before, store):
            assert body.mass == m
            assert np.array_equal(body.position, x)
            assert np.array_equal(body.velocity, v)
