"""
Field Sampler: scalar gravitational potential for visualization.

The sampled quantity is the (positive) well depth

    phi(x) = sum_b G M_b / (|x - x_b| + delta)

with a regularizer delta (params.potential_delta) that is separate from the
dynamics softening. It visualizes the large-scale shape of the wells, e.g. a
deformation surface sampled on a coarse grid, and never feeds back into the
forces.

All functions here are pure: they read bodies (records or snapshots) and
parameters and mutate nothing, so they may be called at any rate,
independently of the integrator.

``redshift_estimate`` is decorative. It divides the potential felt by a body
from all the others by a fictitious c^2 to produce a colour-shift factor. It
is not a physical redshift.
"""

from typing import Iterable, Optional
import numpy as np
from numpy.typing import NDArray

from gravwell.bodies import as_vec3
from gravwell.params import SimParams


def _arrays(bodies: Iterable, exclude_id: Optional[int] = None):
    selected = [b for b in bodies if b.id != exclude_id]
    if not selected:
        return np.zeros((0, 3)), np.zeros(0)
    positions = np.array([b.position for b in selected], dtype=np.float64)
    masses = np.array([b.mass for b in selected], dtype=np.float64)
    return positions, masses


def potential_at(
    point,
    bodies: Iterable,
    params: SimParams,
    exclude_id: Optional[int] = None,
) -> float:
    """
    Well depth at ``point``.

    Args:
        point: Field point, shape (3,)
        bodies: Bodies or snapshots (need id, mass, position)
        params: Supplies G and potential_delta
        exclude_id: Body to leave out of the sum (its own well)

    Returns:
        Scalar potential, zero with no contributing bodies

    Raises:
        InvalidParameter: If point is not a finite 3-vector

    Examples:
        >>> from gravwell.bodies import BodyStore
        >>> store = BodyStore()
        >>> _ = store.add(3.0, [0, 0, 0], [0, 0, 0])
        >>> potential_at([1.0, 0, 0], store, SimParams(g_base=1.0, potential_delta=1.0))
        1.5
    """
    x = as_vec3('point', point)
    positions, masses = _arrays(bodies, exclude_id)
    if masses.size == 0:
        return 0.0
    r = np.linalg.norm(positions - x, axis=1)
    return float(np.sum(params.G * masses / (r + params.potential_delta)))


def redshift_estimate(body, bodies: Iterable, params: SimParams) -> float:
    """
    Decorative redshift factor for ``body``: potential from the others / c^2.

    A body alone in the scene has redshift 0.
    """
    return potential_at(body.position, bodies, params, exclude_id=body.id) / params.redshift_c2


def redshift_map(bodies: Iterable, params: SimParams) -> dict:
    """Redshift factor for every body, keyed by id."""
    bodies = list(bodies)
    return {b.id: redshift_estimate(b, bodies, params) for b in bodies}


def sample_potential_grid(
    xs: NDArray[np.float64],
    zs: NDArray[np.float64],
    bodies: Iterable,
    params: SimParams,
    y: float = 0.0,
) -> NDArray[np.float64]:
    """
    Potential sampled on the horizontal x-z plane at height ``y``.

    This is the "curvature surface" a renderer sinks below each mass.

    Args:
        xs: Grid x coordinates, shape (nx,)
        zs: Grid z coordinates, shape (nz,)
        bodies: Bodies or snapshots
        params: Supplies G and potential_delta
        y: Plane height

    Returns:
        Array of shape (nz, nx); entry [k, i] is phi at (xs[i], y, zs[k])
    """
    xs = np.asarray(xs, dtype=np.float64)
    zs = np.asarray(zs, dtype=np.float64)
    positions, masses = _arrays(bodies)

    grid = np.zeros((zs.size, xs.size), dtype=np.float64)
    if masses.size == 0:
        return grid

    X, Z = np.meshgrid(xs, zs)
    for pos, m in zip(positions, masses):
        r = np.sqrt((X - pos[0])**2 + (y - pos[1])**2 + (Z - pos[2])**2)
        grid += params.G * m / (r + params.potential_delta)
    return grid

