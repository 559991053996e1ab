"""Acceleration Field: softened pairwise Newtonian gravity.

For every unordered pair (i, j) with separation d = x_j - x_i:

    r^2   = |d|^2 + eps^2
    F     = G / r^2
    a_i  += F * M_j * d / r
    a_j  -= F * M_i * d / r

The unit direction uses the softened length r, so coincident bodies see
zero force instead of a division fault. The pair kernel d / r^3 is
antisymmetric, which is Newton's third law: sum_i M_i a_i = 0 before any
clamping.

After the pass, any acceleration longer than ``params.max_accel`` is
rescaled to that ceiling with its direction kept. This deliberately breaks
exact force balance during extreme close encounters in exchange for bounded
behaviour; with the clamp idle, momentum is conserved to round-off.

Cost: O(N^2) per call, vectorized over the (N, N) pair matrix.
"""

from typing import List, Tuple
import numpy as np
from numpy.typing import NDArray

from gravwell.bodies import Body
from gravwell.params import SimParams

# Type aliases
Positions = NDArray[np.float64]  # Shape (N, 3)
Accelerations = NDArray[np.float64]  # Shape (N, 3)


def pairwise_accelerations(
    positions: Positions,
    masses: NDArray[np.float64],
    G: float,
    softening2: float,
) -> Accelerations:
    """Raw (unclamped) accelerations for arrays of positions and masses.

    Parameters
    ----------
    positions : ndarray, shape (N, 3)
    masses : ndarray, shape (N,)
    G : float
        Effective gravitational constant.
    softening2 : float
        eps^2, strictly positive.

    Returns
    -------
    ndarray, shape (N, 3)

    Examples
    --------
    >>> x = np.array([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    >>> m = np.array([1.0, 2.0])
    >>> a = pairwise_accelerations(x, m, G=1.0, softening2=1e-12)
    >>> np.allclose(m[0] * a[0], -m[1] * a[1])
    True
    """
    n = positions.shape[0]
    if n < 2 or G == 0.0:
        return np.zeros((n, 3), dtype=np.float64)

    # d[i, j] = x_j - x_i
    d = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
    r2 = np.einsum('ijk,ijk->ij', d, d) + softening2
    inv_r3 = 1.0 / (r2 * np.sqrt(r2))
    # Diagonal terms vanish because d[i, i] = 0.
    weights = G * inv_r3 * masses[np.newaxis, :]
    return np.einsum('ij,ijk->ik', weights, d)


def clamp_magnitudes(vectors: NDArray[np.float64], ceiling: float) -> int:
    """Rescale rows of ``vectors`` longer than ``ceiling`` in place.

    Returns the number of rows that were clamped.
    """
    if vectors.shape[0] == 0:
        return 0
    norms = np.linalg.norm(vectors, axis=1)
    over = norms > ceiling
    if np.any(over):
        vectors[over] *= (ceiling / norms[over])[:, np.newaxis]
    return int(np.count_nonzero(over))


def gather_state(bodies: List[Body]) -> Tuple[Positions, NDArray[np.float64]]:
    """Stack positions and masses of ``bodies`` into arrays."""
    if not bodies:
        return np.zeros((0, 3)), np.zeros(0)
    positions = np.array([b.position for b in bodies], dtype=np.float64)
    masses = np.array([b.mass for b in bodies], dtype=np.float64)
    return positions, masses


def compute_accelerations(bodies: List[Body], params: SimParams) -> int:
    """Overwrite ``acceleration`` on every body with the clamped field.

    Parameters
    ----------
    bodies : list of Body
        Live bodies, modified in place (acceleration only).
    params : SimParams
        Supplies G, eps^2 and the acceleration ceiling.

    Returns
    -------
    int
        Number of bodies whose acceleration hit the ceiling.
    """
    positions, masses = gather_state(bodies)
    acc = pairwise_accelerations(positions, masses, params.G, params.softening2)
    n_clamped = clamp_magnitudes(acc, params.max_accel)
    for body, a in zip(bodies, acc):
        body.acceleration = a.copy()
    return n_clamped
