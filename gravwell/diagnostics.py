"""Diagnostics module for the gravwell N-body core.

This module provides functions for monitoring conserved quantities of a
scene. They accept any sequence of ``Body`` records or ``BodySnapshot``
values, so UI code can call them on the output of ``Simulation.snapshot()``.

Key diagnostics:
- Total mass and centre of mass
- Total linear momentum: P = sum M_a v_a (exactly conserved by merges,
  conserved to round-off by the force pass while the clamps are idle)
- Kinetic energy: T = sum (1/2) M_a v_a^2
- Softened pair potential energy: U = -G sum_{a<b} M_a M_b / sqrt(r_ab^2 + eps^2)
- Total energy E = T + U (bounded oscillation under leapfrog; drops at merges,
  which are inelastic)
"""

from typing import Dict, Sequence
import numpy as np

from gravwell.params import SimParams


def total_mass(bodies: Sequence) -> float:
    return float(sum(b.mass for b in bodies))


def total_momentum(bodies: Sequence) -> np.ndarray:
    """Total linear momentum, shape (3,).

    Examples
    --------
    >>> from types import SimpleNamespace
    >>> bodies = [
    ...     SimpleNamespace(mass=1.0, velocity=np.array([1.0, 0, 0])),
    ...     SimpleNamespace(mass=2.0, velocity=np.array([0, 0.5, 0])),
    ... ]
    >>> total_momentum(bodies)
    array([1., 1., 0.])
    """
    P = np.zeros(3)
    for body in bodies:
        P += body.mass * np.asarray(body.velocity)
    return P


def center_of_mass(bodies: Sequence) -> np.ndarray:
    """Mass-weighted mean position. Zero vector for an empty scene."""
    M = total_mass(bodies)
    if M == 0.0:
        return np.zeros(3)
    weighted = np.zeros(3)
    for body in bodies:
        weighted += body.mass * np.asarray(body.position)
    return weighted / M


def kinetic_energy(bodies: Sequence) -> float:
    """Compute total kinetic energy T = sum (1/2) M v^2."""
    T = 0.0
    for body in bodies:
        v = np.asarray(body.velocity)
        T += 0.5 * body.mass * float(np.dot(v, v))
    return T


def potential_energy(bodies: Sequence, params: SimParams) -> float:
    """Softened pair potential energy consistent with the force law.

    Notes
    -----
    The acceleration kernel G M d / (|d|^2 + eps^2)^(3/2) is the gradient of
    -G M / sqrt(|d|^2 + eps^2), so this is the energy leapfrog approximately
    conserves. Returns 0.0 for fewer than two bodies.
    """
    bodies = list(bodies)
    if len(bodies) <= 1:
        return 0.0

    U = 0.0
    for a in range(len(bodies)):
        for b in range(a + 1, len(bodies)):
            d = np.asarray(bodies[b].position) - np.asarray(bodies[a].position)
            r_soft = np.sqrt(float(np.dot(d, d)) + params.softening2)
            U -= params.G * bodies[a].mass * bodies[b].mass / r_soft
    return U


def total_energy(bodies: Sequence, params: SimParams) -> float:
    return kinetic_energy(bodies) + potential_energy(bodies, params)


def summarize(bodies: Sequence, params: SimParams) -> Dict:
    """Bundle of all diagnostics for one snapshot."""
    bodies = list(bodies)
    return {
        'n_bodies': len(bodies),
        'total_mass': total_mass(bodies),
        'center_of_mass': center_of_mass(bodies),
        'total_momentum': total_momentum(bodies),
        'kinetic_energy': kinetic_energy(bodies),
        'potential_energy': potential_energy(bodies, params),
        'total_energy': total_energy(bodies, params),
    }
