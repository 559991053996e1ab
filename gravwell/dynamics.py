"""
Time integration for the gravwell N-body core.

This module implements the symplectic velocity-Verlet (leapfrog) step and
the fixed-timestep accumulator that decouples the simulation rate from the
caller's frame rate.

Integration scheme (one sub-step of duration h):
1. Half-kick: v += a * h/2, using the accelerations left by the previous step
2. Drift: x += v * h
3. Recompute accelerations at the new positions
4. Half-kick: v += a * h/2
5. Speed clamp: |v| is limited to params.max_speed

Sub-stepping policy (SubstepClock):
- The frame interval is clamped to params.max_frame_dt (tab stalls, debugger
  pauses) and scaled by params.speed_multiplier before being banked.
- Whole sub-steps are consumed while the bank holds at least h and fewer
  than params.max_substeps have run in this call.
- If the cap is reached the remaining bank is discarded rather than carried
  forward, which bounds the cost of every call.

Physics notes:
- Leapfrog is second order and symplectic: energy oscillates around its true
  value without secular drift, which is what keeps open-ended interactive
  runs bounded.
- Zero bodies is a valid state. A single body drifts in a straight line.
"""

from typing import Dict, List, Tuple
import numpy as np

from gravwell.bodies import Body
from gravwell.forces import clamp_magnitudes, compute_accelerations
from gravwell.params import SimParams


# ============================================================================
# Core integration functions
# ============================================================================

def leapfrog_step(bodies: List[Body], params: SimParams, h: float) -> Dict:
    """
    Single fixed-duration velocity-Verlet step.

        v(t+h/2) = v(t) + 0.5 * a(t) * h
        x(t+h)   = x(t) + v(t+h/2) * h
        v(t+h)   = v(t+h/2) + 0.5 * a(t+h) * h

    Parameters
    ----------
    bodies : List[Body]
        Live bodies, modified IN-PLACE. Each body's ``acceleration`` must hold
        a(t) on entry (call ``compute_accelerations`` first if the body set or
        the parameters changed since the last step). On exit it holds a(t+h).
    params : SimParams
        Gravity, softening and clamp settings.
    h : float
        Step duration.

    Returns
    -------
    diagnostics : dict
        'accel_clamped' : int
            Bodies whose acceleration hit params.max_accel in the force pass.
        'speed_clamped' : int
            Bodies whose speed hit params.max_speed after the second kick.

    Examples
    --------
    >>> from gravwell.bodies import BodyStore
    >>> store = BodyStore()
    >>> _ = store.add(1.0, [0, 0, 0], [1, 0, 0])
    >>> bodies = store.bodies()
    >>> diag = leapfrog_step(bodies, SimParams(), 0.5)
    >>> bodies[0].position
    array([0.5, 0. , 0. ])
    """
    half_h = 0.5 * h

    # Steps 1-2: half-kick then drift
    for body in bodies:
        body.velocity += body.acceleration * half_h
    for body in bodies:
        body.position += body.velocity * h

    # Step 3: accelerations at the new positions
    accel_clamped = compute_accelerations(bodies, params)

    # Step 4: second half-kick
    for body in bodies:
        body.velocity += body.acceleration * half_h

    # Step 5: speed clamp
    speed_clamped = 0
    if bodies:
        velocities = np.array([b.velocity for b in bodies], dtype=np.float64)
        speed_clamped = clamp_magnitudes(velocities, params.max_speed)
        if speed_clamped:
            for body, v in zip(bodies, velocities):
                body.velocity = v.copy()

    return {
        'accel_clamped': accel_clamped,
        'speed_clamped': speed_clamped,
    }


class SubstepClock:
    """Accumulator that turns variable frame intervals into fixed sub-steps.

    Attributes
    ----------
    accumulator : float
        Banked simulated time not yet consumed by a sub-step.
    elapsed : float
        Total simulated time consumed by sub-steps so far.

    Examples
    --------
    >>> clock = SubstepClock()
    >>> params = SimParams(fixed_dt=0.01, max_substeps=100)
    >>> clock.plan(0.035, params)
    (3, 0.0)
    >>> round(clock.accumulator, 12)
    0.005
    """

    def __init__(self):
        self.accumulator = 0.0
        self.elapsed = 0.0

    def bank(self, frame_dt: float, params: SimParams) -> float:
        """Clamp, scale and bank a frame interval. Returns the banked amount."""
        frame_dt = min(max(frame_dt, 0.0), params.max_frame_dt)
        # Time never runs backwards: a negative speed multiplier banks nothing.
        banked = max(frame_dt * params.speed_multiplier, 0.0)
        self.accumulator += banked
        return banked

    def plan(self, frame_dt: float, params: SimParams) -> Tuple[int, float]:
        """Bank ``frame_dt`` and consume as many sub-steps as allowed.

        Returns
        -------
        n_steps : int
            Sub-steps the caller must now run, each of duration params.fixed_dt.
        dropped : float
            Simulated time discarded because the sub-step cap was reached.
        """
        self.bank(frame_dt, params)
        h = params.fixed_dt

        n_steps = 0
        while self.accumulator >= h and n_steps < params.max_substeps:
            self.accumulator -= h
            n_steps += 1

        dropped = 0.0
        if n_steps >= params.max_substeps:
            dropped = self.accumulator
            self.accumulator = 0.0

        self.elapsed += n_steps * h
        return n_steps, dropped

    def reset(self) -> None:
        self.accumulator = 0.0


# ============================================================================
# Orbital helpers
# ============================================================================

def circular_velocity(G: float, central_mass: float, radius: float) -> float:
    """
    Speed of a circular orbit, v = sqrt(G * M / r).

    Returns 0.0 for non-positive radius or G * M (no bound orbit exists).

    Examples
    --------
    >>> circular_velocity(40.0, 300.0, 25.0) ** 2
    480.0
    """
    gm = G * central_mass
    if radius <= 0 or gm <= 0:
        return 0.0
    return float(np.sqrt(gm / radius))


def orbital_period(G: float, total_mass: float, semi_major_axis: float) -> float:
    """
    Keplerian period T = 2 pi sqrt(a^3 / (G * M)).

    Raises
    ------
    ValueError
        If G * M or the semi-major axis is not positive.
    """
    gm = G * total_mass
    if gm <= 0 or semi_major_axis <= 0:
        raise ValueError(
            f"Need G*M > 0 and a > 0 for a period, got G*M={gm}, a={semi_major_axis}"
        )
    return float(2.0 * np.pi * np.sqrt(semi_major_axis**3 / gm))


def estimate_orbital_period(
    bodies: List,
    G: float,
    primary_idx: int = 0,
    secondary_idx: int = 1,
) -> float:
    """
    Estimate the period of a two-body pair from its current state.

    Uses the vis-viva relation on the relative orbit,

        1/a = 2/r - v_rel^2 / (G * (M1 + M2))

    so an initially non-circular pair still gets its exact Kepler period.
    Works on ``Body`` records or ``BodySnapshot`` values.

    Raises
    ------
    ValueError
        With fewer than two bodies, or if the pair is unbound.
    """
    if len(bodies) < 2:
        raise ValueError("Need at least 2 bodies for orbital period estimate")

    b1 = bodies[primary_idx]
    b2 = bodies[secondary_idx]

    r = float(np.linalg.norm(b2.position - b1.position))
    v_rel2 = float(np.dot(b2.velocity - b1.velocity, b2.velocity - b1.velocity))
    gm = G * (b1.mass + b2.mass)
    if r <= 0 or gm <= 0:
        raise ValueError("Pair has zero separation or non-attractive gravity")

    inv_a = 2.0 / r - v_rel2 / gm
    if inv_a <= 0:
        raise ValueError("Pair is unbound (non-negative orbital energy)")

    return orbital_period(G, b1.mass + b2.mass, 1.0 / inv_a)
