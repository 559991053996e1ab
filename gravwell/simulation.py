"""
Simulation Facade: the single entry point for everything outside the core.

The ``Simulation`` owns the ``SimParams`` and the ``BodyStore`` for its whole
lifetime. Rendering, UI and CLI code only ever:
- issue commands (add/remove bodies, change multipliers, pause/resume)
- call ``advance(frame_dt)`` once per displayed frame
- read ``snapshot()`` / field queries, which return independent copies

One ``advance`` call runs to completion: bank the frame interval, then for
each fixed sub-step run a leapfrog step followed by one collision pass.
Nothing blocks and there is no hidden randomness, so two simulations fed the
same calls produce bit-identical snapshots.
"""

from dataclasses import replace
from typing import Dict, List, Optional

from gravwell.bodies import BodySnapshot, BodyStore, RadiusLaw
from gravwell.collisions import resolve_collisions
from gravwell.dynamics import SubstepClock, leapfrog_step
from gravwell.field import potential_at, redshift_estimate, redshift_map
from gravwell.forces import compute_accelerations
from gravwell.params import InvalidParameter, SimParams, require_finite


# Parameters that change the force field; touching one invalidates the
# accelerations carried between sub-steps.
_FORCE_PARAMS = frozenset(('g_base', 'gravity_multiplier', 'softening2', 'max_accel'))
_RADIUS_PARAMS = frozenset(('radius_scale', 'min_radius'))


class Simulation:
    """
    Gravitational N-body simulation with inelastic merging.

    Parameters
    ----------
    params : SimParams, optional
        Initial configuration (defaults are tuned for scenes of a few dozen
        bodies with masses 1-300 at distances 10-100).

    Examples
    --------
    >>> sim = Simulation()
    >>> sun = sim.add_body(300.0, [0, 0, 0], [0, 0, 0], name="Sun")
    >>> report = sim.advance(1 / 60)
    >>> report['substeps']
    2
    >>> [b.name for b in sim.snapshot()]
    ['Sun']
    """

    def __init__(self, params: Optional[SimParams] = None):
        self.params = params if params is not None else SimParams()
        self._store = BodyStore(RadiusLaw(self.params.radius_scale, self.params.min_radius))
        self._clock = SubstepClock()
        self._paused = False
        # Accelerations must be recomputed before the next half-kick
        self._dirty = True

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_body(self, mass, position, velocity, name: Optional[str] = None,
                 color: Optional[str] = None) -> int:
        """
        Add a body and return its new id.

        Raises
        ------
        InvalidParameter
            If mass <= 0, or any scalar/vector is not finite.
        """
        body = self._store.add(mass, position, velocity, name=name, color=color)
        self._dirty = True
        return body.id

    def remove_body(self, body_id: int) -> None:
        """Remove a body. Absent ids (already absorbed or removed) are ignored."""
        if self._store.remove(body_id):
            self._dirty = True

    def clear(self) -> None:
        """Remove every body. Ids keep counting up from where they were."""
        self._store.clear()
        self._clock.reset()
        self._dirty = True

    def set_gravity_multiplier(self, value) -> None:
        self.set_parameter('gravity_multiplier', value)

    def set_speed_multiplier(self, value) -> None:
        self.set_parameter('speed_multiplier', value)

    def set_parameter(self, name: str, value) -> None:
        """
        Change one ``SimParams`` field.

        The full parameter set is re-validated before it replaces the current
        one, so a rejected value leaves the simulation untouched.

        Raises
        ------
        InvalidParameter
            Unknown name, non-finite value, or a value the field's bounds reject.
        """
        if name not in SimParams.field_names():
            raise InvalidParameter(f"Unknown parameter {name!r}")
        if name != 'max_substeps':
            value = require_finite(name, value)
        self.params = replace(self.params, **{name: value})

        if name in _FORCE_PARAMS:
            self._dirty = True
        if name in _RADIUS_PARAMS:
            self._store.set_radius_law(RadiusLaw(self.params.radius_scale, self.params.min_radius))

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def advance(self, frame_dt) -> Dict:
        """
        Advance the simulation by one display frame.

        Parameters
        ----------
        frame_dt : float
            Wall-clock seconds since the previous frame, non-negative.
            Clamped internally to params.max_frame_dt.

        Returns
        -------
        report : dict
            'substeps' : int
                Fixed sub-steps run in this call.
            'merges' : list of MergeEvent
                Merges in order. Any non-empty list means earlier snapshots
                and ids are stale.
            'accel_clamped' : int
                Sum over sub-steps of bodies hitting the acceleration ceiling.
            'speed_clamped' : int
                Sum over sub-steps of bodies hitting the speed ceiling.
            'dropped_backlog' : float
                Simulated time discarded by the sub-step cap.

        Raises
        ------
        InvalidParameter
            If frame_dt is negative or not finite.
        """
        frame_dt = require_finite('frame_dt', frame_dt)
        if frame_dt < 0:
            raise InvalidParameter(f"frame_dt must be non-negative, got {frame_dt}")

        report = {
            'substeps': 0,
            'merges': [],
            'accel_clamped': 0,
            'speed_clamped': 0,
            'dropped_backlog': 0.0,
        }
        if self._paused:
            return report

        n_steps, dropped = self._clock.plan(frame_dt, self.params)
        report['substeps'] = n_steps
        report['dropped_backlog'] = dropped

        h = self.params.fixed_dt
        for _ in range(n_steps):
            bodies = self._store.bodies()
            if self._dirty:
                compute_accelerations(bodies, self.params)
                self._dirty = False

            diag = leapfrog_step(bodies, self.params, h)
            report['accel_clamped'] += diag['accel_clamped']
            report['speed_clamped'] += diag['speed_clamped']

            merges = resolve_collisions(self._store, self.params)
            if merges:
                report['merges'].extend(merges)
                # Survivors changed mass and position
                self._dirty = True

        return report

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def snapshot(self) -> List[BodySnapshot]:
        """Independent read-only copies of all live bodies, in insertion order."""
        return self._store.snapshot()

    def get_body(self, body_id: int) -> Optional[BodySnapshot]:
        body = self._store.get(body_id)
        return body.snapshot() if body is not None else None

    def potential_at(self, point) -> float:
        return potential_at(point, self._store, self.params)

    def redshift(self, body_id: int) -> Optional[float]:
        """Decorative redshift factor of one body, None if it does not exist."""
        body = self._store.get(body_id)
        if body is None:
            return None
        return redshift_estimate(body, self._store, self.params)

    def redshifts(self) -> Dict[int, float]:
        return redshift_map(self._store, self.params)

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def body_count(self) -> int:
        return len(self._store)

    @property
    def time(self) -> float:
        """Simulated time consumed by sub-steps since construction."""
        return self._clock.elapsed

    def __contains__(self, body_id) -> bool:
        return body_id in self._store

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return (
            f"Simulation(bodies={len(self._store)}, t={self.time:.3f}, "
            f"G={self.params.G:.3f}, paused={self._paused})"
        )
