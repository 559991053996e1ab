"""Simulation parameters for the gravwell N-body core.

This module defines the process-wide knobs that control the physics engine:
- Gravitational constant (base value and user multiplier)
- Softening length (squared) added to every pair separation
- Acceleration and speed clamps (stability bounds)
- Fixed sub-step duration and the per-call sub-step cap
- Merge threshold factor and the mass-radius law constants
- Field Sampler regularizer and the redshift scaling

The clamp thresholds are tunable stability heuristics. They keep the
interactive simulation bounded during very close encounters; they are not
part of the physical model.
"""

from dataclasses import dataclass, fields
import math


class InvalidParameter(ValueError):
    """Raised when a caller supplies a value the core refuses to store.

    Covers non-positive masses, non-finite scalars or vectors, unknown
    parameter names and negative frame intervals. Always raised at the
    boundary, before any state is touched.
    """


# Fields that must be strictly positive. Everything else only has to be finite.
_POSITIVE_FIELDS = (
    'g_base',
    'softening2',
    'max_accel',
    'max_speed',
    'fixed_dt',
    'max_frame_dt',
    'radius_scale',
    'potential_delta',
    'redshift_c2',
)


@dataclass
class SimParams:
    """Tunable constants of the simulation.

    Attributes
    ----------
    g_base : float
        Base gravitational constant (scene units). The effective constant is
        ``G = g_base * gravity_multiplier``.
    gravity_multiplier : float
        User-controlled scale on ``g_base``. May be zero or negative.
    speed_multiplier : float
        Simulated seconds advanced per wall-clock second.
    softening2 : float
        Softening constant eps^2 added to squared separations.
    max_accel : float
        Acceleration magnitude ceiling applied after each force pass.
    max_speed : float
        Speed ceiling applied after each leapfrog step.
    fixed_dt : float
        Duration h of one integrator sub-step.
    max_substeps : int
        Maximum sub-steps consumed by one ``advance`` call.
    max_frame_dt : float
        Frame intervals longer than this are clamped before banking.
    merge_factor : float
        Fraction of the summed radii below which two bodies merge (0, 1].
    radius_scale : float
        k in ``radius = k * mass**(1/3)``.
    min_radius : float
        Lower bound on derived radii (keeps tiny bodies visible/collidable).
    potential_delta : float
        Regularizer delta used by the Field Sampler.
    redshift_c2 : float
        Fictitious c^2 dividing the potential in ``redshift_estimate``.

    Examples
    --------
    >>> params = SimParams(gravity_multiplier=2.0)
    >>> params.G
    80.0
    >>> SimParams(fixed_dt=0.0)
    Traceback (most recent call last):
        ...
    gravwell.params.InvalidParameter: fixed_dt must be positive, got 0.0
    """

    g_base: float = 40.0
    gravity_multiplier: float = 1.0
    speed_multiplier: float = 1.0
    softening2: float = 2.0
    max_accel: float = 800.0
    max_speed: float = 200.0
    fixed_dt: float = 1.0 / 120.0
    max_substeps: int = 8
    max_frame_dt: float = 0.05
    merge_factor: float = 0.5
    radius_scale: float = 0.7
    min_radius: float = 0.4
    potential_delta: float = 1.0
    redshift_c2: float = 10000.0

    def __post_init__(self):
        """Validate every field."""
        for f in fields(self):
            if f.name == 'max_substeps':
                continue
            value = getattr(self, f.name)
            setattr(self, f.name, require_finite(f.name, value))

        for name in _POSITIVE_FIELDS:
            value = getattr(self, name)
            if value <= 0:
                raise InvalidParameter(f"{name} must be positive, got {value}")

        if self.min_radius < 0:
            raise InvalidParameter(f"min_radius must be non-negative, got {self.min_radius}")
        if not 0.0 < self.merge_factor <= 1.0:
            raise InvalidParameter(
                f"merge_factor must lie in (0, 1], got {self.merge_factor}"
            )
        substeps = require_finite('max_substeps', self.max_substeps)
        if not substeps.is_integer():
            raise InvalidParameter(f"max_substeps must be an integer, got {self.max_substeps!r}")
        self.max_substeps = int(substeps)
        if self.max_substeps < 1:
            raise InvalidParameter(f"max_substeps must be at least 1, got {self.max_substeps}")

    @property
    def G(self) -> float:
        """Effective gravitational constant ``g_base * gravity_multiplier``."""
        return self.g_base * self.gravity_multiplier

    @classmethod
    def field_names(cls):
        """Names accepted by ``Simulation.set_parameter`` and the YAML loader."""
        return tuple(f.name for f in fields(cls))

    def __str__(self) -> str:
        lines = [
            f"SimParams(G={self.G:.3f} [base {self.g_base:.3f} x {self.gravity_multiplier:.3f}], "
            f"speed x{self.speed_multiplier:.3f})"
        ]
        lines.append(
            f"  h = {self.fixed_dt:.5f}, max_substeps = {self.max_substeps}, "
            f"eps^2 = {self.softening2:.3f}"
        )
        lines.append(f"  clamps: |a| <= {self.max_accel:.1f}, |v| <= {self.max_speed:.1f}")
        return "\n".join(lines)


def require_finite(name: str, value) -> float:
    """Coerce ``value`` to float, rejecting NaN, infinities and non-numbers."""
    if isinstance(value, bool):
        raise InvalidParameter(f"{name} must be a real number, got {value!r}")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidParameter(f"{name} must be a real number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidParameter(f"{name} must be finite, got {value}")
    return value
