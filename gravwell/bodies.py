"""Body records and the Body Store.

Bodies are massive spheres moving under mutual gravity. Each body has:
- A unique integer id, assigned monotonically and never reused
- Mass M (always positive) and a radius derived from it
- Position, velocity and acceleration (3D vectors)
- Cosmetic name and color carried through to snapshots for the UI

The radius is never stored. It is recomputed from the mass through the
store's ``RadiusLaw`` every time it is read, so a merge that changes mass
can never leave a stale radius behind.

The ``BodyStore`` exclusively owns all Body records. Everything outside the
physics step (rendering, UI, CLI) receives ``BodySnapshot`` values: frozen
copies whose arrays are read-only.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
import numpy as np

from gravwell.params import InvalidParameter, require_finite


DEFAULT_COLOR = '#4fc3f7'


@dataclass(frozen=True)
class RadiusLaw:
    """Mass-radius relation ``radius = max(min_radius, scale * mass**(1/3))``.

    Examples
    --------
    >>> law = RadiusLaw(scale=0.7, min_radius=0.4)
    >>> round(law(8.0), 6)
    1.4
    >>> law(1e-6)
    0.4
    """

    scale: float = 0.7
    min_radius: float = 0.4

    def __call__(self, mass: float) -> float:
        return max(self.min_radius, self.scale * float(np.cbrt(mass)))


def as_vec3(name: str, value) -> np.ndarray:
    """Copy ``value`` into a finite float64 array of shape (3,)."""
    try:
        arr = np.array(value, dtype=np.float64)
    except (TypeError, ValueError):
        raise InvalidParameter(f"{name} must be a 3-vector of reals, got {value!r}")
    if arr.shape != (3,):
        raise InvalidParameter(f"{name} must have shape (3,), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidParameter(f"{name} must be finite, got {arr}")
    return arr


@dataclass(eq=False)
class Body:
    """A simulated body.

    Attributes
    ----------
    id : int
        Identifier assigned by the store.
    mass : float
        Mass, strictly positive.
    position : np.ndarray
        Position vector, shape (3,).
    velocity : np.ndarray
        Velocity vector, shape (3,).
    law : RadiusLaw
        Mass-radius relation shared with the owning store.
    name : str
        Display name.
    color : str
        Display color (hex string).
    acceleration : np.ndarray
        Net acceleration from the last force pass, shape (3,). Overwritten
        on every pass, never accumulated across passes.
    alive : bool
        False once the body has been removed or absorbed.
    """

    id: int
    mass: float
    position: np.ndarray
    velocity: np.ndarray
    law: RadiusLaw = field(default_factory=RadiusLaw)
    name: str = ''
    color: str = DEFAULT_COLOR
    acceleration: np.ndarray = field(default_factory=lambda: np.zeros(3))
    alive: bool = True

    def __post_init__(self):
        self.mass = require_finite('mass', self.mass)
        if self.mass <= 0:
            raise InvalidParameter(f"Mass must be positive, got {self.mass}")
        self.position = as_vec3('position', self.position)
        self.velocity = as_vec3('velocity', self.velocity)
        self.acceleration = as_vec3('acceleration', self.acceleration)
        if not self.name:
            self.name = f"Body {self.id}"

    @property
    def radius(self) -> float:
        """Radius derived from the current mass."""
        return self.law(self.mass)

    @property
    def momentum(self) -> np.ndarray:
        return self.mass * self.velocity

    def snapshot(self) -> 'BodySnapshot':
        """Independent, read-only copy of this body's public state."""
        position = self.position.copy()
        velocity = self.velocity.copy()
        position.setflags(write=False)
        velocity.setflags(write=False)
        return BodySnapshot(
            id=self.id,
            name=self.name,
            color=self.color,
            mass=self.mass,
            position=position,
            velocity=velocity,
            radius=self.radius,
        )

    def __repr__(self) -> str:
        return (
            f"Body(id={self.id!r}, name={self.name!r}, mass={self.mass!r}, "
            f"position={self.position!r}, velocity={self.velocity!r}, alive={self.alive!r})"
        )


@dataclass(frozen=True, eq=False)
class BodySnapshot:
    """Immutable view of one body handed to rendering and UI code."""

    id: int
    name: str
    color: str
    mass: float
    position: np.ndarray
    velocity: np.ndarray
    radius: float

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def __str__(self) -> str:
        p = self.position
        v = self.velocity
        return (
            f"#{self.id} {self.name!r}: M={self.mass:.3f}, R={self.radius:.3f}, "
            f"x=[{p[0]:.3f}, {p[1]:.3f}, {p[2]:.3f}], "
            f"v=[{v[0]:.3f}, {v[1]:.3f}, {v[2]:.3f}]"
        )


class BodyStore:
    """Owner of all live bodies, keyed by id in insertion order.

    Ids start at 1 and only ever increase, so an id that was removed or
    absorbed is never handed to a later body, even after ``clear()``.
    """

    def __init__(self, law: Optional[RadiusLaw] = None):
        self._bodies: Dict[int, Body] = {}
        self._next_id = 1
        self.law = law if law is not None else RadiusLaw()

    def add(self, mass, position, velocity, name: Optional[str] = None,
            color: Optional[str] = None) -> Body:
        """Validate and insert a new body; returns the stored record."""
        body = Body(
            id=self._next_id,
            mass=mass,
            position=position,
            velocity=velocity,
            law=self.law,
            name=name or '',
            color=color or DEFAULT_COLOR,
        )
        # Only consume the id once validation has passed.
        self._next_id += 1
        self._bodies[body.id] = body
        return body

    def remove(self, body_id: int) -> bool:
        """Drop a body. Returns False (and does nothing) if it is absent."""
        body = self._bodies.pop(body_id, None)
        if body is None:
            return False
        body.alive = False
        return True

    def get(self, body_id: int) -> Optional[Body]:
        return self._bodies.get(body_id)

    def clear(self) -> None:
        for body in self._bodies.values():
            body.alive = False
        self._bodies.clear()

    def set_radius_law(self, law: RadiusLaw) -> None:
        """Swap the mass-radius relation for every current and future body."""
        self.law = law
        for body in self._bodies.values():
            body.law = law

    def ids(self) -> List[int]:
        return list(self._bodies)

    def bodies(self) -> List[Body]:
        """Live bodies in insertion order (a new list, safe to mutate)."""
        return list(self._bodies.values())

    def snapshot(self) -> List[BodySnapshot]:
        return [body.snapshot() for body in self._bodies.values()]

    @property
    def next_id(self) -> int:
        return self._next_id

    def __contains__(self, body_id) -> bool:
        return body_id in self._bodies

    def __iter__(self) -> Iterator[Body]:
        return iter(list(self._bodies.values()))

    def __len__(self) -> int:
        return len(self._bodies)
