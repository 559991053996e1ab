"""
Collision Resolver: perfectly inelastic merging of overlapping bodies.

Detection: two bodies overlap when their centre distance is below

    (r_a + r_b) * params.merge_factor

With merge_factor < 1, bodies have to interpenetrate substantially before
they merge, rather than merging as soon as their spheres touch.

Merge rule (lighter body absorbed into the heavier one):
- mass      M = M_a + M_b                          (exact)
- velocity  v = (M_a v_a + M_b v_b) / M            (momentum conserved)
- position  x = (M_a x_a + M_b x_b) / M            (centre of mass kept)
- radius    re-derived from M by the radius law

Ties in mass go to the body inserted first, so the result does not depend on
floating-point noise in the scan order.

Each call makes exactly one pass over the unordered pairs, and a body takes
part in at most one merge per pass: once absorbed it is gone, and a survivor
sits out the remaining pairs. A survivor that has grown into a new overlap is
picked up by the next sub-step's pass, so a chain of merges costs one pass
per link instead of recursion.
"""

from dataclasses import dataclass
from typing import List, Set
import numpy as np

from gravwell.bodies import Body, BodyStore
from gravwell.params import SimParams


@dataclass(frozen=True)
class MergeEvent:
    """Record of one merge, reported back through ``Simulation.advance``."""

    survivor_id: int
    absorbed_id: int
    mass: float

    def __str__(self) -> str:
        return f"#{self.absorbed_id} merged into #{self.survivor_id} (M={self.mass:.3f})"


def overlapping(a: Body, b: Body, merge_factor: float) -> bool:
    """True when ``a`` and ``b`` are close enough to merge."""
    threshold = (a.radius + b.radius) * merge_factor
    return float(np.linalg.norm(b.position - a.position)) < threshold


def merge_pair(big: Body, small: Body) -> None:
    """Fold ``small`` into ``big`` in place. ``small`` is left untouched."""
    total = big.mass + small.mass
    big.velocity = (big.velocity * big.mass + small.velocity * small.mass) / total
    big.position = (big.position * big.mass + small.position * small.mass) / total
    big.mass = total


def resolve_collisions(store: BodyStore, params: SimParams) -> List[MergeEvent]:
    """
    Detect and merge overlapping bodies in one bounded pass.

    Parameters
    ----------
    store : BodyStore
        Modified in place: survivors are updated, absorbed bodies removed.
    params : SimParams
        Supplies merge_factor.

    Returns
    -------
    list of MergeEvent
        In the order the merges happened. Empty when nothing touched.

    Examples
    --------
    >>> store = BodyStore()
    >>> a = store.add(10.0, [0, 0, 0], [1, 0, 0])
    >>> b = store.add(10.0, [0.5, 0, 0], [-1, 0, 0])
    >>> events = resolve_collisions(store, SimParams())
    >>> [str(e) for e in events]
    ['#2 merged into #1 (M=20.000)']
    >>> len(store), store.get(1).velocity
    (1, array([0., 0., 0.]))
    """
    bodies = store.bodies()
    if len(bodies) < 2:
        return []

    events: List[MergeEvent] = []
    # Both participants of a merge sit out the rest of the pass.
    touched: Set[int] = set()

    n = len(bodies)
    for i in range(n):
        a = bodies[i]
        if a.id in touched:
            continue
        for j in range(i + 1, n):
            b = bodies[j]
            if b.id in touched:
                continue
            if not overlapping(a, b, params.merge_factor):
                continue

            # Earlier insertion wins ties
            if b.mass > a.mass:
                big, small = b, a
            else:
                big, small = a, b

            merge_pair(big, small)
            touched.update((a.id, b.id))
            events.append(MergeEvent(big.id, small.id, big.mass))
            break

    for event in events:
        store.remove(event.absorbed_id)

    return events
