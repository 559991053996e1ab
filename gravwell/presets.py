"""
Procedural scene builders.

These helpers create bodies through the public ``Simulation.add_body`` call;
they never touch the store directly. Any randomness (orbital phase, ring
radius, speed) comes from an explicit ``numpy.random.Generator``, so scene
creation can be seeded while the stepping loop stays free of randomness.
"""

from typing import List, Optional
import numpy as np

from gravwell.dynamics import circular_velocity
from gravwell.simulation import Simulation


CENTRAL_MASS = 300.0

# name, mass, orbital distance, color, height above the plane
SOLAR_PLANETS = (
    ('Mercury', 2.0, 12.0, '#b0b0b0', 0.0),
    ('Venus', 5.0, 18.0, '#e8a735', 1.0),
    ('Earth', 6.0, 25.0, '#4488ff', -0.5),
    ('Mars', 3.0, 32.0, '#cc4422', 0.8),
    ('Jupiter', 40.0, 45.0, '#d4a574', -1.0),
    ('Saturn', 30.0, 58.0, '#e8d088', 1.5),
    ('Uranus', 15.0, 72.0, '#88ccdd', -0.3),
    ('Neptune', 15.0, 88.0, '#4466cc', 0.5),
)


def _rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def add_central_body(sim: Simulation, mass: float = CENTRAL_MASS, name: str = 'Sun') -> int:
    """Add a heavy body at rest at the origin."""
    return sim.add_body(mass, [0.0, 0.0, 0.0], [0.0, 0.0, 0.0], name=name, color='#ffcc00')


def add_orbiting_body(
    sim: Simulation,
    mass: float,
    distance: float,
    angle: float,
    central_mass: float = CENTRAL_MASS,
    height: float = 0.0,
    name: Optional[str] = None,
    color: Optional[str] = None,
) -> int:
    """
    Add a body on a circular orbit in the x-z plane around the origin.

    Position (d cos a, height, d sin a); velocity tangent to the ring with
    speed sqrt(G M / d) for the current effective G.
    """
    v = circular_velocity(sim.params.G, central_mass, distance)
    position = [np.cos(angle) * distance, height, np.sin(angle) * distance]
    velocity = [-np.sin(angle) * v, 0.0, np.cos(angle) * v]
    return sim.add_body(mass, position, velocity, name=name, color=color)


def load_solar_preset(sim: Simulation, rng: Optional[np.random.Generator] = None) -> List[int]:
    """
    Replace the scene with a sun and eight planets on circular orbits.

    Each planet starts at a random phase angle. Returns the new ids, sun first.

    Examples
    --------
    >>> sim = Simulation()
    >>> ids = load_solar_preset(sim, np.random.default_rng(7))
    >>> len(ids), sim.get_body(ids[0]).name
    (9, 'Sun')
    """
    rng = _rng(rng)
    sim.clear()
    ids = [add_central_body(sim, CENTRAL_MASS)]
    for name, mass, distance, color, height in SOLAR_PLANETS:
        angle = rng.uniform(0.0, 2.0 * np.pi)
        ids.append(add_orbiting_body(
            sim, mass, distance, angle,
            central_mass=CENTRAL_MASS, height=height, name=name, color=color,
        ))
    return ids


def add_random_body(
    sim: Simulation,
    mass: float,
    rng: Optional[np.random.Generator] = None,
    min_distance: float = 10.0,
    max_distance: float = 35.0,
) -> int:
    """
    Drop a body somewhere on a ring around the origin with an orbit-like kick.

    Distance is uniform in [min_distance, max_distance], height in [-5, 5],
    and the velocity is roughly tangential with speed uniform in [2, 8].
    """
    rng = _rng(rng)
    angle = rng.uniform(0.0, 2.0 * np.pi)
    distance = rng.uniform(min_distance, max_distance)
    position = [np.cos(angle) * distance, rng.uniform(-5.0, 5.0), np.sin(angle) * distance]
    tangent = np.array([-np.sin(angle), rng.uniform(-0.3, 0.3), np.cos(angle)])
    speed = rng.uniform(2.0, 8.0)
    return sim.add_body(mass, position, tangent * speed)
