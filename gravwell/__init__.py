"""Gravitational N-body core: softened gravity, leapfrog sub-stepping and inelastic merging."""

from gravwell.params import InvalidParameter, SimParams
from gravwell.bodies import BodySnapshot
from gravwell.collisions import MergeEvent
from gravwell.simulation import Simulation

__version__ = '0.1.0'

__all__ = [
    'InvalidParameter',
    'SimParams',
    'BodySnapshot',
    'MergeEvent',
    'Simulation',
]
