"""Shared fixtures for the gravwell test suite."""

import matplotlib
matplotlib.use('Agg')

import pytest

from gravwell.params import SimParams
from gravwell.simulation import Simulation


@pytest.fixture
def params():
    return SimParams()


@pytest.fixture
def sim():
    return Simulation()


@pytest.fixture
def two_body_yaml(tmp_path):
    """Scene file with a heavy primary and a light circular satellite."""
    path = tmp_path / 'two_body.yaml'
    path.write_text(
        "params:\n"
        "  gravity_multiplier: 1.0\n"
        "bodies:\n"
        "  - name: Sun\n"
        "    mass: 300\n"
        "    position: [0, 0, 0]\n"
        "    velocity: [0, 0, 0]\n"
        "    color: '#ffcc00'\n"
        "  - name: Earth\n"
        "    mass: 6\n"
        "    position: [25, 0, 0]\n"
        "    velocity: [0, 0, 21.908902]\n"
        "run:\n"
        "  frames: 30\n"
        "  frame_dt: 0.016667\n"
        "  sample_every: 5\n"
    )
    return path
