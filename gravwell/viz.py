"""Visualization module for the gravwell N-body core.

Plotting functions that consume facade output (snapshots, recorded
trajectories, Field Sampler grids). None of them touch a ``Simulation``'s
internal state. Supported plots:
- Snapshot scatter (top-down x-z view, marker size from radius)
- Trajectory plot (x-z paths of every body, merge points marked)
- Potential surface (the sampled curvature grid as a filled contour)

Design principles:
- Body colors come from the snapshot so plots match the interactive scene
- Consistent dark background, equal aspect
- dpi=150 PNG output; parent directories are created as needed
"""

from typing import Dict, List, Optional, Sequence
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from gravwell.field import sample_potential_grid
from gravwell.params import SimParams


BACKGROUND = '#020208'


def _save(fig, output_path: str, dpi: int) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches='tight', facecolor=fig.get_facecolor())
    plt.close(fig)
    return output_path


def _style(ax, title: str) -> None:
    ax.set_facecolor(BACKGROUND)
    ax.set_xlabel('x', color='0.8')
    ax.set_ylabel('z', color='0.8')
    ax.set_title(title, color='0.9', fontsize=13, fontweight='bold')
    ax.tick_params(colors='0.7')
    ax.grid(True, alpha=0.15)
    ax.set_aspect('equal', adjustable='datalim')


def plot_snapshot(snapshot: Sequence, output_path: str, dpi: int = 150) -> Path:
    """Top-down scatter of one snapshot.

    Parameters
    ----------
    snapshot : sequence of BodySnapshot
        As returned by ``Simulation.snapshot()``.
    output_path : str
        Output PNG path.
    dpi : int, optional
        Output resolution (default: 150)

    Returns
    -------
    Path
        Where the figure was written.
    """
    fig, ax = plt.subplots(figsize=(8, 8), facecolor=BACKGROUND)
    for body in snapshot:
        ax.scatter(
            body.position[0], body.position[2],
            s=(6.0 * body.radius) ** 2, color=body.color, edgecolors='none',
        )
        ax.annotate(body.name, (body.position[0], body.position[2]),
                    textcoords='offset points', xytext=(6, 6), color='0.75', fontsize=8)
    _style(ax, f'Snapshot ({len(snapshot)} bodies)')

    output_path = _save(fig, output_path, dpi)
    print(f"Saved snapshot plot to {output_path}")
    return output_path


def plot_trajectories(
    trajectory: Dict,
    output_path: str,
    merges: Optional[List] = None,
    dpi: int = 150,
) -> Path:
    """Paths of every body recorded during a run.

    Parameters
    ----------
    trajectory : dict
        As produced by ``gravwell.run.record_run``:
        - 'positions': {id: ndarray (n_samples, 3)}
        - 'names': {id: str}
        - 'colors': {id: str}
    output_path : str
        Output PNG path.
    merges : list of (position, MergeEvent), optional
        Merge locations to mark with an x.
    dpi : int, optional
        Output resolution (default: 150)
    """
    fig, ax = plt.subplots(figsize=(9, 9), facecolor=BACKGROUND)

    for body_id, path in trajectory['positions'].items():
        path = np.asarray(path)
        if path.size == 0:
            continue
        color = trajectory['colors'].get(body_id, 'w')
        ax.plot(path[:, 0], path[:, 2], '-', color=color, linewidth=1.0, alpha=0.8,
                label=trajectory['names'].get(body_id, str(body_id)))
        ax.plot(path[-1, 0], path[-1, 2], 'o', color=color, markersize=4)

    for position, event in merges or []:
        ax.plot(position[0], position[2], 'x', color='#ff5533', markersize=9)

    _style(ax, 'Trajectories')
    if trajectory['positions']:
        ax.legend(loc='upper right', fontsize=8, facecolor=BACKGROUND, labelcolor='0.8')

    output_path = _save(fig, output_path, dpi)
    print(f"Saved trajectory plot to {output_path}")
    return output_path


def plot_potential_surface(
    snapshot: Sequence,
    params: SimParams,
    output_path: str,
    extent: float = 100.0,
    resolution: int = 81,
    dpi: int = 150,
) -> Path:
    """Filled contour of the sampled potential on the x-z plane.

    The grid spans [-extent, extent] in both x and z with ``resolution``
    samples per axis. Bodies are overlaid at their positions.
    """
    xs = np.linspace(-extent, extent, resolution)
    zs = np.linspace(-extent, extent, resolution)
    grid = sample_potential_grid(xs, zs, snapshot, params)

    fig, ax = plt.subplots(figsize=(9, 8), facecolor=BACKGROUND)
    contour = ax.contourf(xs, zs, -grid, levels=40, cmap='magma')
    cbar = fig.colorbar(contour, ax=ax)
    cbar.set_label('-potential (well depth)', color='0.8')
    cbar.ax.tick_params(colors='0.7')

    for body in snapshot:
        ax.plot(body.position[0], body.position[2], 'o', color=body.color, markersize=3)

    _style(ax, 'Potential surface')

    output_path = _save(fig, output_path, dpi)
    print(f"Saved potential surface plot to {output_path}")
    return output_path
