#!/usr/bin/env python3
"""
Command-line driver for the gravwell N-body core.

Runs a scene headlessly, the way an interactive front end would: one
``advance(frame_dt)`` call per frame with a fixed frame interval. It handles:
- Configuration loading and validation
- Frame loop with progress reporting and trajectory sampling
- Summary output (merges, clamp activity, momentum and energy drift)
- Optional plots (snapshot, trajectories, potential surface)
- Graceful keyboard interrupt handling

Usage:
    python -m gravwell.run scene.yaml
    python -m gravwell.run scene.yaml --frames 3600 --verbose
    python -m gravwell.run scene.yaml --validate-only
    python -m gravwell.run scene.yaml --plot output/
"""

import argparse
import sys
import time
import traceback
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from gravwell.diagnostics import summarize
from gravwell.io_cfg import build_simulation, load_config, validate_config
from gravwell.simulation import Simulation


# ============================================================================
# Frame loop
# ============================================================================

def record_run(
    sim: Simulation,
    frames: int,
    frame_dt: float,
    sample_every: int = 1,
    verbose: bool = False,
) -> Dict[str, Any]:
    """
    Drive ``sim`` for ``frames`` frames and record what a renderer would see.

    Parameters
    ----------
    sim : Simulation
        Advanced in place.
    frames : int
        Number of ``advance`` calls.
    frame_dt : float
        Interval passed to every call.
    sample_every : int
        Record positions every N frames (plus the initial state).
    verbose : bool
        Print progress roughly ten times over the run.

    Returns
    -------
    trajectory : dict
        'times' : list of float, simulated time at each sample
        'positions' : {id: ndarray (n_samples_for_id, 3)}
        'names', 'colors' : {id: str}
        'merges' : list of (position, MergeEvent)
        'substeps', 'accel_clamped', 'speed_clamped' : int totals
        'dropped_backlog' : float total
        'frames' : int, frames actually run (less than requested if interrupted)
        'interrupted' : bool
    """
    positions: Dict[int, list] = {}
    names: Dict[int, str] = {}
    colors: Dict[int, str] = {}
    times = []

    def sample():
        times.append(sim.time)
        for body in sim.snapshot():
            positions.setdefault(body.id, []).append(np.array(body.position))
            names[body.id] = body.name
            colors[body.id] = body.color

    totals = {'substeps': 0, 'accel_clamped': 0, 'speed_clamped': 0, 'dropped_backlog': 0.0}
    merges = []
    progress_every = max(1, frames // 10)
    frames_run = 0
    interrupted = False

    sample()
    try:
        for frame in range(1, frames + 1):
            report = sim.advance(frame_dt)
            for key in totals:
                totals[key] += report[key]
            for event in report['merges']:
                survivor = sim.get_body(event.survivor_id)
                where = np.array(survivor.position) if survivor is not None else np.zeros(3)
                merges.append((where, event))
                if verbose:
                    print(f"  t={sim.time:8.3f}  {event}")
            frames_run = frame

            if frame % sample_every == 0:
                sample()
            if verbose and frame % progress_every == 0:
                print(f"  frame {frame:6d}/{frames}  t={sim.time:8.3f}  bodies={sim.body_count}")
    except KeyboardInterrupt:
        interrupted = True
        print("\nSimulation interrupted by user.")

    return {
        'times': times,
        'positions': {k: np.array(v) for k, v in positions.items()},
        'names': names,
        'colors': colors,
        'merges': merges,
        'frames': frames_run,
        'interrupted': interrupted,
        **totals,
    }


def print_summary(
    before: Dict[str, Any],
    after: Dict[str, Any],
    trajectory: Dict[str, Any],
    elapsed: float,
) -> None:
    """Print a human-readable summary of a run."""
    print()
    print("=" * 72)
    print("RUN SUMMARY")
    print("=" * 72)
    print(f"  Frames:             {trajectory['frames']:,}")
    print(f"  Sub-steps:          {trajectory['substeps']:,}")
    print(f"  Wall time:          {elapsed:.2f} s")
    print(f"  Bodies:             {before['n_bodies']} -> {after['n_bodies']}")
    print(f"  Merges:             {len(trajectory['merges'])}")
    print(f"  Accel clamp hits:   {trajectory['accel_clamped']}")
    print(f"  Speed clamp hits:   {trajectory['speed_clamped']}")
    print(f"  Dropped backlog:    {trajectory['dropped_backlog']:.4f}")
    print()

    dP = after['total_momentum'] - before['total_momentum']
    P0 = np.linalg.norm(before['total_momentum'])
    print("Conserved quantities:")
    print(f"  Total mass:         {before['total_mass']:.6f} -> {after['total_mass']:.6f}")
    print(f"  |dP|:               {np.linalg.norm(dP):.3e}  (|P0| = {P0:.3e})")
    E0 = before['total_energy']
    E1 = after['total_energy']
    rel = abs(E1 - E0) / abs(E0) if E0 != 0 else float('nan')
    print(f"  Energy:             {E0:.6e} -> {E1:.6e}  (rel. change {rel:.3e})")
    if trajectory['merges'] or trajectory['accel_clamped'] or trajectory['speed_clamped']:
        print("  (merges and clamps do not conserve energy)")
    print("=" * 72)


def save_plots(sim: Simulation, trajectory: Dict[str, Any], plot_dir: Path) -> None:
    """Write snapshot, trajectory and potential plots into ``plot_dir``."""
    from gravwell.viz import plot_potential_surface, plot_snapshot, plot_trajectories

    snapshot = sim.snapshot()
    plot_snapshot(snapshot, plot_dir / 'snapshot.png')
    plot_trajectories(trajectory, plot_dir / 'trajectories.png', merges=trajectory['merges'])
    plot_potential_surface(snapshot, sim.params, plot_dir / 'potential.png')


# ============================================================================
# Command-line interface
# ============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='gravwell.run',
        description=(
            'Headless runner for the gravwell N-body core: softened gravity, '
            'fixed-step leapfrog integration and inelastic merging.'
        ),
        epilog=(
            'Examples:\n'
            '  python -m gravwell.run examples/solar.yaml\n'
            '  python -m gravwell.run examples/two_body.yaml --frames 3600 --verbose\n'
            '  python -m gravwell.run examples/solar.yaml --plot output\n'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument('config', type=str, help='Path to YAML scene file')
    parser.add_argument('--frames', type=int, default=None,
                        help='Number of frames to run (overrides run.frames)')
    parser.add_argument('--frame-dt', type=float, default=None,
                        help='Frame interval in seconds (overrides run.frame_dt)')
    parser.add_argument('--plot', type=str, default=None, metavar='DIR',
                        help='Write PNG plots into DIR')
    parser.add_argument('--validate-only', action='store_true',
                        help='Validate configuration and exit (no simulation)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Print progress and merge events')

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # 1) Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"ERROR: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"ERROR: Failed to load configuration: {e}", file=sys.stderr)
        if args.verbose:
            traceback.print_exc()
        return 1

    # 2) Validate configuration
    is_valid, warnings_list = validate_config(config)
    if warnings_list:
        print("Configuration warnings:")
        for w in warnings_list:
            print(f"    - {w}")
        print()
    if not is_valid:
        print("Configuration is INVALID. Please fix errors above.", file=sys.stderr)
        return 1
    if args.validate_only:
        print("Configuration validated successfully.")
        return 0

    run = dict(config['run'])
    if args.frames is not None:
        run['frames'] = args.frames
    if args.frame_dt is not None:
        run['frame_dt'] = args.frame_dt
    if run['frames'] < 0 or not np.isfinite(run['frame_dt']) or run['frame_dt'] < 0:
        print("ERROR: --frames and --frame-dt must be finite and non-negative", file=sys.stderr)
        return 1

    # 3) Build and run
    sim = build_simulation(config)
    if args.verbose:
        print(sim.params)
        print(f"Bodies ({sim.body_count}):")
        for body in sim.snapshot():
            print(f"  {body}")
        print()

    before = summarize(sim.snapshot(), sim.params)
    t_start = time.time()
    trajectory = record_run(
        sim, run['frames'], run['frame_dt'],
        sample_every=run['sample_every'], verbose=args.verbose,
    )
    elapsed = time.time() - t_start
    after = summarize(sim.snapshot(), sim.params)

    # 4) Report
    print_summary(before, after, trajectory, elapsed)

    if args.plot:
        try:
            save_plots(sim, trajectory, Path(args.plot))
        except Exception as e:
            print(f"ERROR: Failed to save plots: {e}", file=sys.stderr)
            if args.verbose:
                traceback.print_exc()
            return 1

    if trajectory['interrupted']:
        return 130
    return 0


if __name__ == '__main__':
    sys.exit(main())
