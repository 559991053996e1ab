"""Configuration module for the gravwell N-body core.

This module provides:
- YAML scene loading (parameters, bodies, optional preset, run settings)
- Configuration validation (overlapping bodies, time step vs orbital period)
- Building a populated ``Simulation`` from a loaded configuration

Scene file layout::

    params:              # any SimParams field, all optional
      gravity_multiplier: 1.0
      fixed_dt: 0.008333
    preset:              # optional; bodies below are added on top of it
      name: solar
      seed: 42
    bodies:              # optional if a preset is given
      - name: Sun
        mass: 300
        position: [0, 0, 0]
        velocity: [0, 0, 0]
        color: "#ffcc00"
    run:                 # optional, used by gravwell.run
      frames: 600
      frame_dt: 0.016667
      sample_every: 10
"""

from typing import Any, Dict, List, Tuple
from pathlib import Path
from types import SimpleNamespace
import warnings

import numpy as np
import yaml

from gravwell.bodies import RadiusLaw, as_vec3
from gravwell.dynamics import estimate_orbital_period
from gravwell.params import InvalidParameter, SimParams, require_finite
from gravwell.presets import load_solar_preset
from gravwell.simulation import Simulation


PRESETS = ('solar',)

DEFAULT_RUN = {
    'frames': 600,
    'frame_dt': 1.0 / 60.0,
    'sample_every': 10,
}


def load_config(yaml_path: str) -> Dict[str, Any]:
    """Load and parse a YAML scene file.

    Parameters
    ----------
    yaml_path : str
        Path to YAML configuration file.

    Returns
    -------
    dict
        Configuration dictionary with keys:
        - 'params': SimParams instance
        - 'bodies': list of dicts with name, mass, position, velocity, color
          (positions/velocities as float64 arrays of shape (3,))
        - 'preset': dict with 'name' and 'seed', or None
        - 'run': dict with frames, frame_dt, sample_every

    Raises
    ------
    FileNotFoundError
        If yaml_path does not exist.
    yaml.YAMLError
        If YAML parsing fails.
    KeyError
        If a body is missing a required field, or neither bodies nor a
        preset are given.
    ValueError
        If values are invalid (InvalidParameter for parameter/body values,
        plain ValueError for an unknown preset or bad run settings).

    Examples
    --------
    >>> config = load_config("examples/two_body.yaml")
    >>> len(config['bodies'])
    2
    """
    yaml_path = Path(yaml_path)
    if not yaml_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None or not isinstance(raw_config, dict):
        raise ValueError(f"Empty or invalid YAML file: {yaml_path}")

    # Parse parameters
    params_cfg = raw_config.get('params') or {}
    unknown = sorted(set(params_cfg) - set(SimParams.field_names()))
    if unknown:
        raise InvalidParameter(f"Unknown parameter(s) in 'params': {', '.join(unknown)}")
    params = SimParams(**params_cfg)

    # Parse preset
    preset = None
    if raw_config.get('preset') is not None:
        preset_cfg = raw_config['preset']
        if isinstance(preset_cfg, str):
            preset_cfg = {'name': preset_cfg}
        name = preset_cfg.get('name')
        if name not in PRESETS:
            raise ValueError(f"Unknown preset {name!r}; available: {', '.join(PRESETS)}")
        seed = preset_cfg.get('seed')
        preset = {'name': name, 'seed': None if seed is None else int(seed)}

    # Parse bodies
    bodies_cfg = raw_config.get('bodies') or []
    if not isinstance(bodies_cfg, list):
        raise ValueError("Configuration 'bodies' must be a list")
    if not bodies_cfg and preset is None:
        raise KeyError("Configuration needs a non-empty 'bodies' list or a 'preset'")

    bodies = []
    for i, body_cfg in enumerate(bodies_cfg):
        if not isinstance(body_cfg, dict):
            raise ValueError(f"Body {i} must be a mapping, got {body_cfg!r}")
        try:
            mass = float(body_cfg['mass'])
            if not mass > 0:
                raise InvalidParameter(f"Mass must be positive, got {mass}")
            bodies.append({
                'name': str(body_cfg.get('name', f"Body {i + 1}")),
                'mass': mass,
                'position': as_vec3('position', body_cfg['position']),
                'velocity': as_vec3('velocity', body_cfg.get('velocity', [0.0, 0.0, 0.0])),
                'color': body_cfg.get('color'),
            })
        except KeyError as e:
            raise KeyError(f"Body {i} missing required field {e}")
        except (ValueError, TypeError) as e:
            raise InvalidParameter(f"Body {i} ('{body_cfg.get('name', 'unnamed')}'): {e}")

    # Parse run options
    run_cfg = raw_config.get('run') or {}
    run = {
        'frames': int(run_cfg.get('frames', DEFAULT_RUN['frames'])),
        'frame_dt': require_finite('run.frame_dt', run_cfg.get('frame_dt', DEFAULT_RUN['frame_dt'])),
        'sample_every': int(run_cfg.get('sample_every', DEFAULT_RUN['sample_every'])),
    }
    if run['frames'] < 0 or run['frame_dt'] < 0 or run['sample_every'] <= 0:
        raise ValueError(f"Invalid 'run' settings: {run}")

    if run['frame_dt'] > params.max_frame_dt:
        warnings.warn(
            f"run.frame_dt = {run['frame_dt']} exceeds max_frame_dt = {params.max_frame_dt}; "
            "each frame will be clamped",
            UserWarning
        )

    return {
        'params': params,
        'bodies': bodies,
        'preset': preset,
        'run': run,
    }


def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Check a loaded configuration for problems the dataclasses cannot see.

    Parameters
    ----------
    config : dict
        Configuration dictionary from load_config().

    Returns
    -------
    is_valid : bool
        False only for problems that make the run meaningless.
    warnings_list : list of str
        Human-readable descriptions of every issue found.

    Notes
    -----
    **Checks performed**:

    1. Bodies that already overlap past the merge threshold (they will merge
       on the first sub-step; reported, not fatal)
    2. Coincident bodies (zero separation; invalid)
    3. Sub-step h vs the fastest two-body orbital period: h > T/100 warns
    4. Sub-step capacity: fixed_dt * max_substeps below frame_dt * speed
       means simulated time will lag behind wall-clock time
    """
    warnings_list = []
    is_valid = True

    try:
        params = config['params']
        bodies = config['bodies']
        run = config['run']
    except KeyError as e:
        return False, [f"Missing required config section: {e}"]

    law = RadiusLaw(params.radius_scale, params.min_radius)
    G = params.G

    shortest_period = None
    for i, body_a in enumerate(bodies):
        for j, body_b in enumerate(bodies):
            if j <= i:
                continue

            r_ab = float(np.linalg.norm(body_b['position'] - body_a['position']))
            if r_ab == 0.0:
                is_valid = False
                warnings_list.append(
                    f"Bodies '{body_a['name']}' and '{body_b['name']}' are coincident"
                )
                continue

            threshold = (law(body_a['mass']) + law(body_b['mass'])) * params.merge_factor
            if r_ab < threshold:
                warnings_list.append(
                    f"Bodies '{body_a['name']}' and '{body_b['name']}' overlap "
                    f"(r = {r_ab:.3e} < merge threshold {threshold:.3e}); "
                    f"they will merge on the first sub-step"
                )

            try:
                T = estimate_orbital_period(
                    [SimpleNamespace(**body_a), SimpleNamespace(**body_b)], G
                )
            except ValueError:
                continue
            if shortest_period is None or T < shortest_period:
                shortest_period = T

    if shortest_period is not None and params.fixed_dt > 0.01 * shortest_period:
        warnings_list.append(
            f"Sub-step h = {params.fixed_dt:.3e} is large compared to the shortest "
            f"pair period T ~ {shortest_period:.3e}. Consider h < {0.01 * shortest_period:.3e}."
        )

    wanted = min(run['frame_dt'], params.max_frame_dt) * params.speed_multiplier
    capacity = params.fixed_dt * params.max_substeps
    if wanted > capacity:
        warnings_list.append(
            f"Each frame asks for {wanted:.3e} of simulated time but at most "
            f"{capacity:.3e} fits in {params.max_substeps} sub-steps; the simulation "
            f"will run slower than requested"
        )

    return is_valid, warnings_list


def build_simulation(config: Dict[str, Any]) -> Simulation:
    """Create a ``Simulation`` with the configured parameters and bodies.

    The preset (if any) is loaded first; explicit bodies are added after it.
    """
    sim = Simulation(config['params'])

    preset = config.get('preset')
    if preset is not None and preset['name'] == 'solar':
        load_solar_preset(sim, np.random.default_rng(preset['seed']))

    for body in config['bodies']:
        sim.add_body(
            body['mass'],
            body['position'],
            body['velocity'],
            name=body['name'],
            color=body['color'],
        )
    return sim

