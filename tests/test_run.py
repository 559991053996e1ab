"""
Tests for the command-line runner.

Validates:
1. Frame loop recording (samples, merges, totals)
2. Exit codes and console output of main()
"""

import numpy as np

from gravwell.run import create_parser, main, record_run


class TestRecordRun:
    """Tests for the frame loop."""

    def test_samples(self, sim):
        a = sim.add_body(1.0, [0, 0, 0], [1.0, 0, 0])
        trajectory = record_run(sim, 10, 1.0 / 60.0, sample_every=2)

        # Initial state plus every second frame
        assert trajectory['positions'][a].shape == (6, 3)
        assert len(trajectory['times']) == 6
        assert trajectory['frames'] == 10
        assert trajectory['substeps'] == 20
        assert not trajectory['interrupted']
        assert np.allclose(trajectory['positions'][a][-1], [sim.time, 0, 0])

    def test_records_merges(self, sim):
        sim.add_body(10.0, [0, 0, 0], [0, 0, 0])
        sim.add_body(10.0, [1.0, 0, 0], [0, 0, 0])
        trajectory = record_run(sim, 1, 1.0 / 60.0)

        assert len(trajectory['merges']) == 1
        position, event = trajectory['merges'][0]
        assert event.survivor_id == 1
        assert position.shape == (3,)

    def test_names_and_colors(self, sim):
        a = sim.add_body(1.0, [0, 0, 0], [0, 0, 0], name='Probe', color='#00ff00')
        trajectory = record_run(sim, 1, 1.0 / 60.0)
        assert trajectory['names'][a] == 'Probe'
        assert trajectory['colors'][a] == '#00ff00'


class TestMain:
    """Tests for the CLI entry point."""

    def test_parser_defaults(self):
        args = create_parser().parse_args(['scene.yaml'])
        assert args.config == 'scene.yaml'
        assert args.frames is None
        assert not args.validate_only

    def test_run(self, two_body_yaml, capsys):
        assert main([str(two_body_yaml)]) == 0
        out = capsys.readouterr().out
        assert 'RUN SUMMARY' in out
        assert '2 -> 2' in out

    def test_overrides(self, two_body_yaml, capsys):
        assert main([str(two_body_yaml), '--frames', '3', '--frame-dt', '0.025', '--verbose']) == 0
        out = capsys.readouterr().out
        assert 'Frames:             3\n' in out

    def test_validate_only(self, two_body_yaml, capsys):
        assert main([str(two_body_yaml), '--validate-only']) == 0
        out = capsys.readouterr().out
        assert 'validated successfully' in out
        assert 'RUN SUMMARY' not in out

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / 'missing.yaml')]) == 1
        assert 'not found' in capsys.readouterr().err

    def test_bad_config(self, tmp_path, capsys):
        path = tmp_path / 'bad.yaml'
        path.write_text("bodies:\n  - {mass: -1, position: [0, 0, 0]}\n")
        assert main([str(path)]) == 1
        assert 'Failed to load configuration' in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, capsys):
        path = tmp_path / 'coincident.yaml'
        path.write_text(
            "bodies:\n"
            "  - {name: A, mass: 1, position: [0, 0, 0]}\n"
            "  - {name: B, mass: 1, position: [0, 0, 0]}\n"
        )
        assert main([str(path)]) == 1
        assert 'INVALID' in capsys.readouterr().err

    def test_negative_frames(self, two_body_yaml, capsys):
        assert main([str(two_body_yaml), '--frames', '-1']) == 1

    def test_nan_frame_dt_override(self, two_body_yaml, capsys):
        assert main([str(two_body_yaml), '--frame-dt', 'nan']) == 1
        assert 'ERROR' in capsys.readouterr().err

    def test_nan_frame_dt_in_file(self, tmp_path, capsys):
        path = tmp_path / 'nan.yaml'
        path.write_text('bodies:\n  - {mass: 1, position: [0, 0, 0]}\nrun: {frame_dt: .nan}\n')
        assert main([str(path)]) == 1
        assert 'Failed to load configuration' in capsys.readouterr().err

    def test_plots(self, two_body_yaml, tmp_path):
        plot_dir = tmp_path / 'plots'
        assert main([str(two_body_yaml), '--frames', '10', '--plot', str(plot_dir)]) == 0
        for name in ('snapshot.png', 'trajectories.png', 'potential.png'):
            assert (plot_dir / name).exists()

    def test_interrupt(self, two_body_yaml, monkeypatch):
        from gravwell.simulation import Simulation

        def interrupted(self, frame_dt):
            raise KeyboardInterrupt

        monkeypatch.setattr(Simulation, 'advance', interrupted)
        assert main([str(two_body_yaml)]) == 130
