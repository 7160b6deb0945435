"""
Config, Metrics, Generator, Runner, Visualization and CLI Tests
===============================================================
"""

import json

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from fog_nav.config import Config, MapConfig, load_config, save_config
from fog_nav.environment import Environment
from fog_nav.main import main, MAPS_DIR
from fog_nav.metrics import (
    compute_path_metrics, compute_backtracking_stats, RunClassifier, RunStatus
)
from fog_nav.pipeline import Simulation, ExperimentRunner
from fog_nav.terrain import Terrain, MapGenerator, is_connected, parse_map, load_map
from fog_nav.visualization import TerrainVisualizer, create_frame_callback


# ==================== Config ====================

def test_config_from_dict():
    config = Config.from_dict({
        'energy': {'initial_energy': 30},
        'map': {'num_walls': [1, 2]},
        'verbose': True,
    })
    assert config.energy.initial_energy == 30
    assert config.energy.max_energy == 100
    assert config.map.num_walls == (1, 2)
    assert config.verbose


@pytest.mark.parametrize('data', [{'bogus': 1}, {'energy': {'bogus': 1}}])
def test_config_rejects_unknown_keys(data):
    with pytest.raises(ValueError):
        Config.from_dict(data)


@pytest.mark.parametrize('section, key, value', [
    ('agent', 'sensing_radius', 0),
    ('energy', 'initial_energy', 150),
    ('terrain', 'lava_cost', 0.5),
    ('simulation', 'max_turns', 0),
])
def test_config_validate(section, key, value):
    config = Config()
    setattr(getattr(config, section), key, value)
    with pytest.raises(ValueError):
        config.validate()


def test_config_file(tmp_path):
    config = Config()
    config.agent.sensing_radius = 5
    path = tmp_path / 'config.json'
    save_config(config, path)
    assert load_config(path).to_dict() == config.to_dict()


# ==================== Metrics ====================

def test_path_metrics():
    terrain = parse_map("S.LT").terrain
    path = [(0, 0), (1, 0), (1, 0), (2, 0), (3, 0)]
    metrics = compute_path_metrics(path, terrain, [100, 99, 99, 98, 77])

    assert metrics.moves == 3
    assert metrics.stays == 1
    assert metrics.lava_steps == 1
    assert metrics.weighted_cost == 102.0
    assert metrics.terrain_steps == {'empty': 1, 'lava': 1, 'target': 1}
    assert metrics.min_energy == 77
    assert metrics.final_energy == 77


def test_backtracking_stats():
    stats = compute_backtracking_stats([(0, 0), (1, 0), (1, 0), (0, 0), (1, 0), (2, 0)], (2, 0))
    assert stats.total_moves == 4
    assert stats.backtracking_moves == 1
    assert stats.backtrack_ratio == 0.25
    assert stats.distance_progress_ratio == 0.5


def test_run_classifier():
    classifier = RunClassifier()
    assert classifier.classify(True, energy_depleted=True) == (RunStatus.SUCCESS, None)
    assert classifier.classify(False, energy_depleted=True)[0] == RunStatus.OUT_OF_ENERGY
    assert classifier.classify(False, last_plan_failed=True)[0] == RunStatus.UNREACHABLE
    assert classifier.classify(False) == (RunStatus.TIMEOUT, 'max_turns')


# ==================== Map generation ====================

def test_generated_maps_are_connected():
    config = MapConfig(width=15, height=10)
    for seed in range(5):
        grid_map = MapGenerator(config, seed).generate()
        sx, sy = grid_map.start
        tx, ty = grid_map.target

        assert grid_map.terrain.shape == (10, 15)
        assert grid_map.terrain[sy, sx] == Terrain.START
        assert grid_map.terrain[ty, tx] == Terrain.TARGET
        assert sx < 3 and tx >= 12
        assert is_connected(grid_map.terrain, grid_map.start, grid_map.target)


def test_generator_is_deterministic():
    a = MapGenerator(MapConfig(), 7).generate()
    b = MapGenerator(MapConfig(), 7).generate()
    assert np.array_equal(a.terrain, b.terrain)
    assert (a.start, a.target) == (b.start, b.target)


def test_is_connected_detects_split():
    terrain = parse_map("S#T").terrain
    assert not is_connected(terrain, (0, 0), (2, 0))


# ==================== Experiment runner ====================

def small_config():
    config = Config()
    config.map.width = 12
    config.map.height = 10
    return config


def test_run_single_scenario(tmp_path):
    runner = ExperimentRunner(small_config())
    result = runner.run_single_scenario(seed=5, output_dir=str(tmp_path))

    assert result.success
    assert set(result.methods) == set(ExperimentRunner.METHODS)
    for run in result.methods.values():
        assert run['status'] in (RunStatus.SUCCESS, RunStatus.OUT_OF_ENERGY,
                                 RunStatus.TIMEOUT, RunStatus.UNREACHABLE)

    scenario_dir = tmp_path / 'scenario_00005'
    assert (scenario_dir / 'map.txt').exists()
    assert (scenario_dir / 'logs.json').exists()
    assert (scenario_dir / 'paths.npz').exists()
    assert load_map(scenario_dir / 'map.txt').width == 12


def test_unknown_method_is_reported():
    result = ExperimentRunner(small_config()).run_single_scenario(seed=1, methods=['teleport'])
    assert result.success
    assert result.methods['teleport']['status'] == 'error'


def test_run_suite(tmp_path):
    results = ExperimentRunner(small_config()).run_suite(
        num_scenarios=2, seed_base=3, output_dir=str(tmp_path)
    )

    assert results.num_scenarios == 2
    assert set(results.summary) == set(ExperimentRunner.METHODS)
    for summary in results.summary.values():
        assert 0.0 <= summary['success_rate'] <= 100.0

    with open(tmp_path / 'aggregated_results.json') as f:
        assert json.load(f)['num_scenarios'] == 2


# ==================== Visualization ====================

def test_run_figure(tmp_path):
    grid_map = load_map(MAPS_DIR / 'map2.txt')
    belief = np.full(grid_map.terrain.shape, -1, dtype=np.int8)
    belief[:3, :4] = grid_map.terrain[:3, :4]

    vis = TerrainVisualizer(grid_map.terrain)
    fig = vis.create_run_figure(
        belief=belief, path=[(0, 0), (1, 0), (1, 1)], chargers=[(2, 2)],
        position=(1, 1), radius=2
    )
    assert len(fig.axes) == 2

    out = tmp_path / 'run.png'
    vis.save_figure(fig, out)
    assert out.exists()


def test_frame_callback(tmp_path):
    config = Config()
    sim = Simulation(Environment(parse_map("S...T"), config), config)
    sim.add_agent('Robby')

    callback = create_frame_callback(TerrainVisualizer(sim.env.terrain), 'Robby', tmp_path, every=2)
    sim.run(callback)

    assert [p.name for p in callback.saved_frames] == ['frame_00002.png', 'frame_00004.png']
    assert all(p.exists() for p in callback.saved_frames)


# ==================== CLI ====================

def test_cli_run_bundled_map(tmp_path):
    plot = tmp_path / 'run.png'
    assert main(['run', '--map', 'map1', '--plot', str(plot)]) == 0
    assert plot.exists()


def test_cli_config_file(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps({'energy': {'initial_energy': 3}}))
    assert main(['run', '--map', 'map1', '--config', str(path)]) == 1


def test_cli_generate(tmp_path):
    out = tmp_path / 'generated.txt'
    assert main(['generate', '--width', '12', '--height', '8', '--seed', '3', '--output', str(out)]) == 0
    grid_map = load_map(out)
    assert (grid_map.width, grid_map.height) == (12, 8)


def test_cli_suite(tmp_path):
    assert main(['suite', '--num-scenarios', '1', '--output', str(tmp_path)]) == 0
    assert (tmp_path / 'aggregated_results.json').exists()


def test_cli_without_command():
    assert main([]) == 1
