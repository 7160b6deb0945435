#!/usr/bin/env python3
"""
Quick Test Script for Fog-of-War Navigation
===========================================

Tests all modules can be imported and basic functionality works.
Runs under pytest or directly as a script.
"""

import traceback


def test_imports():
    """Test all module imports"""
    print("Testing imports...")

    from fog_nav.config import Config, AgentConfig, configure_logging
    print("  ✓ config")

    from fog_nav.terrain import Terrain, Direction, MapGenerator, parse_map
    print("  ✓ terrain")

    from fog_nav.environment import Environment, BeliefMap, extract_view
    print("  ✓ environment")

    from fog_nav.energy import EnergyModel, EnergyUpdate
    print("  ✓ energy")

    from fog_nav.metrics import PathMetrics, RunClassifier, RunResult
    print("  ✓ metrics")

    from fog_nav.planning import AStarPlanner, GoalSelector, RobotController
    print("  ✓ planning")

    from fog_nav.pipeline import Simulation, ExperimentRunner
    print("  ✓ pipeline")

    print("All imports successful!\n")


def test_config():
    """Test configuration"""
    print("Testing configuration...")

    from fog_nav.config import Config

    config = Config().validate()

    assert config.agent.sensing_radius == 3
    assert config.agent.energy_threshold == 40
    assert config.energy.initial_energy == 100
    assert config.terrain.lava_cost == 100.0
    assert config.simulation.max_turns == 200

    print(f"  Sensing radius: {config.agent.sensing_radius} cells")
    print(f"  Energy threshold: {config.agent.energy_threshold}")
    print("Configuration test passed!\n")


def test_terrain_generation():
    """Test terrain generation"""
    print("Testing terrain generation...")

    import numpy as np
    from fog_nav.config import MapConfig
    from fog_nav.terrain import MapGenerator, Terrain, is_connected

    grid_map = MapGenerator(MapConfig(width=20, height=15), seed=42).generate()

    assert grid_map.terrain.shape == (15, 20)
    assert grid_map.terrain[grid_map.start[1], grid_map.start[0]] == Terrain.START
    assert grid_map.terrain[grid_map.target[1], grid_map.target[0]] == Terrain.TARGET
    assert is_connected(grid_map.terrain, grid_map.start, grid_map.target)

    print("  Terrain distribution:")
    for t in Terrain:
        print(f"    {t.name}: {int(np.sum(grid_map.terrain == t))}")
    print("Terrain generation test passed!\n")


def test_environment():
    """Test environment"""
    print("Testing environment...")

    from fog_nav.environment import Environment
    from fog_nav.terrain import parse_map, Direction

    env = Environment(parse_map("S..\n.#.\n..T\n"))
    env.add_agent('Robby')

    assert env.grid_dimensions() == (3, 3)
    assert env.start() == (0, 0)
    assert env.goal() == (2, 2)
    assert env.can_move_to('Robby', Direction.RIGHT)
    assert not env.can_move_to('Robby', Direction.UP)

    print(f"  Start: {env.start()}")
    print(f"  Goal: {env.goal()}")
    print("Environment test passed!\n")


def test_astar():
    """Test A* pathfinding"""
    print("Testing A* pathfinding...")

    from fog_nav.environment import BeliefMap
    from fog_nav.planning import AStarPlanner

    belief = BeliefMap(10, 10)
    planner = AStarPlanner(belief)

    path = planner.find_path((0, 0), (9, 9))

    assert len(path) == 18
    assert planner.last_stats.success
    print(f"  Path found: {len(path)} moves, {planner.last_stats.nodes_expanded} expanded")
    print("A* test passed!\n")


def test_full_run():
    """Test a complete simulation on a small map"""
    print("Testing full run...")

    from fog_nav.terrain import parse_map
    from fog_nav.pipeline import simulate

    result = simulate(parse_map("S....\n.###.\n....T\n"))

    assert result.is_success
    assert result.path[0] == (0, 0)
    assert result.path[-1] == (4, 2)

    print(f"  Status: {result.status}")
    print(f"  Turns: {result.turns}")
    print(f"  Replans: {result.replans}")
    print("Full run test passed!\n")


def run_all_tests():
    """Run all tests"""
    print("=" * 60)
    print("FOG-OF-WAR NAVIGATION - MODULE TESTS")
    print("=" * 60 + "\n")

    tests = [
        ("Imports", test_imports),
        ("Configuration", test_config),
        ("Terrain Generation", test_terrain_generation),
        ("Environment", test_environment),
        ("A* Pathfinding", test_astar),
        ("Full Run", test_full_run),
    ]

    results = []
    for name, test_fn in tests:
        try:
            test_fn()
            results.append((name, True))
        except Exception as e:
            print(f"  ✗ {name} FAILED: {e}")
            traceback.print_exc()
            results.append((name, False))

    print("=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)

    passed = sum(1 for _, ok in results if ok)
    total = len(results)

    for name, ok in results:
        status = "✓ PASS" if ok else "✗ FAIL"
        print(f"  {status}: {name}")

    print(f"\nTotal: {passed}/{total} tests passed")
    print("=" * 60)

    return passed == total


if __name__ == '__main__':
    import sys
    sys.exit(0 if run_all_tests() else 1)
