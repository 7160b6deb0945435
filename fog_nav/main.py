#!/usr/bin/env python3
"""
Fog-of-War Grid Navigation - Main Entry Point
==============================================

Usage:
    # Single run on a bundled or custom map
    python -m fog_nav.main run --map map3 --verbose
    python -m fog_nav.main run --map my_map.txt --radius 2 --energy 60 --plot run.png

    # Single run on a generated map
    python -m fog_nav.main run --seed 42

    # Write a generated map to a file
    python -m fog_nav.main generate --width 30 --height 20 --seed 7 --output map.txt

    # Run experiment suite over generated maps
    python -m fog_nav.main suite --num-scenarios 20 --seed-base 42 --output results/
"""

import argparse
import sys
from pathlib import Path

MAPS_DIR = Path(__file__).parent / 'maps'


def build_config(args):
    """Defaults, then --config file, then command-line overrides"""
    from fog_nav.config import Config, load_config, configure_logging

    config = load_config(args.config) if args.config else Config()
    config.verbose = config.verbose or args.verbose

    if getattr(args, 'radius', None):
        config.agent.sensing_radius = args.radius
    if getattr(args, 'energy', None):
        config.energy.initial_energy = args.energy
    if getattr(args, 'max_turns', None):
        config.simulation.max_turns = args.max_turns
    if getattr(args, 'width', None):
        config.map.width = args.width
    if getattr(args, 'height', None):
        config.map.height = args.height
    if getattr(args, 'seed', None) is not None:
        config.random_seed = args.seed

    configure_logging(config.verbose, getattr(args, 'log_file', None))
    return config.validate()


def resolve_map(name: str) -> Path:
    """Accept a path or the name of a bundled map"""
    path = Path(name)
    if path.exists():
        return path
    bundled = MAPS_DIR / (name if name.endswith('.txt') else f'{name}.txt')
    if bundled.exists():
        return bundled
    raise FileNotFoundError(f"Map not found: {name}")


def run_single(args):
    """Run one agent on one map"""
    from fog_nav.terrain import MapGenerator, map_to_string
    from fog_nav.environment import Environment
    from fog_nav.pipeline import Simulation
    from fog_nav.visualization import TerrainVisualizer

    config = build_config(args)

    if args.map:
        env = Environment.from_file(resolve_map(args.map), config)
    else:
        env = Environment(MapGenerator(config.map, config.random_seed).generate(), config)
    grid_map = env.grid_map

    print(map_to_string(grid_map.terrain))

    sim = Simulation(env, config)
    agent_id = config.simulation.agent_id
    sim.add_agent(agent_id)
    result = sim.run()[agent_id]

    print("=" * 60)
    print(f"RESULT: {result.status}")
    if result.failure_type:
        print(f"Failure type: {result.failure_type}")
    print(f"Turns: {result.turns}")
    print(f"Moves: {result.metrics.moves}  Stays: {result.metrics.stays}  Lava: {result.metrics.lava_steps}")
    print(f"Energy: final {result.metrics.final_energy}, min {result.metrics.min_energy}")
    print(f"Replans: {result.replans}  Blocked moves: {result.blocked_moves}")
    print(f"Chargers discovered: {result.chargers_discovered}  Map known: {result.known_fraction:.0%}")
    print("=" * 60)

    if args.plot:
        controller = sim.controllers[agent_id]
        vis = TerrainVisualizer(grid_map.terrain, config.visualization)
        fig = vis.create_run_figure(
            belief=controller.belief.as_array() if controller.belief is not None else None,
            path=result.path,
            chargers=controller.known_chargers,
            position=controller.position,
            radius=config.agent.sensing_radius,
            title=f'{result.status} after {result.turns} turns'
        )
        vis.save_figure(fig, args.plot)
        print(f"Figure saved to: {args.plot}")

    return 0 if result.is_success else 1


def run_generate(args):
    """Generate a map file"""
    from fog_nav.terrain import MapGenerator, save_map

    config = build_config(args)
    grid_map = MapGenerator(config.map, config.random_seed).generate()
    save_map(grid_map, args.output)
    print(f"Map {grid_map.width}x{grid_map.height} saved to: {args.output}")
    return 0


def run_suite(args):
    """Run full experiment suite"""
    from fog_nav.pipeline import ExperimentRunner

    config = build_config(args)
    runner = ExperimentRunner(config)

    methods = args.methods.split(',') if args.methods else None

    results = runner.run_suite(
        num_scenarios=args.num_scenarios,
        seed_base=args.seed_base,
        methods=methods,
        output_dir=args.output,
        parallel=args.parallel,
        max_workers=args.workers
    )

    print("\n" + "=" * 70)
    print("EXPERIMENT SUMMARY")
    print("=" * 70)
    print(f"{'Method':<20} {'Success':>10} {'Turns':>12} {'Replans':>12}")
    print("-" * 70)
    for method, s in results.summary.items():
        turns = f"{s['turns_mean']:.1f}" if s['turns_mean'] is not None else "N/A"
        replans = f"{s['replans_mean']:.1f}" if s['replans_mean'] is not None else "N/A"
        print(f"{method:<20} {s['success_rate']:>9.1f}% {turns:>12} {replans:>12}")
    print("=" * 70)
    print(f"\nResults saved to: {args.output}")

    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Fog-of-War Grid Navigation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    # Options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', type=str, help='JSON config file')
    common.add_argument('--verbose', '-v', action='store_true', help='Log FSM transitions')
    common.add_argument('--log-file', type=str, help='Also log to this file')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Run command
    run_parser = subparsers.add_parser('run', parents=[common], help='Run a single simulation')
    run_parser.add_argument('--map', type=str, help='Map file or bundled map name (default: generated)')
    run_parser.add_argument('--seed', type=int, help='Random seed for a generated map')
    run_parser.add_argument('--radius', type=int, help='Sensing radius in cells')
    run_parser.add_argument('--energy', type=int, help='Initial energy')
    run_parser.add_argument('--max-turns', type=int, help='Turn budget')
    run_parser.add_argument('--plot', type=str, help='Save a figure of the run here')

    # Generate command
    gen_parser = subparsers.add_parser('generate', parents=[common], help='Generate a map file')
    gen_parser.add_argument('--width', type=int, help='Map width')
    gen_parser.add_argument('--height', type=int, help='Map height')
    gen_parser.add_argument('--seed', type=int, default=42, help='Random seed')
    gen_parser.add_argument('--output', type=str, required=True, help='Output map file')

    # Suite command
    suite_parser = subparsers.add_parser('suite', parents=[common], help='Run experiment suite')
    suite_parser.add_argument('--num-scenarios', type=int, default=10, help='Number of scenarios')
    suite_parser.add_argument('--seed-base', type=int, default=42, help='Base seed')
    suite_parser.add_argument('--radius', type=int, help='Sensing radius in cells')
    suite_parser.add_argument('--methods', type=str, help='Comma-separated methods')
    suite_parser.add_argument('--output', type=str, default='results', help='Output directory')
    suite_parser.add_argument('--parallel', action='store_true', help='Use parallel execution')
    suite_parser.add_argument('--workers', type=int, default=4, help='Number of workers')

    args = parser.parse_args(argv)

    if args.command == 'run':
        return run_single(args)
    elif args.command == 'generate':
        return run_generate(args)
    elif args.command == 'suite':
        return run_suite(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
