#!/usr/bin/env python3
"""
Solar System Simulator

A headless run of the Sun-and-planets orbital integrator. It reports each
planet's distance from the Sun as the simulation advances. Rendering
front-ends drive the same SimulationEngine one frame at a time.

Usage:
    python main.py                          # One simulated year, physical units
    python main.py --steps 4383 --speed 2   # Same year in half the frames
    python main.py --preset stylized        # Arbitrary units with force ceiling
    python main.py --seed 7                 # Random starting angles
"""

import argparse
import sys
import time

from solar_system.config import (
    DEFAULT_PRESET,
    MAX_SPEED_MULTIPLIER,
    PARAMETER_SETS,
    PRECISION,
    SPEED_MULTIPLIER,
    TRAIL_LENGTH,
)
from solar_system.errors import ConfigurationError

DEFAULT_STEPS = 8766  # One year of one-hour frames
DEFAULT_REPORTS = 12


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Solar System Simulator - Sun and planets under gravity',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--preset',
        '-pr',
        type=str,
        choices=sorted(PARAMETER_SETS),
        default=DEFAULT_PRESET,
        metavar='NAME',
        help=f'Planet set and unit system: physical or stylized '
        f'(default: {DEFAULT_PRESET}).',
    )
    parser.add_argument(
        '--steps',
        '-n',
        type=int,
        default=DEFAULT_STEPS,
        metavar='N',
        help=f'Number of frames to simulate (default: {DEFAULT_STEPS})',
    )
    parser.add_argument(
        '--timestep',
        '-dt',
        type=float,
        default=None,
        metavar='DT',
        help='Frame time step (default: 3600 s for physical, 0.01 for stylized).',
    )
    parser.add_argument(
        '--speed',
        '-x',
        type=float,
        default=SPEED_MULTIPLIER,
        metavar='FACTOR',
        help=f'Speed multiplier applied to every frame, 0-{MAX_SPEED_MULTIPLIER:g} '
        f'in the interactive panel (default: {SPEED_MULTIPLIER:g})',
    )
    parser.add_argument(
        '--trail-length',
        '-t',
        type=int,
        default=TRAIL_LENGTH,
        metavar='N',
        help=f'Positions kept per planet trail (default: {TRAIL_LENGTH})',
    )
    parser.add_argument(
        '--reports',
        '-r',
        type=int,
        default=DEFAULT_REPORTS,
        metavar='N',
        help=f'Number of progress reports over the run (default: {DEFAULT_REPORTS})',
    )
    parser.add_argument(
        '--seed',
        '-s',
        type=int,
        default=None,
        metavar='SEED',
        help='Random seed for the planets\' starting angles',
    )
    parser.add_argument(
        '--precision',
        '-p',
        type=int,
        choices=[64, 32],
        default=PRECISION,
        metavar='BITS',
        help=f'Floating point precision: 64 or 32 bits (default: {PRECISION}).',
    )
    return parser.parse_args()


def format_report(engine, preset: str) -> str:
    """One line per planet: distance from the Sun in scene units and physical units."""
    unit_scale = engine.parameters.unit_scale
    if preset == 'physical':
        header = f"t = {engine.sim_time / 86400.0:9.2f} days ({engine.step_count} steps)"
    else:
        header = f"t = {engine.sim_time:9.3f} ({engine.step_count} steps)"
    lines = [header]
    for name, distance in zip(engine.planet_names, engine.distances()):
        lines.append(f"  {name:<10} r = {distance:10.4f} scene = {distance * unit_scale:.4e}")
    return "\n".join(lines)


def main():
    """Main entry point."""
    args = parse_args()

    # JAX precision must be configured before any kernels are traced
    from solar_system.physics.gravity import configure_precision, get_device_info
    from solar_system.initialization.presets import initialize_solar_system

    try:
        configure_precision(args.precision)
        engine = initialize_solar_system(
            args.preset,
            seed=args.seed,
            trail_length=args.trail_length,
            speed_multiplier=args.speed,
        )
        timestep = args.timestep if args.timestep is not None else engine.parameters.timestep
        if args.steps < 0 or args.reports <= 0:
            raise ConfigurationError("--steps must be >= 0 and --reports must be > 0")
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    print(f"Initialized {args.preset} system with {len(engine.planets)} planets "
          f"(precision: {args.precision}-bit).")
    print(get_device_info())
    print(format_report(engine, args.preset))

    chunk = max(1, args.steps // args.reports)
    remaining = args.steps
    start = time.time()
    try:
        while remaining > 0:
            taken = engine.run(timestep, min(chunk, remaining))
            if taken == 0:
                print("Speed multiplier is 0; nothing to simulate.")
                break
            remaining -= taken
            print(format_report(engine, args.preset))
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")

    elapsed = time.time() - start
    print(f"Done: {engine.step_count} steps in {elapsed:.2f} s.")


if __name__ == '__main__':
    main()
