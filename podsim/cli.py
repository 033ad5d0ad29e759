"""Command-line interface for running pod telemetry simulations."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .catalogue import load_catalogue
from .config_loader import load_config
from .logging_config import setup_logging
from .simulation import RecordedSeries, SimulationError, SimulatorEngine


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="Synthesize pod sensor readings from a measurement catalogue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Model-based run of 30 seconds of simulated time
  podsim --catalogue config/catalogue.yml --duration 30000

  # Independent random readings, reproducible
  podsim --duration 5000 --random --seed 42 --output run.json

  # Only simulate two channels and print per-channel statistics
  podsim --duration 10000 --channels velocity_1 displacement_1 --summary
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        help='Path to the configuration file (default: config/config.yml)'
    )
    parser.add_argument(
        '--catalogue',
        type=Path,
        help='Measurement catalogue file (overrides config)'
    )
    parser.add_argument(
        '--duration',
        type=float,
        help='Simulated run time in milliseconds (overrides config)'
    )
    parser.add_argument(
        '--random',
        action='store_true',
        help='Sample every channel independently instead of using sensor models'
    )
    parser.add_argument(
        '--channels',
        nargs='+',
        metavar='CHANNEL',
        help='Only simulate these channels; others keep their initial value'
    )
    parser.add_argument(
        '--seed',
        type=int,
        help='PRNG seed for a reproducible run'
    )

    # Output options
    parser.add_argument(
        '--output',
        type=Path,
        help='Write the recorded series as JSON to this file; relative paths are placed in paths.output_dir'
    )
    parser.add_argument(
        '--summary',
        action='store_true',
        help='Print per-channel min/max/mean of the recorded series'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress output messages'
    )

    return parser


def print_summary(series: RecordedSeries) -> None:
    """Print per-channel statistics of a recorded series."""
    print(f"{'Channel':<32} {'Min':>12} {'Max':>12} {'Mean':>12}")
    print("-" * 71)
    for channel, stats in series.summary().items():
        print(f"{channel:<32} {stats['min']:>12.4f} {stats['max']:>12.4f} {stats['mean']:>12.4f}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)

        settings = config.simulation
        if args.seed is not None:
            settings = settings.model_copy(update={"seed": args.seed})
        if args.random:
            settings = settings.model_copy(update={"random_mode": True})

        config = config.model_copy(update={"simulation": settings})
        setup_logging(config)

        output = config.paths.output_dir / args.output if args.output else None

        catalogue = load_catalogue(args.catalogue or config.catalogue_path)
        engine = SimulatorEngine(catalogue, settings=settings)

        try:
            series = engine.run(args.duration, channel_filter=args.channels)
        except SimulationError as e:
            print(f"Error: {e}", file=sys.stderr)
            if output and len(e.series):
                output.parent.mkdir(parents=True, exist_ok=True)
                e.series.save_to_file(output)
                print(f"Partial series ({len(e.series)} ticks) written to {output}", file=sys.stderr)
            return 1

        if output:
            output.parent.mkdir(parents=True, exist_ok=True)
            series.save_to_file(output)

        if not args.quiet:
            print(f"Recorded {len(series)} tick(s) over {series.duration_ms:g} ms")
            if output:
                print(f"Series written to {output}")
            if args.summary:
                print_summary(series)

    except KeyboardInterrupt:
        if not args.quiet:
            print("\nOperation cancelled by user")
        return 130

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
