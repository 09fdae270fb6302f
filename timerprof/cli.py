#!/usr/bin/env python3
"""
timerprof CLI Interface

Command-line interface for the timer call-site profiler.
"""

import argparse
import math
import sys

from . import __version__
from .config import OUTPUT_FORMATS, ProfilerConfig
from .profiler import load_workload, profile, sample_workload


def _positive_number(value):
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be a positive number, got '{value}'")
    if not math.isfinite(number) or number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number, got '{value}'")
    return number


def _positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got '{value}'")
    return number


def _output_format(value):
    normalized = value.strip().lower()
    if normalized not in OUTPUT_FORMATS:
        raise argparse.ArgumentTypeError(f"must be 'table' or 'json', got '{value}'")
    return normalized


def create_parser(defaults=None):
    """Create the argument parser for the timerprof CLI."""
    defaults = defaults or ProfilerConfig()
    parser = argparse.ArgumentParser(
        prog='timerprof',
        description='Timer call-site profiler - find the code scheduling the most timers',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  timerprof
  timerprof --duration 5 --output json
  timerprof --duration 3 --top 50
  timerprof --target myapp.polling:start

Output:
  table  Ranked call sites with a frequency analysis of the top 5
  json   Structured data for programmatic analysis or reporting

Interpretation:
  - High counts point at timers scheduled over and over (polling loops)
  - A single-shot timer rescheduled from its own callback shows up as one hot site
  - Active timers left at the end of the window were never cancelled
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    parser.add_argument('--duration', '-d', type=_positive_number, default=defaults.duration_s,
                        metavar='SECONDS',
                        help=f'Observation window in seconds (default: {defaults.duration_s:g})')
    parser.add_argument('--output', '-o', type=_output_format, default=defaults.output,
                        metavar='{table,json}',
                        help=f'Output format (default: {defaults.output})')
    parser.add_argument('--top', '-t', type=_positive_int, default=defaults.top,
                        metavar='N',
                        help=f'Number of call sites to show (default: {defaults.top})')
    parser.add_argument('--target', metavar='MODULE:CALLABLE', default=defaults.target,
                        help='Workload to profile, called with the instrumented timers '
                             '(default: built-in sample workload)')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    try:
        defaults = ProfilerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid TIMERPROF_* environment setting: {e}", file=sys.stderr)
        return 2

    parser = create_parser(defaults)
    args = parser.parse_args(argv)

    try:
        config = ProfilerConfig(
            duration_s=args.duration,
            output=args.output,
            top=args.top,
            target=args.target,
        )
        workload = load_workload(config.target) if config.target else sample_workload
    except ValueError as e:
        parser.error(f"argument --target: {e}")

    if config.output == 'table':
        print(f"Starting timer profiler for {config.duration_s:g} seconds...")
        print(f"Output format: {config.output}")
        print("Recording timer call sites...")

    try:
        report = profile(config, workload)
    except Exception as e:
        print(f"Error during profiling: {e}", file=sys.stderr)
        return 1

    if config.output == 'json':
        print(report.to_json())
    else:
        print(report.format_table())
        print("Profiling complete. Original timer functions restored.")

    return 0


if __name__ == '__main__':
    sys.exit(main())
