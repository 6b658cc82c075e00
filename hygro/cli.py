"""
HYGRO Command Line Interface

Usage:
    python -m hygro <command> [args]

Commands:
    analyze     Full analytics report for a reading table (JSON out)
    hotspots    Hotspot ranking for a reading table
    config      Print the effective configuration

Examples:
    python -m hygro analyze readings.csv --interval hourly
    python -m hygro analyze readings.json --sensitivity 0.4 -o report.json
    python -m hygro hotspots readings.parquet --strategy cluster --sort max
    python -m hygro --config site.yaml config
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from hygro.config.analytics import load_config
from hygro.engine import HOTSPOT_STRATEGIES, AnalyticsEngine
from hygro.engines.normalizer import INTERVAL_MS
from hygro.engines.spatial.hotspots import SORT_KEYS
from hygro.engines.validation import AnalyticsError
from hygro.io import filter_valid_readings, points_from_frame, read_readings, readings_from_frame


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _engine(args) -> AnalyticsEngine:
    if args.config:
        return AnalyticsEngine.from_file(args.config)
    return AnalyticsEngine()


def _emit(payload, output: Optional[str]):
    text = json.dumps(payload, indent=2)
    if output:
        Path(output).write_text(text + '\n')
        logger.info(f"Wrote {output}")
    else:
        print(text)


# ============================================================
# COMMANDS
# ============================================================

def cmd_analyze(args):
    """Full report for one reading table."""
    try:
        engine = _engine(args)
        df = filter_valid_readings(read_readings(args.input))
    except (FileNotFoundError, ValueError, AnalyticsError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if df.height < 2:
        print(f"ERROR: At least 2 valid readings are required for analysis, found {df.height}", file=sys.stderr)
        return 1

    report = engine.report(
        {'points': points_from_frame(df), 'interval': args.interval},
        sensitivity=args.sensitivity,
        include_trends=not args.no_trends,
        include_change_points=not args.no_change_points,
        include_hotspots=not args.no_hotspots,
        hotspot_strategy=args.hotspot_strategy,
        readings=readings_from_frame(df),
    )

    _emit(report.to_dict(), args.output)

    if not report.success:
        for stage, message in report.errors.items():
            print(f"ERROR: {stage}: {message}", file=sys.stderr)
        return 1
    return 0


def cmd_hotspots(args):
    """Hotspot ranking for one reading table."""
    try:
        engine = _engine(args)
        df = filter_valid_readings(read_readings(args.input))
        hotspots = engine.hotspots(readings_from_frame(df), strategy=args.strategy, sort_by=args.sort)
    except (FileNotFoundError, ValueError, AnalyticsError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    _emit([h.to_dict() for h in hotspots], args.output)
    return 0


def cmd_config(args):
    """Print the effective configuration as YAML."""
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(yaml.safe_dump(config.to_dict(), sort_keys=False), end='')
    return 0


# ============================================================
# HYGRO MAIN CLI
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='hygro',
        description='HYGRO Moisture Analytics',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m hygro analyze readings.csv --interval hourly
    python -m hygro hotspots readings.parquet --strategy cluster
    python -m hygro config
        """,
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging',
    )
    parser.add_argument(
        '--config', '-c',
        metavar='FILE',
        help='Site YAML merged over the packaged defaults',
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # analyze command
    analyze_parser = subparsers.add_parser(
        'analyze',
        help='Full analytics report',
    )
    analyze_parser.add_argument(
        'input',
        help='Reading table (.json, .csv or .parquet)',
    )
    analyze_parser.add_argument(
        '--interval', '-i',
        choices=list(INTERVAL_MS),
        default='hourly',
        help='Nominal sampling interval (default: hourly)',
    )
    analyze_parser.add_argument(
        '--sensitivity', '-s',
        type=float,
        default=None,
        help='Change-point sensitivity in (0, 1) (default: from config)',
    )
    analyze_parser.add_argument(
        '--hotspot-strategy',
        choices=HOTSPOT_STRATEGIES,
        default='grid',
        help='Hotspot aggregation (default: grid)',
    )
    analyze_parser.add_argument('--no-trends', action='store_true', help='Skip trend analysis')
    analyze_parser.add_argument('--no-change-points', action='store_true', help='Skip change-point detection')
    analyze_parser.add_argument('--no-hotspots', action='store_true', help='Skip hotspot aggregation')
    analyze_parser.add_argument('--output', '-o', metavar='FILE', help='Write JSON here instead of stdout')

    # hotspots command
    hotspots_parser = subparsers.add_parser(
        'hotspots',
        help='Hotspot ranking',
    )
    hotspots_parser.add_argument(
        'input',
        help='Reading table (.json, .csv or .parquet)',
    )
    hotspots_parser.add_argument(
        '--strategy',
        choices=HOTSPOT_STRATEGIES,
        default='grid',
        help='grid rounding or radius clustering (default: grid)',
    )
    hotspots_parser.add_argument(
        '--sort',
        choices=SORT_KEYS,
        default='average',
        help='Cluster ranking key (default: average)',
    )
    hotspots_parser.add_argument('--output', '-o', metavar='FILE', help='Write JSON here instead of stdout')

    # config command
    subparsers.add_parser(
        'config',
        help='Print the effective configuration',
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """HYGRO CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _setup_logging(args.verbose)

    # Dispatch to command handler
    handlers = {
        'analyze': cmd_analyze,
        'hotspots': cmd_hotspots,
        'config': cmd_config,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
