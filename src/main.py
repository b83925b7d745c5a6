#!/usr/bin/env python3
"""Main entry point for Pressure Counter.

Records blood pressure and pulse measurements in a local SQLite database,
prints period statistics and exports the data to CSV.

Usage:
    # Record a measurement
    pdm run python -m src.main add 128 82 70 --feeling good --notes "after walk"

    # Show the last 7 days
    pdm run python -m src.main list --days 7

    # Week/month/year statistics
    pdm run python -m src.main stats

    # Export everything to CSV
    pdm run python -m src.main export --output data/exports/pressure.csv
"""

from __future__ import annotations

import argparse
import copy
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

import yaml

from src.csv_exporter import export_file_name, write_csv
from src.history import group_by_day
from src.models import Feeling, Measurement, Statistics, current_millis
from src.repository import MeasurementRepository
from src.storage.sqlite import SQLiteMeasurementStorage
from src.time_windows import TimeWindow, to_millis

logger = logging.getLogger(__name__)

# Default configuration
DEFAULT_CONFIG = {
    "storage": {
        "database_path": "./data/pressure.db",
    },
    "export": {
        "directory": "./data/exports",
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}

PERIODS = {
    "week": TimeWindow.WEEK,
    "month": TimeWindow.MONTH,
    "year": TimeWindow.YEAR,
}


class PressureCounter:
    """Wires storage and repository together for the command line."""

    def __init__(self, config: dict):
        """Initialize from configuration.

        Args:
            config: Configuration dictionary
        """
        self.config = config
        db_path = config.get("storage", {}).get("database_path", "./data/pressure.db")
        self.repository = MeasurementRepository(SQLiteMeasurementStorage(db_path))

    def add(
        self,
        systolic: int,
        diastolic: int,
        pulse: int,
        notes: str = "",
        feeling: Feeling = Feeling.NORMAL,
        measured_at: datetime | None = None,
    ) -> Measurement:
        measurement = Measurement(
            systolic=systolic,
            diastolic=diastolic,
            pulse=pulse,
            timestamp=to_millis(measured_at) if measured_at else None,
            notes=notes,
            feeling=feeling,
        )
        record_id = self.repository.insert(measurement)
        return measurement.with_id(record_id)

    def measurements(self, days: int | None = None) -> list[Measurement]:
        """Measurements newest first, optionally only the last N days."""
        if not days:
            return self.repository.all_measurements().get()
        now = datetime.now()
        return self.repository.between(to_millis(now - timedelta(days=days)), to_millis(now)).get()

    def period_statistics(self, periods: list[str], now: int | None = None) -> dict[str, Statistics]:
        now = current_millis() if now is None else now
        return {name: self.repository.statistics_for(PERIODS[name], now) for name in periods}

    def export(self, output: str | None = None) -> Path:
        if output is None:
            directory = self.config.get("export", {}).get("directory", "./data/exports")
            output = str(Path(directory) / export_file_name())
        return write_csv(output, self.repository.all_measurements().get())


def load_config(config_path: str | None = None) -> dict:
    """Load configuration from file or use defaults.

    Args:
        config_path: Path to YAML config file

    Returns:
        Configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            user_config = yaml.safe_load(f)
            if user_config and isinstance(user_config, dict):
                # Deep merge user config into defaults
                for section, values in user_config.items():
                    section_config = config.get(section)
                    if isinstance(section_config, dict):
                        # Built-in sections stay dicts; "logging:" alone keeps defaults
                        if isinstance(values, dict):
                            section_config.update(values)
                    else:
                        config[section] = values

    return config


def setup_logging(config: dict) -> None:
    """Setup logging based on configuration.

    Args:
        config: Configuration dictionary
    """
    log_config = config.get("logging", {})
    level = getattr(logging, log_config.get("level", "INFO").upper())
    format_str = log_config.get("format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    log_file = log_config.get("file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=format_str, handlers=handlers)


def format_measurement(measurement: Measurement) -> str:
    """One line of the measurement list."""
    notes = f" | {measurement.notes}" if measurement.notes else ""
    return (
        f"  #{measurement.id:<4} {measurement.measured_at:%H:%M} | "
        f"{measurement.systolic:3}/{measurement.diastolic:3} mmHg | "
        f"{measurement.pulse:3} bpm | "
        f"{measurement.pressure_category.label} | "
        f"{measurement.feeling.label}{notes}"
    )


def format_statistics(name: str, stats: Statistics) -> str:
    """Summary block for one period."""
    if stats.is_empty:
        return f"{name.capitalize():6} no measurements"
    return (
        f"{name.capitalize():6} "
        f"avg {stats.avg_systolic:.0f}/{stats.avg_diastolic:.0f} mmHg, {stats.avg_pulse:.0f} bpm | "
        f"SYS {stats.min_systolic}-{stats.max_systolic} | "
        f"DIA {stats.min_diastolic}-{stats.max_diastolic} | "
        f"Pulse {stats.min_pulse}-{stats.max_pulse}"
    )


def cmd_add(args: argparse.Namespace, app: PressureCounter) -> int:
    measured_at = datetime.strptime(args.at, "%Y-%m-%d %H:%M") if args.at else None
    measurement = app.add(
        args.systolic,
        args.diastolic,
        args.pulse,
        notes=args.notes,
        feeling=Feeling.from_name(args.feeling),
        measured_at=measured_at,
    )
    print(f"Saved #{measurement.id}: {measurement}")
    return 0


def cmd_list(args: argparse.Namespace, app: PressureCounter) -> int:
    measurements = app.measurements(days=args.days)
    if not measurements:
        print("No measurements recorded.")
        return 0

    for day, items in group_by_day(measurements):
        print(f"{day:%d.%m.%Y}")
        for measurement in items:
            print(format_measurement(measurement))
    return 0


def cmd_stats(args: argparse.Namespace, app: PressureCounter) -> int:
    periods = [args.period] if args.period else list(PERIODS)
    results = app.period_statistics(periods)

    print(f"\n{'=' * 60}")
    print("Statistics")
    print(f"{'=' * 60}")
    for name, stats in results.items():
        print(format_statistics(name, stats))
    print(f"{'=' * 60}\n")
    return 0


def cmd_export(args: argparse.Namespace, app: PressureCounter) -> int:
    path = app.export(args.output)
    print(f"Exported to {path}")
    return 0


def cmd_delete(args: argparse.Namespace, app: PressureCounter) -> int:
    if app.repository.by_id(args.id) is None:
        print(f"No measurement #{args.id}")
        return 1
    app.repository.delete_by_id(args.id)
    print(f"Deleted #{args.id}")
    return 0


def cmd_clear(args: argparse.Namespace, app: PressureCounter) -> int:
    if not args.yes:
        print("Refusing to delete all measurements without --yes")
        return 1
    deleted = app.repository.delete_all()
    print(f"Deleted {deleted} measurements")
    return 0


COMMANDS = {
    "add": cmd_add,
    "list": cmd_list,
    "stats": cmd_stats,
    "export": cmd_export,
    "delete": cmd_delete,
    "clear": cmd_clear,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Blood pressure and pulse diary",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default="config/config.yaml",
        help="Path to config file (default: config/config.yaml)",
    )
    parser.add_argument(
        "--debug",
        "-d",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    add_parser = subparsers.add_parser("add", help="Record a measurement")
    add_parser.add_argument("systolic", type=int, help="Systolic pressure (mmHg)")
    add_parser.add_argument("diastolic", type=int, help="Diastolic pressure (mmHg)")
    add_parser.add_argument("pulse", type=int, help="Pulse (bpm)")
    add_parser.add_argument("--notes", "-n", default="", help="Free text notes")
    add_parser.add_argument(
        "--feeling",
        "-f",
        default="normal",
        choices=[f.name.lower() for f in Feeling],
        help="How you feel (default: normal)",
    )
    add_parser.add_argument("--at", help='Measurement time "YYYY-MM-DD HH:MM" (default: now)')

    list_parser = subparsers.add_parser("list", help="List measurements")
    list_parser.add_argument("--days", type=int, help="Only the last N days")

    stats_parser = subparsers.add_parser("stats", help="Show period statistics")
    stats_parser.add_argument("--period", "-p", choices=list(PERIODS), help="Single period")

    export_parser = subparsers.add_parser("export", help="Export measurements to CSV")
    export_parser.add_argument("--output", "-o", help="Output file (default: export directory)")

    delete_parser = subparsers.add_parser("delete", help="Delete a measurement")
    delete_parser.add_argument("id", type=int, help="Measurement id")

    clear_parser = subparsers.add_parser("clear", help="Delete all measurements")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Load config
    config = load_config(args.config)

    # Setup logging
    if args.debug:
        config.setdefault("logging", {})["level"] = "DEBUG"
    setup_logging(config)

    try:
        app = PressureCounter(config)
        exit_code = COMMANDS[args.command](args, app)
        sys.exit(exit_code)

    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        if args.debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
