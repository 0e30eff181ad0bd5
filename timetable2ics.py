#!/usr/bin/env python3
"""Timetable to iCalendar converter.

Reads a saved timetable page (or a JSON list of session records), folds the
sessions into weekly recurring events and writes an iCalendar (.ics) file.
"""

import argparse
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from recurrence import (
    DEFAULT_MAX_EXCEPTION_RATIO,
    ExportConfig,
    build_calendar_model,
    parse_utc_offset,
)
from recurrence.grouping import normalize_occurrences
from timetable import (
    diff_occurrences,
    filter_by_semester,
    load_snapshot,
    parse_timetable_html,
    save_snapshot,
)
from transformer import ICalTransformer


def utc_offset_arg(value: str) -> timedelta:
    """argparse type for --utc-offset."""
    try:
        return parse_utc_offset(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def ratio_arg(value: str) -> float:
    """argparse type for --max-exception-ratio."""
    try:
        ratio = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid ratio: '{value}'")
    if ratio < 0:
        raise argparse.ArgumentTypeError("Ratio must not be negative")
    return ratio


def load_records(path: Path) -> list[Any]:
    """Load raw session records from an HTML page or a JSON file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".html", ".htm"):
        return parse_timetable_html(text)
    
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of session records")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert a timetable to iCalendar format with weekly recurring events.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 timetable2ics.py timetable.html
  python3 timetable2ics.py sessions.json --utc-offset +07:00 -o my_schedule.ics
  python3 timetable2ics.py timetable.html --previous last.json --snapshot last.json
        """
    )
    
    parser.add_argument(
        "input",
        help="Saved timetable page (.html) or JSON list of session records"
    )
    
    parser.add_argument(
        "-o", "--output",
        default="timetable.ics",
        help="Output file path (default: timetable.ics)"
    )
    
    parser.add_argument(
        "--utc-offset",
        type=utc_offset_arg,
        default=parse_utc_offset("+07:00"),
        help="Offset of the timetable's local time from UTC (default: +07:00)"
    )
    
    parser.add_argument(
        "--max-exception-ratio",
        type=ratio_arg,
        default=DEFAULT_MAX_EXCEPTION_RATIO,
        help="Reject a weekly pattern when skipped plus added dates exceed "
             f"this share of its dates (default: {DEFAULT_MAX_EXCEPTION_RATIO})"
    )
    
    parser.add_argument(
        "--semester",
        default=None,
        help="Only export classes whose code starts with this semester id (e.g. 20252)"
    )
    
    parser.add_argument(
        "--calendar-name",
        default="Timetable",
        help="Calendar name shown by calendar applications (default: Timetable)"
    )
    
    parser.add_argument(
        "--previous",
        default=None,
        help="Snapshot of a previous export; only export when the timetable changed"
    )
    
    parser.add_argument(
        "--snapshot",
        default=None,
        help="Store the parsed sessions as a snapshot at this path"
    )
    
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging"
    )
    
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the converter."""
    args = build_parser().parse_args(argv)
    
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    
    # Ensure output file has .ics extension
    output_path = args.output
    if not output_path.lower().endswith(".ics"):
        output_path = f"{output_path}.ics"
    
    config = ExportConfig(
        utc_offset=args.utc_offset,
        max_exception_ratio=args.max_exception_ratio,
        calendar_name=args.calendar_name,
    )
    
    try:
        records = load_records(Path(args.input))
        occurrences, invalid = normalize_occurrences(records, config.period_slots)
        if args.semester:
            occurrences = filter_by_semester(occurrences, args.semester)
        
        print(f"Found {len(occurrences)} sessions.")
        
        if args.previous:
            if Path(args.previous).exists():
                diff = diff_occurrences(load_snapshot(args.previous), occurrences)
                print(f"Changes since last export: {diff.summary()}")
                if not diff.has_changes:
                    print("Timetable unchanged, nothing to export.")
                    return 0
            else:
                print(f"No previous snapshot found at {args.previous}, skipping change check.")
        
        if not occurrences:
            print("Warning: No sessions found. The calendar will be empty.")
        
        model = build_calendar_model(occurrences, config)
        model.warnings[:0] = invalid
        
        transformer = ICalTransformer(config)
        result = transformer.transform(model)
        transformer.save(output_path)
        
        if args.snapshot:
            save_snapshot(occurrences, args.snapshot)
        
        print(
            f"Exported {len(model.series)} recurring series and "
            f"{len(model.flat_events)} single events."
        )
        for warning in result.warnings:
            print(f"Warning [{warning.kind.value}]: {warning.message}")
        print(f"Calendar saved to: {output_path}")
        
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 130
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    
    return 0


if __name__ == "__main__":
    sys.exit(main())
