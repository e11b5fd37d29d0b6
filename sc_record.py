#!/usr/bin/env python3
"""
sc-record - command line access to X-SC event records.

Normalizes records, converts them to iCalendar and back, and shows the
dates derived from them.
"""

import sys
import argparse
from pathlib import Path

from screcord.config import Config
from screcord.errors import ScRecordError
from screcord.event import EventRecord


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="sc-record - X-SC event records and iCalendar"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    dump = commands.add_parser("dump", help="Print a record in canonical form")
    dump.add_argument("file", type=Path)

    ics = commands.add_parser("ics", help="Print a record as a VCALENDAR")
    ics.add_argument("file", type=Path)

    imp = commands.add_parser("import", help="Print the record for the first VEVENT of an .ics file")
    imp.add_argument("file", type=Path)

    dates = commands.add_parser("dates", help="Print DTSTART, DTEND, RDATE and EXDATE of a record")
    dates.add_argument("file", type=Path)

    return parser.parse_args(argv)


def _format_dates(values) -> str:
    if not values:
        return "-"
    return " ".join(v.isoformat() for v in values)


def run(args, config: Config) -> int:
    if args.command == "dump":
        print(EventRecord.from_file(args.file).dump(), end="")

    elif args.command == "ics":
        print(EventRecord.from_file(args.file).to_ics_string(config.prodid), end="")

    elif args.command == "import":
        record = EventRecord.from_ics(args.file.read_text(encoding="utf-8"))
        if record is None:
            print(f"Error: no VEVENT in {args.file}")
            return 1
        print(record.dump(), end="")

    elif args.command == "dates":
        record = EventRecord.from_file(args.file)
        print(f"DTSTART: {record.dtstart.isoformat()}")
        print(f"DTEND:   {record.dtend.isoformat()}")
        print(f"RDATE:   {_format_dates(record.rdates)}")
        print(f"EXDATE:  {_format_dates(record.exdates)}")
        for message in record.parse_errors.values():
            print(f"Warning: {message}")

    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print(f"\nDefault location: {Config.get_default_config_path()}")
        print("\nExample configuration:")
        print("""
[General]
timezone = "Asia/Tokyo"
debug = false
""")
        sys.exit(1)
    except Exception as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    if args.debug:
        config.debug = True
    try:
        config.apply()
    except Exception as e:
        print(f"Error applying configuration: {e}")
        sys.exit(1)

    try:
        status = run(args, config)
    except (OSError, ScRecordError) as e:
        print(f"Error: {e}")
        status = 1
    sys.exit(status)


if __name__ == "__main__":
    main()
