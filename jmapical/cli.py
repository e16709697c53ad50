"""Command-line interface for jmapical.

Converts a single calendar file to the JSON of its event object, or an event
object JSON file to iCalendar text, optionally updating an existing calendar.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config.settings import ConverterSettings
from .ical.converter import EventConverter
from .ical.exceptions import InvalidPropertiesError, JMAPICalError
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser.

    Returns:
        argparse.ArgumentParser: Parser with the to-json and to-ical subcommands

    Example:
        >>> parser = create_parser()
        >>> args = parser.parse_args(["to-json", "event.ics", "--pretty"])
    """
    parser = argparse.ArgumentParser(
        description="jmapical - convert between iCalendar VEVENTs and JMAP event objects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s to-json event.ics                        # Print the event object of event.ics
  %(prog)s to-json event.ics --properties title,start  # Only print some properties
  %(prog)s to-ical event.json                       # Create a calendar from an event object
  %(prog)s to-ical patch.json --existing event.ics  # Update event.ics with a partial event
        """,
    )

    parser.add_argument(
        "--version", action="version", version="%(prog)s 1.0.0", help="Show version information"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--config", metavar="FILE", type=Path, help="YAML configuration file"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    to_json = subparsers.add_parser("to-json", help="Convert iCalendar to an event object")
    to_json.add_argument("file", type=Path, help="iCalendar file")
    to_json.add_argument(
        "--properties", metavar="NAMES", help="Comma-separated event properties to output"
    )
    to_json.add_argument(
        "--pretty", action="store_true", default=None, help="Indent the JSON output"
    )

    to_ical = subparsers.add_parser("to-ical", help="Convert an event object to iCalendar")
    to_ical.add_argument("file", type=Path, help="Event object JSON file")
    to_ical.add_argument(
        "--existing", metavar="ICS", type=Path, help="Calendar to update instead of creating one"
    )

    return parser


def _parse_properties(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [name.strip() for name in value.split(",") if name.strip()]


def _run_to_json(converter: EventConverter, args: argparse.Namespace) -> int:
    event = converter.to_event_object(args.file.read_bytes(), _parse_properties(args.properties))
    pretty = converter.settings.pretty_json if args.pretty is None else args.pretty
    print(json.dumps(event, indent=2 if pretty else None, ensure_ascii=False))
    return 0


def _run_to_ical(converter: EventConverter, args: argparse.Namespace) -> int:
    try:
        event = json.loads(args.file.read_text(encoding="utf-8"))
    except ValueError as e:
        logger.error(f"Invalid event object JSON in {args.file}: {e}")
        return 1

    existing = args.existing.read_bytes() if args.existing else None
    calendar = converter.to_component(event, existing)
    sys.stdout.write(calendar.to_ical().decode("utf-8"))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments, defaults to sys.argv

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = create_parser().parse_args(argv)

    settings = ConverterSettings(config_file=args.config) if args.config else ConverterSettings()
    if args.verbose:
        settings.logging.console_level = "DEBUG"
    setup_logging(settings)

    converter = EventConverter(settings)
    try:
        if args.command == "to-json":
            return _run_to_json(converter, args)
        return _run_to_ical(converter, args)
    except InvalidPropertiesError as e:
        logger.error(f"Invalid properties: {', '.join(e.properties)}")
        return 1
    except JMAPICalError as e:
        logger.error(f"Conversion failed: {e}")
        return 1
    except OSError as e:
        logger.error(f"Cannot read input: {e}")
        return 1
