"""CLI entry point and subcommand assembly."""

import argparse
import logging
import sys

from card_lots.db import get_db_path
from card_lots.errors import CardLotsError, NotReadyForExport


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="lots",
        description="Card Lots - Group card photos into listings and export them for eBay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--db",
        metavar="PATH",
        help="Database path (default: $HOME/.cardlots/lots.sqlite, or CARDLOTS_DB env var)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    from card_lots.cli import (
        clone,
        db_cmd,
        delete,
        edit,
        export,
        image_cmd,
        list_cmd,
        lot_cmd,
        profile,
        regroup,
        settings_cmd,
        upload,
    )

    modules = [
        db_cmd, lot_cmd, upload, regroup, list_cmd, edit, clone, delete,
        image_cmd, profile, settings_cmd, export,
    ]
    for module in modules:
        module.register(subparsers)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    # Resolve database path
    args.db_path = get_db_path(args.db)

    # Run the command
    try:
        args.func(args)
    except NotReadyForExport as e:
        print(f"Error: {e}", file=sys.stderr)
        for line in e.describe():
            print(f"  {line}", file=sys.stderr)
        sys.exit(1)
    except CardLotsError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
