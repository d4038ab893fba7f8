"""Settings command: lots settings [--set key=value ...]"""

from card_lots.db import SettingsRepository, get_connection, init_db
from card_lots.errors import InvalidConfiguration

KNOWN_SETTINGS = ("images_per_card", "image_base_url")


def register(subparsers):
    """Register the settings subcommand."""
    parser = subparsers.add_parser("settings", help="Show or change global settings")
    parser.add_argument(
        "--set", dest="assignments", action="append", default=[], metavar="KEY=VALUE",
        help=f"Set a value ({', '.join(KNOWN_SETTINGS)})",
    )
    parser.set_defaults(func=run)


def run(args):
    """Run the settings command."""
    conn = get_connection(args.db_path)
    init_db(conn)

    repo = SettingsRepository(conn)
    for item in args.assignments:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or key not in KNOWN_SETTINGS:
            raise InvalidConfiguration(f"Unknown setting: {item!r}", fields=[key])
        value = value.strip()
        if key == "images_per_card" and not (value.isdigit() and int(value) > 0):
            raise InvalidConfiguration(
                f"images_per_card must be a positive integer, got {value!r}", fields=[key]
            )
        repo.set(key, value)
    conn.commit()

    for key, value in sorted(repo.all().items()):
        print(f"{key}: {value}")
