"""Export profile command: lots profile <lot_id> [--set key=value ...]"""

from dataclasses import replace

from card_lots.db import (
    DEFAULT_EXPORT_PROFILE,
    ExportProfileRepository,
    LotRepository,
    get_connection,
    init_db,
)
from card_lots.db.models import PROFILE_FIELDS
from card_lots.errors import InvalidConfiguration
from card_lots.services.validation import validate_profile

INT_FIELDS = ("duration_days", "stagger_interval_seconds", "handling_time_days", "return_window_days")
FLOAT_FIELDS = ("start_price_default", "buy_it_now_price", "shipping_cost", "each_additional_item_cost")
BOOL_FIELDS = ("stagger_enabled", "free_shipping", "immediate_payment", "returns_accepted", "sales_tax_enabled")

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def register(subparsers):
    """Register the profile subcommand."""
    parser = subparsers.add_parser(
        "profile",
        help="Show or change a lot's eBay export settings",
        description=(
            "Show the lot's export profile, or change fields with --set key=value. "
            "An empty value clears optional fields."
        ),
    )
    parser.add_argument("lot_id", help="Lot ID")
    parser.add_argument(
        "--set", dest="assignments", action="append", default=[], metavar="KEY=VALUE",
        help="Set a profile field (repeatable)",
    )
    parser.add_argument("--reset", action="store_true", help="Restore the built-in defaults")
    parser.set_defaults(func=run)


def coerce_value(name: str, raw: str):
    """Convert a command-line string to the profile field's type."""
    text = raw.strip()
    try:
        if name in BOOL_FIELDS:
            if text.lower() in TRUE_VALUES:
                return True
            if text.lower() in FALSE_VALUES:
                return False
            raise ValueError(text)
        if text == "":
            return None
        if name in INT_FIELDS:
            return int(text)
        if name in FLOAT_FIELDS:
            return float(text)
    except ValueError:
        raise InvalidConfiguration(f"Invalid value for {name}: {raw!r}", fields=[name])
    return text


def parse_assignments(assignments) -> dict:
    changes = {}
    for item in assignments:
        name, sep, raw = item.partition("=")
        name = name.strip()
        if not sep:
            raise InvalidConfiguration(f"Expected KEY=VALUE, got {item!r}")
        if name not in PROFILE_FIELDS:
            raise InvalidConfiguration(
                f"Unknown profile field: {name}. Fields: {', '.join(PROFILE_FIELDS)}", fields=[name]
            )
        changes[name] = coerce_value(name, raw)
    return changes


def run(args):
    """Run the profile command."""
    conn = get_connection(args.db_path)
    init_db(conn)

    lot = LotRepository(conn).require(args.lot_id)
    repo = ExportProfileRepository(conn)
    profile = repo.get_or_create(lot.id)

    if args.reset:
        profile = replace(DEFAULT_EXPORT_PROFILE, lot_id=lot.id)
    changes = parse_assignments(args.assignments)
    if changes:
        profile = replace(profile, **changes)

    if args.reset or changes:
        validate_profile(profile)
        repo.upsert(profile)
        print(f"Saved export settings for '{lot.name}'")
    conn.commit()

    print(f"Export settings for '{lot.name}':")
    for name in PROFILE_FIELDS:
        value = getattr(profile, name)
        print(f"  {name:<28} {'' if value is None else value}")
