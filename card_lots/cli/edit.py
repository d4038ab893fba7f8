"""Edit command: lots edit <card_id> [<card_id> ...]"""

from card_lots.db import CardRepository, get_connection, init_db
from card_lots.errors import InvalidConfiguration
from card_lots.services.cards import auto_title, bulk_update, update_card
from card_lots.vocab import (
    CATEGORY_OPTIONS,
    CONDITION_OPTIONS,
    GRADED_CONDITION_TYPE,
    STATUS_OPTIONS,
    UNGRADED_CONDITION_TYPE,
)

# Short names accepted for --condition
CONDITION_ALIASES = {
    "near-mint": CONDITION_OPTIONS[0],
    "excellent": CONDITION_OPTIONS[1],
    "very-good": CONDITION_OPTIONS[2],
    "poor": CONDITION_OPTIONS[3],
}

# argparse dest -> card field, for plain text flags
TEXT_FLAGS = {
    "title": "title",
    "listings": "listings",
    "brand": "brand",
    "set_name": "set_name",
    "name": "name",
    "number": "card_number",
    "parallel": "subset_parallel",
    "attributes": "attributes",
    "team": "team",
    "variation": "variation",
    "grader": "grader",
    "grade": "grade",
    "cert": "cert_no",
    "description": "description",
}


def register(subparsers):
    """Register the edit subcommand."""
    parser = subparsers.add_parser(
        "edit",
        help="Edit one or more cards",
        description="Set listing fields on cards. Several card IDs apply the same change to each.",
    )
    parser.add_argument("card_ids", nargs="+", metavar="CARD_ID", help="Card ID(s)")
    parser.add_argument("--title", metavar="TEXT", help="Set a manual title ('' to clear)")
    parser.add_argument("--auto-title", action="store_true", help="Store the title generated from card fields")
    parser.add_argument("--status", choices=STATUS_OPTIONS, help="Set status")
    parser.add_argument("--listings", metavar="TEXT", help="Set listings note")
    parser.add_argument("--price", type=float, metavar="PRICE", help="Set sale price")
    parser.add_argument("--category", choices=CATEGORY_OPTIONS, help="Set category")
    parser.add_argument("--year", type=int, metavar="YEAR", help="Set year")
    parser.add_argument("--brand", metavar="TEXT", help="Set brand")
    parser.add_argument("--set", dest="set_name", metavar="TEXT", help="Set the card set")
    parser.add_argument("--name", metavar="TEXT", help="Set player/card name")
    parser.add_argument("--number", metavar="TEXT", help="Set card number")
    parser.add_argument("--parallel", metavar="TEXT", help="Set subset/parallel")
    parser.add_argument("--attributes", metavar="TEXT", help="Set attributes")
    parser.add_argument("--team", metavar="TEXT", help="Set team")
    parser.add_argument("--variation", metavar="TEXT", help="Set variation")
    graded = parser.add_mutually_exclusive_group()
    graded.add_argument("--graded", action="store_true", help="Mark as professionally graded")
    graded.add_argument("--ungraded", action="store_true", help="Mark as ungraded")
    parser.add_argument("--grader", metavar="TEXT", help="Set grading company")
    parser.add_argument("--grade", metavar="GRADE", help="Set grade (10 down to 1 in half steps)")
    parser.add_argument(
        "--condition",
        metavar="COND",
        help="Set ungraded condition (near-mint, excellent, very-good, poor or full text)",
    )
    parser.add_argument("--cert", metavar="TEXT", help="Set certification number")
    parser.add_argument("--description", metavar="HTML", help="Set listing description")
    parser.set_defaults(func=run)


def collect_changes(args) -> dict:
    """Build a field -> value mapping from the given flags. '' clears a text field."""
    changes = {}
    for dest, field_name in TEXT_FLAGS.items():
        value = getattr(args, dest)
        if value is not None:
            changes[field_name] = value.strip() or None

    if args.status:
        changes["status"] = args.status
    if args.price is not None:
        changes["sale_price"] = args.price
    if args.category:
        changes["category"] = args.category
    if args.year is not None:
        changes["year"] = args.year
    if args.graded:
        changes["condition_type"] = GRADED_CONDITION_TYPE
    if args.ungraded:
        changes["condition_type"] = UNGRADED_CONDITION_TYPE
    if args.condition is not None:
        value = args.condition.strip()
        changes["condition"] = CONDITION_ALIASES.get(value.lower(), value) or None
    return changes


def run(args):
    """Run the edit command."""
    conn = get_connection(args.db_path)
    init_db(conn)

    changes = collect_changes(args)
    if not changes and not args.auto_title:
        print("No changes specified")
        return

    repo = CardRepository(conn)
    if len(args.card_ids) == 1:
        card_id = args.card_ids[0]
        if changes:
            update_card(conn, card_id, changes)
        if args.auto_title:
            auto_title(conn, card_id)
        updated = [repo.require(card_id)]
    else:
        cards = [repo.require(card_id) for card_id in args.card_ids]
        lot_ids = {card.lot_id for card in cards}
        if len(lot_ids) != 1:
            raise InvalidConfiguration("Cards edited together must belong to the same lot")
        if changes:
            bulk_update(conn, lot_ids.pop(), args.card_ids, changes)
        if args.auto_title:
            for card_id in args.card_ids:
                auto_title(conn, card_id)
        updated = [repo.require(card_id) for card_id in args.card_ids]

    fields = sorted(changes) + (["title (generated)"] if args.auto_title else [])
    print(f"Updated {len(updated)} card(s): {', '.join(fields)}")
    for card in updated:
        print(f"  {card.id}  {card.title or ''}")
