"""Clone command: lots clone <card_id>"""

from card_lots.db import get_connection, init_db
from card_lots.services.cards import clone_card


def register(subparsers):
    """Register the clone subcommand."""
    parser = subparsers.add_parser(
        "clone",
        help="Duplicate a card",
        description="Copy a card with all its fields and images to the end of its lot, as a Draft.",
    )
    parser.add_argument("card_id", help="Card ID")
    parser.set_defaults(func=run)


def run(args):
    """Run the clone command."""
    conn = get_connection(args.db_path)
    init_db(conn)

    clone = clone_card(conn, args.card_id)
    print(f"Cloned card {args.card_id}")
    print(f"  New card: {clone.id} ({len(clone.images)} image(s), position {clone.sort_order + 1})")
