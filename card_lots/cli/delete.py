"""Delete command: lots delete <card_id>"""

from card_lots.db import CardRepository, get_connection, init_db
from card_lots.services.cards import delete_card
from card_lots.services.titles import generate_title


def register(subparsers):
    """Register the delete subcommand."""
    parser = subparsers.add_parser(
        "delete",
        help="Remove a card from its lot",
        description="Delete a card and its image records. Image files stay with the lot.",
    )
    parser.add_argument("card_id", help="Card ID to delete")
    parser.add_argument(
        "-y", "--yes", action="store_true", help="Skip confirmation prompt"
    )
    parser.set_defaults(func=run)


def run(args):
    """Run the delete command."""
    conn = get_connection(args.db_path)
    init_db(conn)

    card = CardRepository(conn).require(args.card_id)
    card_desc = generate_title(card)

    if not args.yes:
        print(f"About to delete: {card_desc}")
        print(f"  Status: {card.status}, Images: {len(card.images)}")
        confirm = input("Are you sure? (y/N): ").strip().lower()
        if confirm != "y":
            print("Cancelled.")
            return

    delete_card(conn, card.id)
    print(f"Deleted card {card.id}: {card_desc}")
