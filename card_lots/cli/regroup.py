"""Regroup command: lots regroup <lot_id>"""

from card_lots.cli.upload import images_per_card_default
from card_lots.db import LotRepository, get_connection, init_db
from card_lots.services.grouping import regroup_lot


def register(subparsers):
    """Register the regroup subcommand."""
    parser = subparsers.add_parser(
        "regroup",
        help="Rebuild a lot's cards with a new images-per-card count",
        description=(
            "Discard every card of the lot (and its metadata) and regroup all of "
            "its images, in filename order, into new cards."
        ),
    )
    parser.add_argument("lot_id", help="Lot ID")
    parser.add_argument(
        "--per-card", type=int, metavar="N",
        help="Images per card (default: images_per_card setting)",
    )
    parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    parser.set_defaults(func=run)


def run(args):
    """Run the regroup command."""
    conn = get_connection(args.db_path)
    init_db(conn)

    lot = LotRepository(conn).require(args.lot_id)
    per_card = args.per_card if args.per_card is not None else images_per_card_default(conn)

    if not args.yes:
        response = input(f"Regroup '{lot.name}'? All card details will be lost. [y/N] ")
        if response.lower() != "y":
            print("Cancelled")
            return

    cards = regroup_lot(conn, lot.id, per_card)
    print(f"Regrouped '{lot.name}' into {len(cards)} card(s) of up to {per_card} image(s)")
