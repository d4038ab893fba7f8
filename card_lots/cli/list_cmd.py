"""List command: lots list <lot_id>"""

from card_lots.db import CardRepository, LotRepository, get_connection, init_db
from card_lots.services.conditions import missing_fields
from card_lots.services.titles import generate_title


def register(subparsers):
    """Register the list subcommand."""
    parser = subparsers.add_parser(
        "list",
        help="List the cards of a lot",
        description="Show a lot's cards in order with their export readiness.",
    )
    parser.add_argument("lot_id", help="Lot ID")
    parser.add_argument("--incomplete", action="store_true", help="Show only cards not ready for export")
    parser.add_argument("--images", action="store_true", help="Also list each card's images")
    parser.set_defaults(func=run)


def run(args):
    """Run the list command."""
    conn = get_connection(args.db_path)
    init_db(conn)

    lot = LotRepository(conn).require(args.lot_id)
    cards = CardRepository(conn).list_for_lot(lot.id)

    if not cards:
        print(f"Lot '{lot.name}' has no cards")
        return

    incomplete = 0
    print(f"{'#':>3}  {'ID':<36}  {'Status':<8}  {'Imgs':>4}  Title")
    print("-" * 100)
    for position, card in enumerate(cards, start=1):
        missing = missing_fields(card)
        if missing:
            incomplete += 1
        elif args.incomplete:
            continue

        print(f"{position:>3}  {card.id:<36}  {card.status:<8}  {len(card.images):>4}  {generate_title(card)}")
        if missing:
            print(f"{'':>5}missing: {', '.join(missing)}")
        if args.images:
            for image in card.images:
                print(f"{'':>5}[{image.sort_order}] {image.id}  {image.filename}")

    print()
    print(f"{len(cards) - incomplete} of {len(cards)} card(s) ready for export")
