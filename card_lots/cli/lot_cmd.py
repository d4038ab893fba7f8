"""Lot management commands: lots lot create/list/complete/delete"""

from card_lots.db import (
    LotRepository,
    SettingsRepository,
    discard_lot_lock,
    get_connection,
    init_db,
    lot_lock,
    transaction,
)
from card_lots.services.storage import delete_lot_images


def register(subparsers):
    """Register the lot subcommand."""
    lot_parser = subparsers.add_parser("lot", help="Create, list and remove lots")
    lot_subparsers = lot_parser.add_subparsers(dest="lot_command", metavar="<subcommand>")

    create_parser = lot_subparsers.add_parser("create", help="Create a new lot")
    create_parser.add_argument("name", help="Lot name")
    create_parser.add_argument(
        "--per-card", type=int, metavar="N",
        help="Images per card (default: images_per_card setting)",
    )
    create_parser.set_defaults(func=run_create)

    list_parser = lot_subparsers.add_parser("list", help="List lots")
    list_parser.set_defaults(func=run_list)

    complete_parser = lot_subparsers.add_parser("complete", help="Mark a lot as completed")
    complete_parser.add_argument("lot_id", help="Lot ID")
    complete_parser.add_argument("--reopen", action="store_true", help="Clear the completed flag")
    complete_parser.set_defaults(func=run_complete)

    delete_parser = lot_subparsers.add_parser("delete", help="Delete a lot, its cards and images")
    delete_parser.add_argument("lot_id", help="Lot ID")
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=run_delete)

    lot_parser.set_defaults(func=lambda args: lot_parser.print_help())


def run_create(args):
    conn = get_connection(args.db_path)
    init_db(conn)

    per_card = args.per_card
    if per_card is None:
        per_card = int(SettingsRepository(conn).get("images_per_card", "2"))

    lot = LotRepository(conn).create(args.name, images_per_card=per_card)
    conn.commit()

    print(f"Created lot {lot.id}")
    print(f"  Name: {lot.name}")
    print(f"  Images per card: {lot.images_per_card}")


def run_list(args):
    conn = get_connection(args.db_path)
    init_db(conn)

    lots = LotRepository(conn).list_all()
    if not lots:
        print("No lots yet. Create one with: lots lot create <name>")
        return

    print(f"{'ID':<36}  {'Cards':>5}  {'Per':>3}  {'Done':<4}  Name")
    print("-" * 80)
    for lot in lots:
        print(
            f"{lot.id:<36}  {lot.card_count:>5}  {lot.images_per_card:>3}  "
            f"{'yes' if lot.completed else '':<4}  {lot.name}"
        )


def run_complete(args):
    conn = get_connection(args.db_path)
    init_db(conn)

    repo = LotRepository(conn)
    lot = repo.require(args.lot_id)
    repo.mark_completed(lot.id, completed=not args.reopen)
    conn.commit()

    print(f"Lot '{lot.name}' {'reopened' if args.reopen else 'marked completed'}")


def run_delete(args):
    conn = get_connection(args.db_path)
    init_db(conn)

    repo = LotRepository(conn)
    lot = repo.require(args.lot_id)

    if not args.yes:
        response = input(f"Delete lot '{lot.name}' and all its cards? [y/N] ")
        if response.lower() != "y":
            print("Cancelled")
            return

    with lot_lock(lot.id):
        with transaction(conn):
            repo.delete(lot.id)
    discard_lot_lock(lot.id)
    delete_lot_images(lot.id)
    print(f"Deleted lot '{lot.name}'")
