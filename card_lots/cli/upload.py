"""Upload command: lots upload <lot_id> <image> [<image> ...]"""

import sqlite3

from card_lots.db import LotRepository, SettingsRepository, get_connection, init_db
from card_lots.services.grouping import add_images_to_lot, check_group_size
from card_lots.services.storage import remove_stored_images, store_images


def images_per_card_default(conn: sqlite3.Connection) -> int:
    """images_per_card setting, or 2 when unset or unreadable."""
    value = SettingsRepository(conn).get("images_per_card")
    try:
        return int(value)
    except (TypeError, ValueError):
        return 2


def register(subparsers):
    """Register the upload subcommand."""
    parser = subparsers.add_parser(
        "upload",
        help="Add images to a lot",
        description="Store image files or URLs and group them into new cards at the end of the lot.",
    )
    parser.add_argument("lot_id", help="Lot ID")
    parser.add_argument("sources", nargs="+", metavar="IMAGE", help="Image file paths or http(s) URLs")
    parser.add_argument(
        "--per-card", type=int, metavar="N",
        help="Images per card (default: the lot's setting)",
    )
    parser.set_defaults(func=run)


def run(args):
    """Run the upload command."""
    conn = get_connection(args.db_path)
    init_db(conn)

    lot = LotRepository(conn).require(args.lot_id)
    if args.per_card is not None:
        per_card = args.per_card
    else:
        per_card = lot.images_per_card or images_per_card_default(conn)
    check_group_size(per_card)

    images, skipped = store_images(lot.id, args.sources)
    for reason in skipped:
        print(f"  Skipped: {reason}")

    if not images:
        print("No images stored")
        return

    try:
        cards = add_images_to_lot(conn, lot.id, images, per_card)
    except Exception:
        remove_stored_images(images)
        raise
    print(f"Stored {len(images)} image(s) as {len(cards)} card(s) in lot '{lot.name}'")
