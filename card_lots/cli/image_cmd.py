"""Image commands: lots image move/reorder"""

from card_lots.db import get_connection, init_db
from card_lots.services.cards import move_image, reorder_images


def register(subparsers):
    """Register the image subcommand."""
    image_parser = subparsers.add_parser("image", help="Move or reorder card images")
    image_subparsers = image_parser.add_subparsers(dest="image_command", metavar="<subcommand>")

    move_parser = image_subparsers.add_parser("move", help="Move an image to a card")
    move_parser.add_argument("image_id", help="Image ID")
    move_parser.add_argument("card_id", help="Target card ID")
    move_parser.add_argument(
        "--position", type=int, default=None, metavar="N",
        help="Zero-based position on the target card (default: last)",
    )
    move_parser.set_defaults(func=run_move)

    reorder_parser = image_subparsers.add_parser("reorder", help="Set the image order of a card")
    reorder_parser.add_argument("card_id", help="Card ID")
    reorder_parser.add_argument("image_ids", nargs="+", metavar="IMAGE_ID", help="All image IDs in the new order")
    reorder_parser.set_defaults(func=run_reorder)

    image_parser.set_defaults(func=lambda args: image_parser.print_help())


def _print_images(card):
    for image in card.images:
        print(f"  [{image.sort_order}] {image.id}  {image.filename}")


def run_move(args):
    conn = get_connection(args.db_path)
    init_db(conn)

    card = move_image(conn, args.image_id, args.card_id, args.position)
    print(f"Moved image {args.image_id} to card {card.id}")
    _print_images(card)


def run_reorder(args):
    conn = get_connection(args.db_path)
    init_db(conn)

    card = reorder_images(conn, args.card_id, args.image_ids)
    print(f"Reordered images of card {card.id}")
    _print_images(card)
