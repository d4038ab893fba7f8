"""Export command: lots export <lot_id>"""

import os
from pathlib import Path

from card_lots.db import SettingsRepository, get_connection, init_db
from card_lots.exporters import EXPORTERS, get_exporter
from card_lots.exporters.schemas import DEFAULT_SCHEMA_VERSION, EBAY_SCHEMAS


def register(subparsers):
    """Register the export subcommand."""
    parser = subparsers.add_parser(
        "export",
        help="Export a lot to CSV",
        description="Export a lot as raw CSV or as an eBay File Exchange upload file.",
    )
    parser.add_argument("lot_id", help="Lot ID")
    parser.add_argument(
        "-f",
        "--format",
        choices=list(EXPORTERS.keys()),
        default="ebay",
        help="Export format (default: ebay)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        metavar="DIR",
        default=".",
        help="Directory for the CSV file (default: current directory)",
    )
    parser.add_argument(
        "--schema",
        choices=list(EBAY_SCHEMAS.keys()),
        default=DEFAULT_SCHEMA_VERSION,
        help=f"eBay column layout version (default: {DEFAULT_SCHEMA_VERSION})",
    )
    parser.add_argument(
        "--image-base-url",
        metavar="URL",
        help="Public URL prefix for image links (default: CARDLOTS_IMAGE_BASE_URL or setting)",
    )
    parser.add_argument(
        "--tz-offset",
        type=int,
        default=0,
        metavar="MINUTES",
        help="UTC minus local time in minutes, e.g. 300 for US Eastern (default: 0)",
    )
    parser.set_defaults(func=run)


def resolve_image_base_url(conn, flag_value):
    """--image-base-url, then CARDLOTS_IMAGE_BASE_URL, then the image_base_url setting."""
    if flag_value:
        return flag_value
    env_value = os.environ.get("CARDLOTS_IMAGE_BASE_URL")
    if env_value:
        return env_value
    return SettingsRepository(conn).get("image_base_url") or None


def run(args):
    """Run the export command."""
    conn = get_connection(args.db_path)
    init_db(conn)

    exporter = get_exporter(args.format)
    options = {
        "schema_version": args.schema,
        "image_base_url": resolve_image_base_url(conn, args.image_base_url),
        "tz_offset_minutes": args.tz_offset,
    }

    result = exporter.export(conn, args.lot_id, options)
    conn.commit()

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / result.filename
    output_path.write_bytes(result.data)

    print(f"Exported {result.card_count} card(s) to {output_path}")
    print(f"Format: {result.format_name}")
    if args.format == "ebay" and not options["image_base_url"]:
        print("Note: no image base URL set; PicURL holds storage paths eBay cannot fetch")
