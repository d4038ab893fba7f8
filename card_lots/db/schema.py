"""Database schema and migrations."""

import sqlite3

from card_lots.vocab import GRADED_CONDITION_TYPE, UNGRADED_CONDITION_TYPE

SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- A named batch of cards prepared for sale together
CREATE TABLE IF NOT EXISTS lots (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    images_per_card INTEGER NOT NULL DEFAULT 2,
    completed INTEGER NOT NULL DEFAULT 0,
    completed_at TEXT,
    created_at TEXT NOT NULL
);

-- One sellable item (one row per card in a lot)
CREATE TABLE IF NOT EXISTS card_items (
    id TEXT PRIMARY KEY,
    lot_id TEXT NOT NULL REFERENCES lots(id) ON DELETE CASCADE,
    sort_order INTEGER NOT NULL DEFAULT 0,
    title TEXT,
    status TEXT NOT NULL DEFAULT 'Draft'
        CHECK(status IN ('Draft', 'Ready', 'Exported')),
    listings TEXT,
    sale_price REAL,
    category TEXT NOT NULL DEFAULT 'Baseball',
    year INTEGER,
    brand TEXT,
    set_name TEXT,
    name TEXT,
    card_number TEXT,
    subset_parallel TEXT,
    attributes TEXT,
    team TEXT,
    variation TEXT,
    graded INTEGER NOT NULL DEFAULT 0,   -- legacy flag, raw export only
    grader TEXT,
    grade TEXT,
    condition_type TEXT NOT NULL
        DEFAULT 'Ungraded: Not in original packaging or professionally graded',
    condition TEXT,
    cert_no TEXT,
    description TEXT,
    created_at TEXT NOT NULL
);

-- Photos owned by a card, ordered from 0
CREATE TABLE IF NOT EXISTS card_images (
    id TEXT PRIMARY KEY,
    card_item_id TEXT NOT NULL REFERENCES card_items(id) ON DELETE CASCADE,
    original_path TEXT NOT NULL,
    thumb_path TEXT NOT NULL,
    filename TEXT NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0
);

-- Per-lot eBay listing defaults
CREATE TABLE IF NOT EXISTS export_profiles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    lot_id TEXT NOT NULL UNIQUE REFERENCES lots(id) ON DELETE CASCADE,
    template_name TEXT NOT NULL,
    ebay_category TEXT NOT NULL,
    store_category TEXT NOT NULL DEFAULT '0',
    listing_type TEXT NOT NULL CHECK(listing_type IN ('Auction', 'BuyItNow')),
    start_price_default REAL NOT NULL,
    buy_it_now_price REAL,
    duration_days INTEGER NOT NULL,
    schedule_mode TEXT NOT NULL CHECK(schedule_mode IN ('Immediate', 'Scheduled')),
    schedule_date TEXT,        -- YYYY-MM-DD, operator local
    schedule_time TEXT,        -- HH:MM, operator local
    stagger_enabled INTEGER NOT NULL DEFAULT 1,
    stagger_interval_seconds INTEGER NOT NULL DEFAULT 15,
    shipping_service TEXT NOT NULL,
    handling_time_days INTEGER NOT NULL,
    free_shipping INTEGER NOT NULL DEFAULT 0,
    shipping_cost REAL,
    each_additional_item_cost REAL,
    immediate_payment INTEGER NOT NULL DEFAULT 0,
    item_location_city TEXT,
    item_location_state TEXT,
    item_location_zip TEXT,
    returns_accepted INTEGER NOT NULL DEFAULT 1,
    return_window_days INTEGER NOT NULL DEFAULT 14,
    refund_method TEXT NOT NULL DEFAULT 'Money Back',
    shipping_cost_paid_by TEXT NOT NULL DEFAULT 'Seller',
    sales_tax_enabled INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL
);

-- Global settings (key-value pairs)
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_card_items_lot ON card_items(lot_id, sort_order);
CREATE INDEX IF NOT EXISTS idx_card_images_card ON card_images(card_item_id, sort_order);
"""


def get_current_version(conn: sqlite3.Connection) -> int:
    """Get the current schema version, or 0 if not initialized."""
    try:
        cursor = conn.execute(
            "SELECT MAX(version) FROM schema_version"
        )
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0
    except sqlite3.OperationalError:
        # Table doesn't exist
        return 0


def init_db(conn: sqlite3.Connection, force: bool = False) -> bool:
    """
    Initialize or migrate the database schema.

    Args:
        conn: Database connection
        force: If True, re-run table creation even when up to date (existing rows are kept)

    Returns:
        True if schema was created/updated, False if already up to date
    """
    from card_lots.utils import now_iso

    current = get_current_version(conn)

    if current >= SCHEMA_VERSION and not force:
        return False

    if current == 0 or force:
        # Fresh install - create all tables
        conn.executescript(SCHEMA_SQL)
        _seed_default_settings(conn)
    else:
        # Run migrations
        if current < 2:
            _migrate_v1_to_v2(conn)

    # Record schema version
    conn.execute(
        "INSERT OR REPLACE INTO schema_version (version, applied_at) VALUES (?, ?)",
        (SCHEMA_VERSION, now_iso())
    )
    conn.commit()

    return True


def _seed_default_settings(conn: sqlite3.Connection):
    """Insert default settings values (idempotent)."""
    for key, value in [
        ("images_per_card", "2"),
        ("image_base_url", ""),
    ]:
        conn.execute(
            "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?)",
            (key, value),
        )


def _migrate_v1_to_v2(conn: sqlite3.Connection):
    """Add condition_type/grade to card_items, backfilled from the graded flag."""
    cursor = conn.execute("PRAGMA table_info(card_items)")
    columns = [row[1] for row in cursor.fetchall()]

    if "grade" not in columns:
        conn.execute("ALTER TABLE card_items ADD COLUMN grade TEXT")
    if "condition_type" not in columns:
        conn.execute(
            "ALTER TABLE card_items ADD COLUMN condition_type TEXT NOT NULL "
            f"DEFAULT '{UNGRADED_CONDITION_TYPE}'"
        )
        conn.execute(
            "UPDATE card_items SET condition_type = ? WHERE graded = 1",
            (GRADED_CONDITION_TYPE,),
        )
