"""Shared utilities for Card Lots."""

import os
import re
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional


def get_cardlots_home() -> Path:
    """Return the Card Lots home directory (CARDLOTS_HOME env or ~/.cardlots)."""
    if "CARDLOTS_HOME" in os.environ:
        return Path(os.environ["CARDLOTS_HOME"])
    return Path.home() / ".cardlots"


def now_iso() -> str:
    """Return current time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_id() -> str:
    """Return a fresh opaque identifier for lots, cards and images."""
    return str(uuid.uuid4())


def is_blank(value) -> bool:
    """True for None and for strings that are empty after trimming."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def sanitize_upload_name(filename: str) -> str:
    """Make an uploaded filename safe to store on disk."""
    return re.sub(r"[^a-zA-Z0-9._-]", "_", filename)


def export_filename(lot_name: str, item_count: int, kind: str, on: Optional[date] = None) -> str:
    """
    Suggested download name for an export.

    Pattern: {name}_{count}_items_{kind}_{MM-dd-yy}.csv where the name keeps
    only [A-Za-z0-9_] and is cut to 30 characters.
    """
    on = on or date.today()
    safe_name = re.sub(r"[^A-Za-z0-9_]", "", lot_name)[:30]
    return f"{safe_name}_{item_count}_items_{kind}_{on.strftime('%m-%d-%y')}.csv"
