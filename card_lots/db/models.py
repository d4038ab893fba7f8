"""Database models and repositories."""

import sqlite3
from dataclasses import dataclass, field, fields as dc_fields, replace
from typing import Any, Dict, Iterable, List, Optional

from card_lots.errors import CardNotFound, LotNotFound
from card_lots.utils import new_id, now_iso
from card_lots.vocab import UNGRADED_CONDITION_TYPE


@dataclass
class Lot:
    """A named collection of cards being prepared for sale together."""
    id: str
    name: str
    images_per_card: int = 2
    completed: bool = False
    completed_at: Optional[str] = None
    created_at: Optional[str] = None
    card_count: int = 0  # filled by list_all()


@dataclass
class CardImage:
    """One stored photo. sort_order is its position within the owning card."""
    id: str
    original_path: str
    thumb_path: str
    filename: str
    sort_order: int = 0
    card_item_id: Optional[str] = None


@dataclass
class CardItem:
    """One sellable card with its ordered images and listing metadata."""
    id: str
    lot_id: str
    sort_order: int = 0
    title: Optional[str] = None
    status: str = "Draft"
    listings: Optional[str] = None
    sale_price: Optional[float] = None
    category: str = "Baseball"
    year: Optional[int] = None
    brand: Optional[str] = None
    set_name: Optional[str] = None
    name: Optional[str] = None
    card_number: Optional[str] = None
    subset_parallel: Optional[str] = None
    attributes: Optional[str] = None
    team: Optional[str] = None
    variation: Optional[str] = None
    graded: bool = False  # legacy flag; condition_type decides graded-ness
    grader: Optional[str] = None
    grade: Optional[str] = None
    condition_type: str = UNGRADED_CONDITION_TYPE
    condition: Optional[str] = None
    cert_no: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    images: List[CardImage] = field(default_factory=list)


# Columns a user may change on a card (everything except identity and images)
EDITABLE_CARD_FIELDS = (
    "title", "status", "listings", "sale_price", "category", "year", "brand",
    "set_name", "name", "card_number", "subset_parallel", "attributes", "team",
    "variation", "graded", "grader", "grade", "condition_type", "condition",
    "cert_no", "description", "sort_order",
)


@dataclass
class ExportProfile:
    """Per-lot eBay listing defaults. Field defaults are the built-in profile."""
    lot_id: Optional[str] = None
    template_name: str = "7 Day Auction"
    ebay_category: str = "261328"
    store_category: str = "0"
    listing_type: str = "Auction"
    start_price_default: float = 4.99
    buy_it_now_price: Optional[float] = None
    duration_days: int = 7
    schedule_mode: str = "Scheduled"
    schedule_date: Optional[str] = None
    schedule_time: Optional[str] = None
    stagger_enabled: bool = True
    stagger_interval_seconds: int = 15
    shipping_service: str = "USPS Ground Advantage"
    handling_time_days: int = 3
    free_shipping: bool = False
    shipping_cost: Optional[float] = 3.99
    each_additional_item_cost: Optional[float] = 1.49
    immediate_payment: bool = False
    item_location_city: Optional[str] = None
    item_location_state: Optional[str] = None
    item_location_zip: Optional[str] = None
    returns_accepted: bool = True
    return_window_days: int = 14
    refund_method: str = "Money Back"
    shipping_cost_paid_by: str = "Seller"
    sales_tax_enabled: bool = False
    updated_at: Optional[str] = None


DEFAULT_EXPORT_PROFILE = ExportProfile()

PROFILE_FIELDS = tuple(
    f.name for f in dc_fields(ExportProfile) if f.name not in ("lot_id", "updated_at")
)
_PROFILE_BOOL_FIELDS = (
    "stagger_enabled", "free_shipping", "immediate_payment",
    "returns_accepted", "sales_tax_enabled",
)


class LotRepository:
    """CRUD operations for lots table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def create(self, name: str, images_per_card: int = 2) -> Lot:
        """Insert a new lot and return it."""
        lot = Lot(id=new_id(), name=name, images_per_card=images_per_card, created_at=now_iso())
        self.conn.execute(
            "INSERT INTO lots (id, name, images_per_card, completed, created_at) VALUES (?, ?, ?, 0, ?)",
            (lot.id, lot.name, lot.images_per_card, lot.created_at),
        )
        return lot

    def get(self, lot_id: str) -> Optional[Lot]:
        """Get a lot by id."""
        row = self.conn.execute("SELECT * FROM lots WHERE id = ?", (lot_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_lot(row)

    def require(self, lot_id: str) -> Lot:
        """Get a lot by id or raise LotNotFound."""
        lot = self.get(lot_id)
        if lot is None:
            raise LotNotFound(f"Lot not found: {lot_id}")
        return lot

    def list_all(self) -> List[Lot]:
        """All lots, newest first, with their card counts."""
        cursor = self.conn.execute(
            """
            SELECT l.*, COUNT(c.id) AS card_count
            FROM lots l
            LEFT JOIN card_items c ON c.lot_id = l.id
            GROUP BY l.id
            ORDER BY l.created_at DESC
            """
        )
        lots = []
        for row in cursor:
            lot = self._row_to_lot(row)
            lot.card_count = row["card_count"]
            lots.append(lot)
        return lots

    def set_images_per_card(self, lot_id: str, images_per_card: int) -> None:
        self.conn.execute(
            "UPDATE lots SET images_per_card = ? WHERE id = ?", (images_per_card, lot_id)
        )

    def mark_completed(self, lot_id: str, completed: bool = True) -> bool:
        """Flag a lot as done (or reopen it). Returns True if updated."""
        cursor = self.conn.execute(
            "UPDATE lots SET completed = ?, completed_at = ? WHERE id = ?",
            (1 if completed else 0, now_iso() if completed else None, lot_id),
        )
        return cursor.rowcount > 0

    def delete(self, lot_id: str) -> bool:
        """Delete a lot with its cards, images and profile. Returns True if deleted."""
        cursor = self.conn.execute("DELETE FROM lots WHERE id = ?", (lot_id,))
        return cursor.rowcount > 0

    def _row_to_lot(self, row: sqlite3.Row) -> Lot:
        return Lot(
            id=row["id"],
            name=row["name"],
            images_per_card=row["images_per_card"],
            completed=bool(row["completed"]),
            completed_at=row["completed_at"],
            created_at=row["created_at"],
        )


class CardRepository:
    """CRUD operations for card_items and card_images tables."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def list_for_lot(self, lot_id: str) -> List[CardItem]:
        """All cards of a lot in display order, each with its images in order."""
        cursor = self.conn.execute(
            "SELECT * FROM card_items WHERE lot_id = ? ORDER BY sort_order, created_at",
            (lot_id,),
        )
        cards = [self._row_to_card(row) for row in cursor]
        images = self._images_for([c.id for c in cards])
        for card in cards:
            card.images = images.get(card.id, [])
        return cards

    def get(self, card_id: str) -> Optional[CardItem]:
        """Get a card (with images) by id."""
        row = self.conn.execute("SELECT * FROM card_items WHERE id = ?", (card_id,)).fetchone()
        if row is None:
            return None
        card = self._row_to_card(row)
        card.images = self._images_for([card.id]).get(card.id, [])
        return card

    def require(self, card_id: str) -> CardItem:
        """Get a card by id or raise CardNotFound."""
        card = self.get(card_id)
        if card is None:
            raise CardNotFound(f"Card not found: {card_id}")
        return card

    def count_for_lot(self, lot_id: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM card_items WHERE lot_id = ?", (lot_id,)
        ).fetchone()
        return row[0]

    def max_sort_order(self, lot_id: str) -> Optional[int]:
        """Highest card sort_order in the lot, or None when the lot is empty."""
        row = self.conn.execute(
            "SELECT MAX(sort_order) FROM card_items WHERE lot_id = ?", (lot_id,)
        ).fetchone()
        return row[0]

    def insert_card(self, card: CardItem) -> None:
        """Insert a card row and its image rows."""
        if card.created_at is None:
            card.created_at = now_iso()
        columns = ("id", "lot_id", "created_at") + EDITABLE_CARD_FIELDS
        values = [self._to_db(name, getattr(card, name)) for name in columns]
        self.conn.execute(
            f"INSERT INTO card_items ({', '.join(columns)}) VALUES ({', '.join('?' * len(columns))})",
            values,
        )
        for image in card.images:
            self.insert_image(card.id, image)

    def insert_image(self, card_id: str, image: CardImage) -> None:
        self.conn.execute(
            """
            INSERT INTO card_images (id, card_item_id, original_path, thumb_path, filename, sort_order)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (image.id, card_id, image.original_path, image.thumb_path, image.filename, image.sort_order),
        )

    def update(self, card: CardItem) -> bool:
        """Write every editable field of a card. Returns True if updated."""
        assignments = ", ".join(f"{name} = ?" for name in EDITABLE_CARD_FIELDS)
        values = [self._to_db(name, getattr(card, name)) for name in EDITABLE_CARD_FIELDS]
        cursor = self.conn.execute(
            f"UPDATE card_items SET {assignments} WHERE id = ?", (*values, card.id)
        )
        return cursor.rowcount > 0

    def apply_changes(self, card_id: str, changes: Dict[str, Any]) -> CardItem:
        """Apply a partial field update to one card and return the new state."""
        card = self.require(card_id)
        unknown = set(changes) - set(EDITABLE_CARD_FIELDS)
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")
        card = replace(card, **changes)
        self.update(card)
        return card

    def delete(self, card_id: str) -> bool:
        """Delete a card and its images. Returns True if deleted."""
        cursor = self.conn.execute("DELETE FROM card_items WHERE id = ?", (card_id,))
        return cursor.rowcount > 0

    def delete_for_lot(self, lot_id: str) -> int:
        """Delete every card of a lot. Returns number of cards removed."""
        cursor = self.conn.execute("DELETE FROM card_items WHERE lot_id = ?", (lot_id,))
        return cursor.rowcount

    def image_owner(self, image_id: str) -> str:
        """Id of the card an image belongs to, or raise CardNotFound."""
        row = self.conn.execute(
            "SELECT card_item_id FROM card_images WHERE id = ?", (image_id,)
        ).fetchone()
        if row is None:
            raise CardNotFound(f"Image not found: {image_id}")
        return row["card_item_id"]

    def move_image(self, image_id: str, target_card_id: str, position: Optional[int] = None) -> None:
        """
        Move an image to another card at the given position (default: last).

        Both the source and target cards are renumbered so positions stay
        contiguous from 0.
        """
        source_card_id = self.image_owner(image_id)
        self.require(target_card_id)

        target_ids = [
            r["id"] for r in self.conn.execute(
                "SELECT id FROM card_images WHERE card_item_id = ? AND id != ? ORDER BY sort_order",
                (target_card_id, image_id),
            )
        ]
        if position is None:
            position = len(target_ids)
        position = max(0, min(position, len(target_ids)))
        target_ids.insert(position, image_id)
        self.conn.execute(
            "UPDATE card_images SET card_item_id = ? WHERE id = ?", (target_card_id, image_id)
        )
        self.reorder_images(target_card_id, target_ids)

        if source_card_id != target_card_id:
            remaining = [
                r["id"] for r in self.conn.execute(
                    "SELECT id FROM card_images WHERE card_item_id = ? ORDER BY sort_order",
                    (source_card_id,),
                )
            ]
            self.reorder_images(source_card_id, remaining)

    def reorder_images(self, card_id: str, image_ids: List[str]) -> None:
        """Renumber a card's images 0..n-1 in the given order."""
        for index, image_id in enumerate(image_ids):
            self.conn.execute(
                "UPDATE card_images SET sort_order = ? WHERE id = ? AND card_item_id = ?",
                (index, image_id, card_id),
            )

    def _images_for(self, card_ids: Iterable[str]) -> Dict[str, List[CardImage]]:
        card_ids = list(card_ids)
        if not card_ids:
            return {}
        placeholders = ",".join("?" * len(card_ids))
        cursor = self.conn.execute(
            f"SELECT * FROM card_images WHERE card_item_id IN ({placeholders}) "
            "ORDER BY card_item_id, sort_order",
            card_ids,
        )
        result: Dict[str, List[CardImage]] = {}
        for row in cursor:
            result.setdefault(row["card_item_id"], []).append(
                CardImage(
                    id=row["id"],
                    original_path=row["original_path"],
                    thumb_path=row["thumb_path"],
                    filename=row["filename"],
                    sort_order=row["sort_order"],
                    card_item_id=row["card_item_id"],
                )
            )
        return result

    @staticmethod
    def _to_db(name: str, value):
        if name == "graded":
            return 1 if value else 0
        return value

    def _row_to_card(self, row: sqlite3.Row) -> CardItem:
        values = {name: row[name] for name in EDITABLE_CARD_FIELDS}
        values["graded"] = bool(values["graded"])
        return CardItem(
            id=row["id"],
            lot_id=row["lot_id"],
            created_at=row["created_at"],
            **values,
        )


class ExportProfileRepository:
    """CRUD operations for export_profiles table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, lot_id: str) -> Optional[ExportProfile]:
        """Get the saved profile for a lot, or None if never saved."""
        row = self.conn.execute(
            "SELECT * FROM export_profiles WHERE lot_id = ?", (lot_id,)
        ).fetchone()
        if row is None:
            return None
        values = {name: row[name] for name in PROFILE_FIELDS}
        for name in _PROFILE_BOOL_FIELDS:
            values[name] = bool(values[name])
        return ExportProfile(lot_id=lot_id, updated_at=row["updated_at"], **values)

    def get_or_create(self, lot_id: str) -> ExportProfile:
        """Get the lot's profile, saving the built-in defaults on first access."""
        profile = self.get(lot_id)
        if profile is None:
            profile = replace(DEFAULT_EXPORT_PROFILE, lot_id=lot_id)
            self.upsert(profile)
        return profile

    def upsert(self, profile: ExportProfile) -> None:
        """Insert or update a lot's profile."""
        profile.updated_at = now_iso()
        columns = ("lot_id",) + PROFILE_FIELDS + ("updated_at",)
        values = []
        for name in columns:
            value = getattr(profile, name)
            if name in _PROFILE_BOOL_FIELDS:
                value = 1 if value else 0
            values.append(value)
        updates = ", ".join(f"{name} = excluded.{name}" for name in PROFILE_FIELDS + ("updated_at",))
        self.conn.execute(
            f"""
            INSERT INTO export_profiles ({', '.join(columns)})
            VALUES ({', '.join('?' * len(columns))})
            ON CONFLICT(lot_id) DO UPDATE SET {updates}
            """,
            values,
        )


class SettingsRepository:
    """Key/value access to the settings table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else default

    def set(self, key: str, value: str) -> None:
        self.conn.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )

    def all(self) -> Dict[str, str]:
        return {row["key"]: row["value"] for row in self.conn.execute("SELECT key, value FROM settings")}
