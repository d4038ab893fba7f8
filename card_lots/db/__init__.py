"""Database layer for Card Lots."""

from card_lots.db.connection import (
    close_connection,
    discard_lot_lock,
    get_connection,
    get_db_path,
    lot_lock,
    transaction,
)
from card_lots.db.models import (
    DEFAULT_EXPORT_PROFILE,
    CardImage,
    CardItem,
    CardRepository,
    ExportProfile,
    ExportProfileRepository,
    Lot,
    LotRepository,
    SettingsRepository,
)
from card_lots.db.schema import SCHEMA_VERSION, init_db

__all__ = [
    "get_db_path",
    "get_connection",
    "close_connection",
    "transaction",
    "lot_lock",
    "discard_lot_lock",
    "init_db",
    "SCHEMA_VERSION",
    "DEFAULT_EXPORT_PROFILE",
    "Lot",
    "CardImage",
    "CardItem",
    "ExportProfile",
    "LotRepository",
    "CardRepository",
    "ExportProfileRepository",
    "SettingsRepository",
]
