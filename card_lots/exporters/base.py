"""Base exporter interface."""

import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from card_lots.db.models import CardItem, CardRepository, ExportProfile, Lot, LotRepository
from card_lots.utils import export_filename


@dataclass
class ExportResult:
    """A fully rendered export, ready to be written or sent."""
    filename: str
    data: bytes
    card_count: int
    format_name: str


class BaseExporter(ABC):
    """Abstract base class for lot exporters."""

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Human-readable format name."""
        pass

    @property
    @abstractmethod
    def file_kind(self) -> str:
        """Kind tag used in the suggested filename (raw, ebay_export)."""
        pass

    @property
    def file_extension(self) -> str:
        return ".csv"

    @abstractmethod
    def render(
        self,
        lot: Lot,
        cards: List[CardItem],
        profile: Optional[ExportProfile] = None,
        options: Dict[str, Any] = None,
    ) -> bytes:
        """
        Render a lot's cards as file contents.

        Args:
            lot: The lot being exported
            cards: Cards in lot order, each with images in order
            profile: The lot's export profile (formats that need one)
            options: Request-scoped options (image base URL, tz offset, ...)

        Returns:
            The complete file as bytes. Nothing is produced on failure.
        """
        pass

    def load_profile(self, conn: sqlite3.Connection, lot_id: str) -> Optional[ExportProfile]:
        """Profile this format needs, if any."""
        return None

    def export(
        self,
        conn: sqlite3.Connection,
        lot_id: str,
        options: Dict[str, Any] = None,
        on: Optional[date] = None,
    ) -> ExportResult:
        """
        Load a lot with its cards and render it.

        Args:
            conn: Database connection
            lot_id: Lot to export
            options: Request-scoped options passed to render()
            on: Date used in the suggested filename (default today)
        """
        lot = LotRepository(conn).require(lot_id)
        cards = CardRepository(conn).list_for_lot(lot_id)
        profile = self.load_profile(conn, lot_id)
        data = self.render(lot, cards, profile, options or {})
        return ExportResult(
            filename=export_filename(lot.name, len(cards), self.file_kind, on=on),
            data=data,
            card_count=len(cards),
            format_name=self.format_name,
        )
