"""Raw CSV exporter: every card field as stored."""

from typing import Any, Dict, List, Optional

from card_lots.db.models import CardItem, ExportProfile, Lot
from card_lots.exporters.base import BaseExporter
from card_lots.exporters.csv_codec import serialize_rows
from card_lots.exporters.schemas import RAW_HEADERS
from card_lots.services.titles import generate_title


def _as_is(value):
    return "" if value is None else value


class RawExporter(BaseExporter):
    """Export a lot to the raw 19-column CSV."""

    @property
    def format_name(self) -> str:
        return "Raw CSV"

    @property
    def file_kind(self) -> str:
        return "raw"

    def build_row(self, card: CardItem) -> List:
        images = ";".join(
            img.original_path for img in sorted(card.images, key=lambda i: i.sort_order)
        )
        return [
            images,
            generate_title(card),
            card.status,
            _as_is(card.listings),
            _as_is(card.sale_price),
            _as_is(card.category),
            _as_is(card.year),
            _as_is(card.brand),
            _as_is(card.set_name),
            _as_is(card.name),
            _as_is(card.card_number),
            _as_is(card.subset_parallel),
            _as_is(card.attributes),
            _as_is(card.team),
            _as_is(card.variation),
            # Legacy flag, passed through unchanged
            "Yes" if card.graded else "No",
            _as_is(card.grader),
            _as_is(card.condition),
            _as_is(card.cert_no),
        ]

    def render(
        self,
        lot: Lot,
        cards: List[CardItem],
        profile: Optional[ExportProfile] = None,
        options: Dict[str, Any] = None,
    ) -> bytes:
        return serialize_rows(RAW_HEADERS, [self.build_row(card) for card in cards])
