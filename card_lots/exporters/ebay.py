"""eBay File Exchange exporter for trading card listings."""

import html
import logging
import sqlite3
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from card_lots.db.models import CardItem, ExportProfile, ExportProfileRepository, Lot
from card_lots.errors import SerializationFailure
from card_lots.exporters.base import BaseExporter
from card_lots.exporters.csv_codec import serialize_rows
from card_lots.exporters.schemas import (
    ACTION_HEADER,
    DEFAULT_SCHEMA_VERSION,
    EBAY_INFO_ROW,
    get_ebay_headers,
)
from card_lots.services.conditions import check_cards_ready, resolve_condition_fields
from card_lots.services.schedule import compute_schedule_time
from card_lots.services.titles import generate_title, truncate_title
from card_lots.services.validation import check_profile_for_export, validate_profile
from card_lots.utils import is_blank

log = logging.getLogger(__name__)

# Profile listing type -> *Format
EBAY_FORMATS = {
    "Auction": "Auction",
    "BuyItNow": "FixedPrice",
}

# PicURL holds every image of a card separated by this
PICTURE_SEPARATOR = "|"

# Same set of unescaped characters as JavaScript's encodeURIComponent
_URL_SAFE = "-_.!~*'()"


def _price(value: Optional[float]) -> Optional[str]:
    """Plain decimal with two places, no currency symbol."""
    if value is None:
        return None
    return f"{value:.2f}"


def _text(value) -> Optional[str]:
    return None if value is None else str(value)


def image_url(path: str, base_url: Optional[str]) -> str:
    """Absolute picture URL for a stored image, or the stored path without a base."""
    if is_blank(base_url):
        return path
    return f"{base_url.rstrip('/')}/api/images/{quote(path, safe=_URL_SAFE)}"


def item_location(profile: ExportProfile) -> str:
    parts = [p.strip() for p in (profile.item_location_city, profile.item_location_state) if not is_blank(p)]
    return ", ".join(parts) or "United States"


class EbayExporter(BaseExporter):
    """
    Export a lot to eBay File Exchange CSV.

    Options:
        image_base_url: prefix that turns stored image paths into URLs
        tz_offset_minutes: UTC minus operator local time, for ScheduleTime
        schema_version: key of EBAY_SCHEMAS (default: latest)

    The lot is validated first (every card ready, profile complete) and
    nothing is rendered unless every row can be built.
    """

    @property
    def format_name(self) -> str:
        return "eBay File Exchange"

    @property
    def file_kind(self) -> str:
        return "ebay_export"

    def load_profile(self, conn: sqlite3.Connection, lot_id: str) -> ExportProfile:
        return ExportProfileRepository(conn).get_or_create(lot_id)

    def column_values(
        self,
        card: CardItem,
        index: int,
        profile: ExportProfile,
        image_base_url: Optional[str] = None,
        tz_offset_minutes: int = 0,
    ) -> Dict[str, Optional[str]]:
        """
        Every File Exchange column for one card, keyed by header.

        index is the card's zero-based position in the batch; it drives the
        custom label and the stagger. A None value means the data needed
        for that column is missing.
        """
        title = generate_title(card)
        condition = resolve_condition_fields(card)
        listing_format = EBAY_FORMATS.get(profile.listing_type, "Auction")

        if listing_format == "FixedPrice":
            start_price = card.sale_price if card.sale_price is not None else (
                profile.buy_it_now_price if profile.buy_it_now_price is not None
                else profile.start_price_default
            )
            buy_it_now = ""
        else:
            start_price = card.sale_price if card.sale_price is not None else profile.start_price_default
            buy_it_now = _price(profile.buy_it_now_price) or ""

        pictures = PICTURE_SEPARATOR.join(
            image_url(img.original_path, image_base_url)
            for img in sorted(card.images, key=lambda i: i.sort_order)
        )
        year = "" if card.year is None else str(card.year)

        return {
            ACTION_HEADER: "Add",
            "CustomLabel": f"{card.lot_id[:8]}-{index + 1:03d}",
            "*Category": _text(profile.ebay_category),
            "StoreCategory": profile.store_category or "0",
            "*Title": truncate_title(title),
            "Subtitle": "",
            "Relationship": "",
            "*ConditionID": condition.condition_id,
            "*C:Graded": condition.graded,
            "*C:Sport": card.category or "Baseball",
            "*C:Player/Athlete": card.name or "",
            "*C:Parallel/Variety": card.subset_parallel or "",
            "*C:Manufacturer": card.brand or "",
            "C:Season": year,
            "*C:Features": card.subset_parallel or "",
            "*C:Set": card.set_name or "",
            "CD:Grade - (ID: 27502)": condition.grade,
            "*C:League": "MLB",
            "CD:Professional Grader - (ID: 27501)": condition.grader,
            "*C:Team": card.team or "",
            "*C:Autographed": "No",
            "CD:Card Condition - (ID: 40001)": condition.card_condition_code,
            "*C:Card Name": card.name or "",
            "*C:Card Number": card.card_number or "",
            "CDA:Certification Number - (ID: 27503)": condition.cert_no,
            "*C:Type": "Sports Trading Card",
            "C:Year Manufactured": year,
            "PicURL": pictures,
            "GalleryType": "",
            "*Description": card.description or f"<p>{html.escape(title)}</p>",
            "*Format": listing_format,
            "*Duration": _text(profile.duration_days),
            "*StartPrice": _price(start_price),
            "BuyItNowPrice": buy_it_now,
            "*Quantity": "1",
            "PayPalAccepted": "",
            "PayPalEmailAddress": "",
            "ImmediatePayRequired": "1" if profile.immediate_payment else "0",
            "PaymentInstructions": "",
            "*Location": item_location(profile),
            "PostalCode": profile.item_location_zip or "",
            "ShippingType": "Free" if profile.free_shipping else "Flat",
            "ShippingService-1:Option": profile.shipping_service,
            "ShippingService-1:FreeShipping": "1" if profile.free_shipping else "0",
            "ShippingService-1:Cost": "0" if profile.free_shipping else _price(profile.shipping_cost),
            "ShippingService-1:AdditionalCost": _price(profile.each_additional_item_cost) or "",
            "ShippingService-2:Option": "",
            "ShippingService-2:Cost": "",
            "*DispatchTimeMax": _text(profile.handling_time_days),
            "PromotionalShippingDiscount": "",
            "ShippingDiscountProfileID": "",
            "*ReturnsAcceptedOption": "ReturnsAccepted" if profile.returns_accepted else "ReturnsNotAccepted",
            "ReturnsWithinOption": f"Days_{profile.return_window_days}",
            "RefundOption": "MoneyBack" if profile.refund_method == "Money Back" else "MoneyBackOrReplacement",
            "ShippingCostPaidByOption": profile.shipping_cost_paid_by,
            "AdditionalDetails": "",
            "ShippingProfileName": "",
            "ReturnProfileName": "",
            "PaymentProfileName": "",
            "ScheduleTime": compute_schedule_time(profile, index, tz_offset_minutes),
        }

    def build_row(self, card: CardItem, values: Dict[str, Optional[str]], headers) -> List[str]:
        """Project a column mapping through a header list."""
        row = []
        for header in headers:
            if header not in values:
                raise SerializationFailure(card.id, header, "no value mapped for column")
            value = values[header]
            if value is None:
                raise SerializationFailure(card.id, header)
            row.append(value)
        return row

    def render(
        self,
        lot: Lot,
        cards: List[CardItem],
        profile: Optional[ExportProfile] = None,
        options: Dict[str, Any] = None,
    ) -> bytes:
        options = options or {}
        if profile is None:
            profile = ExportProfile(lot_id=lot.id)
        headers = get_ebay_headers(options.get("schema_version") or DEFAULT_SCHEMA_VERSION)

        check_cards_ready(cards)
        check_profile_for_export(profile)
        validate_profile(profile)

        rows = []
        for index, card in enumerate(cards):
            values = self.column_values(
                card,
                index,
                profile,
                image_base_url=options.get("image_base_url"),
                tz_offset_minutes=options.get("tz_offset_minutes") or 0,
            )
            rows.append(self.build_row(card, values, headers))

        data = serialize_rows(headers, rows, preamble=EBAY_INFO_ROW)
        log.info(
            "Rendered eBay export for lot %s: %d card(s), schema %d columns",
            lot.id, len(rows), len(headers),
        )
        return data
