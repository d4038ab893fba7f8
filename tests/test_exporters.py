"""
Tests for the raw and eBay File Exchange exporters.

Each test builds a small lot in a fresh temporary database and parses the
exported bytes back with the csv module.

To run: pytest tests/test_exporters.py -v
"""

import csv
import io
import tempfile
from dataclasses import replace
from datetime import date
from pathlib import Path

import pytest

from card_lots.db.connection import close_connection, get_connection
from card_lots.db.models import (
    DEFAULT_EXPORT_PROFILE,
    CardImage,
    CardItem,
    CardRepository,
    ExportProfileRepository,
    LotRepository,
)
from card_lots.db.schema import init_db
from card_lots.errors import InvalidConfiguration, NotReadyForExport, SerializationFailure
from card_lots.exporters import EXPORTERS, EbayExporter, RawExporter, get_exporter
from card_lots.exporters.schemas import (
    ACTION_HEADER,
    EBAY_INFO_ROW,
    EBAY_SCHEMAS,
    RAW_HEADERS,
)
from card_lots.vocab import GRADED_CONDITION_TYPE, UNGRADED_CONDITION_TYPE

EXPORT_DAY = date(2025, 3, 1)
BASE_URL = "https://cards.example.com/"

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def test_db():
    """Create a fresh temporary database with current schema."""
    close_connection()
    with tempfile.NamedTemporaryFile(suffix=".sqlite", delete=False) as f:
        db_path = f.name

    conn = get_connection(db_path)
    init_db(conn)

    yield db_path, conn

    close_connection()
    Path(db_path).unlink(missing_ok=True)


@pytest.fixture
def ready_lot(test_db):
    """
    A lot with two export-ready cards and a scheduled profile.

    Card 1 is ungraded (near mint), card 2 is a PSA 9.5 slab.
    """
    _, conn = test_db
    lot = LotRepository(conn).create("Spring Lot #1")
    repo = CardRepository(conn)

    common = dict(
        year=2024,
        category="Baseball",
        brand="Topps",
        set_name="Topps Chrome",
        subset_parallel="Refractor",
        team="Angels",
    )
    repo.insert_card(CardItem(
        id="card-1",
        lot_id=lot.id,
        sort_order=0,
        title="2024 Topps Chrome Mike Trout #27 Refractor",
        sale_price=12.5,
        name="Mike Trout",
        card_number="27",
        condition_type=UNGRADED_CONDITION_TYPE,
        condition="Near mint or better: Comparable to a fresh pack",
        images=_images(lot.id, "card-1", ["trout front.jpg", "trout_back.jpg"]),
        **common,
    ))
    repo.insert_card(CardItem(
        id="card-2",
        lot_id=lot.id,
        sort_order=1,
        title="2024 Topps Chrome Shohei Ohtani #1 Refractor PSA 9.5",
        sale_price=40,
        name="Shohei Ohtani",
        card_number="1",
        graded=True,
        condition_type=GRADED_CONDITION_TYPE,
        grader="Professional Sports Authenticator (PSA)",
        grade="9.5",
        cert_no="81234567",
        images=_images(lot.id, "card-2", ["ohtani.jpg"]),
        **common,
    ))
    ExportProfileRepository(conn).upsert(
        replace(DEFAULT_EXPORT_PROFILE, lot_id=lot.id, schedule_date="2025-03-01", schedule_time="19:00")
    )
    conn.commit()
    return conn, lot


def _images(lot_id, card_id, names):
    return [
        CardImage(
            id=f"{card_id}-{i}",
            original_path=f"uploads/{lot_id}/{name}",
            thumb_path=f"uploads/{lot_id}/thumbs/thumb_{i}.jpg",
            filename=name,
            sort_order=i,
        )
        for i, name in enumerate(names)
    ]


def parse(data: bytes):
    return list(csv.reader(io.StringIO(data.decode("utf-8"), newline="")))


def ebay_rows(data: bytes):
    """Data rows of an eBay export as header -> value dicts."""
    rows = parse(data)
    header = rows[1]
    return [dict(zip(header, row)) for row in rows[2:]]


def set_profile(conn, lot_id, **changes):
    repo = ExportProfileRepository(conn)
    repo.upsert(replace(repo.get(lot_id), **changes))
    conn.commit()


# =============================================================================
# Registry
# =============================================================================


class TestRegistry:
    def test_formats(self):
        assert set(EXPORTERS) == {"raw", "ebay"}
        assert isinstance(get_exporter("EBAY"), EbayExporter)
        assert isinstance(get_exporter("raw"), RawExporter)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            get_exporter("moxfield")


# =============================================================================
# Column tables
# =============================================================================


class TestSchemas:
    def test_column_counts(self):
        assert len(RAW_HEADERS) == 19
        assert {v: len(h) for v, h in EBAY_SCHEMAS.items()} == {"1.0": 32, "1.1": 55, "1.2": 60}

    def test_full_template_bounds(self):
        headers = EBAY_SCHEMAS["1.2"]
        assert headers[0] == ACTION_HEADER
        assert headers[1:5] == ("CustomLabel", "*Category", "StoreCategory", "*Title")
        assert headers[-1] == "ScheduleTime"

    def test_columns_unique(self):
        for headers in EBAY_SCHEMAS.values():
            assert len(set(headers)) == len(headers)

    def test_older_versions_keep_relative_order(self):
        latest = EBAY_SCHEMAS["1.2"]
        for version in ("1.0", "1.1"):
            positions = [latest.index(h) for h in EBAY_SCHEMAS[version]]
            assert positions == sorted(positions)


# =============================================================================
# Raw export
# =============================================================================


class TestRawExporter:
    def test_export(self, ready_lot):
        conn, lot = ready_lot
        result = RawExporter().export(conn, lot.id, on=EXPORT_DAY)

        assert result.filename == "SpringLot1_2_items_raw_03-01-25.csv"
        assert result.card_count == 2
        rows = parse(result.data)
        assert rows[0] == list(RAW_HEADERS)
        first = dict(zip(rows[0], rows[1]))
        assert first["Images"] == f"uploads/{lot.id}/trout front.jpg;uploads/{lot.id}/trout_back.jpg"
        assert first["Title"] == "2024 Topps Chrome Mike Trout #27 Refractor"
        assert first["Sale Price"] == "12.5"
        assert first["Year"] == "2024"
        assert first["Graded"] == "No"
        assert first["Listings"] == ""
        assert dict(zip(rows[0], rows[2]))["Graded"] == "Yes"

    def test_incomplete_cards_still_export(self, ready_lot):
        conn, lot = ready_lot
        CardRepository(conn).apply_changes("card-1", {"year": None, "title": None})
        conn.commit()

        rows = parse(RawExporter().export(conn, lot.id).data)
        assert len(rows) == 3
        assert rows[1][RAW_HEADERS.index("Year")] == ""

    def test_ends_with_crlf(self, ready_lot):
        conn, lot = ready_lot
        assert RawExporter().export(conn, lot.id).data.endswith(b"\r\n")


# =============================================================================
# eBay export
# =============================================================================


class TestEbayExporter:
    def test_layout(self, ready_lot):
        conn, lot = ready_lot
        result = EbayExporter().export(conn, lot.id, {"image_base_url": BASE_URL}, on=EXPORT_DAY)

        assert result.filename == "SpringLot1_2_items_ebay_export_03-01-25.csv"
        rows = parse(result.data)
        assert rows[0] == list(EBAY_INFO_ROW)
        assert rows[1] == list(EBAY_SCHEMAS["1.2"])
        assert len(rows) == 4
        assert all(len(row) == 60 for row in rows[2:])

    def test_ungraded_row(self, ready_lot):
        conn, lot = ready_lot
        data = EbayExporter().export(conn, lot.id, {"image_base_url": BASE_URL}).data
        row = ebay_rows(data)[0]

        assert row[ACTION_HEADER] == "Add"
        assert row["CustomLabel"] == f"{lot.id[:8]}-001"
        assert row["*Category"] == "261328"
        assert row["StoreCategory"] == "0"
        assert row["*ConditionID"] == "4000"
        assert row["*C:Graded"] == "No"
        assert row["CD:Card Condition - (ID: 40001)"] == "400010"
        assert row["CD:Grade - (ID: 27502)"] == ""
        assert row["CD:Professional Grader - (ID: 27501)"] == ""
        assert row["*C:Player/Athlete"] == "Mike Trout"
        assert row["*C:Features"] == "Refractor"
        assert row["C:Season"] == "2024"
        assert row["*Format"] == "Auction"
        assert row["*Duration"] == "7"
        assert row["*StartPrice"] == "12.50"
        assert row["BuyItNowPrice"] == ""
        assert row["*Location"] == "United States"
        assert row["ShippingType"] == "Flat"
        assert row["ShippingService-1:Cost"] == "3.99"
        assert row["ShippingService-1:AdditionalCost"] == "1.49"
        assert row["ShippingService-1:FreeShipping"] == "0"
        assert row["*DispatchTimeMax"] == "3"
        assert row["*ReturnsAcceptedOption"] == "ReturnsAccepted"
        assert row["ReturnsWithinOption"] == "Days_14"
        assert row["RefundOption"] == "MoneyBack"
        assert row["ShippingCostPaidByOption"] == "Seller"
        assert row["*Description"] == "<p>2024 Topps Chrome Mike Trout #27 Refractor</p>"
        assert row["ScheduleTime"] == "2025-03-01 19:00:00"

    def test_graded_row(self, ready_lot):
        conn, lot = ready_lot
        row = ebay_rows(EbayExporter().export(conn, lot.id).data)[1]

        assert row["CustomLabel"] == f"{lot.id[:8]}-002"
        assert row["*ConditionID"] == "2750"
        assert row["*C:Graded"] == "Yes"
        assert row["CD:Grade - (ID: 27502)"] == "9.5"
        assert row["CD:Professional Grader - (ID: 27501)"] == "Professional Sports Authenticator (PSA)"
        assert row["CDA:Certification Number - (ID: 27503)"] == "81234567"
        assert row["CD:Card Condition - (ID: 40001)"] == ""
        assert row["*StartPrice"] == "40.00"
        assert row["ScheduleTime"] == "2025-03-01 19:00:15"

    def test_image_urls(self, ready_lot):
        conn, lot = ready_lot
        row = ebay_rows(EbayExporter().export(conn, lot.id, {"image_base_url": BASE_URL}).data)[0]
        assert row["PicURL"] == (
            f"https://cards.example.com/api/images/uploads%2F{lot.id}%2Ftrout%20front.jpg"
            f"|https://cards.example.com/api/images/uploads%2F{lot.id}%2Ftrout_back.jpg"
        )

    def test_image_paths_without_base_url(self, ready_lot):
        conn, lot = ready_lot
        row = ebay_rows(EbayExporter().export(conn, lot.id).data)[0]
        assert row["PicURL"] == f"uploads/{lot.id}/trout front.jpg|uploads/{lot.id}/trout_back.jpg"

    def test_timezone_offset(self, ready_lot):
        conn, lot = ready_lot
        rows = ebay_rows(EbayExporter().export(conn, lot.id, {"tz_offset_minutes": 300}).data)
        assert [r["ScheduleTime"] for r in rows] == ["2025-03-02 00:00:00", "2025-03-02 00:00:15"]

    def test_immediate_has_no_schedule_time(self, ready_lot):
        conn, lot = ready_lot
        set_profile(conn, lot.id, schedule_mode="Immediate", schedule_date=None, schedule_time=None)
        rows = ebay_rows(EbayExporter().export(conn, lot.id).data)
        assert {r["ScheduleTime"] for r in rows} == {""}

    def test_buy_it_now(self, ready_lot):
        conn, lot = ready_lot
        set_profile(conn, lot.id, listing_type="BuyItNow")
        row = ebay_rows(EbayExporter().export(conn, lot.id).data)[0]
        assert row["*Format"] == "FixedPrice"
        assert row["*StartPrice"] == "12.50"
        assert row["BuyItNowPrice"] == ""

    def test_auction_with_buy_it_now_price(self, ready_lot):
        conn, lot = ready_lot
        set_profile(conn, lot.id, buy_it_now_price=25)
        row = ebay_rows(EbayExporter().export(conn, lot.id).data)[0]
        assert row["BuyItNowPrice"] == "25.00"

    def test_free_shipping_and_location(self, ready_lot):
        conn, lot = ready_lot
        set_profile(
            conn, lot.id,
            free_shipping=True, item_location_city="Austin", item_location_state="TX",
            item_location_zip="78701", returns_accepted=False, refund_method="Exchange",
        )
        row = ebay_rows(EbayExporter().export(conn, lot.id).data)[0]
        assert row["ShippingType"] == "Free"
        assert row["ShippingService-1:FreeShipping"] == "1"
        assert row["ShippingService-1:Cost"] == "0"
        assert row["*Location"] == "Austin, TX"
        assert row["PostalCode"] == "78701"
        assert row["*ReturnsAcceptedOption"] == "ReturnsNotAccepted"
        assert row["RefundOption"] == "MoneyBackOrReplacement"

    def test_title_truncated_and_description_escaped(self, ready_lot):
        conn, lot = ready_lot
        long_title = "Topps & Bowman " + "X" * 100
        CardRepository(conn).apply_changes("card-1", {"title": long_title})
        conn.commit()

        row = ebay_rows(EbayExporter().export(conn, lot.id).data)[0]
        assert row["*Title"] == long_title[:80]
        assert row["*Description"] == f"<p>{long_title.replace('&', '&amp;')}</p>"

    def test_card_description_used(self, ready_lot):
        conn, lot = ready_lot
        CardRepository(conn).apply_changes("card-1", {"description": "<b>Sharp corners, centered</b>"})
        conn.commit()
        row = ebay_rows(EbayExporter().export(conn, lot.id).data)[0]
        assert row["*Description"] == "<b>Sharp corners, centered</b>"

    @pytest.mark.parametrize("version,width", [("1.0", 32), ("1.1", 55)])
    def test_older_schema(self, ready_lot, version, width):
        conn, lot = ready_lot
        rows = parse(EbayExporter().export(conn, lot.id, {"schema_version": version}).data)
        assert rows[1] == list(EBAY_SCHEMAS[version])
        assert all(len(row) == width for row in rows[1:])

    def test_unknown_schema(self, ready_lot):
        conn, lot = ready_lot
        with pytest.raises(InvalidConfiguration):
            EbayExporter().export(conn, lot.id, {"schema_version": "9.9"})

    def test_refuses_incomplete_lot(self, ready_lot):
        conn, lot = ready_lot
        CardRepository(conn).apply_changes("card-2", {"year": None})
        conn.commit()

        with pytest.raises(NotReadyForExport) as exc:
            EbayExporter().export(conn, lot.id)
        assert exc.value.missing == {"card-2": ["year"]}

    def test_refuses_missing_schedule(self, ready_lot):
        conn, lot = ready_lot
        set_profile(conn, lot.id, schedule_date=None)
        with pytest.raises(InvalidConfiguration) as exc:
            EbayExporter().export(conn, lot.id)
        assert "schedule_date" in exc.value.fields

    def test_default_profile_saved_on_first_export(self, test_db):
        _, conn = test_db
        lot = LotRepository(conn).create("Empty")
        conn.commit()

        # Defaults are scheduled with no date, so the export is refused
        with pytest.raises(InvalidConfiguration):
            EbayExporter().export(conn, lot.id)
        assert ExportProfileRepository(conn).get(lot.id) is not None

    def test_empty_lot_exports_headers(self, test_db):
        _, conn = test_db
        lot = LotRepository(conn).create("Empty")
        ExportProfileRepository(conn).upsert(
            replace(DEFAULT_EXPORT_PROFILE, lot_id=lot.id, schedule_mode="Immediate")
        )
        conn.commit()

        result = EbayExporter().export(conn, lot.id, on=EXPORT_DAY)
        assert result.filename == "Empty_0_items_ebay_export_03-01-25.csv"
        assert len(parse(result.data)) == 2


class TestBuildRow:
    def test_missing_column_value(self):
        card = CardItem(id="card-9", lot_id="lot")
        with pytest.raises(SerializationFailure) as exc:
            EbayExporter().build_row(card, {"A": "1"}, ("A", "B"))
        assert (exc.value.card_id, exc.value.column) == ("card-9", "B")

    def test_none_value(self):
        card = CardItem(id="card-9", lot_id="lot")
        with pytest.raises(SerializationFailure) as exc:
            EbayExporter().build_row(card, {"A": None}, ("A",))
        assert exc.value.column == "A"

    def test_projection_follows_header_order(self):
        card = CardItem(id="card-9", lot_id="lot")
        assert EbayExporter().build_row(card, {"A": "1", "B": "2"}, ("B", "A")) == ["2", "1"]
