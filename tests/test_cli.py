"""
Tests for the lots command line, driven end to end through main().

To run: pytest tests/test_cli.py -v
"""

import csv
import io
import re
import sqlite3

import pytest
from PIL import Image

from card_lots.cli import main
from card_lots.db import connection
from card_lots.db.connection import close_connection, get_connection
from card_lots.db.models import CardRepository, ExportProfileRepository, LotRepository


@pytest.fixture
def cli(tmp_path, monkeypatch, capsys):
    """Run main() against a temporary database and home; returns stdout."""
    close_connection()
    monkeypatch.setenv("CARDLOTS_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("CARDLOTS_IMAGE_BASE_URL", raising=False)
    db_path = str(tmp_path / "lots.sqlite")

    def run(*argv):
        capsys.readouterr()
        main(["--db", db_path, *argv])
        return capsys.readouterr().out

    run.db_path = db_path
    yield run
    close_connection()


@pytest.fixture
def photos(tmp_path):
    folder = tmp_path / "scans"
    folder.mkdir()
    paths = []
    for name in ("IMG_10.jpg", "IMG_2.jpg", "IMG_1.jpg", "IMG_3.jpg"):
        path = folder / name
        Image.new("RGB", (60, 80), "white").save(path, format="JPEG")
        paths.append(str(path))
    return paths


def create_lot(cli, name="Show Lot"):
    out = cli("lot", "create", name)
    return re.search(r"Created lot (\S+)", out).group(1)


def card_ids(cli, lot_id):
    return [c.id for c in CardRepository(get_connection(cli.db_path)).list_for_lot(lot_id)]


def fill_cards(cli, ids):
    cli(
        "edit", *ids,
        "--price", "5", "--year", "2023", "--brand", "Topps", "--set", "Series 1",
        "--name", "Julio Rodriguez", "--number", "44", "--parallel", "Base",
        "--ungraded", "--condition", "near-mint", "--auto-title",
    )


class TestLotCommands:
    def test_create_and_list(self, cli):
        lot_id = create_lot(cli, "Card Show")
        out = cli("lot", "list")
        assert lot_id in out
        assert "Card Show" in out

    def test_create_uses_setting(self, cli):
        cli("settings", "--set", "images_per_card=3")
        lot_id = create_lot(cli)
        assert LotRepository(get_connection(cli.db_path)).get(lot_id).images_per_card == 3

    def test_complete(self, cli):
        lot_id = create_lot(cli)
        cli("lot", "complete", lot_id)
        assert LotRepository(get_connection(cli.db_path)).get(lot_id).completed is True

    def test_delete(self, cli):
        lot_id = create_lot(cli)
        cli("lot", "delete", lot_id, "--yes")
        assert LotRepository(get_connection(cli.db_path)).get(lot_id) is None

    def test_delete_discards_lock_and_uploads(self, cli, photos, tmp_path):
        lot_id = create_lot(cli)
        cli("upload", lot_id, *photos)
        assert (tmp_path / "home" / "uploads" / lot_id).is_dir()

        cli("lot", "delete", lot_id, "--yes")
        assert lot_id not in connection._lot_locks
        assert not (tmp_path / "home" / "uploads" / lot_id).exists()

    def test_unknown_lot_exits_with_error(self, cli, capsys):
        with pytest.raises(SystemExit) as exc:
            cli("lot", "complete", "no-such-lot")
        assert exc.value.code == 1
        assert "Lot not found" in capsys.readouterr().err


class TestUploadAndEdit:
    def test_upload_groups_in_natural_order(self, cli, photos):
        lot_id = create_lot(cli)
        out = cli("upload", lot_id, *photos, "--per-card", "2")
        assert "Stored 4 image(s) as 2 card(s)" in out

        cards = CardRepository(get_connection(cli.db_path)).list_for_lot(lot_id)
        originals = [[img.filename.split("_")[1] for img in c.images] for c in cards]
        assert originals == [["1", "2"], ["3", "10"]]

    def test_regroup(self, cli, photos):
        lot_id = create_lot(cli)
        cli("upload", lot_id, *photos)
        out = cli("regroup", lot_id, "--per-card", "1", "--yes")
        assert "4 card(s)" in out
        assert len(card_ids(cli, lot_id)) == 4

    def test_list_reports_missing_fields(self, cli, photos):
        lot_id = create_lot(cli)
        cli("upload", lot_id, *photos)
        out = cli("list", lot_id)
        assert "0 of 2 card(s) ready for export" in out
        assert "missing: title, sale_price, year" in out

    def test_bulk_edit_makes_cards_ready(self, cli, photos):
        lot_id = create_lot(cli)
        cli("upload", lot_id, *photos)
        fill_cards(cli, card_ids(cli, lot_id))

        out = cli("list", lot_id)
        assert "2 of 2 card(s) ready for export" in out
        assert "2023 Series 1 Julio Rodriguez #44 Base" in out

    def test_edit_rejects_bad_grade(self, cli, photos, capsys):
        lot_id = create_lot(cli)
        cli("upload", lot_id, *photos)
        with pytest.raises(SystemExit):
            cli("edit", card_ids(cli, lot_id)[0], "--grade", "11")
        assert "grade" in capsys.readouterr().err

    @pytest.mark.parametrize("per_card", ["-1", "0"])
    def test_upload_rejects_bad_group_size_before_storing(self, cli, photos, tmp_path, per_card):
        lot_id = create_lot(cli)
        with pytest.raises(SystemExit) as exc:
            cli("upload", lot_id, *photos, "--per-card", per_card)
        assert exc.value.code == 1
        assert list((tmp_path / "home" / "uploads").rglob("*.jpg")) == []
        assert card_ids(cli, lot_id) == []

    def test_failed_upload_removes_stored_files(self, cli, photos, tmp_path, monkeypatch):
        lot_id = create_lot(cli)

        def fail(*args, **kwargs):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr("card_lots.cli.upload.add_images_to_lot", fail)
        with pytest.raises(sqlite3.OperationalError):
            cli("upload", lot_id, *photos)
        assert list((tmp_path / "home" / "uploads").rglob("*.jpg")) == []
        assert card_ids(cli, lot_id) == []


class TestProfileCommand:
    def test_set_fields(self, cli):
        lot_id = create_lot(cli)
        cli("profile", lot_id, "--set", "listing_type=BuyItNow", "--set", "free_shipping=yes",
            "--set", "buy_it_now_price=")

        profile = ExportProfileRepository(get_connection(cli.db_path)).get(lot_id)
        assert profile.listing_type == "BuyItNow"
        assert profile.free_shipping is True
        assert profile.buy_it_now_price is None

    def test_invalid_value(self, cli, capsys):
        lot_id = create_lot(cli)
        with pytest.raises(SystemExit):
            cli("profile", lot_id, "--set", "duration_days=2")
        assert "duration_days" in capsys.readouterr().err

    def test_unknown_field(self, cli):
        lot_id = create_lot(cli)
        with pytest.raises(SystemExit):
            cli("profile", lot_id, "--set", "color=blue")


class TestExportCommand:
    def test_export_writes_file(self, cli, photos, tmp_path):
        lot_id = create_lot(cli, "Show Lot")
        cli("upload", lot_id, *photos)
        fill_cards(cli, card_ids(cli, lot_id))
        cli("profile", lot_id, "--set", "schedule_date=2025-03-01", "--set", "schedule_time=19:00")

        out_dir = tmp_path / "out"
        out = cli("export", lot_id, "-o", str(out_dir), "--image-base-url", "https://cards.example.com")

        files = list(out_dir.glob("ShowLot_2_items_ebay_export_*.csv"))
        assert len(files) == 1
        assert "Exported 2 card(s)" in out
        rows = list(csv.reader(io.StringIO(files[0].read_bytes().decode("utf-8"), newline="")))
        assert rows[0][0] == "Info"
        assert len(rows) == 4
        assert rows[2][rows[1].index("PicURL")].startswith("https://cards.example.com/api/images/uploads%2F")

    def test_raw_export(self, cli, photos, tmp_path):
        lot_id = create_lot(cli)
        cli("upload", lot_id, *photos)
        out_dir = tmp_path / "out"
        cli("export", lot_id, "-f", "raw", "-o", str(out_dir))
        assert len(list(out_dir.glob("ShowLot_2_items_raw_*.csv"))) == 1

    def test_not_ready_lists_cards(self, cli, photos, tmp_path, capsys):
        lot_id = create_lot(cli)
        cli("upload", lot_id, *photos)
        out_dir = tmp_path / "out"

        with pytest.raises(SystemExit) as exc:
            cli("export", lot_id, "-o", str(out_dir))
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "2 of 2 cards missing required fields" in err
        for card_id in card_ids(cli, lot_id):
            assert card_id in err
        assert not out_dir.exists()

    def test_image_base_url_from_setting(self, cli, photos, tmp_path):
        lot_id = create_lot(cli)
        cli("upload", lot_id, *photos)
        fill_cards(cli, card_ids(cli, lot_id))
        cli("profile", lot_id, "--set", "schedule_mode=Immediate")
        cli("settings", "--set", "image_base_url=https://img.example.net")

        out_dir = tmp_path / "out"
        out = cli("export", lot_id, "-o", str(out_dir))
        assert "no image base URL" not in out
        data = next(out_dir.glob("*.csv")).read_text(encoding="utf-8")
        assert "https://img.example.net/api/images/" in data

    def test_list_and_export_agree_on_unrecognized_condition_type(self, cli, photos, tmp_path, capsys):
        lot_id = create_lot(cli)
        cli("upload", lot_id, *photos)
        ids = card_ids(cli, lot_id)
        fill_cards(cli, ids)
        cli("profile", lot_id, "--set", "schedule_mode=Immediate")
        conn = get_connection(cli.db_path)
        CardRepository(conn).apply_changes(ids[0], {"condition_type": "Slabbed"})
        conn.commit()

        out = cli("list", lot_id)
        assert "1 of 2 card(s) ready for export" in out
        assert "missing: condition_type" in out

        out_dir = tmp_path / "out"
        with pytest.raises(SystemExit) as exc:
            cli("export", lot_id, "-o", str(out_dir))
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "Unrecognized condition type" in err
        assert ids[0] in err
        assert not out_dir.exists()
