from datetime import datetime

import pandas as pd

from diecast.models import (
    CAR_COLUMNS,
    added_on,
    car_label,
    changed_records,
    clean_record,
    color_to_hex,
    new_car_id,
    normalize_collection,
    photo_preview_url,
    record_from_wire,
    record_to_wire,
)


def test_new_car_id_is_millisecond_timestamp():
    car_id = new_car_id()
    assert car_id.isdigit()
    assert len(car_id) == 13


def test_record_from_wire_maps_sheet_keys():
    item = {
        "id": 1700000000000,
        "marca": "Porsche",
        "modelo": " 911 GT3 ",
        "fabricante": "Hot Wheels",
        "cor": "Vermelho",
        "ano": 2023,
        "pack": "HW Exotics",
        "observacoes": None,
        "foto": "https://drive.google.com/open?id=abc",
    }
    rec = record_from_wire(item, 0)
    assert rec["car_id"] == "1700000000000"
    assert rec["model"] == "911 GT3"
    assert rec["year"] == "2023"
    assert rec["notes"] == ""
    assert rec["photo_url"] == "https://drive.google.com/open?id=abc"
    assert list(rec) == CAR_COLUMNS


def test_record_from_wire_defaults_missing_id_to_row_index():
    rec = record_from_wire({"marca": "Ford", "modelo": "Mustang"}, 7)
    assert rec["car_id"] == "sheet-7"
    assert rec["color"] == ""


def test_record_from_wire_reads_lowercase_photo_header():
    rec = record_from_wire({"id": "x", "fotourl": "https://example.com/p.jpg"}, 0)
    assert rec["photo_url"] == "https://example.com/p.jpg"


def test_record_to_wire_skips_empty_photo_payload():
    wire = record_to_wire({"car_id": "1", "brand": "Ford", "model": "GT"})
    assert wire["id"] == "1"
    assert wire["marca"] == "Ford"
    assert wire["modelo"] == "GT"
    assert "fotoBase64" not in wire

    wire = record_to_wire({"car_id": "1", "photo_base64": "data:image/jpeg;base64,AAA"})
    assert wire["fotoBase64"] == "data:image/jpeg;base64,AAA"


def test_clean_record_trims_and_fills():
    rec = clean_record({"car_id": 5, "brand": "  Ford ", "extra": "dropped"})
    assert rec["car_id"] == "5"
    assert rec["brand"] == "Ford"
    assert rec["model"] == ""
    assert "extra" not in rec
    assert "photo_base64" not in rec


def test_normalize_collection_handles_empty_and_nan():
    df = normalize_collection([])
    assert list(df.columns) == CAR_COLUMNS
    assert df.empty

    df = normalize_collection(pd.DataFrame({"car_id": ["a"], "brand": [float("nan")]}))
    assert df.loc[0, "brand"] == ""
    assert df.loc[0, "model"] == ""


def test_photo_preview_url_rewrites_drive_open_links():
    assert photo_preview_url("https://drive.google.com/open?id=abc") == "https://drive.google.com/uc?export=view&id=abc"
    assert photo_preview_url("https://example.com/a.jpg") == "https://example.com/a.jpg"
    assert photo_preview_url(None) == ""


def test_added_on_parses_millisecond_prefix():
    expected = datetime.fromtimestamp(1700000000).date()
    assert added_on("1700000000000") == expected
    assert added_on("csv-abc") is None
    assert added_on("sheet-3") is None
    assert added_on("") is None


def test_color_to_hex():
    assert color_to_hex("") == "#cbd5e1"
    assert color_to_hex("Vermelho metálico") == "#ef4444"
    assert color_to_hex("Dark Blue") == "#3b82f6"
    assert color_to_hex("Cinza") == "#94a3b8"
    assert color_to_hex("Magenta") == "#94a3b8"


def test_car_label():
    assert car_label({"brand": "Toyota", "model": "Supra", "manufacturer": "Matchbox"}) == "Toyota Supra (Matchbox)"
    assert car_label({}) == "(unnamed)"


def test_changed_records_only_returns_edited_rows(sample_cars):
    before = normalize_collection(sample_cars)
    after = before.copy()
    after.insert(0, "delete", False)
    after.loc[1, "color"] = "Branco "

    changed = changed_records(before, after)
    assert len(changed) == 1
    assert changed[0]["car_id"] == "1700000000001"
    assert changed[0]["color"] == "Branco"
    assert changed[0]["model"] == "Supra"
    assert changed[0]["photo_url"] == ""


def test_changed_records_ignores_unknown_ids(sample_cars):
    before = normalize_collection(sample_cars[:1])
    after = normalize_collection(sample_cars[1:2])
    after.loc[0, "color"] = "Verde"
    assert changed_records(before, after) == []
