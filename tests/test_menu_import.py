import io
from decimal import Decimal

import pandas as pd
import pytest

from app.services.menu_import import MenuImportError, MenuSheetParser, parse_menu_upload


def _xlsx(rows: list[dict]) -> bytes:
    buffer = io.BytesIO()
    pd.DataFrame(rows).to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("120", Decimal("120")),
        ("₹ 1,299.00", Decimal("1299.00")),
        ("250/-", Decimal("250")),
        ("", None),
        ("free", None),
    ],
)
def test_parse_price(raw, expected):
    assert MenuSheetParser.parse_price(raw) == expected


def test_headers_normalised():
    assert MenuSheetParser.normalize_header("  Is Available ") == "is_available"
    assert MenuSheetParser.normalize_header("Price (₹)") == "price_"


def test_veg_and_availability_values():
    assert MenuSheetParser.parse_veg("Veg") is True
    assert MenuSheetParser.parse_veg("0") is True
    assert MenuSheetParser.parse_veg("non-veg") is False
    assert MenuSheetParser.parse_veg("1") is False
    assert MenuSheetParser.parse_veg("") is None
    assert MenuSheetParser.parse_bool("no") is False
    assert MenuSheetParser.parse_bool("") is True
    assert MenuSheetParser.parse_bool("maybe") is True


def test_csv_rows_parsed_and_errors_reported():
    content = (
        "Name,Description,Price,Available,Veg\n"
        "Paneer Tikka,Smoky cottage cheese,₹249,yes,veg\n"
        ",,,,\n"
        "Chicken 65,,199/-,no,non-veg\n"
        "Mystery,,ask,,\n"
    ).encode()

    result = parse_menu_upload(content, "csv")

    assert [r.name for r in result.rows] == ["Paneer Tikka", "Chicken 65"]
    assert result.rows[0].price == Decimal("249")
    assert result.rows[0].is_veg is True
    assert result.rows[1].is_available is False
    assert result.rows[1].is_veg is False
    assert result.skipped == 1
    assert result.errors[0].to_dict() == {
        "row": 5,
        "reason": "Missing name or invalid price",
        "debug": {"name": "Mystery", "price_raw": "ask"},
    }


def test_excel_numbers_read_as_text():
    content = _xlsx([
        {"Item": "Masala Dosa", "Rate": 80, "Type": "Veg"},
        {"Item": "Filter Coffee", "Rate": 35.5, "Type": ""},
    ])

    result = parse_menu_upload(content, "excel")

    assert [r.name for r in result.rows] == ["Masala Dosa", "Filter Coffee"]
    assert result.rows[0].price == Decimal("80")
    assert result.rows[1].price == Decimal("35.5")
    assert result.rows[1].is_veg is None
    assert result.errors == []


def test_header_only_file_rejected():
    with pytest.raises(MenuImportError, match="No rows found"):
        parse_menu_upload(b"name,price\n", "csv")


def test_unreadable_excel_rejected():
    with pytest.raises(MenuImportError):
        parse_menu_upload(b"definitely not a workbook", "excel")
