"""
Menu Spreadsheet Import

Parses Excel (.xlsx/.xls) and CSV uploads into menu item rows:
- Header names are matched case-insensitively, spaces become underscores
- Prices tolerate currency symbols, thousands separators and "/-"
- Veg column: 0/veg/vegetarian = veg, 1/non-veg/nonveg = non-veg
- Blank rows are skipped, invalid rows are reported with their sheet row

Author: Your Name
Version: 1.0.0
"""

import io
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import pandas as pd

logger = logging.getLogger(__name__)


class MenuImportError(ValueError):
    """Raised when an upload cannot be read as a spreadsheet at all."""


@dataclass
class ParsedMenuRow:
    """One valid spreadsheet row, ready to be given an item code."""
    name: str
    description: str
    price: Decimal
    is_available: bool = True
    is_veg: Optional[bool] = None


@dataclass
class ImportRowError:
    row: int
    reason: str
    name: str = ""
    price_raw: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "row": self.row,
            "reason": self.reason,
            "debug": {"name": self.name, "price_raw": self.price_raw},
        }


@dataclass
class MenuImportResult:
    rows: list[ParsedMenuRow] = field(default_factory=list)
    errors: list[ImportRowError] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.errors)


class MenuSheetParser:
    """Turns an uploaded sheet into menu rows."""

    NAME_COLUMNS = ["name", "item"]
    DESCRIPTION_COLUMNS = ["description", "desc"]
    PRICE_COLUMNS = ["price", "rate", "mrp", "cost"]
    AVAILABLE_COLUMNS = ["is_available", "available"]
    VEG_COLUMNS = ["veg", "is_veg", "food_type", "type"]

    VEG_VALUES = {"0", "veg", "vegetarian"}
    NON_VEG_VALUES = {"1", "non-veg", "nonveg", "non vegetarian"}
    TRUE_VALUES = {"1", "true", "yes", "y"}
    FALSE_VALUES = {"0", "false", "no", "n"}

    _PRICE_PREFIX_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")

    @staticmethod
    def normalize_header(header: Any) -> str:
        text = str(header if header is not None else "").strip().lower()
        text = re.sub(r"\s+", "_", text)
        return re.sub(r"[^a-z0-9_]", "", text)

    @classmethod
    def read(cls, content: bytes, file_format: str) -> pd.DataFrame:
        """
        Load the first sheet of an upload as text cells.

        Args:
            content: Raw upload bytes
            file_format: "excel" or "csv"

        Raises:
            MenuImportError: If the file cannot be parsed
        """
        try:
            if file_format == "csv":
                df = pd.read_csv(
                    io.BytesIO(content),
                    dtype=str,
                    keep_default_na=False,
                    skipinitialspace=True,
                )
            else:
                df = pd.read_excel(io.BytesIO(content), engine="openpyxl", dtype=object)
        except Exception as e:
            logger.warning(f"Could not read {file_format} upload: {e}")
            raise MenuImportError(f"Could not read {file_format} file: {e}") from e

        df = df.fillna("")
        df.columns = [cls.normalize_header(c) for c in df.columns]
        return df

    @staticmethod
    def _cell(row: dict[str, Any], candidates: list[str]) -> Optional[str]:
        for column in candidates:
            if column in row:
                value = row[column]
                if isinstance(value, float) and value.is_integer():
                    value = int(value)
                return str(value).strip()
        return None

    @classmethod
    def parse_price(cls, raw: str) -> Optional[Decimal]:
        """Parse "₹120", "120/-", "1,299.00" and friends; None when no number."""
        cleaned = re.sub(r"[,\s]", "", raw or "")
        cleaned = re.sub(r"[^0-9.\-]", "", cleaned)
        match = cls._PRICE_PREFIX_RE.match(cleaned)
        if not match:
            return None
        try:
            return Decimal(match.group(0))
        except InvalidOperation:
            return None

    @classmethod
    def parse_bool(cls, raw: Optional[str]) -> bool:
        value = (raw or "").strip().lower()
        if value in cls.FALSE_VALUES:
            return False
        return True

    @classmethod
    def parse_veg(cls, raw: Optional[str]) -> Optional[bool]:
        value = (raw or "").strip().lower()
        if value in cls.VEG_VALUES:
            return True
        if value in cls.NON_VEG_VALUES:
            return False
        return None

    @classmethod
    def parse(cls, df: pd.DataFrame) -> MenuImportResult:
        result = MenuImportResult()

        for index, row in enumerate(df.to_dict(orient="records")):
            if all(str(v).strip() == "" for v in row.values()):
                continue

            sheet_row = index + 2  # header is row 1
            name = cls._cell(row, cls.NAME_COLUMNS) or ""
            description = cls._cell(row, cls.DESCRIPTION_COLUMNS) or ""
            price_raw = cls._cell(row, cls.PRICE_COLUMNS) or ""
            price = cls.parse_price(price_raw)

            if not name or price is None:
                result.errors.append(
                    ImportRowError(
                        row=sheet_row,
                        reason="Missing name or invalid price",
                        name=name,
                        price_raw=price_raw,
                    )
                )
                continue

            result.rows.append(
                ParsedMenuRow(
                    name=name,
                    description=description,
                    price=price,
                    is_available=cls.parse_bool(cls._cell(row, cls.AVAILABLE_COLUMNS)),
                    is_veg=cls.parse_veg(cls._cell(row, cls.VEG_COLUMNS)),
                )
            )

        logger.debug(f"Parsed sheet: {len(result.rows)} valid, {result.skipped} skipped")
        return result


def parse_menu_upload(content: bytes, file_format: str) -> MenuImportResult:
    """Read and parse an upload in one call."""
    df = MenuSheetParser.read(content, file_format)
    if df.empty:
        raise MenuImportError("No rows found in file")
    return MenuSheetParser.parse(df)
