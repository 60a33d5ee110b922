"""
Listings file reader - CSV or XLSX uploads into raw row dicts.

The extension of the original upload name decides the format; the file
itself is read from the path the host stored it at.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

LOGGER = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv", ".xlsx")


class ListingsFileError(Exception):
    """The uploaded listings file could not be read."""


class UnsupportedListingsFile(ListingsFileError):
    """The upload is neither CSV nor XLSX."""


def _read_csv(path: Path) -> list[dict[str, Any]]:
    text = path.read_bytes().decode("utf-8-sig")
    reader = csv.DictReader(io.StringIO(text))
    return [row for row in reader if any((v or "").strip() for v in row.values() if isinstance(v, str))]


def _read_xlsx(path: Path) -> list[dict[str, Any]]:
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        columns = [str(h).strip() if h is not None else "" for h in header]
        records = []
        for values in rows:
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
                continue
            records.append({
                name: value
                for name, value in zip(columns, values)
                if name and value is not None
            })
        return records
    finally:
        workbook.close()


def read_listings(path: str, original_name: str) -> list[dict[str, Any]]:
    """
    Parses an uploaded listings file.

    Args:
        path: Where the upload is stored.
        original_name: The name the user uploaded; its extension picks the parser.

    Returns:
        One dict per data row, keyed by header.

    Raises:
        UnsupportedListingsFile: extension is not .csv or .xlsx.
        ListingsFileError: the file is missing or malformed.
    """
    ext = Path(original_name).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedListingsFile(f"Unsupported file extension: {ext or '(none)'}")

    try:
        records = _read_csv(Path(path)) if ext == ".csv" else _read_xlsx(Path(path))
    except ListingsFileError:
        raise
    except Exception as exc:
        raise ListingsFileError(str(exc) or exc.__class__.__name__) from exc

    LOGGER.info("Read %d listing rows from %s", len(records), original_name)
    return records
