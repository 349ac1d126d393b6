"""
Upload loaders.

Reads complete upload text from disk or raw bytes and picks the series
format from the file extension. The engine never sees a stream: either
the whole text is available or the upload fails.

``load_series_file`` / ``load_spend_file`` are the one-liners the CLI uses.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from increment.exceptions import ParseError, UploadError
from increment.ingestion.normalizer import (
    SeriesFormat,
    SeriesRow,
    SpendTable,
    normalize_series,
    parse_spend_csv,
)

_EXTENSION_MAP: dict[str, SeriesFormat] = {
    ".json": "json",
    ".csv": "csv",
}


def detect_format(filename: str | Path) -> SeriesFormat:
    """Return ``"json"`` or ``"csv"`` based on the file extension."""
    ext = Path(str(filename)).suffix.lower()
    fmt = _EXTENSION_MAP.get(ext)
    if fmt is None:
        raise ParseError(f"Unsupported file extension: {ext or '(none)'}", source=str(filename))
    return fmt


def decode_upload(data: bytes, source: str = "") -> str:
    """Decode uploaded bytes as UTF-8, dropping a leading BOM."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"Upload is not UTF-8 text: {e}", source=source) from e


def read_upload(source: str | Path) -> str:
    """Read the full text of *source*."""
    path = Path(source)
    if not path.exists() or not path.is_file():
        raise UploadError(f"Source not found: {source}", source=str(source))
    logger.info(f"Reading upload from {path}")
    return decode_upload(path.read_bytes(), source=str(path))


def load_series_file(source: str | Path) -> list[SeriesRow]:
    """Read an MMM or attribution file, format chosen by extension."""
    fmt = detect_format(source)
    return normalize_series(read_upload(source), fmt, source=str(source))


def load_spend_file(source: str | Path) -> SpendTable:
    """Read a spend CSV into a ``SpendTable``."""
    if detect_format(source) != "csv":
        raise ParseError("Spend data must be a CSV file", source=str(source))
    return parse_spend_csv(read_upload(source), source=str(source))
