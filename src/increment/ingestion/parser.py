"""
Permissive delimited-text parser.

Turns raw upload text into row records (header -> raw string) using
pandas. Every cell is read as a literal string: no type inference, no
NA sentinels, no quote handling. A short row leaves its trailing headers
as ``None`` instead of failing, so a partial upload still shows whatever
loaded; fields past the header are dropped.
"""

from __future__ import annotations

import csv
import io
from typing import Any

import pandas as pd
from loguru import logger

from increment.exceptions import ParseError

Row = dict[str, str | None]


def _read_frame(text: str, delimiter: str, **kwargs: Any) -> pd.DataFrame:
    return pd.read_csv(
        io.StringIO(text),
        sep=delimiter,
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
        quoting=csv.QUOTE_NONE,
        engine="python",
        **kwargs,
    )


def _cell(value: Any) -> str | None:
    if pd.isna(value):
        return None
    return str(value).strip()


def parse_delimited(text: str, delimiter: str = ",", source: str = "") -> list[Row]:
    """
    Parse delimiter-separated text with a header row.

    Args:
        text: Complete file contents.
        delimiter: Field separator.
        source: Name used in error messages and logs.

    Returns:
        One dict per data line, in source order.

    Raises:
        ParseError: if the text holds no header line at all.
    """
    stripped = text.strip()
    if not stripped:
        raise ParseError("No header row found in delimited input", source=source)

    try:
        width = _read_frame(stripped, delimiter, nrows=1).shape[1]
        frame = _read_frame(
            stripped,
            delimiter,
            names=list(range(width)),
            on_bad_lines=lambda fields: fields[:width],
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ParseError(f"Could not parse delimited input: {e}", source=source) from e

    headers = [_cell(h) or "" for h in frame.iloc[0]]
    rows: list[Row] = [
        dict(zip(headers, (_cell(v) for v in values)))
        for values in frame.iloc[1:].itertuples(index=False, name=None)
    ]

    logger.debug(f"Parsed {len(rows)} rows x {len(headers)} columns from {source or 'text'}")
    return rows
