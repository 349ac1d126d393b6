"""
Dataset normalization.

Converts raw MMM / attribution content and raw spend rows into the typed,
channel-keyed structures the metric layer works on:

  - ``normalize_series``  : JSON records or CSV text -> list of series rows
  - ``normalize_spend``   : spend sheet rows -> ``SpendTable``
  - ``derive_channels``   : channel catalog from the first series row

Series values are kept verbatim. CSV cells stay strings, so every numeric
consumer goes through ``to_number``.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping

from loguru import logger

from increment.config import ChannelConfig, SpendColumnsConfig, get_config
from increment.exceptions import ParseError
from increment.ingestion.parser import Row, parse_delimited

SeriesRow = dict[str, Any]
SeriesFormat = Literal["json", "csv"]

_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------

def canonical_key(name: str) -> str:
    """Lower-case *name* and drop all whitespace ("Paid Search" -> "paidsearch")."""
    return _WHITESPACE.sub("", str(name)).lower()


def to_number(value: Any) -> float:
    """Coerce a raw cell to float; anything missing or non-numeric becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


# ---------------------------------------------------------------------------
# Spend
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChannelSpend:
    """Spend sheet totals for one channel. ``roi`` is advisory, as supplied."""

    channel: str
    spend: float = 0.0
    revenue: float = 0.0
    roi: float = 0.0

    def to_dict(self) -> dict:
        return {
            "channel": self.channel,
            "spend": self.spend,
            "revenue": self.revenue,
            "roi": self.roi,
        }


@dataclass(frozen=True)
class SpendTable:
    """
    Spend entries keyed by canonical channel name.

    Lookups are case and whitespace insensitive, so "Paid Search" in a
    series matches "paidsearch" or "PAID SEARCH" in the spend sheet.
    """

    entries: dict[str, ChannelSpend] = field(default_factory=dict)

    def lookup(self, channel: str) -> ChannelSpend | None:
        return self.entries.get(canonical_key(channel))

    def spend_for(self, channel: str) -> float:
        entry = self.lookup(channel)
        return entry.spend if entry is not None else 0.0

    def __contains__(self, channel: object) -> bool:
        return isinstance(channel, str) and self.lookup(channel) is not None

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def channels(self) -> list[str]:
        """Display names in sheet order."""
        return [entry.channel for entry in self.entries.values()]

    def to_dict(self) -> dict[str, dict]:
        return {entry.channel: entry.to_dict() for entry in self.entries.values()}


def _first_value(row: Row, headers: Iterable[str]) -> str | None:
    for header in headers:
        value = row.get(header)
        if value:
            return value
    return None


def normalize_spend(
    rows: list[Row],
    channels: ChannelConfig | None = None,
    columns: SpendColumnsConfig | None = None,
) -> SpendTable:
    """
    Build a ``SpendTable`` from parsed spend sheet rows.

    Rows without a channel and the sheet's total row are skipped. Numbers
    that fail to parse become 0; a bad cell never drops its row.
    """
    cfg = get_config()
    channels = channels or cfg.channels
    columns = columns or cfg.spend_columns
    total_label = canonical_key(channels.total_row_label)

    entries: dict[str, ChannelSpend] = {}
    skipped = 0

    for row in rows:
        name = _first_value(row, channels.channel_columns)
        if not name or not name.strip():
            skipped += 1
            continue
        name = name.strip()
        key = canonical_key(name)
        if key == total_label:
            continue
        if key in entries:
            logger.warning(
                f"Spend row '{name}' replaces '{entries[key].channel}' (same channel key '{key}')"
            )

        entries[key] = ChannelSpend(
            channel=name,
            spend=to_number(_first_value(row, columns.spend)),
            revenue=to_number(_first_value(row, columns.revenue)),
            roi=to_number(_first_value(row, columns.roi)),
        )

    if skipped:
        logger.warning(f"Skipped {skipped} spend rows with no channel name")

    logger.info(f"Normalized spend for {len(entries)} channels")
    return SpendTable(entries=entries)


def parse_spend_csv(text: str, source: str = "") -> SpendTable:
    """Parse and normalize spend sheet text in one step."""
    return normalize_spend(parse_delimited(text, source=source))


# ---------------------------------------------------------------------------
# MMM / attribution series
# ---------------------------------------------------------------------------

def normalize_series(content: str | list, fmt: SeriesFormat, source: str = "") -> list[SeriesRow]:
    """
    Turn MMM or attribution content into an ordered list of series rows.

    Args:
        content: Raw file text, or already-decoded records.
        fmt: ``"json"`` or ``"csv"``.
        source: Name used in error messages.

    Raises:
        ParseError: content is neither a JSON array of objects nor
            delimited text with a header row.
    """
    if isinstance(content, list):
        records: Any = content
    elif fmt == "json":
        try:
            records = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON: {e}", source=source) from e
    elif fmt == "csv":
        return parse_delimited(content, source=source)
    else:
        raise ParseError(f"Unsupported series format: {fmt}", source=source)

    if not isinstance(records, list):
        raise ParseError(
            f"Expected a JSON array of per-period objects, got {type(records).__name__}",
            source=source,
        )
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ParseError(
                f"Row {index} is {type(record).__name__}, expected an object",
                source=source,
            )
    return records


def derive_channels(series: list[Mapping[str, Any]] | None, channels: ChannelConfig | None = None) -> list[str]:
    """Channel names from the first row, minus date / baseline / unattributed."""
    if not series:
        return []
    reserved = set((channels or get_config().channels).reserved_keys)
    return [key for key in series[0].keys() if key not in reserved]


def performance_channels(all_channels: list[str], channels: ChannelConfig | None = None) -> list[str]:
    """Drop non-performance (TV-like) media, matching names by canonical key."""
    denylist = {canonical_key(c) for c in (channels or get_config().channels).non_performance}
    return [c for c in all_channels if canonical_key(c) not in denylist]


# ---------------------------------------------------------------------------
# Dataset
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Dataset:
    """
    One session snapshot of uploaded data.

    Never mutated after construction; a re-upload builds a new Dataset.
    """

    mmm_series: list[SeriesRow]
    attribution_series: list[SeriesRow]
    spend: SpendTable = field(default_factory=SpendTable)
    has_spend: bool = False

    @property
    def channels(self) -> list[str]:
        return derive_channels(self.mmm_series)

    @property
    def performance_channels(self) -> list[str]:
        return performance_channels(self.channels)

    def visibility_universe(self) -> list[str]:
        """Every legend key a user can toggle, in legend order."""
        cfg = get_config().channels
        return [cfg.baseline_key, *self.channels, cfg.unattributed_key]

    def summary(self) -> dict:
        return {
            "mmm_rows": len(self.mmm_series),
            "attribution_rows": len(self.attribution_series),
            "channels": self.channels,
            "spend_channels": self.spend.channels,
        }
