"""
Comparison export.

Renders the current comparison rows as the downloadable CSV artifact and
provides the display formatters shared by the CLI table.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Sequence

import pandas as pd
from loguru import logger

from increment.contracts import Metric
from increment.metrics import ComparisonRow

EXPORT_COLUMNS = [
    "Channel",
    "Spend",
    "MMM Volume",
    "Attr Volume",
    "MMM Revenue",
    "Attr Revenue",
    "MMM CPA",
    "Attr CPA",
    "MMM ROI (%)",
    "Attr ROI (%)",
]

NOT_AVAILABLE = "N/A"


def _fixed(value: float, places: int) -> str:
    """Fixed-point text with exact halves rounded away from zero."""
    quantum = Decimal(10) ** -places
    return f"{Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP):f}"


def _roi(value: float | None) -> str:
    return NOT_AVAILABLE if value is None else _fixed(value, 1)


def comparison_frame(rows: Sequence[ComparisonRow]) -> pd.DataFrame:
    """Export rows as strings: 2 dp money and CPA, 0 dp volume, 1 dp ROI."""
    records = [
        [
            row.channel,
            _fixed(row.spend, 2),
            _fixed(row.mmm_volume, 0),
            _fixed(row.attr_volume, 0),
            _fixed(row.mmm_revenue, 2),
            _fixed(row.attr_revenue, 2),
            _fixed(row.mmm_cpa, 2),
            _fixed(row.attr_cpa, 2),
            _roi(row.mmm_roi),
            _roi(row.attr_roi),
        ]
        for row in rows
    ]
    return pd.DataFrame(records, columns=EXPORT_COLUMNS, dtype=str)


def export_comparison_csv(rows: Sequence[ComparisonRow]) -> str:
    """CSV text with a fixed header and one line per row, no trailing newline."""
    text = comparison_frame(rows).to_csv(index=False, lineterminator="\n")
    return text.rstrip("\n")


def export_filename(metric: Metric | str, day: date | None = None) -> str:
    """Download name, e.g. ``comparison-cpa-2024-06-30.csv``."""
    day = day or date.today()
    return f"comparison-{Metric(metric).value}-{day.isoformat()}.csv"


def save_comparison_csv(rows: Sequence[ComparisonRow], dest: str | Path) -> Path:
    """Write the export to *dest* and return the path."""
    path = Path(dest)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_comparison_csv(rows), encoding="utf-8")
    logger.info(f"Exported {len(rows)} comparison rows to {path}")
    return path


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------

def format_metric_value(value: float | None, metric: Metric | str) -> str:
    """Human-readable value: ``1.2k`` volumes, ``$4.20`` CPA, ``12.5%`` ROI."""
    metric = Metric(metric)
    if value is None:
        return NOT_AVAILABLE
    if metric == Metric.VOLUME:
        return f"{_fixed(value / 1000, 1)}k" if value >= 1000 else _fixed(value, 0)
    if metric == Metric.CPA:
        return f"${_fixed(value, 2)}"
    return f"{_fixed(value, 1)}%"
