"""
Channel metric calculator.

Computes, per channel, MMM and attribution volume, CPA and ROI against
the spend sheet, plus the variance between the two models and the
portfolio aggregates shown in summary cards and table footers.

Division edge cases never raise:
  - CPA with zero volume is 0 ("no conversions"), not infinity.
  - ROI with zero spend is ``None``; attribution ROI is also ``None``
    when the channel has no attributed volume.
  - Percent variance with a zero denominator is ``None`` ("N/A").

Aggregate CPA / ROI intentionally use two definitions: summary cards
average the per-channel values, while the table footer uses a ratio of
totals for ROI. Both are reproduced at their own call sites.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import pandas as pd
from loguru import logger

from increment.contracts import Metric
from increment.ingestion.normalizer import SpendTable, to_number

# metric -> (mmm field, attribution field)
METRIC_FIELDS: dict[Metric, tuple[str, str]] = {
    Metric.VOLUME: ("mmm_volume", "attr_volume"),
    Metric.CPA: ("mmm_cpa", "attr_cpa"),
    Metric.ROI: ("mmm_roi", "attr_roi"),
}


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Variance:
    """Difference between two metric values; ``percent`` is None when undefined."""

    absolute: float
    percent: float | None

    @property
    def percent_label(self) -> str:
        if self.percent is None:
            return "N/A"
        sign = "+" if self.percent > 0 else ""
        return f"{sign}{self.percent:.0f}%"

    def to_dict(self) -> dict:
        return {
            "absolute": self.absolute,
            "percent": self.percent,
            "percent_label": self.percent_label,
        }


@dataclass(frozen=True)
class ComparisonRow:
    """MMM vs attribution metrics for one channel."""

    channel: str
    spend: float
    mmm_volume: float
    attr_volume: float
    mmm_revenue: float
    attr_revenue: float
    mmm_cpa: float
    attr_cpa: float
    mmm_roi: float | None
    attr_roi: float | None

    def values(self, metric: Metric | str) -> tuple[float | None, float | None]:
        """(mmm, attribution) values for *metric*."""
        mmm_field, attr_field = METRIC_FIELDS[Metric(metric)]
        return getattr(self, mmm_field), getattr(self, attr_field)

    def lift_variance(self, metric: Metric | str) -> Variance:
        """Attribution relative to MMM for *metric* (detail table column)."""
        mmm, attr = self.values(metric)
        return lift_variance(mmm, attr)

    def to_dict(self) -> dict:
        return {
            "channel": self.channel,
            "spend": self.spend,
            "mmm_volume": self.mmm_volume,
            "attr_volume": self.attr_volume,
            "mmm_revenue": self.mmm_revenue,
            "attr_revenue": self.attr_revenue,
            "mmm_cpa": self.mmm_cpa,
            "attr_cpa": self.attr_cpa,
            "mmm_roi": self.mmm_roi,
            "attr_roi": self.attr_roi,
        }


@dataclass(frozen=True)
class ChannelCpa:
    """One entry of the CPA breakdown."""

    channel: str
    spend: float
    mmm_volume: float
    attr_volume: float
    mmm_cpa: float
    attr_cpa: float
    variance: Variance

    def to_dict(self) -> dict:
        return {
            "channel": self.channel,
            "spend": self.spend,
            "mmm_volume": self.mmm_volume,
            "attr_volume": self.attr_volume,
            "mmm_cpa": self.mmm_cpa,
            "attr_cpa": self.attr_cpa,
            "variance": self.variance.to_dict(),
        }


@dataclass(frozen=True)
class ComparisonTotals:
    """Portfolio rollups for one comparison metric."""

    metric: Metric
    channel_count: int
    total_spend: float
    total_mmm_volume: float
    total_attr_volume: float
    total_mmm_revenue: float
    total_attr_revenue: float

    # Summary cards
    card_mmm: float
    card_attr: float
    card_variance_pct: float

    # Table footer
    footer_mmm: float | None
    footer_attr: float | None
    footer_variance: Variance

    def to_dict(self) -> dict:
        return {
            "metric": self.metric.value,
            "channel_count": self.channel_count,
            "total_spend": self.total_spend,
            "total_mmm_volume": self.total_mmm_volume,
            "total_attr_volume": self.total_attr_volume,
            "total_mmm_revenue": self.total_mmm_revenue,
            "total_attr_revenue": self.total_attr_revenue,
            "card_mmm": self.card_mmm,
            "card_attr": self.card_attr,
            "card_variance_pct": self.card_variance_pct,
            "footer_mmm": self.footer_mmm,
            "footer_attr": self.footer_attr,
            "footer_variance": self.footer_variance.to_dict(),
        }


@dataclass
class ComparisonResult:
    """Comparison rows for one metric plus their totals."""

    metric: Metric
    rows: list[ComparisonRow] = field(default_factory=list)
    totals: ComparisonTotals | None = None

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame for easy analysis."""
        columns = list(ComparisonRow.__dataclass_fields__)
        return pd.DataFrame([row.to_dict() for row in self.rows], columns=columns)

    def to_dict(self) -> dict:
        return {
            "metric": self.metric.value,
            "rows": [row.to_dict() for row in self.rows],
            "totals": self.totals.to_dict() if self.totals else None,
        }


# ---------------------------------------------------------------------------
# Per-channel arithmetic
# ---------------------------------------------------------------------------

def channel_volume(series: Sequence[Mapping[str, Any]] | None, channel: str) -> float:
    """Sum a channel's values over *series*; missing or non-numeric cells count as 0."""
    if not series:
        return 0.0
    return sum(to_number(row.get(channel)) for row in series)


def cpa(spend: float, volume: float) -> float:
    """Cost per acquisition, 0 when there is no volume."""
    return spend / volume if volume > 0 else 0.0


def roi(volume: float, spend: float) -> float | None:
    """Return on investment in percent, ``None`` when there is no spend."""
    if spend <= 0:
        return None
    return (volume - spend) / spend * 100


def variance(mmm_value: float | None, attr_value: float | None) -> Variance:
    """
    MMM minus attribution, with percent relative to attribution.

    Percent is ``None`` unless the attribution value is positive.
    """
    mmm = mmm_value or 0.0
    attr = attr_value or 0.0
    percent = (mmm - attr) / attr * 100 if attr > 0 else None
    return Variance(absolute=mmm - attr, percent=percent)


def lift_variance(mmm_value: float | None, attr_value: float | None) -> Variance:
    """
    Attribution minus MMM, with percent relative to ``|MMM|``.

    This is the over-crediting figure: positive means attribution claims
    more than MMM measured. Undefined values count as 0; percent is
    ``None`` when MMM is 0.
    """
    mmm = mmm_value if mmm_value is not None else 0.0
    attr = attr_value if attr_value is not None else 0.0
    diff = attr - mmm
    percent = diff / abs(mmm) * 100 if mmm != 0 else None
    return Variance(absolute=diff, percent=percent)


def compute_row(
    channel: str,
    mmm_series: Sequence[Mapping[str, Any]] | None,
    attribution_series: Sequence[Mapping[str, Any]] | None,
    spend_table: SpendTable,
) -> ComparisonRow:
    """Build the ComparisonRow for one channel."""
    mmm_volume = channel_volume(mmm_series, channel)
    attr_volume = channel_volume(attribution_series, channel)
    spend = spend_table.spend_for(channel)

    attr_roi = roi(attr_volume, spend) if attr_volume > 0 else None

    return ComparisonRow(
        channel=channel,
        spend=spend,
        mmm_volume=mmm_volume,
        attr_volume=attr_volume,
        mmm_revenue=mmm_volume,
        attr_revenue=attr_volume,
        mmm_cpa=cpa(spend, mmm_volume),
        attr_cpa=cpa(spend, attr_volume),
        mmm_roi=roi(mmm_volume, spend),
        attr_roi=attr_roi,
    )


def build_comparison(
    channels: Sequence[str],
    mmm_series: Sequence[Mapping[str, Any]] | None,
    attribution_series: Sequence[Mapping[str, Any]] | None,
    spend_table: SpendTable,
    metric: Metric | str = Metric.VOLUME,
) -> ComparisonResult:
    """
    Comparison rows and totals for every channel.

    For ``volume`` every channel is kept; for ``cpa`` and ``roi`` channels
    with no spend are dropped since those metrics are undefined for them.
    """
    metric = Metric(metric)
    rows = [compute_row(ch, mmm_series, attribution_series, spend_table) for ch in channels]

    if metric != Metric.VOLUME:
        rows = [row for row in rows if row.spend > 0]

    logger.debug(f"Built {metric.value} comparison for {len(rows)} of {len(channels)} channels")
    return ComparisonResult(metric=metric, rows=rows, totals=compute_totals(rows, metric))


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

def _sum_field(rows: Sequence[ComparisonRow], name: str) -> float:
    return sum(getattr(row, name) or 0.0 for row in rows)


def compute_totals(rows: Sequence[ComparisonRow], metric: Metric | str) -> ComparisonTotals:
    """
    Portfolio rollups for *rows*.

    Summary cards: volume is summed; CPA and ROI are averaged over the
    rows (undefined ROI counts as 0). Footer: volume is summed, ROI is a
    ratio of total revenue to total spend, CPA is the channel average.
    """
    metric = Metric(metric)
    mmm_field, attr_field = METRIC_FIELDS[metric]
    divisor = len(rows) or 1

    total_spend = _sum_field(rows, "spend")
    total_mmm_revenue = _sum_field(rows, "mmm_revenue")
    total_attr_revenue = _sum_field(rows, "attr_revenue")

    mmm_sum = _sum_field(rows, mmm_field)
    attr_sum = _sum_field(rows, attr_field)

    if metric == Metric.VOLUME:
        card_mmm, card_attr = mmm_sum, attr_sum
    else:
        card_mmm, card_attr = mmm_sum / divisor, attr_sum / divisor

    card_variance_pct = (attr_sum - mmm_sum) / mmm_sum * 100 if mmm_sum > 0 else 0.0

    footer_mmm: float | None
    footer_attr: float | None
    if metric == Metric.VOLUME:
        footer_mmm, footer_attr = mmm_sum, attr_sum
    elif metric == Metric.ROI:
        footer_mmm = roi(total_mmm_revenue, total_spend)
        footer_attr = roi(total_attr_revenue, total_spend) if total_attr_revenue > 0 else None
    else:
        footer_mmm, footer_attr = mmm_sum / divisor, attr_sum / divisor

    return ComparisonTotals(
        metric=metric,
        channel_count=len(rows),
        total_spend=total_spend,
        total_mmm_volume=_sum_field(rows, "mmm_volume"),
        total_attr_volume=_sum_field(rows, "attr_volume"),
        total_mmm_revenue=total_mmm_revenue,
        total_attr_revenue=total_attr_revenue,
        card_mmm=card_mmm,
        card_attr=card_attr,
        card_variance_pct=card_variance_pct,
        footer_mmm=footer_mmm,
        footer_attr=footer_attr,
        footer_variance=lift_variance(mmm_sum, attr_sum),
    )


def cpa_breakdown(
    channels: Sequence[str],
    mmm_series: Sequence[Mapping[str, Any]] | None,
    attribution_series: Sequence[Mapping[str, Any]] | None,
    spend_table: SpendTable,
) -> list[ChannelCpa]:
    """
    Per-channel CPA for channels present in the spend sheet with spend.

    Variance here is MMM minus attribution, relative to attribution CPA.
    """
    breakdown = []
    for channel in channels:
        if channel not in spend_table:
            continue
        row = compute_row(channel, mmm_series, attribution_series, spend_table)
        if not row.spend:
            continue
        breakdown.append(ChannelCpa(
            channel=channel,
            spend=row.spend,
            mmm_volume=row.mmm_volume,
            attr_volume=row.attr_volume,
            mmm_cpa=row.mmm_cpa,
            attr_cpa=row.attr_cpa,
            variance=variance(row.mmm_cpa, row.attr_cpa),
        ))
    return breakdown
