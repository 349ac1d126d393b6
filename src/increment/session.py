"""
Session state and the request/response pass.

A ``Session`` owns the uploaded ``Dataset`` and the ``VisibilitySet``.
Each user action is one synchronous call:

  upload  -> parse + normalize, then swap in a new Dataset atomically
  view    -> filter windows, compute metrics, return a fresh ViewResult
  toggle  -> replace the VisibilitySet

A failed upload raises ``ParseError`` and leaves every previously loaded
input untouched. Results are never cached between requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from loguru import logger

from increment.contracts import ActiveModel, UploadKind, View, ViewRequest
from increment.exceptions import DatasetNotReadyError, ParseError
from increment.ingestion.loaders import detect_format
from increment.ingestion.normalizer import (
    Dataset,
    SeriesRow,
    SpendTable,
    normalize_series,
    parse_spend_csv,
)
from increment.metrics import ChannelCpa, ComparisonResult, build_comparison, cpa_breakdown
from increment.visibility import VisibilitySet
from increment.windows import filter_window


@dataclass(frozen=True)
class ChannelCatalog:
    """Channel names derived from the MMM series."""

    channels: list[str]
    performance_channels: list[str]
    legend_keys: list[str]

    def to_dict(self) -> dict:
        return {
            "channels": self.channels,
            "performance_channels": self.performance_channels,
            "legend_keys": self.legend_keys,
        }


@dataclass
class ViewResult:
    """Everything the presentation layer needs to render one view."""

    request: ViewRequest
    catalog: ChannelCatalog
    series: Sequence[SeriesRow]
    mmm_series: Sequence[SeriesRow]
    attribution_series: Sequence[SeriesRow]
    comparison: ComparisonResult
    cpa_breakdown: list[ChannelCpa] = field(default_factory=list)
    hidden: list[str] = field(default_factory=list)
    spend_required: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "request": self.request.model_dump(mode="json"),
            "catalog": self.catalog.to_dict(),
            "series": list(self.series),
            "mmm_series": list(self.mmm_series),
            "attribution_series": list(self.attribution_series),
            "comparison": self.comparison.to_dict(),
            "cpa_breakdown": [entry.to_dict() for entry in self.cpa_breakdown],
            "hidden": self.hidden,
            "spend_required": self.spend_required,
        }


class Session:
    """
    One user's working state.

    Example:
        >>> session = Session()
        >>> session.upload("mmm", mmm_text, "mmm.csv")
        >>> session.upload("attribution", attr_json, "attribution.json")
        >>> result = session.view(ViewRequest(view="comparison", metric="roi"))
    """

    def __init__(self):
        self._mmm: list[SeriesRow] | None = None
        self._attribution: list[SeriesRow] | None = None
        self._spend: SpendTable | None = None
        self._dataset: Dataset | None = None
        self._visibility = VisibilitySet.empty()

    # -- state -------------------------------------------------------------

    @property
    def dataset(self) -> Dataset | None:
        return self._dataset

    @property
    def visibility(self) -> VisibilitySet:
        return self._visibility

    @property
    def missing_uploads(self) -> list[str]:
        missing = []
        if self._mmm is None:
            missing.append(UploadKind.MMM.value)
        if self._attribution is None:
            missing.append(UploadKind.ATTRIBUTION.value)
        return missing

    @property
    def is_ready(self) -> bool:
        return self._dataset is not None

    # -- uploads -----------------------------------------------------------

    def upload(self, kind: UploadKind | str, content: str, filename: str) -> Dataset | None:
        """
        Parse one upload and rebuild the dataset if possible.

        Args:
            kind: ``mmm``, ``attribution`` or ``spend``.
            content: Complete file text.
            filename: Original name; its extension picks JSON or CSV.

        Returns:
            The new Dataset, or None while MMM or attribution is missing.

        Raises:
            ParseError: the content could not be parsed. Nothing changes.
        """
        kind = UploadKind(kind)
        try:
            fmt = detect_format(filename)
            if kind == UploadKind.SPEND:
                if fmt != "csv":
                    raise ParseError("Spend data must be a CSV file", source=filename)
                spend = parse_spend_csv(content, source=filename)
            else:
                series = normalize_series(content, fmt, source=filename)
        except ParseError as e:
            logger.warning(f"Rejected {kind.value} upload '{filename}': {e}")
            raise

        if kind == UploadKind.SPEND:
            self._spend = spend
            logger.info(f"Loaded spend data from {filename}: {len(spend)} channels")
        elif kind == UploadKind.MMM:
            self._mmm = series
            logger.info(f"Loaded MMM data from {filename}: {len(series)} rows")
        else:
            self._attribution = series
            logger.info(f"Loaded attribution data from {filename}: {len(series)} rows")

        return self._rebuild()

    def _rebuild(self) -> Dataset | None:
        if self._mmm is None or self._attribution is None:
            return None

        self._dataset = Dataset(
            mmm_series=self._mmm,
            attribution_series=self._attribution,
            spend=self._spend if self._spend is not None else SpendTable(),
            has_spend=self._spend is not None,
        )
        self._visibility = VisibilitySet.empty()
        logger.info(
            f"Dataset ready: {len(self._dataset.channels)} channels, "
            f"{len(self._mmm)} MMM rows, {len(self._attribution)} attribution rows"
        )
        return self._dataset

    def _require_dataset(self) -> Dataset:
        if self._dataset is None:
            raise DatasetNotReadyError(self.missing_uploads)
        return self._dataset

    # -- visibility --------------------------------------------------------

    def toggle(self, channel: str) -> VisibilitySet:
        """Legend click on *channel*."""
        dataset = self._require_dataset()
        self._visibility = self._visibility.toggle(channel, dataset.visibility_universe())
        return self._visibility

    def reset_visibility(self) -> VisibilitySet:
        self._visibility = self._visibility.reset()
        return self._visibility

    # -- views -------------------------------------------------------------

    def catalog(self) -> ChannelCatalog:
        dataset = self._require_dataset()
        return build_catalog(dataset, ActiveModel.MMM)

    def view(self, request: ViewRequest | None = None) -> ViewResult:
        """Recompute everything for *request*."""
        request = request or ViewRequest()
        dataset = self._require_dataset()

        mmm = filter_window(dataset.mmm_series, request.window)
        attribution = filter_window(dataset.attribution_series, request.window)
        series = mmm if request.model == ActiveModel.MMM else attribution

        catalog = build_catalog(dataset, request.model)
        comparison = build_comparison(catalog.channels, mmm, attribution, dataset.spend, request.metric)

        breakdown: list[ChannelCpa] = []
        if request.view == View.CPA:
            breakdown = cpa_breakdown(catalog.channels, mmm, attribution, dataset.spend)

        return ViewResult(
            request=request,
            catalog=catalog,
            series=series,
            mmm_series=mmm,
            attribution_series=attribution,
            comparison=comparison,
            cpa_breakdown=breakdown,
            hidden=self._visibility.sorted_hidden(dataset.visibility_universe()),
            spend_required=request.needs_spend and not dataset.has_spend,
        )


def build_catalog(dataset: Dataset, model: ActiveModel | str = ActiveModel.MMM) -> ChannelCatalog:
    """Channel catalog plus the legend keys shown for *model*."""
    channels = dataset.channels
    performance = dataset.performance_channels
    if ActiveModel(model) == ActiveModel.MMM:
        legend = dataset.visibility_universe()
    else:
        legend = list(performance)
    return ChannelCatalog(channels=channels, performance_channels=performance, legend_keys=legend)
