"""
Request contracts for Increment.

The presentation layer describes what it wants to show with a
``ViewRequest`` instead of keeping page / model / window toggles as
ambient state. Every request is validated here and then handed to the
session, which recomputes the full result from scratch.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class View(str, Enum):
    COMPOSITION = "composition"
    COMPARISON = "comparison"
    CPA = "cpa"


class ActiveModel(str, Enum):
    MMM = "mmm"
    ATTRIBUTION = "attribution"


class TimeWindow(str, Enum):
    ALL = "all"
    LAST_3M = "last-3m"
    LAST_6M = "last-6m"
    LAST_12M = "last-12m"
    YTD = "ytd"


class Metric(str, Enum):
    VOLUME = "volume"
    CPA = "cpa"
    ROI = "roi"


class UploadKind(str, Enum):
    MMM = "mmm"
    ATTRIBUTION = "attribution"
    SPEND = "spend"


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class ViewRequest(BaseModel):
    """Everything the engine needs to know to build one view."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    view: View = Field(default=View.COMPOSITION)
    model: ActiveModel = Field(default=ActiveModel.MMM, description="Series shown in the composition view")
    window: TimeWindow = Field(default=TimeWindow.ALL)
    metric: Metric = Field(default=Metric.VOLUME, description="Comparison metric")

    @property
    def needs_spend(self) -> bool:
        """CPA and ROI are undefined without a spend sheet."""
        if self.view == View.CPA:
            return True
        return self.view == View.COMPARISON and self.metric in (Metric.CPA, Metric.ROI)


class ToggleRequest(BaseModel):
    """Legend click on one channel key."""

    channel: str = Field(min_length=1)
