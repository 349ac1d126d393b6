"""
Time window filtering.

Windows are counted in rows, not calendar time: each row is one reporting
period (typically a week) and the data's periodicity is not otherwise
known. ``ytd`` is approximated as the most recent half of the available
history rather than a true calendar year-to-date.
"""

from __future__ import annotations

import math
from typing import Sequence, TypeVar

from loguru import logger

from increment.config import WindowConfig, get_config
from increment.contracts import TimeWindow

T = TypeVar("T")


def window_size(window: TimeWindow | str, n_rows: int, windows: WindowConfig | None = None) -> int | None:
    """
    Number of trailing rows *window* keeps out of *n_rows*.

    Returns ``None`` for ``all`` and for selectors that are not recognised,
    meaning "keep everything untouched". The result never exceeds *n_rows*.
    """
    windows = windows or get_config().windows
    try:
        window = TimeWindow(window)
    except ValueError:
        return None

    if window == TimeWindow.LAST_3M:
        size = windows.last_3m
    elif window == TimeWindow.LAST_6M:
        size = windows.last_6m
    elif window == TimeWindow.LAST_12M:
        size = windows.last_12m
    elif window == TimeWindow.YTD:
        size = math.ceil(n_rows / 2)
    else:
        return None

    return min(size, n_rows)


def filter_window(
    rows: Sequence[T] | None,
    window: TimeWindow | str = TimeWindow.ALL,
    windows: WindowConfig | None = None,
) -> Sequence[T] | None:
    """
    Slice *rows* to the trailing *window*.

    ``all`` (and any unrecognised selector) returns *rows* itself, not a
    copy. Windows longer than the data clamp to the whole sequence.
    """
    if rows is None:
        return None

    size = window_size(window, len(rows), windows)
    if size is None:
        return rows

    logger.debug(f"Window {TimeWindow(window).value}: keeping {size} of {len(rows)} rows")
    if size == 0:
        return rows[:0]
    return rows[-size:]
