"""
Channel visibility state machine.

Tracks which legend keys are hidden from charts and "currently displayed"
aggregates. Clicking a key either isolates it (everything else hidden)
or, when it is already the isolated key, shows everything again:

  - nothing hidden              -> isolate the clicked key
  - clicked key is hidden       -> isolate the clicked key instead
  - clicked key is the visible one -> show all

So from any state a single toggle lands in either "all visible" or
"exactly one isolated". Hidden keys are only a display concern; the
stored dataset is never filtered by them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from loguru import logger


@dataclass(frozen=True)
class VisibilitySet:
    """Immutable set of hidden keys. Transitions return a new instance."""

    hidden: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def empty(cls) -> "VisibilitySet":
        return cls()

    def toggle(self, channel: str, universe: Iterable[str]) -> "VisibilitySet":
        """
        Apply a legend click on *channel*.

        Args:
            channel: Key that was clicked.
            universe: Every toggleable key (baseline, channels, unattributed).
        """
        if not self.hidden or channel in self.hidden:
            nxt = VisibilitySet(frozenset(key for key in universe if key != channel))
            logger.debug(f"Isolating '{channel}' ({len(nxt.hidden)} keys hidden)")
            return nxt

        logger.debug(f"'{channel}' already isolated, showing all")
        return VisibilitySet.empty()

    def reset(self) -> "VisibilitySet":
        """Show everything. Safe to call in any state."""
        return VisibilitySet.empty()

    @property
    def all_visible(self) -> bool:
        return not self.hidden

    def is_hidden(self, key: str) -> bool:
        return key in self.hidden

    def is_isolated(self, key: str) -> bool:
        """True when something is hidden and *key* is not: it's the one on show."""
        return bool(self.hidden) and key not in self.hidden

    def visible(self, keys: Iterable[str]) -> list[str]:
        """Filter *keys* down to the visible ones, keeping order."""
        return [key for key in keys if key not in self.hidden]

    def sorted_hidden(self, order: Iterable[str] | None = None) -> list[str]:
        """Hidden keys, in *order* when given (legend order), else alphabetical."""
        if order is None:
            return sorted(self.hidden)
        ordered = [key for key in order if key in self.hidden]
        extra = sorted(self.hidden.difference(ordered))
        return ordered + extra

    def __len__(self) -> int:
        return len(self.hidden)

    def __contains__(self, key: object) -> bool:
        return key in self.hidden


def toggle(hidden: VisibilitySet, channel: str, universe: Iterable[str]) -> VisibilitySet:
    """Functional form of ``VisibilitySet.toggle``."""
    return hidden.toggle(channel, universe)
