"""Tests for the channel visibility state machine."""

import pytest

from increment.visibility import VisibilitySet, toggle

UNIVERSE = ["baseline", "ChA", "ChB", "ChC", "unattributed"]


class TestToggle:
    """Test isolate / show-all transitions."""

    def test_starts_all_visible(self):
        """A new set hides nothing."""
        vis = VisibilitySet.empty()

        assert vis.all_visible
        assert len(vis) == 0

    def test_isolate_from_empty(self):
        """Clicking with nothing hidden hides everything else."""
        vis = VisibilitySet.empty().toggle("ChA", UNIVERSE)

        assert vis.hidden == frozenset({"baseline", "ChB", "ChC", "unattributed"})
        assert vis.is_isolated("ChA")
        assert vis.is_hidden("ChB")

    def test_click_hidden_reisolates(self):
        """Clicking a hidden key isolates that key instead."""
        vis = VisibilitySet.empty().toggle("ChA", UNIVERSE).toggle("ChB", UNIVERSE)

        assert vis.hidden == frozenset(set(UNIVERSE) - {"ChB"})
        assert vis.is_isolated("ChB")

    def test_click_isolated_shows_all(self):
        """Clicking the isolated key shows everything again."""
        vis = VisibilitySet.empty().toggle("ChA", UNIVERSE).toggle("ChA", UNIVERSE)

        assert vis == VisibilitySet.empty()

    @pytest.mark.parametrize("key", UNIVERSE)
    def test_double_toggle_is_identity(self, key):
        """toggle(c, toggle(c, empty)) == empty for every key."""
        empty = VisibilitySet.empty()

        assert toggle(toggle(empty, key, UNIVERSE), key, UNIVERSE) == empty

    def test_partial_set_goes_to_isolation(self):
        """From an arbitrary hidden subset, one click yields isolation or show-all."""
        partial = VisibilitySet(frozenset({"ChA", "ChC"}))

        hidden_click = partial.toggle("ChA", UNIVERSE)
        visible_click = partial.toggle("ChB", UNIVERSE)

        assert hidden_click.hidden == frozenset(set(UNIVERSE) - {"ChA"})
        assert visible_click.all_visible

    def test_transitions_do_not_mutate(self):
        """Each transition returns a new value."""
        start = VisibilitySet.empty()
        nxt = start.toggle("ChA", UNIVERSE)

        assert start.all_visible
        assert nxt is not start


class TestReset:
    """Test explicit show-all."""

    def test_reset_from_isolated(self):
        """Reset clears any isolation."""
        vis = VisibilitySet.empty().toggle("ChB", UNIVERSE).reset()

        assert vis.all_visible

    def test_reset_is_idempotent(self):
        """Reset on an empty set is still empty."""
        vis = VisibilitySet.empty()

        assert vis.reset() == vis.reset().reset() == vis


class TestHelpers:
    """Test read helpers used by the presentation layer."""

    def test_visible_keeps_order(self):
        """Visible keys come back in legend order."""
        vis = VisibilitySet(frozenset({"ChB"}))

        assert vis.visible(UNIVERSE) == ["baseline", "ChA", "ChC", "unattributed"]

    def test_sorted_hidden_in_legend_order(self):
        """Hidden keys can be listed in legend order."""
        vis = VisibilitySet.empty().toggle("ChB", UNIVERSE)

        assert vis.sorted_hidden(UNIVERSE) == ["baseline", "ChA", "ChC", "unattributed"]
        assert vis.sorted_hidden() == sorted(vis.hidden)

    def test_nothing_isolated_when_all_visible(self):
        """No key counts as isolated while everything is shown."""
        assert not VisibilitySet.empty().is_isolated("ChA")
