"""Tests for channel metric computation."""

import pytest

from increment.contracts import Metric
from increment.ingestion import parse_spend_csv
from increment.ingestion.normalizer import ChannelSpend, SpendTable, canonical_key
from increment.metrics import (
    build_comparison,
    channel_volume,
    compute_row,
    compute_totals,
    cpa_breakdown,
    lift_variance,
    variance,
)


def _spend(**channels):
    return SpendTable(entries={
        canonical_key(name): ChannelSpend(channel=name, spend=value)
        for name, value in channels.items()
    })


MMM = [
    {"date": "W1", "baseline": 100, "ChA": 20},
    {"date": "W2", "baseline": 110, "ChA": 30},
]


class TestChannelRow:
    """Test per-channel metrics."""

    def test_reference_scenario(self):
        """Two weeks of ChA with spend 10: volume 50, CPA 0.2, ROI 400%."""
        row = compute_row("ChA", MMM, [], _spend(ChA=10))

        assert row.mmm_volume == 50
        assert row.mmm_cpa == pytest.approx(0.2)
        assert row.mmm_roi == pytest.approx(400)

    def test_zero_spend(self):
        """No spend: CPA is 0 and ROI undefined, never a division error."""
        row = compute_row("ChA", MMM, [], _spend(ChA=0))

        assert row.mmm_cpa == 0
        assert row.mmm_roi is None

    def test_missing_spend_entry(self):
        """A channel absent from the spend sheet has spend 0."""
        row = compute_row("ChA", MMM, [], SpendTable())

        assert row.spend == 0
        assert row.mmm_roi is None

    def test_zero_volume_cpa(self):
        """CPA is 0 whenever volume is 0, whatever the spend."""
        row = compute_row("ChB", MMM, [], _spend(ChB=500))

        assert row.mmm_volume == 0
        assert row.mmm_cpa == 0

    def test_attr_roi_none_without_volume(self):
        """Attribution ROI is undefined with no attributed volume, even with spend."""
        row = compute_row("ChA", MMM, [{"date": "W1", "ChA": 0}], _spend(ChA=10))

        assert row.attr_volume == 0
        assert row.attr_roi is None
        assert row.mmm_roi is not None

    def test_string_values_are_parsed(self):
        """CSV series values are strings; they still sum numerically."""
        series = [{"date": "W1", "ChA": "20"}, {"date": "W2", "ChA": "30.5"}, {"date": "W3", "ChA": "x"}]

        assert channel_volume(series, "ChA") == pytest.approx(50.5)

    def test_missing_cells_count_zero(self):
        """Short CSV rows leave None, which sums as 0."""
        assert channel_volume([{"date": "W1", "ChA": None}, {"date": "W2"}], "ChA") == 0

    def test_revenue_tracks_volume(self):
        """Revenue columns mirror the volume sums."""
        row = compute_row("ChA", MMM, [{"ChA": 40}], _spend(ChA=100))

        assert row.mmm_revenue == row.mmm_volume
        assert row.attr_revenue == row.attr_volume

    def test_spend_lookup_ignores_case(self):
        """Spend keyed "paidsearch" applies to series channel "Paid Search"."""
        table = parse_spend_csv("Channel,Total Spend ($)\npaidsearch,40")
        row = compute_row("Paid Search", [{"Paid Search": 80}], [], table)

        assert row.spend == 40
        assert row.mmm_cpa == pytest.approx(0.5)


class TestVariance:
    """Test variance helpers."""

    def test_variance_relative_to_attribution(self):
        """MMM minus attribution over attribution."""
        v = variance(2.5, 2.0)

        assert v.absolute == pytest.approx(0.5)
        assert v.percent == pytest.approx(25)
        assert v.percent_label == "+25%"

    def test_variance_undefined(self):
        """Zero attribution gives N/A percent."""
        v = variance(2.0, 0)

        assert v.absolute == 2.0
        assert v.percent is None
        assert v.percent_label == "N/A"

    def test_lift_variance(self):
        """Attribution minus MMM over |MMM|."""
        v = lift_variance(50, 80)

        assert v.absolute == 30
        assert v.percent == pytest.approx(60)

    def test_lift_variance_nulls(self):
        """Undefined values count as 0; zero MMM gives N/A."""
        assert lift_variance(None, 10).percent is None
        assert lift_variance(-20, None).percent == pytest.approx(100)


class TestComparison:
    """Test the comparison set and metric filtering."""

    def setup_method(self):
        self.mmm = [{"date": "W1", "ChA": 50, "ChB": 10, "ChC": 5}]
        self.attr = [{"date": "W1", "ChA": 40, "ChB": 20, "ChC": 0}]
        self.spend = _spend(ChA=100, ChB=0, ChC=10)

    def test_volume_keeps_all_channels(self):
        """Volume comparisons include zero-spend channels."""
        result = build_comparison(["ChA", "ChB", "ChC"], self.mmm, self.attr, self.spend, "volume")

        assert [r.channel for r in result.rows] == ["ChA", "ChB", "ChC"]

    @pytest.mark.parametrize("metric", ["cpa", "roi"])
    def test_cpa_roi_drop_zero_spend(self, metric):
        """CPA and ROI comparisons skip channels without spend."""
        result = build_comparison(["ChA", "ChB", "ChC"], self.mmm, self.attr, self.spend, metric)

        assert [r.channel for r in result.rows] == ["ChA", "ChC"]

    def test_empty_catalog(self):
        """No channels gives zero totals, not an error."""
        result = build_comparison([], [], [], SpendTable(), "cpa")

        assert result.rows == []
        assert result.totals.total_spend == 0
        assert result.totals.card_mmm == 0
        assert result.totals.footer_variance.percent is None

    def test_values_by_metric(self):
        """Rows expose the (mmm, attribution) pair for each metric."""
        result = build_comparison(["ChA"], self.mmm, self.attr, self.spend, "cpa")
        row = result.rows[0]

        assert row.values("volume") == (50, 40)
        assert row.values("cpa") == (pytest.approx(2.0), pytest.approx(2.5))
        assert row.values(Metric.ROI) == (pytest.approx(-50), pytest.approx(-60))

    def test_to_dataframe(self):
        """Comparison converts to a DataFrame with one row per channel."""
        df = build_comparison(["ChA", "ChB"], self.mmm, self.attr, self.spend).to_dataframe()

        assert list(df["channel"]) == ["ChA", "ChB"]
        assert "attr_roi" in df.columns


class TestTotals:
    """Test portfolio aggregates."""

    def setup_method(self):
        mmm = [{"ChA": 300, "ChB": 100}]
        attr = [{"ChA": 400, "ChB": 0}]
        spend = _spend(ChA=100, ChB=100)
        self.channels = ["ChA", "ChB"]
        self.args = (mmm, attr, spend)

    def test_volume_totals_are_sums(self):
        """Volume cards and footer are plain sums."""
        totals = build_comparison(self.channels, *self.args, "volume").totals

        assert totals.card_mmm == 400
        assert totals.card_attr == 400
        assert totals.footer_mmm == 400
        assert totals.card_variance_pct == 0

    def test_cpa_cards_average_channels(self):
        """CPA cards and footer are the mean of channel CPAs."""
        totals = build_comparison(self.channels, *self.args, "cpa").totals

        # MMM CPA: 100/300, 100/100 ; attribution CPA: 0.25, 0
        assert totals.card_mmm == pytest.approx((1 / 3 + 1) / 2)
        assert totals.card_attr == pytest.approx(0.125)
        assert totals.footer_mmm == pytest.approx(totals.card_mmm)

    def test_roi_card_mean_vs_footer_ratio(self):
        """ROI card averages channels; the footer uses total revenue over total spend."""
        totals = build_comparison(self.channels, *self.args, "roi").totals

        # channel MMM ROIs: 200%, 0% -> mean 100%
        assert totals.card_mmm == pytest.approx(100)
        # (400 - 200) / 200 -> 100%
        assert totals.footer_mmm == pytest.approx(100)
        # attribution ROIs: 300%, None(counted as 0) -> mean 150%
        assert totals.card_attr == pytest.approx(150)
        # (400 - 200) / 200
        assert totals.footer_attr == pytest.approx(100)

    def test_roi_footer_undefined(self):
        """Footer ROI is None with no spend; attribution also None with no revenue."""
        totals = compute_totals([], "roi")
        assert totals.footer_mmm is None

        row = compute_row("ChA", [{"ChA": 5}], [], _spend(ChA=10))
        totals = compute_totals([row], "roi")
        assert totals.footer_mmm == pytest.approx(-50)
        assert totals.footer_attr is None

    def test_card_variance(self):
        """Summary variance is attribution over MMM, 0 when MMM is not positive."""
        totals = build_comparison(["ChA"], [{"ChA": 50}], [{"ChA": 80}], _spend(ChA=1), "volume").totals
        assert totals.card_variance_pct == pytest.approx(60)

        totals = build_comparison(["ChA"], [{"ChA": 0}], [{"ChA": 80}], _spend(ChA=1), "volume").totals
        assert totals.card_variance_pct == 0


class TestCpaBreakdown:
    """Test the CPA view breakdown."""

    def test_only_channels_with_spend(self):
        """Channels missing from the sheet or with zero spend are skipped."""
        mmm = [{"ChA": 50, "ChB": 10, "ChC": 10}]
        attr = [{"ChA": 40, "ChB": 10, "ChC": 10}]
        breakdown = cpa_breakdown(["ChA", "ChB", "ChC"], mmm, attr, _spend(ChA=100, ChB=0))

        assert [entry.channel for entry in breakdown] == ["ChA"]
        entry = breakdown[0]
        assert entry.mmm_cpa == pytest.approx(2.0)
        assert entry.attr_cpa == pytest.approx(2.5)
        assert entry.variance.absolute == pytest.approx(-0.5)
        assert entry.variance.percent == pytest.approx(-20)
