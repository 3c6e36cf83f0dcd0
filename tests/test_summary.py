"""
Tests for saltsweep/summary.py.

Quantile values are checked against hand-computed linear interpolation;
rankings against small summaries whose percentages are obvious.
"""

import numpy as np
import pandas as pd
import pytest

from saltsweep import config
from saltsweep.aggregate import aggregate
from saltsweep.categories import CATEGORY_LABELS, CATEGORY_NAMES
from saltsweep.exceptions import DivisionByZero, InvalidInput, SchemaMismatch
from saltsweep.summary import (
    SUMMARY_TABLE_COLUMNS,
    category_proportions,
    format_share,
    rank_by_median,
    rank_label,
    summarize,
    zero_total_watersheds,
)

TOTAL = config.TOTAL_SALT_LABEL


def _long(rows):
    """Build a long table from {(watershed, category): [values]}."""
    records = []
    for (ws, cat), values in rows.items():
        for v in values:
            records.append({config.WATERSHED_COL: ws, config.CATEGORY_COL: cat,
                            config.SALT_COL: float(v)})
    return pd.DataFrame(records)


def _medians(ws_medians):
    """Minimal summary table: {watershed: {category: median}}."""
    records = []
    for ws, medians in ws_medians.items():
        for cat, med in medians.items():
            records.append({config.WATERSHED_COL: ws, config.CATEGORY_COL: cat,
                            "Median": float(med)})
    return pd.DataFrame(records)


REFERENCE_MEDIANS = {
    "Commercial": 50, "Industrial": 30, "Institutional": 10,
    "Residential": 5, "Road-Local": 3, "Road-ArterialCollector": 2, TOTAL: 100,
}


class TestSummarize:

    def test_linear_quantiles(self):
        table = _long({("A", "Commercial"): [4, 1, 3, 2], ("A", TOTAL): [4, 1, 3, 2]})
        row = summarize(table).iloc[0]
        assert row["Min"] == 1.0
        assert row["Q1"] == pytest.approx(1.75)
        assert row["Median"] == pytest.approx(2.5)
        assert row["Mean"] == pytest.approx(2.5)
        assert row["Q3"] == pytest.approx(3.25)
        assert row["Max"] == 4.0

    def test_columns(self):
        table = _long({("A", "Commercial"): [1, 2]})
        assert list(summarize(table).columns) == SUMMARY_TABLE_COLUMNS

    def test_total_from_raw_rows_not_summed_quantiles(self):
        """Anti-correlated categories: the median of totals is not the sum of medians."""
        table = _long({
            ("A", "Commercial"): [0, 1, 10],
            ("A", "Industrial"): [10, 0, 1],
            ("A", TOTAL): [10, 1, 11],
        })
        summary = summarize(table).set_index(config.CATEGORY_COL)
        assert summary.loc["Commercial", "Median"] == 1.0
        assert summary.loc["Industrial", "Median"] == 1.0
        assert summary.loc[TOTAL, "Median"] == 10.0

    def test_one_row_per_group_in_display_order(self, mixed_watersheds, small_grids):
        summary = summarize(aggregate(mixed_watersheds, small_grids))
        assert len(summary) == 2 * 7
        upper = summary[summary[config.WATERSHED_COL] == "Upper"]
        assert list(upper[config.CATEGORY_COL]) == CATEGORY_LABELS
        assert list(pd.unique(summary[config.WATERSHED_COL])) == ["Upper", "Lower"]

    def test_matches_numpy_percentiles(self, mixed_watersheds, small_grids):
        table = aggregate(mixed_watersheds, small_grids)
        summary = summarize(table).set_index([config.WATERSHED_COL, config.CATEGORY_COL])
        values = table[(table[config.WATERSHED_COL] == "Lower")
                       & (table[config.CATEGORY_COL] == TOTAL)][config.SALT_COL]
        q1, med, q3 = np.percentile(values, [25, 50, 75])
        row = summary.loc[("Lower", TOTAL)]
        assert row["Q1"] == pytest.approx(q1)
        assert row["Median"] == pytest.approx(med)
        assert row["Q3"] == pytest.approx(q3)

    def test_input_not_mutated(self, mixed_watersheds, single_rate_grids):
        table = aggregate(mixed_watersheds, single_rate_grids)
        before = table.copy()
        summarize(table)
        pd.testing.assert_frame_equal(table, before)

    def test_nan_rejected(self):
        table = _long({("A", "Commercial"): [1, 2]})
        table.loc[0, config.SALT_COL] = np.nan
        with pytest.raises(InvalidInput):
            summarize(table)

    def test_unknown_category(self):
        with pytest.raises(SchemaMismatch, match="Parking"):
            summarize(_long({("A", "Parking"): [1]}))

    def test_missing_column(self):
        table = _long({("A", "Commercial"): [1]}).drop(columns=[config.SALT_COL])
        with pytest.raises(SchemaMismatch):
            summarize(table)


class TestRankLabel:

    @pytest.mark.parametrize("pos,label", [(1, "First"), (2, "Second"), (6, "Sixth")])
    def test_ordinals(self, pos, label):
        assert rank_label(pos) == label

    def test_beyond_six(self):
        assert rank_label(7) == "Rank 7"

    def test_zero_rejected(self):
        with pytest.raises(ValueError):
            rank_label(0)


class TestCategoryProportions:

    def test_reference_percentages(self):
        props = category_proportions(_medians({"A": REFERENCE_MEDIANS}))
        by_cat = props.set_index(config.CATEGORY_COL)
        assert by_cat.loc["Commercial", "Percent"] == 50.0
        assert by_cat.loc["Industrial", "Percent"] == 30.0
        assert TOTAL not in by_cat.index

    def test_sorted_descending_with_ranks(self):
        props = category_proportions(_medians({"A": REFERENCE_MEDIANS}))
        assert list(props[config.CATEGORY_COL]) == CATEGORY_NAMES
        assert list(props["Rank"]) == [1, 2, 3, 4, 5, 6]

    def test_rounded_to_two_decimals(self):
        medians = {c: 0.0 for c in CATEGORY_NAMES}
        medians.update({"Residential": 1.0, TOTAL: 3.0})
        props = category_proportions(_medians({"A": medians}))
        assert props.set_index(config.CATEGORY_COL).loc["Residential", "Percent"] == 33.33

    def test_ties_keep_display_order(self):
        medians = {c: 10.0 for c in CATEGORY_NAMES}
        medians[TOTAL] = 60.0
        props = category_proportions(_medians({"A": medians}))
        assert list(props[config.CATEGORY_COL]) == CATEGORY_NAMES

    def test_zero_total_omitted_when_lenient(self):
        zero = {c: 0.0 for c in CATEGORY_LABELS}
        props = category_proportions(_medians({"A": REFERENCE_MEDIANS, "Dry": zero}))
        assert set(props[config.WATERSHED_COL]) == {"A"}

    def test_zero_total_raises_when_strict(self):
        zero = {c: 0.0 for c in CATEGORY_LABELS}
        with pytest.raises(DivisionByZero) as excinfo:
            category_proportions(_medians({"Dry": zero}), strict=True)
        assert excinfo.value.watershed == "Dry"

    def test_missing_total(self):
        medians = {k: v for k, v in REFERENCE_MEDIANS.items() if k != TOTAL}
        with pytest.raises(SchemaMismatch):
            category_proportions(_medians({"A": medians}))

    def test_zero_total_watersheds(self):
        zero = {c: 0.0 for c in CATEGORY_LABELS}
        summaries = _medians({"A": REFERENCE_MEDIANS, "Dry": zero})
        assert zero_total_watersheds(summaries) == ["Dry"]


class TestRankByMedian:

    def test_reference_ranking(self):
        ranked = rank_by_median(_medians({"A": REFERENCE_MEDIANS}))
        assert list(ranked.columns) == [config.WATERSHED_COL] + config.RANK_LABELS
        row = ranked.iloc[0]
        assert row["First"] == "Commercial (50%)"
        assert row["Second"] == "Industrial (30%)"
        assert row["Sixth"] == "Road-ArterialCollector (2%)"

    def test_one_row_per_watershed(self, mixed_watersheds, small_grids):
        ranked = rank_by_median(summarize(aggregate(mixed_watersheds, small_grids)))
        assert list(ranked[config.WATERSHED_COL]) == ["Upper", "Lower"]
        assert ranked[config.RANK_LABELS].notna().all().all()

    def test_zero_total_watershed_omitted(self):
        zero = {c: 0.0 for c in CATEGORY_LABELS}
        ranked = rank_by_median(_medians({"A": REFERENCE_MEDIANS, "Dry": zero}))
        assert list(ranked[config.WATERSHED_COL]) == ["A"]

    def test_all_zero_gives_empty_table(self):
        zero = {c: 0.0 for c in CATEGORY_LABELS}
        ranked = rank_by_median(_medians({"Dry": zero}))
        assert ranked.empty
        assert list(ranked.columns) == [config.WATERSHED_COL] + config.RANK_LABELS

    def test_precomputed_proportions_reused(self):
        zero = {c: 0.0 for c in CATEGORY_LABELS}
        summaries = _medians({"A": REFERENCE_MEDIANS, "Dry": zero})
        props = category_proportions(summaries)
        pd.testing.assert_frame_equal(
            rank_by_median(summaries, proportions=props), rank_by_median(summaries),
        )

    def test_format_share(self):
        assert format_share("Residential", 33.33) == "Residential (33.33%)"
