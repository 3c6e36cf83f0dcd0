"""
Distributional summaries and median-based rankings of the sweep results.

Every statistic is computed from the raw per-scenario values of its own
(Watershed, Land_Use_Category) group. In particular Total Salt quantiles
come from the per-row totals: quantiles are not additive, so summing the
category quantiles would give a different (wrong) answer.
"""

import numpy as np
import pandas as pd

from saltsweep import config
from saltsweep.categories import CATEGORY_LABELS
from saltsweep.exceptions import DivisionByZero, InvalidInput, SchemaMismatch
from saltsweep.logging_config import get_pipeline_logger

log = get_pipeline_logger(__name__)

SUMMARY_TABLE_COLUMNS = [config.WATERSHED_COL, config.CATEGORY_COL] + config.SUMMARY_COLUMNS
PROPORTION_COLUMNS = [
    config.WATERSHED_COL, config.CATEGORY_COL, "Median", "Total_Median", "Percent", "Rank",
]


def _check_columns(df, required, name):
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SchemaMismatch(f"{name} is missing columns: {missing}")


def _ordered(df):
    """Sort by watershed first appearance, then category display order."""
    ws_order = {ws: i for i, ws in enumerate(pd.unique(df[config.WATERSHED_COL]))}
    cat_order = {label: i for i, label in enumerate(CATEGORY_LABELS)}
    keys = pd.DataFrame({
        "ws": df[config.WATERSHED_COL].map(ws_order),
        "cat": df[config.CATEGORY_COL].map(cat_order),
    }, index=df.index)
    order = keys.sort_values(["ws", "cat"], kind="mergesort").index
    return df.loc[order].reset_index(drop=True)


def summarize(table):
    """Min, Q1, Median, Mean, Q3, Max per (Watershed, Land_Use_Category).

    Quantiles use linear interpolation between order statistics.

    Raises
    ------
    SchemaMismatch
        Required columns missing or unknown category labels.
    InvalidInput
        Missing Salt_Applied values (never silently dropped).
    """
    _check_columns(table, [config.WATERSHED_COL, config.CATEGORY_COL, config.SALT_COL],
                   "Result table")

    unknown = sorted(set(table[config.CATEGORY_COL]) - set(CATEGORY_LABELS))
    if unknown:
        raise SchemaMismatch(f"Result table has unknown categories: {unknown}")

    nan_mask = table[config.SALT_COL].isna()
    if nan_mask.any():
        bad = table.loc[nan_mask, [config.WATERSHED_COL, config.CATEGORY_COL]].drop_duplicates()
        raise InvalidInput(
            f"{int(nan_mask.sum())} missing {config.SALT_COL} values in groups: "
            f"{bad.to_records(index=False).tolist()}"
        )

    grouped = table.groupby([config.WATERSHED_COL, config.CATEGORY_COL], sort=False)[config.SALT_COL]
    method = config.QUANTILE_METHOD
    stats = pd.DataFrame({
        "Min": grouped.min(),
        "Q1": grouped.quantile(0.25, interpolation=method),
        "Median": grouped.quantile(0.5, interpolation=method),
        "Mean": grouped.mean(),
        "Q3": grouped.quantile(0.75, interpolation=method),
        "Max": grouped.max(),
    }).reset_index()

    summary = _ordered(stats)[SUMMARY_TABLE_COLUMNS]
    log.info(
        "Summarized %d groups across %d watersheds",
        len(summary), summary[config.WATERSHED_COL].nunique(),
    )
    return summary


def rank_label(position):
    """Ordinal label for a 1-based rank: First..Sixth, then 'Rank N'."""
    if position < 1:
        raise ValueError(f"Rank position must be >= 1, got {position}")
    if position <= len(config.RANK_LABELS):
        return config.RANK_LABELS[position - 1]
    return f"Rank {position}"


def _total_median(group, watershed):
    total = group.loc[group[config.CATEGORY_COL] == config.TOTAL_SALT_LABEL, "Median"]
    if total.empty:
        raise SchemaMismatch(f"Watershed {watershed!r} has no {config.TOTAL_SALT_LABEL!r} summary")
    return float(total.iloc[0])


def zero_total_watersheds(summaries):
    """Watersheds whose median Total Salt is zero (percentages undefined)."""
    _check_columns(summaries, [config.WATERSHED_COL, config.CATEGORY_COL, "Median"], "Summary table")
    out = []
    for ws, group in summaries.groupby(config.WATERSHED_COL, sort=False):
        if _total_median(group, ws) == 0:
            out.append(ws)
    return out


def category_proportions(summaries, strict=False):
    """Percent contribution of each category's median to the Total Salt median.

    ``Percent = round(100 * Median / Total_Median, 2)``, sorted descending
    within each watershed (ties keep display order), with a 1-based Rank.

    Parameters
    ----------
    summaries : pd.DataFrame
        Output of ``summarize()``.
    strict : bool
        If True, a zero Total Salt median raises DivisionByZero. Otherwise
        that watershed is logged and omitted.
    """
    _check_columns(summaries, [config.WATERSHED_COL, config.CATEGORY_COL, "Median"], "Summary table")
    summaries = _ordered(summaries)

    frames = []
    for ws, group in summaries.groupby(config.WATERSHED_COL, sort=False):
        total_median = _total_median(group, ws)
        if total_median == 0:
            exc = DivisionByZero(
                f"Median {config.TOTAL_SALT_LABEL} is zero for watershed {ws!r}; "
                f"percent contributions are undefined",
                watershed=ws,
            )
            if strict:
                raise exc
            log.error("%s", exc, extra={"watershed": ws})
            continue

        parts = group.loc[
            group[config.CATEGORY_COL] != config.TOTAL_SALT_LABEL,
            [config.WATERSHED_COL, config.CATEGORY_COL, "Median"],
        ].copy()
        parts["Total_Median"] = total_median
        parts["Percent"] = np.round(100.0 * parts["Median"] / total_median, config.PERCENT_DECIMALS)
        parts = parts.sort_values("Percent", ascending=False, kind="mergesort")
        parts["Rank"] = np.arange(1, len(parts) + 1)
        frames.append(parts)

    if not frames:
        return pd.DataFrame(columns=PROPORTION_COLUMNS)
    return pd.concat(frames, ignore_index=True)[PROPORTION_COLUMNS]


def format_share(category, percent):
    """``"<Category> (<Percent>%)"``, e.g. ``"Commercial (50%)"``."""
    return f"{category} ({percent:g}%)"


def rank_by_median(summaries, strict=False, proportions=None):
    """One row per watershed with categories ordered by median share.

    Columns are Watershed then First..Sixth, each holding
    ``"<Category> (<Percent>%)"``. Watersheds with a zero Total Salt
    median follow the ``category_proportions()`` policy.

    Pass *proportions* when ``category_proportions()`` has already run so
    zero-total watersheds are not evaluated (and logged) a second time.
    """
    if proportions is None:
        proportions = category_proportions(summaries, strict=strict)

    rows = []
    for ws, group in proportions.groupby(config.WATERSHED_COL, sort=False):
        row = {config.WATERSHED_COL: ws}
        for rec in group.itertuples(index=False):
            category = getattr(rec, config.CATEGORY_COL)
            row[rank_label(int(rec.Rank))] = format_share(category, rec.Percent)
        rows.append(row)

    n_ranks = int(proportions["Rank"].max()) if len(proportions) else len(config.RANK_LABELS)
    columns = [config.WATERSHED_COL] + [rank_label(i) for i in range(1, n_ranks + 1)]
    return pd.DataFrame(rows, columns=columns)
