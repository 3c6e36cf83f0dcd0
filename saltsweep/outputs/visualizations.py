"""
Charts of the sweep results.

Every styling or lookup table (category colours, drainage areas) is an
explicit argument, so plotting never reaches into process-wide state.
"""

import math
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from saltsweep import config
from saltsweep.categories import CATEGORY_LABELS, CATEGORY_NAMES
from saltsweep.exceptions import SchemaMismatch
from saltsweep.logging_config import get_pipeline_logger

log = get_pipeline_logger(__name__)


def _save(fig, output_path, dpi):
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    log.info("Saved: %s", output_path)
    return output_path


def _panel_grid(n, max_cols=3, panel_size=(5.5, 4.5)):
    ncols = min(max_cols, n)
    nrows = math.ceil(n / ncols)
    fig, axes = plt.subplots(
        nrows, ncols, figsize=(panel_size[0] * ncols, panel_size[1] * nrows),
        squeeze=False,
    )
    axes_flat = list(axes.flat)
    for ax in axes_flat[n:]:
        ax.set_visible(False)
    return fig, axes_flat[:n]


def plot_category_boxplots(table, output_path, category_colors=None, dpi=config.FIGURE_DPI):
    """One panel per watershed: Salt_Applied distribution for each category."""
    if table.empty:
        log.warning("No scenario results to plot")
        return None
    colors = category_colors or {}

    watersheds = list(pd.unique(table[config.WATERSHED_COL]))
    fig, axes = _panel_grid(len(watersheds))

    for ax, ws in zip(axes, watersheds):
        sub = table[table[config.WATERSHED_COL] == ws]
        labels = [c for c in CATEGORY_LABELS if c in set(sub[config.CATEGORY_COL])]
        data = [
            sub.loc[sub[config.CATEGORY_COL] == label, config.SALT_COL].to_numpy()
            for label in labels
        ]
        box = ax.boxplot(data, patch_artist=True, showfliers=False)
        for patch, label in zip(box["boxes"], labels):
            patch.set_facecolor(colors.get(label, "lightgrey"))
            patch.set_alpha(0.8)
        ax.set_xticks(range(1, len(labels) + 1))
        ax.set_xticklabels(labels, rotation=45, ha="right", fontsize=9)
        ax.set_title(str(ws), fontsize=12, fontweight="bold")
        ax.set_ylabel("Salt applied (kg)")
        ax.grid(axis="y", alpha=0.3)

    fig.suptitle("Salt applied across rate scenarios", fontsize=14)
    plt.tight_layout()
    return _save(fig, output_path, dpi)


def plot_median_proportions(proportions, output_path, category_colors=None,
                            dpi=config.FIGURE_DPI):
    """Stacked horizontal bars of each category's share of the median total."""
    if proportions.empty:
        log.warning("No median proportions to plot")
        return None
    colors = category_colors or {}

    pivot = proportions.pivot(
        index=config.WATERSHED_COL, columns=config.CATEGORY_COL, values="Percent",
    )
    pivot = pivot.reindex(
        index=list(pd.unique(proportions[config.WATERSHED_COL])),
        columns=[c for c in CATEGORY_NAMES if c in pivot.columns],
    )

    fig, ax = plt.subplots(figsize=(10, 0.6 * len(pivot) + 2))
    left = np.zeros(len(pivot))
    for category in pivot.columns:
        values = pivot[category].fillna(0.0).to_numpy()
        ax.barh(pivot.index.astype(str), values, left=left,
                color=colors.get(category, None), label=category, edgecolor="white")
        left += values

    ax.set_xlabel("Share of median total salt (%)")
    ax.set_xlim(0, max(100.0, float(left.max())))
    ax.invert_yaxis()
    ax.legend(loc="upper center", bbox_to_anchor=(0.5, -0.12), ncol=3, fontsize=9)
    ax.set_title("Median salt contribution by land use", fontsize=13)
    plt.tight_layout()
    return _save(fig, output_path, dpi)


def plot_total_salt_distribution(table, output_path, bins=40, dpi=config.FIGURE_DPI):
    """Histogram of Total Salt across scenarios, one panel per watershed."""
    totals = table[table[config.CATEGORY_COL] == config.TOTAL_SALT_LABEL]
    if totals.empty:
        log.warning("No %s rows to plot", config.TOTAL_SALT_LABEL)
        return None

    watersheds = list(pd.unique(totals[config.WATERSHED_COL]))
    fig, axes = _panel_grid(len(watersheds), panel_size=(5, 3.5))
    for ax, ws in zip(axes, watersheds):
        values = totals.loc[totals[config.WATERSHED_COL] == ws, config.SALT_COL]
        ax.hist(values, bins=bins, color="steelblue", alpha=0.8)
        ax.axvline(values.median(), color="black", linestyle="--", linewidth=1)
        ax.set_title(str(ws), fontsize=11)
        ax.set_xlabel("Total salt (kg)")
        ax.set_ylabel("Scenarios")

    plt.tight_layout()
    return _save(fig, output_path, dpi)


def plot_salt_per_area(summaries, watershed_areas, output_path, dpi=config.FIGURE_DPI):
    """Median Total Salt per unit drainage area with Q1-Q3 error bars.

    Parameters
    ----------
    summaries : pd.DataFrame
        Output of ``summarize()``.
    watershed_areas : dict
        Watershed id -> drainage area.

    Raises
    ------
    SchemaMismatch
        A summarized watershed has no area.
    """
    totals = summaries[summaries[config.CATEGORY_COL] == config.TOTAL_SALT_LABEL]
    if totals.empty:
        log.warning("No %s summaries to plot", config.TOTAL_SALT_LABEL)
        return None

    missing = [ws for ws in totals[config.WATERSHED_COL] if ws not in watershed_areas]
    if missing:
        raise SchemaMismatch(f"No drainage area for watersheds: {missing}")

    areas = totals[config.WATERSHED_COL].map(watershed_areas).astype(float).to_numpy()
    median = totals["Median"].to_numpy() / areas
    lower = median - totals["Q1"].to_numpy() / areas
    upper = totals["Q3"].to_numpy() / areas - median

    fig, ax = plt.subplots(figsize=(max(6, 1.2 * len(totals)), 5))
    x = np.arange(len(totals))
    ax.bar(x, median, color="steelblue", alpha=0.8)
    ax.errorbar(x, median, yerr=[lower, upper], fmt="none", ecolor="black", capsize=4)
    ax.set_xticks(x)
    ax.set_xticklabels(totals[config.WATERSHED_COL].astype(str), rotation=45, ha="right")
    ax.set_ylabel("Median total salt per unit area (kg / area)")
    ax.set_title("Salt load normalized by drainage area", fontsize=13)
    ax.grid(axis="y", alpha=0.3)
    plt.tight_layout()
    return _save(fig, output_path, dpi)
