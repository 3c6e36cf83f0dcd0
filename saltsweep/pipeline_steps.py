"""
Sweep pipeline step functions.

Each function is a discrete, testable step with explicit inputs/outputs
and StepResult tracking. Boilerplate (timing, error handling, logging) is
handled by ``run_step()``.
"""

import os

import pandas as pd

from saltsweep import config
from saltsweep.logging_config import get_pipeline_logger
from saltsweep.step_runner import run_step

log = get_pipeline_logger(__name__)


def step_load_land_use(land_use_path: str, strict: bool = False) -> tuple:
    """Read the land-use CSV, run the schema gate, and build records."""
    from saltsweep.land_use import land_use_from_frame
    from saltsweep.schemas import LandUseSchema, validate_schema

    def _work():
        df = pd.read_csv(land_use_path, dtype={config.WATERSHED_COL: str})
        log.info("Loaded land use: %d watersheds from %s", len(df), land_use_path)
        records = land_use_from_frame(df)
        # Value problems are reported per watershed in the next step, so the
        # gate only aborts here in strict mode.
        gate_warnings = validate_schema(df, LandUseSchema, "load_land_use", strict=strict)
        return records, gate_warnings

    return run_step(
        "load_land_use", _work,
        input_summary={"land_use_path": land_use_path},
        output_summary_fn=lambda r: {"watersheds": len(r[0])},
        warnings_fn=lambda r: r[1],
    )


def step_build_grids(parking_range: tuple, road_range: tuple) -> tuple:
    """Build and validate the rate grids."""
    from saltsweep.rate_grid import combination_count, generate_grids, validate_grids

    def _work():
        return validate_grids(generate_grids(parking_range, road_range))

    return run_step(
        "build_grids", _work,
        input_summary={"parking_range": list(parking_range), "road_range": list(road_range)},
        output_summary_fn=lambda grids: {
            "rates_per_category": {c.value: len(r) for c, r in grids.items()},
            "combinations": combination_count(grids),
        },
    )


def step_validate_watersheds(records: list) -> tuple:
    """Validate every watershed before the combinatorial expansion."""
    from saltsweep.aggregate import partition_watersheds

    return run_step(
        "validate_watersheds", partition_watersheds, records,
        input_summary={"watersheds": len(records)},
        output_summary_fn=lambda r: {"valid": len(r[0]), "failed": len(r[1])},
        warnings_fn=lambda r: [f"{ws}: {msg}" for ws, msg in r[1].items()],
    )


def step_aggregate(records: list, grids: dict, max_workers: int = 1) -> tuple:
    """Evaluate every scenario for every watershed; return the long table."""
    from saltsweep.aggregate import aggregate

    return run_step(
        "aggregate", aggregate, records, grids,
        strict=True, max_workers=max_workers,
        input_summary={"watersheds": len(records), "max_workers": max_workers},
        output_summary_fn=lambda df: {
            "rows": len(df),
            "watersheds": df[config.WATERSHED_COL].nunique(),
        },
    )


def step_summarize(table: pd.DataFrame) -> tuple:
    """Grouped distributional statistics per watershed and category."""
    from saltsweep.summary import summarize

    return run_step(
        "summarize", summarize, table,
        input_summary={"rows": len(table)},
        output_summary_fn=lambda df: {"groups": len(df)},
    )


def step_rank(summaries: pd.DataFrame, strict: bool = False) -> tuple:
    """Median shares and rankings; zero-total watersheds become warnings."""
    from saltsweep.summary import category_proportions, rank_by_median, zero_total_watersheds

    def _work():
        unranked = zero_total_watersheds(summaries)
        proportions = category_proportions(summaries, strict=strict)
        ranked = rank_by_median(summaries, strict=strict, proportions=proportions)
        return proportions, ranked, unranked

    return run_step(
        "rank", _work,
        input_summary={"groups": len(summaries)},
        output_summary_fn=lambda r: {"ranked_watersheds": len(r[1])},
        warnings_fn=lambda r: [
            f"{ws}: median {config.TOTAL_SALT_LABEL} is zero, ranking undefined"
            for ws in r[2]
        ],
    )


def step_load_areas(areas_path: str, table: pd.DataFrame) -> tuple:
    """Load drainage areas and tag the result table with them."""
    from saltsweep.aggregate import attach_watershed_area
    from saltsweep.land_use import load_watershed_areas_csv

    def _work():
        areas = load_watershed_areas_csv(areas_path)
        return areas, attach_watershed_area(table, areas)

    return run_step(
        "load_areas", _work,
        input_summary={"areas_path": areas_path},
        output_summary_fn=lambda r: {"watersheds_with_area": len(r[0])},
    )


def step_save_tables(tables: dict, csv_dir: str) -> tuple:
    """Write each named table to ``csv_dir`` using config.OUTPUT_FILES names."""

    def _work():
        os.makedirs(csv_dir, exist_ok=True)
        paths = []
        for key, df in tables.items():
            path = os.path.join(csv_dir, config.OUTPUT_FILES[key])
            df.to_csv(path, index=False)
            log.info("Saved %s: %s (%d rows)", key, path, len(df))
            paths.append(path)
        return paths

    return run_step(
        "save_tables", _work,
        input_summary={"tables": list(tables)},
        output_summary_fn=lambda paths: {"files": len(paths)},
    )


def step_plots(table, summaries, proportions, figures_dir,
               watershed_areas=None, category_colors=None) -> tuple:
    """Render every chart; the area chart only when areas are supplied."""
    from saltsweep.outputs.visualizations import (
        plot_category_boxplots,
        plot_median_proportions,
        plot_salt_per_area,
        plot_total_salt_distribution,
    )

    colors = category_colors or config.DEFAULT_CATEGORY_COLORS

    def _work():
        paths = [
            plot_category_boxplots(
                table, os.path.join(figures_dir, "category_boxplots.png"), colors),
            plot_median_proportions(
                proportions, os.path.join(figures_dir, "median_proportions.png"), colors),
            plot_total_salt_distribution(
                table, os.path.join(figures_dir, "total_salt_distribution.png")),
        ]
        if watershed_areas:
            paths.append(plot_salt_per_area(
                summaries, watershed_areas,
                os.path.join(figures_dir, "salt_per_area.png")))
        return [p for p in paths if p is not None]

    return run_step(
        "plots", _work,
        input_summary={"figures_dir": figures_dir, "areas": bool(watershed_areas)},
        output_summary_fn=lambda paths: {"figures": len(paths)},
    )
