#!/usr/bin/env python3
"""
Sweep pipeline runner with validation gates.

Orchestrates the full batch run:
- load land use (Pandera gate) and validate every watershed up front
- build rate grids and evaluate every scenario for every watershed
- summarize, rank, export CSVs, and render charts
- save a SweepRunResult as JSON for provenance

Usage:
    python3 -m saltsweep.pipeline_runner --land-use-path data/watershed_land_use.csv

    # Custom rate ranges, abort on any invalid watershed
    python3 -m saltsweep.pipeline_runner --land-use-path in.csv \
        --parking-range 20,100,5 --road-range 80,140,10 --strict-validation
"""

import argparse
import json
import os
import sys
import time

from saltsweep import config
from saltsweep.exceptions import InvalidInput
from saltsweep.logging_config import get_pipeline_logger, set_run_id, setup_logging
from saltsweep.pipeline_types import StepResult, StepStatus, SweepRunResult, _now_iso
from saltsweep.rate_grid import combination_count
from saltsweep.schemas import (
    CategorySummarySchema,
    ProportionSchema,
    ResultTableSchema,
    validate_schema,
)

log = get_pipeline_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def parse_range(text):
    """Parse ``"START,STOP,STEP"`` into a tuple of floats (argparse type)."""
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"Expected START,STOP,STEP, got {text!r}")
    try:
        return tuple(float(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Non-numeric rate range: {text!r}") from None


def _run_gate(df, schema, step_name, strict, pipeline_result):
    """Run a schema gate; warnings attach to the last step, strict raises."""
    warnings_list = validate_schema(df, schema, step_name, strict=strict)
    for w in warnings_list:
        log.warning(w)
    if pipeline_result.step_results:
        pipeline_result.step_results[-1].warnings.extend(warnings_list)


def run_sweep_pipeline(args):
    """Run the full sweep and return a SweepRunResult.

    Critical steps (load, grids, validation, aggregation, summaries) abort
    the run on failure; exports and charts only log a warning.
    """
    from saltsweep.pipeline_steps import (
        step_aggregate,
        step_build_grids,
        step_load_areas,
        step_load_land_use,
        step_plots,
        step_rank,
        step_save_tables,
        step_summarize,
        step_validate_watersheds,
    )

    strict = args.strict_validation
    pipeline_result = SweepRunResult(
        run_dir=args.output_dir,
        parking_range=tuple(args.parking_range),
        road_range=tuple(args.road_range),
    )
    start_time = time.time()
    dirs = config.get_output_dirs(args.output_dir)

    def _abort(step_name, result, exc=None):
        if exc is not None:
            result.status = StepStatus.ERROR.value
            result.error = str(exc)
            result.error_type = type(exc).__name__
        log.error("Pipeline aborted at %s: %s", step_name, result.error_type)
        pipeline_result.total_time_seconds = time.time() - start_time
        return pipeline_result

    # Step 1: load land use
    result, loaded = step_load_land_use(args.land_use_path, strict=strict)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort("load_land_use", result)
    records, _ = loaded

    # Step 2: rate grids
    result, grids = step_build_grids(args.parking_range, args.road_range)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort("build_grids", result)
    pipeline_result.combination_count = combination_count(grids)

    # Step 3: per-watershed validation (fail fast, before expansion)
    result, partition = step_validate_watersheds(records)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort("validate_watersheds", result)
    valid, failures = partition
    pipeline_result.failed_watersheds = failures
    if failures and strict:
        exc = InvalidInput(f"Invalid watersheds: {sorted(failures)}")
        return _abort("validate_watersheds", result, exc)
    if not valid:
        return _abort("validate_watersheds", result, InvalidInput("No valid watersheds to evaluate"))

    # Step 4: full-factorial sweep
    result, table = step_aggregate(valid, grids, max_workers=args.workers)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort("aggregate", result)
    pipeline_result.watersheds_evaluated = [ws.watershed for ws in valid]
    try:
        _run_gate(table, ResultTableSchema, "aggregate", strict, pipeline_result)
    except InvalidInput as exc:
        log.error("Validation failed after aggregate: %s", exc)
        return _abort("aggregate", result, exc)

    # Step 5: summaries
    result, summaries = step_summarize(table)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort("summarize", result)
    try:
        _run_gate(summaries, CategorySummarySchema, "summarize", strict, pipeline_result)
    except InvalidInput as exc:
        log.error("Validation failed after summarize: %s", exc)
        return _abort("summarize", result, exc)

    # Step 6: rankings (zero-total watersheds are reported, not fatal)
    result, ranked_out = step_rank(summaries, strict=False)
    pipeline_result.step_results.append(result)
    if not result.ok:
        return _abort("rank", result)
    proportions, ranked, unranked = ranked_out
    pipeline_result.unranked_watersheds = unranked
    if not proportions.empty:
        _run_gate(proportions, ProportionSchema, "rank", False, pipeline_result)

    # ── Non-critical steps (log warning, continue on failure) ────────

    areas = None
    export_table = table
    if args.areas_path:
        result, loaded_areas = step_load_areas(args.areas_path, table)
        pipeline_result.step_results.append(result)
        if result.ok:
            areas, export_table = loaded_areas
        else:
            log.warning("Watershed areas unavailable: %s", result.error_type)

    result, paths = step_save_tables(
        {
            "scenario_results": export_table,
            "category_summary": summaries,
            "category_proportions": proportions,
            "ranked_summary": ranked,
        },
        dirs["csv"],
    )
    pipeline_result.step_results.append(result)
    if result.ok:
        pipeline_result.output_files.extend(paths)
    else:
        log.warning("Saving tables failed: %s", result.error_type)

    if not args.skip_plots:
        result, paths = step_plots(
            table, summaries, proportions, dirs["figures"], watershed_areas=areas,
        )
        pipeline_result.step_results.append(result)
        if result.ok:
            pipeline_result.output_files.extend(paths)
        else:
            log.warning("Plots failed: %s", result.error_type)
    else:
        pipeline_result.step_results.append(StepResult(
            step_name="plots",
            status=StepStatus.SKIPPED.value,
            input_summary={"skip_plots": True},
            completed_at=_now_iso(),
        ))
        log.info("[plots] skipped (--skip-plots)")

    pipeline_result.total_time_seconds = time.time() - start_time
    return pipeline_result


def save_pipeline_result(pipeline_result, output_dir):
    """Save SweepRunResult as JSON for provenance."""
    os.makedirs(output_dir, exist_ok=True)
    result_path = os.path.join(output_dir, "pipeline_run.json")
    with open(result_path, "w") as f:
        json.dump(pipeline_result.to_dict(), f, indent=2, default=str)
    log.info("Pipeline result saved: %s", result_path)
    return result_path


def build_parser():
    parser = argparse.ArgumentParser(
        description="Full-factorial road-salt application sweep over watersheds"
    )
    parser.add_argument(
        "--land-use-path",
        default=config.DEFAULT_LAND_USE_PATH,
        help="CSV with a Watershed column and one column per land-use category",
    )
    parser.add_argument(
        "--areas-path",
        default=config.DEFAULT_AREAS_PATH,
        help="Optional CSV of Watershed,Area for the per-area chart",
    )
    parser.add_argument(
        "--output-dir",
        default=config.DEFAULT_OUTPUT_DIR,
        help="Output directory",
    )
    parser.add_argument(
        "--parking-range",
        type=parse_range,
        default=config.PARKING_RATE_RANGE,
        help="Parking rate grid as START,STOP,STEP (g per unit area)",
    )
    parser.add_argument(
        "--road-range",
        type=parse_range,
        default=config.ROAD_RATE_RANGE,
        help="Road rate grid as START,STOP,STEP (kg per lane-length unit)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=config.DEFAULT_MAX_WORKERS,
        help="Worker processes for per-watershed evaluation",
    )
    parser.add_argument(
        "--strict-validation",
        action="store_true",
        default=False,
        dest="strict_validation",
        help="Abort on any invalid watershed or schema violation (default: skip and warn)",
    )
    parser.add_argument(
        "--skip-plots",
        action="store_true",
        default=False,
        dest="skip_plots",
        help="Write tables only",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.workers < 1:
        log.error("--workers must be >= 1")
        return EXIT_USAGE

    run_id = set_run_id()
    setup_logging(run_dir=args.output_dir)
    log.info("Salt sweep (run_id=%s): %s", run_id, args.land_use_path)

    result = run_sweep_pipeline(args)
    result.run_id = run_id
    save_pipeline_result(result, args.output_dir)

    log.info("Sweep complete in %.1fs", result.total_time_seconds)
    if result.failed_steps:
        log.warning("Failed steps: %s", [s.step_name for s in result.failed_steps])
        return EXIT_FAILED
    if result.failed_watersheds:
        log.warning("Skipped watersheds: %s", sorted(result.failed_watersheds))
    log.info("All steps succeeded.")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
