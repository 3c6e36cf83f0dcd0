"""
Run the scenario sweep across watersheds and build the long result table.

The rate combinations are enumerated once and shared by every watershed.
Watersheds are evaluated independently, optionally across worker
processes, and concatenated in input order.
"""

import os
from concurrent.futures import ProcessPoolExecutor

import pandas as pd

from saltsweep import config
from saltsweep.categories import CATEGORY_LABELS, CATEGORY_NAMES
from saltsweep.exceptions import InvalidInput, SchemaMismatch
from saltsweep.logging_config import get_pipeline_logger
from saltsweep.rate_grid import cartesian_product, validate_grids
from saltsweep.scenario import evaluate

log = get_pipeline_logger(__name__)

WIDE_COLUMNS = [config.WATERSHED_COL] + CATEGORY_NAMES + [config.TOTAL_COL]
LONG_COLUMNS = [config.WATERSHED_COL, config.CATEGORY_COL, config.SALT_COL]


def partition_watersheds(watersheds):
    """Validate every watershed before any expansion.

    Returns
    -------
    tuple[list, dict]
        The records that passed, in input order, and a mapping of failed
        watershed id -> error message.

    Raises
    ------
    SchemaMismatch
        Duplicated identifiers or a category-set mismatch. These abort the
        whole run.
    """
    seen = set()
    duplicated = []
    for ws in watersheds:
        if ws.watershed in seen:
            duplicated.append(ws.watershed)
        seen.add(ws.watershed)
    if duplicated:
        raise SchemaMismatch(f"Duplicate watershed identifiers: {duplicated}")

    valid = []
    failures = {}
    for ws in watersheds:
        try:
            ws.validated()
        except InvalidInput as exc:
            failures[ws.watershed] = str(exc)
            log.error("%s", exc, extra={"watershed": ws.watershed})
            continue
        valid.append(ws)
    return valid, failures


def _evaluate_tagged(task):
    """Worker: evaluate one watershed and tag rows with its id."""
    ws, combinations = task
    result = evaluate(ws, combinations)
    result.insert(0, config.WATERSHED_COL, ws.watershed)
    return result


def aggregate_wide(watersheds, grids, strict=True, max_workers=config.DEFAULT_MAX_WORKERS):
    """Evaluate every watershed against the shared rate combinations.

    Parameters
    ----------
    watersheds : sequence of WatershedLandUse
        Records to evaluate.
    grids : mapping
        Category -> candidate rates.
    strict : bool
        If True, any invalid watershed aborts the run (after all failures
        are reported). If False, invalid watersheds are skipped.
    max_workers : int
        Worker processes for per-watershed evaluation; 1 runs in-process.

    Returns
    -------
    pd.DataFrame
        Watershed, six category columns, TotalSalt. Row count = valid
        watersheds x combinations.
    """
    watersheds = list(watersheds)
    validate_grids(grids)
    valid, failures = partition_watersheds(watersheds)

    if failures:
        summary = "; ".join(f"{ws}: {msg}" for ws, msg in failures.items())
        if strict:
            raise InvalidInput(
                f"{len(failures)} watershed(s) failed validation: {summary}",
                watershed=next(iter(failures)),
            )
        log.warning(
            "Skipping %d invalid watershed(s): %s", len(failures), list(failures),
        )

    if not watersheds:
        return pd.DataFrame({col: pd.Series(dtype=float) for col in WIDE_COLUMNS}).astype(
            {config.WATERSHED_COL: object}
        )
    if not valid:
        raise InvalidInput("No valid watersheds to evaluate")

    combinations = cartesian_product(grids)
    tasks = [(ws, combinations) for ws in valid]

    if max_workers is None:
        max_workers = max(1, (os.cpu_count() or 2) - 1)

    if max_workers == 1 or len(tasks) == 1:
        frames = [_evaluate_tagged(t) for t in tasks]
    else:
        log.info("Evaluating %d watersheds on %d workers", len(tasks), max_workers)
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            # map() yields in submission order, preserving watershed order.
            frames = list(executor.map(_evaluate_tagged, tasks))

    wide = pd.concat(frames, ignore_index=True)

    expected = len(valid) * len(combinations)
    if len(wide) != expected:
        raise RuntimeError(f"Aggregated {len(wide)} rows, expected {expected}")

    log.info(
        "Aggregated %d scenario rows (%d watersheds x %d combinations)",
        len(wide), len(valid), len(combinations),
    )
    return wide[WIDE_COLUMNS]


def melt_results(wide):
    """Reshape the wide scenario table to long form.

    Returns
    -------
    pd.DataFrame
        Watershed, Land_Use_Category, Salt_Applied; the TotalSalt column
        becomes the "Total Salt" category. Rows are grouped by watershed
        (input order), then category (display order), then scenario order.
    """
    missing = [c for c in WIDE_COLUMNS if c not in wide.columns]
    if missing:
        raise SchemaMismatch(f"Wide result table is missing columns: {missing}")

    long_df = wide.melt(
        id_vars=[config.WATERSHED_COL],
        value_vars=CATEGORY_NAMES + [config.TOTAL_COL],
        var_name=config.CATEGORY_COL,
        value_name=config.SALT_COL,
        ignore_index=False,
    )
    long_df[config.CATEGORY_COL] = long_df[config.CATEGORY_COL].replace(
        {config.TOTAL_COL: config.TOTAL_SALT_LABEL}
    )

    ws_order = {ws: i for i, ws in enumerate(pd.unique(wide[config.WATERSHED_COL]))}
    cat_order = {label: i for i, label in enumerate(CATEGORY_LABELS)}
    long_df["_ws"] = long_df[config.WATERSHED_COL].map(ws_order)
    long_df["_cat"] = long_df[config.CATEGORY_COL].map(cat_order)
    long_df["_row"] = long_df.index
    long_df = long_df.sort_values(["_ws", "_cat", "_row"], kind="mergesort")

    return long_df[LONG_COLUMNS].reset_index(drop=True)


def aggregate(watersheds, grids, strict=True, max_workers=config.DEFAULT_MAX_WORKERS):
    """Full sweep: long-form GlobalResultTable for all watersheds.

    Row count = watersheds x combinations x 7 (six categories plus Total).
    """
    wide = aggregate_wide(watersheds, grids, strict=strict, max_workers=max_workers)
    return melt_results(wide)


def attach_watershed_area(table, areas):
    """Return a copy of *table* with a Watershed_Area column from *areas*.

    Raises
    ------
    SchemaMismatch
        A watershed in the table has no area.
    """
    present = pd.unique(table[config.WATERSHED_COL])
    missing = [ws for ws in present if ws not in areas]
    if missing:
        raise SchemaMismatch(f"No drainage area for watersheds: {list(missing)}")
    out = table.copy()
    out[config.AREA_COL] = out[config.WATERSHED_COL].map(areas).astype(float)
    return out
