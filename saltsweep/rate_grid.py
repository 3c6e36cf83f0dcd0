"""
Candidate application-rate grids and their full-factorial product.

Each land-use category gets an ordered sequence of candidate rates. The
scenario set is the Cartesian product of all six sequences, enumerated in
row-major order (the last category varies fastest), so every run produces
the same combinations in the same order.
"""

import math
from functools import reduce
from operator import mul

import numpy as np
import pandas as pd

from saltsweep import config
from saltsweep.categories import (
    ALL_CATEGORIES,
    PARKING_CATEGORIES,
    ROAD_CATEGORIES,
    parse_category,
)
from saltsweep.exceptions import InvalidInput, SchemaMismatch
from saltsweep.logging_config import get_pipeline_logger

log = get_pipeline_logger(__name__)


def rate_sequence(start, stop, step):
    """Return ``start, start+step, ...`` up to but never past ``stop``.

    ``stop`` is included only when ``(stop - start)`` is a whole multiple of
    ``step``; otherwise the sequence ends at the last value below it
    (e.g. 88..130 step 10 -> 88, 98, 108, 118, 128).

    Raises
    ------
    InvalidInput
        Non-finite or negative bounds, non-positive step, or stop < start.
    """
    for name, value in (("start", start), ("stop", stop), ("step", step)):
        if not isinstance(value, (int, float, np.integer, np.floating)) or isinstance(value, bool):
            raise InvalidInput(f"Rate range {name} must be numeric, got {value!r}")
        if not math.isfinite(value):
            raise InvalidInput(f"Rate range {name} must be finite, got {value!r}")
    if start < 0:
        raise InvalidInput(f"Rate range start must be non-negative, got {start}")
    if step <= 0:
        raise InvalidInput(f"Rate step must be positive, got {step}")
    if stop < start:
        raise InvalidInput(f"Rate range stop ({stop}) is below start ({start})")

    n_steps = int(math.floor((stop - start) / step + config.RANGE_TOLERANCE))
    values = start + step * np.arange(n_steps + 1, dtype=float)
    return tuple(float(v) for v in values)


def generate_grids(parking_range=config.PARKING_RATE_RANGE,
                   road_range=config.ROAD_RATE_RANGE):
    """Build the rate grid for every land-use category.

    Parameters
    ----------
    parking_range : tuple
        (start, stop, step) shared by the four parking categories.
    road_range : tuple
        (start, stop, step) shared by the two road categories.

    Returns
    -------
    dict
        LandUseCategory -> tuple of rates, in declaration order.
    """
    parking_rates = rate_sequence(*parking_range)
    road_rates = rate_sequence(*road_range)

    grids = {}
    for category in ALL_CATEGORIES:
        if category in PARKING_CATEGORIES:
            grids[category] = parking_rates
        elif category in ROAD_CATEGORIES:
            grids[category] = road_rates

    log.debug(
        "Rate grids: parking=%s road=%s", list(parking_rates), list(road_rates),
    )
    return grids


def validate_grids(grids):
    """Check grid keys match the category set by name and every grid is usable.

    Keys are normalized with ``parse_category()``. A plain name and its enum
    member (``"Commercial"`` and ``LandUseCategory.COMMERCIAL``) are equal
    dict keys, so such a collision is already resolved by the dict before
    this runs; only variants that normalize together (e.g. ``" Commercial"``)
    are reported as duplicates.

    Returns
    -------
    dict
        New dict keyed by LandUseCategory in declaration order.

    Raises
    ------
    SchemaMismatch
        Unknown, duplicated, or missing categories.
    InvalidInput
        An empty grid, or a non-finite or negative rate.
    """
    normalized = {}
    for key, rates in grids.items():
        try:
            category = parse_category(key)
        except KeyError as exc:
            raise SchemaMismatch(f"Rate grid has unknown category {key!r}") from exc
        if category in normalized:
            raise SchemaMismatch(f"Rate grid lists category {category.value!r} twice")
        normalized[category] = rates

    missing = [c.value for c in ALL_CATEGORIES if c not in normalized]
    if missing:
        raise SchemaMismatch(f"Rate grid is missing categories: {missing}")

    ordered = {}
    for category in ALL_CATEGORIES:
        rates = np.asarray(list(normalized[category]), dtype=float)
        if rates.size == 0:
            raise InvalidInput(f"Rate grid for {category.value!r} is empty")
        if not np.all(np.isfinite(rates)):
            raise InvalidInput(f"Rate grid for {category.value!r} has non-finite rates")
        if np.any(rates < 0):
            raise InvalidInput(f"Rate grid for {category.value!r} has negative rates")
        ordered[category] = tuple(float(r) for r in rates)
    return ordered


def combination_count(grids):
    """Number of rate combinations: product of the grid lengths."""
    return reduce(mul, (len(rates) for rates in grids.values()), 1)


def cartesian_product(grids):
    """Enumerate every rate combination exactly once.

    Parameters
    ----------
    grids : mapping
        Category (enum or name) -> sequence of rates.

    Returns
    -------
    pd.DataFrame
        One column per category (named by category label, in declaration
        order) and one row per combination, row-major order.
    """
    ordered = validate_grids(grids)
    axes = [np.asarray(ordered[c], dtype=float) for c in ALL_CATEGORIES]

    # indexing="ij" + C-order ravel matches itertools.product ordering.
    mesh = np.meshgrid(*axes, indexing="ij")
    combos = pd.DataFrame(
        {c.value: m.ravel() for c, m in zip(ALL_CATEGORIES, mesh)}
    )

    expected = combination_count(ordered)
    if len(combos) != expected:
        raise RuntimeError(
            f"Cartesian product produced {len(combos)} rows, expected {expected}"
        )
    log.info("Enumerated %d rate combinations", len(combos))
    return combos
