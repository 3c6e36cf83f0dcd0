"""
Scenario evaluation: salt mass for every rate combination of one watershed.

Parking products (g/area x area) are converted to kilograms; road products
(kg/lane-length x lane-length) are already in kilograms.
"""

import numpy as np
import pandas as pd

from saltsweep import config
from saltsweep.categories import ALL_CATEGORIES, CATEGORY_NAMES
from saltsweep.exceptions import InvalidInput, SchemaMismatch
from saltsweep.logging_config import get_pipeline_logger

log = get_pipeline_logger(__name__)


def check_combination_columns(combinations):
    """Raise SchemaMismatch unless the columns are exactly the six categories."""
    columns = [str(c) for c in combinations.columns]
    missing = [name for name in CATEGORY_NAMES if name not in columns]
    unexpected = [c for c in columns if c not in CATEGORY_NAMES]
    if missing or unexpected:
        raise SchemaMismatch(
            f"Rate combinations do not match land-use categories: "
            f"missing={missing}, unexpected={unexpected}"
        )


def evaluate(watershed_land_use, combinations):
    """Compute per-category and total salt for every rate combination.

    Parameters
    ----------
    watershed_land_use : WatershedLandUse
        Record for one watershed.
    combinations : pd.DataFrame
        Output of ``cartesian_product()``, one column per category label.

    Returns
    -------
    pd.DataFrame
        The six category columns (kg of salt) plus ``TotalSalt``, rows in
        the same order as *combinations*.

    Raises
    ------
    SchemaMismatch
        Category sets disagree.
    InvalidInput
        Negative, missing, or non-numeric land-use values (checked before
        any multiplication).
    """
    check_combination_columns(combinations)
    quantities = watershed_land_use.validated()

    out = {}
    for category in ALL_CATEGORIES:
        rates = combinations[category.value].to_numpy(dtype=float)
        if np.isnan(rates).any():
            raise InvalidInput(
                f"Rate combinations contain missing {category.value!r} rates",
                watershed=watershed_land_use.watershed,
            )
        salt = rates * quantities[category]
        if category.is_area_based:
            salt = salt / config.GRAMS_PER_KILOGRAM
        out[category.value] = salt

    result = pd.DataFrame(out, index=combinations.index)
    result[config.TOTAL_COL] = result[CATEGORY_NAMES].sum(axis=1)
    log.debug(
        "Evaluated %d scenarios for watershed %s",
        len(result), watershed_land_use.watershed,
        extra={"watershed": watershed_land_use.watershed},
    )
    return result
