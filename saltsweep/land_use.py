"""
Per-watershed land-use quantities: the fixed inputs of the sweep.

Parking categories are areas; road categories are lane lengths. Records
are matched to rate grids by category name, never by column position.
"""

import math
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from saltsweep import config
from saltsweep.categories import ALL_CATEGORIES, CATEGORY_NAMES, parse_category
from saltsweep.exceptions import InvalidInput, SchemaMismatch
from saltsweep.logging_config import get_pipeline_logger

log = get_pipeline_logger(__name__)


@dataclass(frozen=True)
class WatershedLandUse:
    """Land-use quantities of one watershed, keyed by LandUseCategory."""

    watershed: str
    quantities: dict = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, watershed, values):
        """Build a record from a name-keyed mapping (category label or enum).

        A label and its enum member are equal dict keys, so *values* can hold
        only one of them; keys that normalize to the same category
        (``"Commercial"`` and ``" Commercial"``) raise SchemaMismatch.
        """
        quantities = {}
        for key, value in values.items():
            try:
                category = parse_category(key)
            except KeyError as exc:
                raise SchemaMismatch(
                    f"Watershed {watershed!r} has unknown category column {key!r}"
                ) from exc
            if category in quantities:
                raise SchemaMismatch(
                    f"Watershed {watershed!r} lists category {category.value!r} twice"
                )
            quantities[category] = value
        return cls(watershed=str(watershed), quantities=quantities)

    def as_dict(self):
        """Category label -> quantity, in declaration order."""
        return {
            c.value: self.quantities[c] for c in ALL_CATEGORIES if c in self.quantities
        }

    def validated(self):
        """Return the six quantities as floats, raising on any bad value.

        Raises
        ------
        SchemaMismatch
            Categories differ from the expected six.
        InvalidInput
            A value is missing, non-numeric, non-finite, or negative.
        """
        missing = [c.value for c in ALL_CATEGORIES if c not in self.quantities]
        if missing:
            raise SchemaMismatch(
                f"Watershed {self.watershed!r} is missing categories: {missing}"
            )

        values = {}
        problems = []
        for category in ALL_CATEGORIES:
            raw = self.quantities[category]
            if raw is None or (isinstance(raw, float) and math.isnan(raw)) or raw is pd.NA:
                problems.append(f"{category.value}=missing")
                continue
            if isinstance(raw, bool) or not isinstance(raw, (int, float, np.integer, np.floating)):
                problems.append(f"{category.value}={raw!r} (non-numeric)")
                continue
            value = float(raw)
            if not math.isfinite(value):
                problems.append(f"{category.value}={raw!r} (non-finite)")
            elif value < 0:
                problems.append(f"{category.value}={raw!r} (negative)")
            else:
                values[category] = value

        if problems:
            raise InvalidInput(
                f"Watershed {self.watershed!r} has invalid land-use values: "
                + ", ".join(problems),
                watershed=self.watershed,
            )
        return values


def land_use_from_frame(df, watershed_col=config.WATERSHED_COL):
    """Convert a wide land-use table into WatershedLandUse records.

    Columns are matched to categories by name. Value problems (negative,
    missing, non-numeric) are kept as-is so they surface per watershed when
    the records are validated.

    Raises
    ------
    SchemaMismatch
        Missing watershed column, missing or unknown category columns, or
        duplicated watershed identifiers.
    """
    if watershed_col not in df.columns:
        raise SchemaMismatch(f"Land-use table has no {watershed_col!r} column")

    value_cols = [c for c in df.columns if c != watershed_col]
    missing = [name for name in CATEGORY_NAMES if name not in value_cols]
    unexpected = [c for c in value_cols if c not in CATEGORY_NAMES]
    if missing or unexpected:
        raise SchemaMismatch(
            f"Land-use columns do not match categories: "
            f"missing={missing}, unexpected={unexpected}"
        )

    duplicated = df[watershed_col][df[watershed_col].duplicated()].astype(str).unique().tolist()
    if duplicated:
        raise SchemaMismatch(f"Duplicate watershed identifiers: {duplicated}")

    records = []
    for row in df.to_dict(orient="records"):
        watershed = row.pop(watershed_col)
        values = {k: _parse_cell(v) for k, v in row.items()}
        records.append(WatershedLandUse.from_mapping(watershed, values))
    return records


def _parse_cell(value):
    """Numeric strings become floats; anything else is left for validation."""
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return value
    return value


def load_land_use_csv(path, watershed_col=config.WATERSHED_COL):
    """Read a land-use CSV (Watershed + six category columns)."""
    df = pd.read_csv(path, dtype={watershed_col: str})
    log.info("Loaded land use for %d watersheds from %s", len(df), path)
    return land_use_from_frame(df, watershed_col=watershed_col)


def load_watershed_areas_csv(path, watershed_col=config.WATERSHED_COL,
                             area_col=config.AREA_SOURCE_COL):
    """Read a Watershed -> drainage area lookup for presentation."""
    df = pd.read_csv(path, dtype={watershed_col: str})
    for col in (watershed_col, area_col):
        if col not in df.columns:
            raise SchemaMismatch(f"Watershed area table has no {col!r} column")
    if df[area_col].isna().any():
        missing = df.loc[df[area_col].isna(), watershed_col].tolist()
        raise InvalidInput(f"Missing drainage area for watersheds: {missing}")
    areas = dict(zip(df[watershed_col], df[area_col].astype(float)))
    log.info("Loaded drainage areas for %d watersheds", len(areas))
    return areas
