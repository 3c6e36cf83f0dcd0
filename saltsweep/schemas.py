"""
Pandera DataFrame schemas for pipeline validation gates.

Declarative checks on the land-use input and on every table the sweep
produces, covering structure (columns, types) and data sanity
(non-negative masses, ordered quantiles).

Usage:
    from saltsweep.schemas import ResultTableSchema
    ResultTableSchema.validate(df)  # raises pa.errors.SchemaError on failure
"""

import pandera as pa
from pandera import Check, Column, DataFrameSchema

from saltsweep import config
from saltsweep.categories import CATEGORY_LABELS, CATEGORY_NAMES
from saltsweep.exceptions import InvalidInput


# ── Land-use input ──────────────────────────────────────────────────────

LandUseSchema = DataFrameSchema(
    columns={
        config.WATERSHED_COL: Column(str, nullable=False, unique=True),
        **{
            name: Column(float, Check.greater_than_or_equal_to(0.0),
                         nullable=False, coerce=True)
            for name in CATEGORY_NAMES
        },
    },
    # Extra or renamed category columns are a schema mismatch.
    strict=True,
    name="LandUseSchema",
)


# ── Long-form scenario results ──────────────────────────────────────────

ResultTableSchema = DataFrameSchema(
    columns={
        config.WATERSHED_COL: Column(str, nullable=False),
        config.CATEGORY_COL: Column(str, Check.isin(CATEGORY_LABELS), nullable=False),
        config.SALT_COL: Column(float, Check.greater_than_or_equal_to(0.0), nullable=False),
    },
    # Allow the optional Watershed_Area column.
    strict=False,
    name="ResultTableSchema",
)


# ── Category summaries ─────────────────────────────────────────────────

def _quantiles_ordered(df):
    return (
        (df["Min"] <= df["Q1"]) & (df["Q1"] <= df["Median"])
        & (df["Median"] <= df["Q3"]) & (df["Q3"] <= df["Max"])
    )


CategorySummarySchema = DataFrameSchema(
    columns={
        config.WATERSHED_COL: Column(str, nullable=False),
        config.CATEGORY_COL: Column(str, Check.isin(CATEGORY_LABELS), nullable=False),
        **{
            stat: Column(float, Check.greater_than_or_equal_to(0.0), nullable=False)
            for stat in config.SUMMARY_COLUMNS
        },
    },
    checks=[Check(_quantiles_ordered, error="Min <= Q1 <= Median <= Q3 <= Max")],
    unique=[config.WATERSHED_COL, config.CATEGORY_COL],
    strict=False,
    name="CategorySummarySchema",
)


# ── Median proportions ─────────────────────────────────────────────────

ProportionSchema = DataFrameSchema(
    columns={
        config.WATERSHED_COL: Column(str, nullable=False),
        config.CATEGORY_COL: Column(str, Check.isin(CATEGORY_NAMES), nullable=False),
        "Percent": Column(float, Check.in_range(0.0, 100.0), nullable=False),
        "Rank": Column(int, Check.greater_than_or_equal_to(1), nullable=False, coerce=True),
    },
    strict=False,
    name="ProportionSchema",
)


# ── Convenience validation function ─────────────────────────────────────

def validate_schema(df, schema, step_name, strict=False):
    """Validate a DataFrame against a Pandera schema.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to validate.
    schema : pa.DataFrameSchema
        Schema to validate against.
    step_name : str
        Pipeline step name for messages.
    strict : bool
        If True, raise on failure. If False, return the messages.

    Returns
    -------
    list[str]
        Validation warning messages (empty if all pass).

    Raises
    ------
    InvalidInput
        Only if strict=True and validation fails.
    """
    warnings_list = []

    if df is None:
        msg = f"[{step_name}] DataFrame is None"
        if strict:
            raise InvalidInput(msg)
        return [msg]

    if len(df) == 0:
        msg = f"[{step_name}] DataFrame is empty (0 rows)"
        if strict:
            raise InvalidInput(msg)
        return [msg]

    try:
        schema.validate(df, lazy=True)
    except pa.errors.SchemaErrors as exc:
        for failure in exc.failure_cases.itertuples():
            warnings_list.append(
                f"[{step_name}] Schema violation: "
                f"column='{failure.column}' check='{failure.check}' "
                f"failure_case={failure.failure_case}"
            )

        if strict:
            raise InvalidInput(
                f"[{step_name}] Schema validation failed with "
                f"{len(warnings_list)} errors"
            ) from exc

    return warnings_list
