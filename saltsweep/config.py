"""
Centralized configuration for the road-salt scenario sweep.

All sweep parameters, column names, unit conversions, and output paths are
defined here. Presentation defaults (colours, DPI) also live here but are
passed into the plotting functions explicitly; the computational core never
reads them.
"""

import os

# ─── RATE GRID PARAMETERS ────────────────────────────────────────────────
# (start, stop, step). Sequences start at `start` and never exceed `stop`.
# Parking rates are grams of salt per unit area; road rates are kilograms
# per lane-length unit.
PARKING_RATE_RANGE = (27, 90, 10)
ROAD_RATE_RANGE = (88, 130, 10)

# Float tolerance when deciding whether `stop` lands exactly on the grid.
RANGE_TOLERANCE = 1e-10

# ─── UNIT CONVERSION ─────────────────────────────────────────────────────
# Parking products are in grams; divide to report kilograms.
GRAMS_PER_KILOGRAM = 1000.0

# ─── TABLE COLUMN NAMES ──────────────────────────────────────────────────
WATERSHED_COL = "Watershed"
CATEGORY_COL = "Land_Use_Category"
SALT_COL = "Salt_Applied"
AREA_COL = "Watershed_Area"
TOTAL_COL = "TotalSalt"

# Label for the synthetic total category in the long table and summaries.
TOTAL_SALT_LABEL = "Total Salt"

# ─── SUMMARY STATISTICS ──────────────────────────────────────────────────
# Quantiles use linear interpolation (pandas/numpy default).
QUANTILE_METHOD = "linear"
SUMMARY_COLUMNS = ["Min", "Q1", "Median", "Mean", "Q3", "Max"]
PERCENT_DECIMALS = 2

RANK_LABELS = ["First", "Second", "Third", "Fourth", "Fifth", "Sixth"]

# ─── PARALLELISM ─────────────────────────────────────────────────────────
DEFAULT_MAX_WORKERS = 1

# ─── VISUALIZATION PARAMETERS ────────────────────────────────────────────
FIGURE_DPI = 300

# Keyed by category label so the palette survives any column reordering.
DEFAULT_CATEGORY_COLORS = {
    "Commercial": "#e41a1c",
    "Industrial": "#377eb8",
    "Institutional": "#4daf4a",
    "Residential": "#984ea3",
    "Road-Local": "#ff7f00",
    "Road-ArterialCollector": "#a65628",
    TOTAL_SALT_LABEL: "#4d4d4d",
}

# ─── INPUT / OUTPUT PATHS ────────────────────────────────────────────────
DEFAULT_LAND_USE_PATH = os.path.join("data", "watershed_land_use.csv")
DEFAULT_AREAS_PATH = None
DEFAULT_OUTPUT_DIR = "./outputs"

AREA_SOURCE_COL = "Area"

OUTPUT_DIRS = {
    "csv": "csv",
    "figures": "figures",
}

OUTPUT_FILES = {
    "scenario_results": "scenario_results.csv",
    "category_summary": "category_summary.csv",
    "category_proportions": "category_proportions.csv",
    "ranked_summary": "ranked_summary.csv",
}


def get_output_dirs(output_dir):
    """Return absolute-ish paths for every output subdirectory of a run."""
    return {key: os.path.join(output_dir, sub) for key, sub in OUTPUT_DIRS.items()}
