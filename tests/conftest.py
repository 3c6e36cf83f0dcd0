"""
Shared fixtures for sweep tests.

Small, hand-checkable rate grids and watershed land-use records so each
test module can verify pipeline logic against known inputs.
"""

import pandas as pd
import pytest

from saltsweep.categories import ALL_CATEGORIES, CATEGORY_NAMES, LandUseCategory
from saltsweep.land_use import WatershedLandUse
from saltsweep.logging_config import reset_logging


@pytest.fixture
def single_rate_grids():
    """One rate (50) per category: exactly one scenario."""
    return {c: (50,) for c in ALL_CATEGORIES}


@pytest.fixture
def small_grids():
    """Two parking rates and three road rates: 2**4 * 3**2 = 144 scenarios."""
    grids = {}
    for c in ALL_CATEGORIES:
        grids[c] = (27, 37) if c.is_area_based else (88, 98, 108)
    return grids


@pytest.fixture
def commercial_only_watersheds():
    """Two watersheds with 1000 units of commercial parking and nothing else."""
    values = {name: 0.0 for name in CATEGORY_NAMES}
    values[LandUseCategory.COMMERCIAL.value] = 1000.0
    return [
        WatershedLandUse.from_mapping("WS-A", values),
        WatershedLandUse.from_mapping("WS-B", values),
    ]


@pytest.fixture
def mixed_watersheds():
    """Two watersheds with every category populated."""
    return [
        WatershedLandUse.from_mapping("Upper", {
            "Commercial": 12000.0,
            "Industrial": 8000.0,
            "Institutional": 3000.0,
            "Residential": 20000.0,
            "Road-Local": 45.0,
            "Road-ArterialCollector": 18.0,
        }),
        WatershedLandUse.from_mapping("Lower", {
            "Commercial": 5000.0,
            "Industrial": 0.0,
            "Institutional": 1500.0,
            "Residential": 9000.0,
            "Road-Local": 30.0,
            "Road-ArterialCollector": 7.5,
        }),
    ]


@pytest.fixture
def land_use_frame():
    """Wide land-use table with two valid watersheds and one negative value."""
    return pd.DataFrame({
        "Watershed": ["Upper", "Lower", "Broken"],
        "Commercial": [12000.0, 5000.0, 100.0],
        "Industrial": [8000.0, 0.0, -5.0],
        "Institutional": [3000.0, 1500.0, 10.0],
        "Residential": [20000.0, 9000.0, 10.0],
        "Road-Local": [45.0, 30.0, 1.0],
        "Road-ArterialCollector": [18.0, 7.5, 1.0],
    })


@pytest.fixture
def land_use_csv(tmp_path, land_use_frame):
    path = tmp_path / "land_use.csv"
    land_use_frame.to_csv(path, index=False)
    return str(path)


@pytest.fixture
def valid_land_use_csv(tmp_path, land_use_frame):
    path = tmp_path / "land_use_valid.csv"
    land_use_frame[land_use_frame["Watershed"] != "Broken"].to_csv(path, index=False)
    return str(path)


@pytest.fixture
def areas_csv(tmp_path):
    path = tmp_path / "areas.csv"
    pd.DataFrame({"Watershed": ["Upper", "Lower", "Broken"],
                  "Area": [42.5, 17.0, 3.0]}).to_csv(path, index=False)
    return str(path)


@pytest.fixture
def clean_logging():
    """Drop handlers added by a pipeline run (file handles in tmp dirs)."""
    yield
    reset_logging()
