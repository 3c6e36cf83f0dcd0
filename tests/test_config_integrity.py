"""
Tests for configuration integrity.

Verifies that:
1. Default rate ranges are well-formed and produce the expected grids
2. Category definitions line up with colours and rank labels
3. Output names are unique
"""

from saltsweep import config
from saltsweep.categories import (
    ALL_CATEGORIES,
    CATEGORY_LABELS,
    CATEGORY_NAMES,
    PARKING_CATEGORIES,
    ROAD_CATEGORIES,
)
from saltsweep.rate_grid import combination_count, generate_grids


class TestRateDefaults:

    def test_ranges_well_formed(self):
        for start, stop, step in (config.PARKING_RATE_RANGE, config.ROAD_RATE_RANGE):
            assert 0 <= start <= stop
            assert step > 0

    def test_default_grids(self):
        grids = generate_grids()
        assert grids[PARKING_CATEGORIES[0]] == (27.0, 37.0, 47.0, 57.0, 67.0, 77.0, 87.0)
        assert grids[ROAD_CATEGORIES[0]] == (88.0, 98.0, 108.0, 118.0, 128.0)

    def test_default_combination_count(self):
        assert combination_count(generate_grids()) == 7 ** 4 * 5 ** 2

    def test_tolerance_tiny(self):
        assert 0 < config.RANGE_TOLERANCE < 1e-6


class TestCategoryDefinitions:

    def test_six_categories(self):
        assert len(ALL_CATEGORIES) == 6
        assert len(set(CATEGORY_NAMES)) == 6

    def test_parking_and_road_partition(self):
        assert set(PARKING_CATEGORIES) | set(ROAD_CATEGORIES) == set(ALL_CATEGORIES)
        assert not set(PARKING_CATEGORIES) & set(ROAD_CATEGORIES)
        assert all(c.is_area_based for c in PARKING_CATEGORIES)
        assert all(c.is_length_based for c in ROAD_CATEGORIES)

    def test_total_label_last(self):
        assert CATEGORY_LABELS[-1] == config.TOTAL_SALT_LABEL
        assert config.TOTAL_SALT_LABEL not in CATEGORY_NAMES

    def test_every_label_has_colour(self):
        assert set(config.DEFAULT_CATEGORY_COLORS) == set(CATEGORY_LABELS)

    def test_one_rank_label_per_category(self):
        assert len(config.RANK_LABELS) == len(ALL_CATEGORIES)


class TestOutputNames:

    def test_output_files_unique(self):
        names = list(config.OUTPUT_FILES.values())
        assert len(names) == len(set(names))
        assert all(n.endswith(".csv") for n in names)

    def test_output_dirs_under_run_dir(self, tmp_path):
        dirs = config.get_output_dirs(str(tmp_path))
        assert set(dirs) == set(config.OUTPUT_DIRS)
        assert all(d.startswith(str(tmp_path)) for d in dirs.values())

    def test_summary_columns(self):
        assert config.SUMMARY_COLUMNS == ["Min", "Q1", "Median", "Mean", "Q3", "Max"]


class TestDocstringStyle:
    """Docstrings use NumPy sections, never Google-style ``Args:`` blocks."""

    def test_no_google_sections(self):
        import importlib
        import inspect
        import pkgutil

        import saltsweep

        offenders = []
        for info in pkgutil.walk_packages(saltsweep.__path__, "saltsweep."):
            module = importlib.import_module(info.name)
            for name, obj in inspect.getmembers(module):
                if getattr(obj, "__module__", None) != info.name:
                    continue
                doc = inspect.getdoc(obj) or ""
                if any(h in doc.splitlines() for h in ("Args:", "Returns:", "Raises:")):
                    offenders.append(f"{info.name}.{name}")
        assert offenders == []
