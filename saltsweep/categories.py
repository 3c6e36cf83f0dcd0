"""
Land-use categories that receive road salt.

Categories are identified by name everywhere in the pipeline. Declaration
order matters for display and for the row-major order of the rate product,
never for matching inputs.
"""

from enum import Enum

from saltsweep import config


class LandUseCategory(str, Enum):
    """Salted surface classes: four parking (area) and two roadway (length)."""
    COMMERCIAL = "Commercial"
    INDUSTRIAL = "Industrial"
    INSTITUTIONAL = "Institutional"
    RESIDENTIAL = "Residential"
    ROAD_LOCAL = "Road-Local"
    ROAD_ARTERIAL_COLLECTOR = "Road-ArterialCollector"

    @property
    def is_area_based(self):
        return self in PARKING_CATEGORIES

    @property
    def is_length_based(self):
        return self in ROAD_CATEGORIES

    def __str__(self):
        return self.value


PARKING_CATEGORIES = (
    LandUseCategory.COMMERCIAL,
    LandUseCategory.INDUSTRIAL,
    LandUseCategory.INSTITUTIONAL,
    LandUseCategory.RESIDENTIAL,
)

ROAD_CATEGORIES = (
    LandUseCategory.ROAD_LOCAL,
    LandUseCategory.ROAD_ARTERIAL_COLLECTOR,
)

ALL_CATEGORIES = tuple(LandUseCategory)

CATEGORY_NAMES = [c.value for c in ALL_CATEGORIES]

# Long-table category labels in display order, Total last.
CATEGORY_LABELS = CATEGORY_NAMES + [config.TOTAL_SALT_LABEL]


def parse_category(name):
    """Return the LandUseCategory for *name* or raise KeyError."""
    if isinstance(name, LandUseCategory):
        return name
    try:
        return LandUseCategory(str(name).strip())
    except ValueError:
        raise KeyError(f"Unknown land-use category: {name!r}") from None
