"""
Region registry for the incident reporting dashboard.

The ordered list of administrative regions is the single source of region
names for validation, filtering and dropdown population.
"""

from typing import Optional


REGIONS = (
    "Tanger-Tétouan-Al Hoceïma",
    "L'Oriental",
    "Fès-Meknès",
    "Rabat-Salé-Kénitra",
    "Béni Mellal-Khénifra",
    "Casablanca-Settat",
    "Marrakech-Safi",
    "Drâa-Tafilalet",
    "Souss-Massa",
    "Guelmim-Oued Noun",
    "Laâyoune-Sakia El Hamra",
    "Dakhla-Oued Ed-Dahab",
)

DEFAULT_REGION = "Casablanca-Settat"


def is_valid_region(region: Optional[str]) -> bool:
    """Check whether a region name is part of the registry (exact match)."""
    return region in REGIONS
