"""
Default content seeded into empty storage.

Seeding is idempotent: a collection is only written when it does not exist
yet, so prior state is never clobbered.
"""

import logging
import re
import unicodedata
from typing import Any, Dict, List

from collection_store import ALERTS, GUIDES, REGIONAL_ADMINS, CollectionStore
from models import (
    Alert,
    AlertLevel,
    AlertScope,
    Guide,
    GuideCategory,
    RegionalAdmin,
)
from regions import REGIONS

logger = logging.getLogger(__name__)


def _slug(region: str) -> str:
    ascii_name = unicodedata.normalize("NFKD", region).encode("ascii", "ignore").decode()
    return re.sub(r"[^a-z0-9]+", "-", ascii_name.lower()).strip("-")


def default_regional_admins() -> List[RegionalAdmin]:
    """One active regional admin per registry region."""
    return [
        RegionalAdmin(
            full_name=f"Admin {region}",
            email=f"admin.{_slug(region)}@urgences.ma",
            phone=f"+212 5 22 00 {index:02d} 00",
            region=region,
        )
        for index, region in enumerate(REGIONS, start=1)
    ]


def default_alerts() -> List[Alert]:
    return [
        Alert(
            title="Heat wave warning",
            message="Very high temperatures expected this week. Stay hydrated and avoid "
                    "outdoor activity between noon and 4 pm.",
            level=AlertLevel.HIGH,
            scope=AlertScope.GLOBAL,
        ),
        Alert(
            title="Forest fire risk",
            message="Dry conditions and strong winds. Barbecues and open fires are prohibited "
                    "near forested areas.",
            level=AlertLevel.CRITICAL,
            scope=AlertScope.REGIONAL,
            region="Tanger-Tétouan-Al Hoceïma",
        ),
        Alert(
            title="Heavy rain expected",
            message="Storms are forecast. Avoid low-lying roads and keep clear of riverbeds.",
            level=AlertLevel.MEDIUM,
            scope=AlertScope.REGIONAL,
            region="Casablanca-Settat",
        ),
    ]


def default_guides() -> List[Guide]:
    return [
        Guide(
            title="What to do in case of fire",
            body="Raise the alarm and call 15 or 150. Leave the building without using "
                 "elevators, close doors behind you and stay low under smoke.",
            category=GuideCategory.FIRE,
        ),
        Guide(
            title="Earthquake safety",
            body="Drop, cover and hold on. Stay away from windows. Once the shaking stops, "
                 "leave the building and move to an open area.",
            category=GuideCategory.EARTHQUAKE,
        ),
        Guide(
            title="Basic first aid",
            body="Secure the area, check breathing, call for help and apply pressure to "
                 "bleeding wounds. Do not move an injured person unless in danger.",
            category=GuideCategory.FIRST_AID,
        ),
        Guide(
            title="Flood preparedness",
            body="Move to higher ground, never walk or drive through flood water and switch "
                 "off electricity if water enters your home.",
            category=GuideCategory.FLOOD,
        ),
    ]


def _encode(records) -> List[Dict[str, Any]]:
    return [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in records]


def initialize_storage(store: CollectionStore) -> List[str]:
    """
    Seed default admins, alerts and guides into collections that do not exist.

    Returns:
        Names of the collections that were seeded
    """
    defaults = {
        REGIONAL_ADMINS: default_regional_admins,
        ALERTS: default_alerts,
        GUIDES: default_guides,
    }
    seeded = []
    for collection, factory in defaults.items():
        if store.exists(collection):
            logger.debug(f"Collection {collection} already present, not seeding")
            continue
        records = factory()
        store.save_all(collection, _encode(records))
        seeded.append(collection)
        logger.info(f"Seeded {len(records)} default records into {collection}")
    return seeded
