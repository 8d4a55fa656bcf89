"""
Guide repository: prevention guides.

Guides have no state machine. Editing a guide replaces it: the old record
is removed and a new one is created with a new id and creation timestamp.
Links to the old id do not survive an edit.
"""

import logging
from typing import Any, Mapping, Union

from base_repository import CollectionRepository, validate_model
from collection_store import GUIDES
from models import Guide, GuideCreate

logger = logging.getLogger(__name__)


class GuideRepository(CollectionRepository[Guide]):
    """Create, read, replace and delete prevention guides."""

    collection = GUIDES
    model_class = Guide
    resource_name = "Guide"

    def create(self, data: Union[GuideCreate, Mapping[str, Any]]) -> Guide:
        """
        Persist a new guide.

        Raises:
            ValidationError: On empty title/body or unknown category
        """
        guide_input = validate_model(GuideCreate, data, "guide")
        return self._insert(Guide(**guide_input.model_dump()))

    def replace(self, guide_id: str, data: Union[GuideCreate, Mapping[str, Any]]) -> Guide:
        """
        Replace a guide with new content.

        The replacement is a new record (new id, new creation timestamp)
        appended after the existing guides.

        Raises:
            NotFoundError: If the guide does not exist
            ValidationError: If the new content is invalid
        """
        guide_input = validate_model(GuideCreate, data, "guide")
        records, version = self._load()
        index = self._index_of(records, guide_id)
        records.pop(index)
        replacement = Guide(**guide_input.model_dump())
        records.append(replacement)
        self._save(records, version)
        logger.info(f"Replaced guide {guide_id} with {replacement.id}")
        return replacement

    def delete(self, guide_id: str) -> Guide:
        """
        Remove a guide.

        Raises:
            NotFoundError: If the guide does not exist
        """
        return self._remove(guide_id)
