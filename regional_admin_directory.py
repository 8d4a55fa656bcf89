"""
Regional admin directory.

Administrator profiles used as assignment targets. Permission flags are
stored as descriptive metadata; the access layer only enforces them when
enforce_admin_permissions is switched on.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from base_repository import CollectionRepository, validate_model
from collection_store import REGIONAL_ADMINS
from models import RegionalAdmin, RegionalAdminCreate

logger = logging.getLogger(__name__)


class RegionalAdminDirectory(CollectionRepository[RegionalAdmin]):
    """CRUD over regional admin profiles."""

    collection = REGIONAL_ADMINS
    model_class = RegionalAdmin
    resource_name = "RegionalAdmin"

    def create(self, data: Union[RegionalAdminCreate, Mapping[str, Any]]) -> RegionalAdmin:
        """
        Persist a new regional admin.

        Raises:
            ValidationError: On missing name/email/phone or unknown region
        """
        admin_input = validate_model(RegionalAdminCreate, data, "regional admin")
        return self._insert(RegionalAdmin(**admin_input.model_dump()))

    def update(self, admin_id: str, changes: Union[RegionalAdminCreate, Mapping[str, Any]]) -> RegionalAdmin:
        """
        Apply changes to a profile; id and creation timestamp are preserved.

        Raises:
            NotFoundError: If the admin does not exist
            ValidationError: If the merged profile is invalid
        """
        return self._merge(admin_id, changes)

    def delete(self, admin_id: str) -> RegionalAdmin:
        """
        Remove a profile. Incidents assigned to it keep the stale id.

        Raises:
            NotFoundError: If the admin does not exist
        """
        return self._remove(admin_id)

    def get_active(self, region: Optional[str] = None) -> List[RegionalAdmin]:
        """Active admins, the eligible assignment targets, optionally for one region."""
        return self.filter(lambda a: a.active and (region is None or a.region == region))

    def resolve_assignee(self, admin_id: Optional[str]) -> Optional[Dict[str, str]]:
        """Display name and region of an assignee, or None if unknown."""
        if not admin_id:
            return None
        admin = self.get_by_id(admin_id)
        if admin is None:
            logger.debug(f"Assignee {admin_id} not found in directory")
            return None
        return {"id": admin.id, "full_name": admin.full_name, "region": admin.region}
