"""Alert repository: broadcast alerts with GLOBAL or REGIONAL scope."""

import logging
from typing import Any, List, Mapping, Union

from base_repository import CollectionRepository, validate_model
from collection_store import ALERTS
from models import Alert, AlertCreate, AlertScope

logger = logging.getLogger(__name__)


class AlertRepository(CollectionRepository[Alert]):
    """CRUD over alerts; the region is kept consistent with the scope."""

    collection = ALERTS
    model_class = Alert
    resource_name = "Alert"

    def create(self, data: Union[AlertCreate, Mapping[str, Any]]) -> Alert:
        """
        Persist a new alert.

        A GLOBAL alert is stored without region even if one was supplied.

        Raises:
            ValidationError: On empty title/message or a REGIONAL alert without
                a known region
        """
        alert_input = validate_model(AlertCreate, data, "alert")
        return self._insert(Alert(**alert_input.model_dump()))

    def update(self, alert_id: str, changes: Union[AlertCreate, Mapping[str, Any]]) -> Alert:
        """
        Apply changes to an alert; id and creation timestamp are preserved.

        Raises:
            NotFoundError: If the alert does not exist
            ValidationError: If the merged alert is invalid
        """
        return self._merge(alert_id, changes)

    def delete(self, alert_id: str) -> Alert:
        """
        Remove an alert.

        Raises:
            NotFoundError: If the alert does not exist
        """
        return self._remove(alert_id)

    def get_by_region(self, region: str) -> List[Alert]:
        """GLOBAL alerts plus the REGIONAL alerts of the given region."""
        return self.filter(lambda a: a.visible_in(region))

    def get_active(self) -> List[Alert]:
        return self.filter(lambda a: a.active)

    def get_global(self) -> List[Alert]:
        return self.filter(lambda a: a.scope == AlertScope.GLOBAL)
