"""
Incident repository.

Owns the incidents collection: creation, region/user queries, status
changes, the append-only comment thread and assignment to regional staff.

Status is a free, admin-settable field. Any of the four states may be set
from any other unless forward-only transitions are switched on.
"""

import logging
from typing import Any, List, Mapping, Union

from base_repository import CollectionRepository, validate_model
from collection_store import CollectionStore, INCIDENTS
from exceptions import ValidationError
from models import Comment, Incident, IncidentCreate, IncidentStatus
from models.incident import utcnow

logger = logging.getLogger(__name__)


class IncidentRepository(CollectionRepository[Incident]):
    """CRUD, status, comment and assignment operations over incidents."""

    collection = INCIDENTS
    model_class = Incident
    resource_name = "Incident"

    def __init__(
        self,
        store: CollectionStore,
        optimistic_concurrency: bool = False,
        enforce_forward_status: bool = False
    ):
        super().__init__(store, optimistic_concurrency=optimistic_concurrency)
        self.enforce_forward_status = enforce_forward_status

    def create(self, data: Union[IncidentCreate, Mapping[str, Any]]) -> Incident:
        """
        Validate and persist a new incident.

        The record gets a fresh id, status ALERT_RECEIVED, an empty comment
        thread and the current time as creation timestamp.

        Raises:
            ValidationError: On empty description, sub type not matching the
                type, or any other invalid field
        """
        incident_input = validate_model(IncidentCreate, data, "incident")
        incident = Incident(**incident_input.model_dump())
        return self._insert(incident)

    def get_by_region(self, region: str) -> List[Incident]:
        """Incidents whose region equals the given region exactly."""
        return self.filter(lambda i: i.region is not None and i.region == region)

    def get_by_user_id(self, user_id: str) -> List[Incident]:
        """Incidents reported by the given user."""
        return self.filter(lambda i: i.user_id is not None and i.user_id == user_id)

    def update_status(self, incident_id: str, status: Union[IncidentStatus, str]) -> Incident:
        """
        Overwrite the status of an incident.

        Raises:
            NotFoundError: If the incident does not exist
            ValidationError: If the status is unknown, or moves backwards while
                forward-only transitions are enforced
        """
        try:
            new_status = IncidentStatus(status)
        except ValueError:
            raise ValidationError(
                f"Unknown incident status {status!r}",
                field_errors={"status": [f"must be one of {[s.value for s in IncidentStatus]}"]}
            )

        def apply(incident: Incident) -> Incident:
            if self.enforce_forward_status and new_status.rank < incident.status.rank:
                raise ValidationError(
                    f"Cannot move incident {incident_id} back from "
                    f"{incident.status.value} to {new_status.value}",
                    field_errors={"status": ["backward transitions are disabled"]}
                )
            return incident.model_copy(update={"status": new_status})

        updated = self._mutate(incident_id, apply)
        logger.info(f"Incident {incident_id} status set to {new_status.value}")
        return updated

    def add_comment(self, incident_id: str, author: str, message: str) -> Incident:
        """
        Append a comment to the incident's thread.

        Raises:
            NotFoundError: If the incident does not exist
            ValidationError: If the message is empty or whitespace-only
        """
        if not message or not message.strip():
            raise ValidationError(
                "Comment message must not be empty",
                field_errors={"message": ["must not be empty"]}
            )

        def apply(incident: Incident) -> Incident:
            timestamp = utcnow()
            if incident.comments and incident.comments[-1].timestamp > timestamp:
                # Keep the thread chronological even if the clock stepped back
                timestamp = incident.comments[-1].timestamp
            comment = Comment(author=author, message=message, timestamp=timestamp)
            return incident.model_copy(update={"comments": [*incident.comments, comment]})

        updated = self._mutate(incident_id, apply)
        logger.info(f"Comment added to incident {incident_id} by {author}")
        return updated

    def assign(self, incident_id: str, admin_id: str) -> Incident:
        """
        Record the regional admin responsible for an incident.

        The admin id is written as-is; checking that the admin exists and is
        active is up to the caller.

        Raises:
            NotFoundError: If the incident does not exist
        """
        updated = self._mutate(
            incident_id,
            lambda incident: incident.model_copy(update={"assigned_admin_id": admin_id})
        )
        logger.info(f"Incident {incident_id} assigned to admin {admin_id}")
        return updated
