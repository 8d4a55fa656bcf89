"""
Dashboard service for the admin console and the citizen history page.

Composes the repositories with the access policy: every listing starts from
what the actor may see (a regional admin's region, a citizen's own reports)
and only then applies the in-memory filters.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from access_control import AccessPolicy
from alert_repository import AlertRepository
from guide_repository import GuideRepository
from incident_repository import IncidentRepository
from base_repository import validate_model
from models import (
    Actor,
    Alert,
    AlertCreate,
    Guide,
    GuideCreate,
    Incident,
    IncidentStatus,
    IncidentType,
    RegionalAdmin,
    RegionalAdminCreate,
)
from regional_admin_directory import RegionalAdminDirectory

logger = logging.getLogger(__name__)

ALL = "ALL"


class IncidentFilters(BaseModel):
    """In-memory filters of the incident list; "ALL" disables a filter."""
    type: str = Field(default=ALL)
    status: str = Field(default=ALL)
    region: str = Field(default=ALL)
    search: str = Field(default="")


def filter_incidents(incidents: List[Incident], filters: IncidentFilters) -> List[Incident]:
    """Apply type, status, region and free-text filters."""
    filtered = incidents
    if filters.type != ALL:
        filtered = [i for i in filtered if i.type.value == filters.type]
    if filters.status != ALL:
        filtered = [i for i in filtered if i.status.value == filters.status]
    if filters.region != ALL:
        filtered = [i for i in filtered if i.region == filters.region]
    if filters.search:
        filtered = [i for i in filtered if i.matches_text(filters.search)]
    return filtered


class DashboardService:
    """Access-checked operations behind the dashboard views."""

    def __init__(
        self,
        incidents: IncidentRepository,
        alerts: AlertRepository,
        guides: GuideRepository,
        admins: RegionalAdminDirectory,
        policy: AccessPolicy
    ):
        self.incidents = incidents
        self.alerts = alerts
        self.guides = guides
        self.admins = admins
        self.policy = policy

    # -- incidents -------------------------------------------------------

    def list_incidents(self, actor: Actor, filters: Optional[IncidentFilters] = None) -> List[Incident]:
        """Incidents visible to the actor, filtered, newest first."""
        visible = self.policy.visible_incidents(actor, self.incidents)
        result = filter_incidents(visible, filters or IncidentFilters())
        return sorted(result, key=lambda i: i.created_at, reverse=True)

    def history(
        self,
        actor: Actor,
        incident_type: str = ALL,
        status: str = ALL
    ) -> List[Incident]:
        """The actor's own reports, newest first."""
        own = self.incidents.get_by_user_id(actor.user_id)
        filtered = filter_incidents(own, IncidentFilters(type=incident_type, status=status))
        return sorted(filtered, key=lambda i: i.created_at, reverse=True)

    def _incident_for_admin(self, actor: Actor, incident_id: str) -> Incident:
        self.policy.require_admin(actor)
        incident = self.incidents.get_by_id(incident_id)
        if incident is not None:
            self.policy.require_incident_access(actor, incident)
        return incident

    def update_status(self, actor: Actor, incident_id: str, status: Union[IncidentStatus, str]) -> Incident:
        self._incident_for_admin(actor, incident_id)
        self.policy.require_permission(actor, "edit")
        return self.incidents.update_status(incident_id, status)

    def add_comment(self, actor: Actor, incident_id: str, message: str) -> Incident:
        self._incident_for_admin(actor, incident_id)
        self.policy.require_permission(actor, "edit")
        return self.incidents.add_comment(incident_id, actor.full_name or "Admin", message)

    def assign(self, actor: Actor, incident_id: str, admin_id: str) -> Incident:
        self._incident_for_admin(actor, incident_id)
        self.policy.require_permission(actor, "edit")
        return self.incidents.assign(incident_id, admin_id)

    def assignment_targets(self, actor: Actor) -> List[RegionalAdmin]:
        """Active admins an incident can be assigned to."""
        self.policy.require_admin(actor)
        return self.admins.get_active(actor.region if actor.is_regional_admin else None)

    # -- alerts ----------------------------------------------------------

    def list_alerts(self, actor: Actor) -> List[Alert]:
        return self.policy.visible_alerts(actor, self.alerts)

    def active_alerts(self, actor: Actor) -> List[Alert]:
        """Active alerts for the actor's region (all active alerts if none)."""
        if actor.region is None and not actor.is_regional_admin:
            return self.alerts.get_active()
        return [a for a in self.alerts.get_by_region(actor.region) if a.active]

    def create_alert(self, actor: Actor, data: Union[AlertCreate, Mapping[str, Any]]) -> Alert:
        alert_input = validate_model(AlertCreate, data, "alert")
        self.policy.require_alert_management(actor, alert_input.scope, alert_input.region)
        return self.alerts.create(alert_input)

    def update_alert(self, actor: Actor, alert_id: str, changes: Mapping[str, Any]) -> Alert:
        existing = self.alerts.get_by_id(alert_id)
        if existing is not None:
            self.policy.require_alert_management(actor, existing.scope, existing.region)
            # The alert must also stay within scope after the change
            self.policy.require_alert_management(
                actor,
                changes.get("scope", existing.scope),
                changes.get("region", existing.region),
            )
        self.policy.require_permission(actor, "edit")
        return self.alerts.update(alert_id, changes)

    def delete_alert(self, actor: Actor, alert_id: str) -> Alert:
        existing = self.alerts.get_by_id(alert_id)
        if existing is not None:
            self.policy.require_alert_management(actor, existing.scope, existing.region)
        self.policy.require_permission(actor, "delete")
        return self.alerts.delete(alert_id)

    # -- guides ----------------------------------------------------------

    def create_guide(self, actor: Actor, data: Union[GuideCreate, Mapping[str, Any]]) -> Guide:
        self.policy.require_admin(actor)
        return self.guides.create(data)

    def replace_guide(self, actor: Actor, guide_id: str, data: Union[GuideCreate, Mapping[str, Any]]) -> Guide:
        self.policy.require_admin(actor)
        self.policy.require_permission(actor, "edit")
        return self.guides.replace(guide_id, data)

    def delete_guide(self, actor: Actor, guide_id: str) -> Guide:
        self.policy.require_admin(actor)
        self.policy.require_permission(actor, "delete")
        return self.guides.delete(guide_id)

    # -- admin directory -------------------------------------------------

    def list_admins(self, actor: Actor) -> List[RegionalAdmin]:
        self.policy.require_super_admin(actor)
        return self.admins.get_all()

    def create_admin(self, actor: Actor, data: Union[RegionalAdminCreate, Mapping[str, Any]]) -> RegionalAdmin:
        self.policy.require_super_admin(actor)
        return self.admins.create(data)

    def update_admin(self, actor: Actor, admin_id: str, changes: Mapping[str, Any]) -> RegionalAdmin:
        self.policy.require_super_admin(actor)
        return self.admins.update(admin_id, changes)

    def delete_admin(self, actor: Actor, admin_id: str) -> RegionalAdmin:
        self.policy.require_super_admin(actor)
        return self.admins.delete(admin_id)

    # -- statistics ------------------------------------------------------

    def stats(self, actor: Actor) -> Dict[str, int]:
        """Counters shown on the admin console."""
        self.policy.require_admin(actor)
        incidents = self.policy.visible_incidents(actor, self.incidents)
        alerts = self.alerts.get_all()
        return {
            "total_incidents": len(incidents),
            "active_incidents": sum(1 for i in incidents if not i.is_resolved),
            "resolved_incidents": sum(1 for i in incidents if i.is_resolved),
            "vital_emergencies": sum(1 for i in incidents if i.type == IncidentType.VITAL_EMERGENCY),
            "civil_problems": sum(1 for i in incidents if i.type == IncidentType.CIVIL_PROBLEM),
            "total_alerts": len(alerts),
            "active_alerts": sum(1 for a in alerts if a.active),
            "total_guides": len(self.guides.get_all()),
            "total_admins": len(self.admins.get_all()) if actor.is_super_admin else 0,
        }
