"""
Identity and access rules for the incident dashboard.

Resolves the actor of a session and decides which records that actor may
see or mutate:
- citizens see the incidents they reported
- regional admins see and manage the incidents and alerts of their region
- super admins see everything and manage the admin directory
"""

import logging
import time
from typing import List, Optional

from alert_repository import AlertRepository
from exceptions import AccessDeniedError
from incident_repository import IncidentRepository
from models import Actor, Alert, AlertScope, Incident, Role
from regional_admin_directory import RegionalAdminDirectory
from regions import DEFAULT_REGION

logger = logging.getLogger(__name__)

PERMISSIONS = ("read", "edit", "delete")


def resolve_actor(
    full_name: str,
    role: Optional[str] = None,
    region: Optional[str] = None,
    user_id: Optional[str] = None
) -> Actor:
    """
    Build the session actor from login details.

    A requested REGIONAL_ADMIN role is kept, scoped to the given region or
    the default region. A SUPER_ADMIN role, or a name containing "admin",
    gives a super admin. Anyone else is a citizen.
    """
    user_id = user_id or str(int(time.time() * 1000))
    requested = Role(role) if role else None

    if requested == Role.REGIONAL_ADMIN:
        actor = Actor.regional_admin(user_id, region or DEFAULT_REGION, full_name=full_name)
    elif requested == Role.SUPER_ADMIN or "admin" in full_name.lower():
        actor = Actor.super_admin(user_id, full_name=full_name)
    else:
        actor = Actor.citizen(user_id, full_name=full_name, region=region)

    logger.info(f"Resolved actor {user_id} as {actor.role.value}")
    return actor


class AccessPolicy:
    """Role and region based visibility and mutation rules."""

    def __init__(
        self,
        admin_directory: Optional[RegionalAdminDirectory] = None,
        enforce_admin_permissions: bool = False
    ):
        self.admin_directory = admin_directory
        self.enforce_admin_permissions = enforce_admin_permissions

    # -- visibility ------------------------------------------------------

    def can_see_incident(self, actor: Actor, incident: Incident) -> bool:
        if actor.is_super_admin:
            return True
        if actor.is_regional_admin:
            return incident.region is not None and incident.region == actor.region
        return incident.user_id is not None and incident.user_id == actor.user_id

    def visible_incidents(self, actor: Actor, incidents: IncidentRepository) -> List[Incident]:
        """Incidents the actor may see, before any in-memory filter."""
        if actor.is_super_admin:
            return incidents.get_all()
        if actor.is_regional_admin:
            return incidents.get_by_region(actor.region)
        return incidents.get_by_user_id(actor.user_id)

    def visible_alerts(self, actor: Actor, alerts: AlertRepository) -> List[Alert]:
        """Regional admins see GLOBAL alerts and their region's; others see all."""
        if actor.is_regional_admin:
            return alerts.get_by_region(actor.region)
        return alerts.get_all()

    # -- gates -----------------------------------------------------------

    def require_admin(self, actor: Actor):
        if not actor.is_admin:
            raise AccessDeniedError(
                "Administrator access required",
                required_role=Role.REGIONAL_ADMIN.value
            )

    def require_super_admin(self, actor: Actor):
        if not actor.is_super_admin:
            raise AccessDeniedError(
                "Super administrator access required",
                required_role=Role.SUPER_ADMIN.value
            )

    def require_incident_access(self, actor: Actor, incident: Incident):
        """Raise unless the actor may see the incident."""
        if not self.can_see_incident(actor, incident):
            logger.warning(f"Actor {actor.user_id} denied access to incident {incident.id}")
            raise AccessDeniedError(f"Incident {incident.id} is outside your scope")

    def require_permission(self, actor: Actor, permission: str):
        """
        Check a directory permission flag for regional admins.

        Only enforced when enforce_admin_permissions is on; super admins are
        never restricted.
        """
        if permission not in PERMISSIONS:
            raise ValueError(f"Unknown permission {permission!r}")
        if not self.enforce_admin_permissions or not actor.is_regional_admin:
            return
        profile = self.admin_directory.get_by_id(actor.user_id) if self.admin_directory else None
        if profile is None or not profile.active or not getattr(profile.permissions, permission):
            raise AccessDeniedError(f"Missing '{permission}' permission")

    def require_alert_management(self, actor: Actor, scope: AlertScope, region: Optional[str]):
        """Regional admins may only manage REGIONAL alerts of their own region."""
        self.require_admin(actor)
        if actor.is_regional_admin and (scope != AlertScope.REGIONAL or region != actor.region):
            raise AccessDeniedError("Regional admins can only manage alerts of their own region")
