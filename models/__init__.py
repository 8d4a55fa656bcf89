"""
Record models for the incident reporting dashboard.

This package contains Pydantic models for persisted records and the
session context passed to the access layer.
"""

from .enums import (
    SUB_TYPES,
    STATUS_ORDER,
    AlertLevel,
    AlertScope,
    CivilProblemSubType,
    DetectionType,
    GuideCategory,
    IncidentStatus,
    IncidentType,
    Role,
    VitalEmergencySubType,
)
from .incident import Comment, Incident, IncidentCreate
from .alert import Alert, AlertCreate
from .guide import Guide, GuideCreate
from .regional_admin import AdminPermissions, RegionalAdmin, RegionalAdminCreate
from .actor import Actor
from .detection import DetectionResult

__all__ = [
    'SUB_TYPES',
    'STATUS_ORDER',
    'AlertLevel',
    'AlertScope',
    'CivilProblemSubType',
    'DetectionType',
    'GuideCategory',
    'IncidentStatus',
    'IncidentType',
    'Role',
    'VitalEmergencySubType',
    'Comment',
    'Incident',
    'IncidentCreate',
    'Alert',
    'AlertCreate',
    'Guide',
    'GuideCreate',
    'AdminPermissions',
    'RegionalAdmin',
    'RegionalAdminCreate',
    'Actor',
    'DetectionResult',
]
