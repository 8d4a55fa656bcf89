"""Enumerations shared by the record models."""

from enum import Enum


class IncidentType(str, Enum):
    """Incident classification."""
    VITAL_EMERGENCY = "VITAL_EMERGENCY"
    CIVIL_PROBLEM = "CIVIL_PROBLEM"


class VitalEmergencySubType(str, Enum):
    """Sub types of life-threatening incidents."""
    ROAD_ACCIDENT = "ROAD_ACCIDENT"
    FIRE = "FIRE"
    FLOOD = "FLOOD"
    EARTHQUAKE = "EARTHQUAKE"
    INJURY = "INJURY"
    OTHER_EMERGENCY = "OTHER_EMERGENCY"


class CivilProblemSubType(str, Enum):
    """Sub types of infrastructure and municipal issues."""
    BROKEN_TRAFFIC_LIGHT = "BROKEN_TRAFFIC_LIGHT"
    ROAD_SIGN = "ROAD_SIGN"
    POTHOLE = "POTHOLE"
    PUBLIC_LIGHTING = "PUBLIC_LIGHTING"
    ABANDONED_WASTE = "ABANDONED_WASTE"
    MANHOLE_COVER = "MANHOLE_COVER"
    THREATENING_TREE = "THREATENING_TREE"
    WATER_LEAK = "WATER_LEAK"
    DANGEROUS_ANIMAL = "DANGEROUS_ANIMAL"
    OTHER_PROBLEM = "OTHER_PROBLEM"


SUB_TYPES = {
    IncidentType.VITAL_EMERGENCY: frozenset(s.value for s in VitalEmergencySubType),
    IncidentType.CIVIL_PROBLEM: frozenset(s.value for s in CivilProblemSubType),
}


class IncidentStatus(str, Enum):
    """Incident lifecycle states, in their usual order."""
    ALERT_RECEIVED = "ALERT_RECEIVED"
    RESPONDERS_EN_ROUTE = "RESPONDERS_EN_ROUTE"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"

    @property
    def rank(self) -> int:
        return STATUS_ORDER.index(self)


STATUS_ORDER = [
    IncidentStatus.ALERT_RECEIVED,
    IncidentStatus.RESPONDERS_EN_ROUTE,
    IncidentStatus.IN_PROGRESS,
    IncidentStatus.RESOLVED,
]


class AlertLevel(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class AlertScope(str, Enum):
    """GLOBAL alerts reach every region, REGIONAL alerts a single one."""
    GLOBAL = "GLOBAL"
    REGIONAL = "REGIONAL"


class GuideCategory(str, Enum):
    FIRE = "FIRE"
    EARTHQUAKE = "EARTHQUAKE"
    FIRST_AID = "FIRST_AID"
    FLOOD = "FLOOD"
    OTHER = "OTHER"


class Role(str, Enum):
    """Actor roles."""
    CITIZEN = "CITIZEN"
    REGIONAL_ADMIN = "REGIONAL_ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class DetectionType(str, Enum):
    """Image classifier outcome; UNKNOWN when nothing was recognised."""
    VITAL_EMERGENCY = "VITAL_EMERGENCY"
    CIVIL_PROBLEM = "CIVIL_PROBLEM"
    UNKNOWN = "UNKNOWN"
