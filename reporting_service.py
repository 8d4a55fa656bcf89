"""
Incident reporting workflow.

Turns a citizen's report form and uploaded attachments into a persisted
incident: attachments are encoded as Base64 data URLs, the region falls back
to the reporter's region or the configured default, and new vital
emergencies can be dispatched straight away.
"""

import base64
import logging
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from config import AppConfig
from exceptions import ValidationError
from image_classifier import UploadedFile, detect_incident_from_image
from incident_repository import IncidentRepository
from models import Actor, DetectionResult, DetectionType, Incident, IncidentStatus, IncidentType
from models.incident import ATTACHMENT_MEDIA_TYPES

logger = logging.getLogger(__name__)


class ReportForm(BaseModel):
    """What the reporter typed in; defaults to the centre of Casablanca."""
    sub_type: str = Field(default="", description="Selected sub type")
    latitude: float = Field(default=33.5731)
    longitude: float = Field(default=-7.5898)
    address: Optional[str] = Field(default=None)
    description: str = Field(default="")
    region: Optional[str] = Field(default=None)
    victim_count: Optional[int] = Field(default=None)
    danger_level: Optional[int] = Field(default=None)


def encode_attachment(upload: UploadedFile, max_bytes: int) -> str:
    """
    Encode an upload as a Base64 data URL.

    Raises:
        ValidationError: If the upload is not image/video/audio or too large
    """
    if upload.media_type not in ATTACHMENT_MEDIA_TYPES:
        raise ValidationError(
            f"Unsupported attachment type {upload.content_type}",
            field_errors={"attachments": [f"{upload.filename}: only image, video or audio"]}
        )
    if upload.size > max_bytes:
        raise ValidationError(
            f"Attachment {upload.filename} is larger than {max_bytes // (1024 * 1024)} MB",
            field_errors={"attachments": [f"{upload.filename}: too large"]}
        )
    payload = base64.b64encode(upload.data).decode("ascii")
    return f"data:{upload.content_type};base64,{payload}"


def apply_detection(
    form: ReportForm,
    detection: DetectionResult,
    expected_type: Optional[IncidentType] = None,
    threshold: float = 0.6
) -> ReportForm:
    """
    Fill the form from a classifier result.

    The result is used only when its confidence exceeds the threshold and,
    if expected_type is given, its type matches. It sets the sub type and
    provides a description when the reporter left it empty.
    """
    if detection.type == DetectionType.UNKNOWN or detection.confidence <= threshold:
        return form
    if expected_type is not None and detection.type.value != IncidentType(expected_type).value:
        return form
    return form.model_copy(update={
        "sub_type": detection.sub_type,
        "description": form.description or detection.description,
    })


class ReportingService:
    """Creates incidents from report forms."""

    def __init__(self, incidents: IncidentRepository, config: AppConfig):
        self.incidents = incidents
        self.config = config

    def report_vital_emergency(
        self,
        actor: Actor,
        form: ReportForm,
        attachments: Iterable[UploadedFile] = ()
    ) -> Incident:
        """Report a life-threatening incident, dispatching responders if enabled."""
        incident = self._report(actor, IncidentType.VITAL_EMERGENCY, form, attachments)
        if self.config.auto_dispatch_vital_emergencies:
            incident = self.incidents.update_status(incident.id, IncidentStatus.RESPONDERS_EN_ROUTE)
        return incident

    def report_civil_problem(
        self,
        actor: Actor,
        form: ReportForm,
        attachments: Iterable[UploadedFile] = ()
    ) -> Incident:
        """Report an infrastructure or municipal problem."""
        form = form.model_copy(update={"victim_count": None, "danger_level": None})
        return self._report(actor, IncidentType.CIVIL_PROBLEM, form, attachments)

    async def suggest_from_image(
        self,
        form: ReportForm,
        image: UploadedFile,
        expected_type: Optional[IncidentType] = None
    ) -> ReportForm:
        """Classify a photo and apply the result to the form when confident."""
        detection = await detect_incident_from_image(image, self.config.detection_delay_seconds)
        return apply_detection(
            form, detection, expected_type, self.config.detection_confidence_threshold
        )

    def _report(
        self,
        actor: Actor,
        incident_type: IncidentType,
        form: ReportForm,
        attachments: Iterable[UploadedFile]
    ) -> Incident:
        encoded: List[str] = [
            encode_attachment(upload, self.config.max_attachment_bytes) for upload in attachments
        ]
        region = form.region or actor.region or self.config.default_region

        incident = self.incidents.create({
            "type": incident_type,
            "sub_type": form.sub_type,
            "latitude": form.latitude,
            "longitude": form.longitude,
            "address": form.address or None,
            "description": form.description,
            "victim_count": form.victim_count,
            "danger_level": form.danger_level,
            "user_id": actor.user_id,
            "attachments": encoded or None,
            "region": region,
        })
        logger.info(
            f"Actor {actor.user_id} reported {incident_type.value}/{incident.sub_type} "
            f"in {region} ({len(encoded)} attachments)"
        )
        return incident
