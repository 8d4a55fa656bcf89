"""
Mock image classifier for incident photos.

Stands in for a real vision API: it waits a fixed delay, then guesses the
incident type from keywords in the file name. It never raises; anything
unexpected yields an UNKNOWN result with low confidence.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from models import DetectionResult, DetectionType

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 1.5


@dataclass
class UploadedFile:
    """An uploaded attachment."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def media_type(self) -> str:
        return self.content_type.split("/")[0]


# (keywords, all keywords required, result) in match order
_RULES = [
    (("fire", "incendie", "flamme"), False,
     (DetectionType.VITAL_EMERGENCY, "FIRE", 0.85, "Fire detected in the image")),
    (("accident", "crash", "voiture"), False,
     (DetectionType.VITAL_EMERGENCY, "ROAD_ACCIDENT", 0.80, "Road accident detected")),
    (("blessure", "person", "sol"), False,
     (DetectionType.VITAL_EMERGENCY, "INJURY", 0.75, "Injured or fallen person detected")),
    (("trou", "hole", "route"), False,
     (DetectionType.CIVIL_PROBLEM, "POTHOLE", 0.70, "Hole in the road detected")),
    (("feu", "rouge"), True,
     (DetectionType.CIVIL_PROBLEM, "BROKEN_TRAFFIC_LIGHT", 0.75, "Broken traffic light detected")),
    (("panneau", "signalisation"), False,
     (DetectionType.CIVIL_PROBLEM, "ROAD_SIGN", 0.65, "Missing or damaged road sign detected")),
]


def unknown_result() -> DetectionResult:
    return DetectionResult(
        type=DetectionType.UNKNOWN,
        sub_type="OTHER",
        confidence=0.30,
        description="Incident type not identified automatically. Please select it manually.",
    )


def _match(filename: str) -> DetectionResult:
    name = filename.lower()
    for keywords, require_all, (kind, sub_type, confidence, description) in _RULES:
        hits = [k in name for k in keywords]
        if all(hits) if require_all else any(hits):
            return DetectionResult(
                type=kind, sub_type=sub_type, confidence=confidence, description=description
            )
    return unknown_result()


async def detect_incident_from_image(
    image: UploadedFile,
    delay_seconds: float = DEFAULT_DELAY_SECONDS
) -> DetectionResult:
    """
    Classify an incident photo after a simulated API latency.

    Args:
        image: The uploaded image
        delay_seconds: Simulated latency

    Returns:
        DetectionResult; UNKNOWN when nothing was recognised or on any failure
    """
    try:
        await asyncio.sleep(delay_seconds)
        if image.media_type != "image":
            return unknown_result()
        result = _match(image.filename or "")
        logger.info(
            f"Image {image.filename} ({image.size} bytes) classified as "
            f"{result.type.value}/{result.sub_type} ({result.confidence:.2f})"
        )
        return result
    except Exception as e:
        logger.error(f"Image classification failed for {getattr(image, 'filename', None)}: {e}")
        return unknown_result()


def classify_image(image: UploadedFile, delay_seconds: Optional[float] = None) -> DetectionResult:
    """Synchronous wrapper for callers outside an event loop."""
    return asyncio.run(detect_incident_from_image(
        image, DEFAULT_DELAY_SECONDS if delay_seconds is None else delay_seconds
    ))
