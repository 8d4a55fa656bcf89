"""Model for the image classifier result."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import DetectionType


class DetectionResult(BaseModel):
    """Outcome of classifying an incident photo."""
    model_config = ConfigDict(populate_by_name=True)

    type: DetectionType = Field(..., description="Detected incident type")
    sub_type: str = Field(..., alias="subType", description="Detected sub type")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Classifier confidence")
    description: str = Field(..., description="Suggested incident description")
