"""
Input validation schemas for API parameters.
Shape checks only; the cross-field invariants belong to the prediction engine
so the same messages reach every caller.
"""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.prediction import PredictionInput

# University and department names: Korean, latin, digits and a few separators
NAME_PATTERN = re.compile(r"^[\w\s\-\.\(\)·&]{1,100}$", re.UNICODE)


class PredictionRequestParam(BaseModel):
    """Validated body of a prediction request."""

    quota: int = Field(..., ge=0, le=10000, description="Seats offered")
    real_applicants: int = Field(..., ge=0, le=100000, description="Total applicants")
    revealed_count: int = Field(..., ge=0, le=100000, description="Applicants who revealed scores")
    my_rank: int = Field(..., ge=0, le=100000, description="Own rank among revealers")
    manual_weight: float | None = Field(default=None, description="Manual base weight (0.1-1.0)")
    additional_passes: int | None = Field(default=None, le=10000, description="Expected additional passes")
    analysis_timestamp: datetime | None = Field(default=None, description="Analysis point in time")

    @field_validator("manual_weight", mode="before")
    @classmethod
    def validate_manual_weight(cls, v):
        """Treat an empty form field as 'no manual weight'."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        try:
            return float(v)
        except (ValueError, TypeError):
            raise ValueError(f"Invalid numeric value: {v}")

    def to_input(self) -> PredictionInput:
        return PredictionInput(**self.model_dump())


class SaveAnalysisParam(BaseModel):
    """Validated request to save an analysis under university + department."""

    university: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=1, max_length=100)
    prediction: PredictionRequestParam

    @field_validator("university", "department")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = " ".join(v.split())
        if not v:
            raise ValueError("Name cannot be empty")
        if not NAME_PATTERN.match(v):
            raise ValueError(f"Invalid characters in name: '{v[:50]}'")
        return v
