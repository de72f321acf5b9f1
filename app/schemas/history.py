"""
Pydantic models for saved analyses.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.prediction import PredictionInput


class SavedAnalysis(BaseModel):
    """An input record saved under a university + department key."""

    key: str = Field(..., description="Normalised '<university>|<department>' key")
    university: str
    department: str
    prediction_input: PredictionInput
    saved_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "key": "서울대학교|경제학부",
                "university": "서울대학교",
                "department": "경제학부",
                "prediction_input": {
                    "quota": 35,
                    "real_applicants": 245,
                    "revealed_count": 100,
                    "my_rank": 12,
                },
                "saved_at": "2025-01-03T21:00:00+09:00",
            }
        }
