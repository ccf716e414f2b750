"""
Pydantic schemas for attempts and submissions
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from app.schemas.quiz import QuestionGrading


class SubmissionCreate(BaseModel):
    """Schema for a completed attempt"""
    student_name: str = Field(..., min_length=1, max_length=255)
    answers: Dict[str, str] = {}  # {question_id: label}


class SubmissionResponse(BaseModel):
    """Stored attempt"""
    id: str
    student_name: str
    score: int
    answers: Dict[str, str]
    timestamp: datetime
    attempt_number: Optional[int] = None

    class Config:
        from_attributes = True


class SubmissionResult(BaseModel):
    """Response after an attempt is scored and recorded"""
    submission: SubmissionResponse
    score_display: str  # "50%"
    breakdown: List[QuestionGrading]
