"""
Pydantic schemas for live attempt progress
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


class LiveSessionUpdate(BaseModel):
    """Progress event from a student runner; omitted fields keep their value"""
    student_name: str = Field(..., min_length=1, max_length=255)
    current_question_index: Optional[int] = Field(None, ge=0)
    answers: Optional[Dict[str, str]] = None


class LiveSessionResponse(BaseModel):
    """Current state of one student's attempt"""
    student_name: str
    current_question_index: int
    answers: Dict[str, str]
    last_updated: datetime

    class Config:
        from_attributes = True


class LiveMonitorSnapshot(BaseModel):
    """Live sessions reconciled against completed submissions"""
    sessions: List[LiveSessionResponse]
    active_students: List[str]
    completed_students: List[str]
