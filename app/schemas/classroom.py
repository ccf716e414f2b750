"""
Pydantic schemas for classes and join codes
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ClassCreate(BaseModel):
    """Request schema for creating a class"""
    name: str = Field(..., min_length=1, max_length=255, description="Class name")


class ClassResponse(BaseModel):
    """Class as returned to its teacher"""
    id: str
    name: str
    join_code: str
    teacher_id: str
    active_test_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class JoinRequest(BaseModel):
    """Student self-declared session"""
    join_code: str = Field(..., min_length=1, max_length=16)
    student_name: str = Field(..., min_length=1, max_length=255)


class JoinResponse(BaseModel):
    """Resolved class for a student session"""
    class_id: str
    class_name: str
    student_name: str
    active_test_id: Optional[str] = None


class ActiveTestUpdate(BaseModel):
    """Assign or clear the class's active quiz"""
    test_id: Optional[str] = None
