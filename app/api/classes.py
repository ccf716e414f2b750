"""
Class management and join-code API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging

from app.database import get_db
from app.schemas.classroom import (
    ClassCreate, ClassResponse, JoinRequest, JoinResponse, ActiveTestUpdate
)
from app.services.directory_service import directory_service
from app.utils.identity import get_current_teacher, normalize_join_code, normalize_student_name

router = APIRouter(prefix="/api", tags=["classes"])
logger = logging.getLogger(__name__)


@router.post("/classes", response_model=ClassResponse, status_code=201)
async def create_class(
    request: ClassCreate,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """
    Create a class with a generated join code

    - Join codes are 6 uppercase letters/digits
    - Codes are unique across classes
    """
    classroom = directory_service.create_class(db, teacher_id, request.name)
    return ClassResponse.model_validate(classroom)


@router.get("/classes", response_model=List[ClassResponse])
async def list_classes(
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """List the teacher's classes, most recent first"""
    classes = directory_service.list_teacher_classes(db, teacher_id)
    return [ClassResponse.model_validate(c) for c in classes]


@router.delete("/classes/{class_id}", status_code=204)
async def delete_class(
    class_id: str,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """
    Delete a class with its quizzes, submissions and live sessions

    The cascade runs in a single transaction and is rolled back on failure.
    """
    directory_service.get_owned_class(db, class_id, teacher_id)
    directory_service.delete_class(db, class_id)


@router.put("/classes/{class_id}/active-test", response_model=ClassResponse)
async def set_active_test(
    class_id: str,
    request: ActiveTestUpdate,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """Assign (or clear) the quiz students see first"""
    directory_service.get_owned_class(db, class_id, teacher_id)
    classroom = directory_service.set_active_test(db, class_id, request.test_id)
    return ClassResponse.model_validate(classroom)


@router.post("/join", response_model=JoinResponse)
async def join_class(request: JoinRequest, db: Session = Depends(get_db)):
    """
    Resolve a student's join code

    The student session is self-declared: the name is not verified and is
    only held by the client.
    """
    student_name = normalize_student_name(request.student_name)
    classroom = directory_service.join_by_code(db, normalize_join_code(request.join_code))

    logger.info(f"Student '{student_name}' joined class {classroom.id}")

    return JoinResponse(
        class_id=classroom.id,
        class_name=classroom.name,
        student_name=student_name,
        active_test_id=classroom.active_test_id
    )
