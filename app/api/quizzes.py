"""
Quiz authoring API endpoints
AI generation into drafts, draft editing, and saved quiz management
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session
from typing import Any, Dict, List
import logging

from app.config import settings
from app.database import get_db
from app.errors import QuizPlatformError
from app.models import Quiz
from app.schemas.draft import Draft, DraftEditRequest, DraftResponse, DraftSaveRequest
from app.schemas.quiz import QuizResponse, QuizSummary
from app.services.directory_service import directory_service
from app.services.draft_service import draft_service
from app.services.gemini_service import gemini_service
from app.utils.identity import get_current_teacher
from app.utils.rate_limiter import generation_limiter

router = APIRouter(prefix="/api/classes/{class_id}", tags=["quizzes"])
logger = logging.getLogger(__name__)


def quiz_response(quiz: Quiz) -> QuizResponse:
    return QuizResponse(
        id=quiz.id,
        class_id=quiz.class_id,
        title=quiz.title,
        passage=quiz.passage or [],
        passage_mode=quiz.passage_mode,
        questions=quiz.questions or [],
        total_questions=len(quiz.questions or []),
        created_at=quiz.created_at,
        updated_at=quiz.updated_at
    )


def quiz_summary(quiz: Quiz) -> QuizSummary:
    return QuizSummary(
        id=quiz.id,
        title=quiz.title,
        total_questions=len(quiz.questions or []),
        created_at=quiz.created_at
    )


@router.post("/drafts/generate", response_model=DraftResponse)
async def generate_draft(
    class_id: str,
    files: List[UploadFile] = File(default=[]),
    raw_text: str = Form(""),
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """
    Extract a quiz draft from screenshots and/or pasted text using Gemini

    - Nothing is saved; the teacher reviews and edits the draft first
    - Validator findings are returned alongside the draft
    """
    directory_service.get_owned_class(db, class_id, teacher_id)
    generation_limiter.check(teacher_id)

    if len(files) > settings.MAX_UPLOAD_IMAGES:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.MAX_UPLOAD_IMAGES} images can be uploaded at once"
        )

    images = []
    for upload in files:
        if not (upload.content_type or "").startswith("image/"):
            raise HTTPException(status_code=400, detail=f"{upload.filename} is not an image")
        images.append((await upload.read(), upload.content_type))

    try:
        logger.info(f"Generating draft for class {class_id}: {len(images)} image(s)")
        document = gemini_service.generate_quiz(images, raw_text)
    except QuizPlatformError:
        raise
    except Exception as e:
        logger.error(f"Failed to generate draft: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to generate quiz: {str(e)}")

    return draft_service.review_generated(document)


@router.post("/drafts/edit", response_model=DraftResponse)
async def edit_draft(
    class_id: str,
    request: DraftEditRequest,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """Apply edit operations to a draft and return the new draft"""
    directory_service.get_owned_class(db, class_id, teacher_id)
    draft = draft_service.apply_edits(request.draft, request.edits)
    return draft_service.review(draft)


@router.post("/drafts/save", response_model=QuizResponse, status_code=201)
async def save_draft(
    class_id: str,
    request: DraftSaveRequest,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """Validate and persist a draft (new quiz, or full replace of draft.test_id)"""
    directory_service.get_owned_class(db, class_id, teacher_id)
    quiz = draft_service.save_draft(db, class_id, request.draft)
    return quiz_response(quiz)


@router.get("/tests", response_model=List[QuizSummary])
async def list_tests(
    class_id: str,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    directory_service.get_owned_class(db, class_id, teacher_id)
    return [quiz_summary(q) for q in directory_service.list_tests(db, class_id)]


@router.post("/tests", response_model=QuizResponse, status_code=201)
async def create_test(
    class_id: str,
    document: Dict[str, Any],
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """Store a quiz document directly (validated)"""
    directory_service.get_owned_class(db, class_id, teacher_id)
    return quiz_response(directory_service.create_test(db, class_id, document))


@router.get("/tests/{test_id}", response_model=QuizResponse)
async def get_test(
    class_id: str,
    test_id: str,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    directory_service.get_owned_class(db, class_id, teacher_id)
    return quiz_response(directory_service.get_test(db, class_id, test_id))


@router.get("/tests/{test_id}/draft", response_model=DraftResponse)
async def open_draft(
    class_id: str,
    test_id: str,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """Load a saved quiz into the editor"""
    directory_service.get_owned_class(db, class_id, teacher_id)
    quiz = directory_service.get_test(db, class_id, test_id)
    return draft_service.review(Draft.from_quiz(quiz))


@router.put("/tests/{test_id}", response_model=QuizResponse)
async def replace_test(
    class_id: str,
    test_id: str,
    document: Dict[str, Any],
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """Full-document replace; partial patches are not supported"""
    directory_service.get_owned_class(db, class_id, teacher_id)
    return quiz_response(directory_service.replace_test(db, class_id, test_id, document))


@router.delete("/tests/{test_id}", status_code=204)
async def delete_test(
    class_id: str,
    test_id: str,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """Delete a quiz with its submissions and live sessions"""
    directory_service.get_owned_class(db, class_id, teacher_id)
    directory_service.delete_test(db, class_id, test_id)
