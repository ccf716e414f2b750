"""
Student attempt API endpoints
Starting an attempt, live progress, submission and attempt history
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
import logging

from app.database import get_db
from app.errors import NotFoundError
from app.models import Quiz
from app.schemas.live_session import LiveSessionResponse, LiveSessionUpdate
from app.schemas.quiz import (
    AttemptStart, QuestionGrading, QuizResponse, QuizSummary, StudentQuizView
)
from app.schemas.submission import SubmissionCreate, SubmissionResponse, SubmissionResult
from app.api.quizzes import quiz_response, quiz_summary
from app.services.directory_service import directory_service
from app.services.live_session_service import live_session_service
from app.services.scoring_service import scoring_service
from app.services.submission_service import submission_service
from app.utils.identity import normalize_student_name
from app.utils.rate_limiter import live_update_limiter

router = APIRouter(prefix="/api/student/classes/{class_id}", tags=["student"])
logger = logging.getLogger(__name__)


def student_view(quiz: Quiz) -> StudentQuizView:
    """Quiz without correct answers or explanations"""
    return StudentQuizView(
        id=quiz.id,
        title=quiz.title,
        passage=quiz.passage or [],
        passage_mode=quiz.passage_mode,
        questions=[
            {
                "id": q["id"],
                "text": q["text"],
                "passage": q.get("passage", []),
                "options": q["options"]
            }
            for q in quiz.questions or []
        ],
        total_questions=len(quiz.questions or [])
    )


def with_attempt_numbers(submissions) -> List[SubmissionResponse]:
    """Attempt numbering is positional over the oldest-first list"""
    return [
        SubmissionResponse.model_validate(s).model_copy(update={"attempt_number": i})
        for i, s in enumerate(submissions, start=1)
    ]


@router.get("/tests", response_model=List[QuizSummary])
async def list_tests(class_id: str, db: Session = Depends(get_db)):
    """Quizzes assigned to the class"""
    return [quiz_summary(q) for q in directory_service.list_tests(db, class_id)]


@router.post("/tests/{test_id}/start", response_model=StudentQuizView)
async def start_attempt(
    class_id: str,
    test_id: str,
    request: AttemptStart,
    db: Session = Depends(get_db)
):
    """
    Begin an attempt

    - Refuses quizzes with no questions
    - Resets the student's live session to the first question
    """
    student_name = normalize_student_name(request.student_name)
    quiz = directory_service.get_test(db, class_id, test_id)
    scoring_service.ensure_attemptable(quiz.questions or [])

    live_session_service.upsert(db, class_id, test_id, student_name, 0, {})
    logger.info(f"Attempt started: test={test_id}, student={student_name}")

    return student_view(quiz)


@router.put("/tests/{test_id}/live", response_model=LiveSessionResponse)
async def update_live_session(
    class_id: str,
    test_id: str,
    update: LiveSessionUpdate,
    db: Session = Depends(get_db)
):
    """
    Record an answer selection or navigation event

    Omitted fields keep their previous value. Last write wins.
    """
    student_name = normalize_student_name(update.student_name)
    directory_service.get_test(db, class_id, test_id)
    live_update_limiter.check(f"{test_id}:{student_name}")

    session = live_session_service.upsert(
        db,
        class_id,
        test_id,
        student_name,
        current_question_index=update.current_question_index,
        answers=update.answers
    )
    return LiveSessionResponse.model_validate(session)


@router.post("/tests/{test_id}/submit", response_model=SubmissionResult, status_code=201)
async def submit_attempt(
    class_id: str,
    test_id: str,
    request: SubmissionCreate,
    db: Session = Depends(get_db)
):
    """
    Score and record a completed attempt

    Every submission is a new attempt; earlier attempts are kept.
    """
    student_name = normalize_student_name(request.student_name)
    result = submission_service.submit(db, class_id, test_id, student_name, request.answers)

    submission = SubmissionResponse.model_validate(result["submission"]).model_copy(
        update={"attempt_number": result["attempt_number"]}
    )
    return SubmissionResult(
        submission=submission,
        score_display=f"{submission.score}%",
        breakdown=[QuestionGrading(**item) for item in result["breakdown"]]
    )


@router.get("/tests/{test_id}/submissions", response_model=List[SubmissionResponse])
async def list_my_submissions(
    class_id: str,
    test_id: str,
    student_name: str = Query(..., min_length=1),
    db: Session = Depends(get_db)
):
    """The student's attempts, oldest first (Attempt 1, Attempt 2, ...)"""
    student_name = normalize_student_name(student_name)
    directory_service.get_test(db, class_id, test_id)
    submissions = submission_service.list_for_student(db, class_id, test_id, student_name)
    return with_attempt_numbers(submissions)


@router.get("/tests/{test_id}/review", response_model=QuizResponse)
async def review_quiz(
    class_id: str,
    test_id: str,
    student_name: str = Query(..., min_length=1),
    db: Session = Depends(get_db)
):
    """Quiz with answer key, available once the student has submitted"""
    student_name = normalize_student_name(student_name)
    quiz = directory_service.get_test(db, class_id, test_id)
    if not submission_service.list_for_student(db, class_id, test_id, student_name):
        raise NotFoundError("No submitted attempt to review yet.")
    return quiz_response(quiz)
