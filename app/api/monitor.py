"""
Teacher monitoring API endpoints
Submission review, live progress, per-question statistics and live feeds
"""
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from typing import List, Optional
import asyncio
import logging

from app.database import SessionLocal, get_db
from app.errors import NotFoundError, QuizPlatformError
from app.schemas.live_session import LiveMonitorSnapshot, LiveSessionResponse
from app.schemas.quiz import QuestionGrading, QuestionStats, QuizStatsResponse
from app.schemas.submission import SubmissionResponse, SubmissionResult
from app.services.directory_service import directory_service
from app.services.live_session_service import live_session_service
from app.services.scoring_service import scoring_service
from app.services.submission_service import submission_service
from app.utils.change_feed import Subscription
from app.utils.identity import TEACHER_HEADER, get_current_teacher

router = APIRouter(prefix="/api/classes/{class_id}/tests/{test_id}", tags=["monitor"])
logger = logging.getLogger(__name__)


def _check_access(db: Session, class_id: str, test_id: str, teacher_id: str) -> None:
    directory_service.get_owned_class(db, class_id, teacher_id)
    directory_service.get_test(db, class_id, test_id)


@router.get("/submissions", response_model=List[SubmissionResponse])
async def list_submissions(
    class_id: str,
    test_id: str,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """All attempts on the quiz, newest first"""
    _check_access(db, class_id, test_id, teacher_id)
    return [
        SubmissionResponse.model_validate(s)
        for s in submission_service.list_all(db, class_id, test_id)
    ]


@router.get("/submissions/{submission_id}", response_model=SubmissionResult)
async def get_submission(
    class_id: str,
    test_id: str,
    submission_id: str,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """One attempt with its per-question breakdown"""
    _check_access(db, class_id, test_id, teacher_id)
    submission = submission_service.get(db, class_id, test_id, submission_id)
    if not submission:
        raise NotFoundError("Submission not found.")

    quiz = directory_service.get_test(db, class_id, test_id)
    breakdown = scoring_service.grade(quiz.questions or [], submission.answers or {})
    return SubmissionResult(
        submission=SubmissionResponse.model_validate(submission),
        score_display=f"{submission.score}%",
        breakdown=[QuestionGrading(**item) for item in breakdown]
    )


@router.get("/live", response_model=LiveMonitorSnapshot)
async def get_live_sessions(
    class_id: str,
    test_id: str,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """
    Current live sessions reconciled against submissions

    A student with a submission is reported as completed, not active.
    """
    _check_access(db, class_id, test_id, teacher_id)
    snapshot = live_session_service.monitor_snapshot(db, class_id, test_id)
    return LiveMonitorSnapshot(
        sessions=[LiveSessionResponse.model_validate(s) for s in snapshot["sessions"]],
        active_students=snapshot["active_students"],
        completed_students=snapshot["completed_students"]
    )


@router.get("/stats", response_model=QuizStatsResponse)
async def get_question_stats(
    class_id: str,
    test_id: str,
    teacher_id: str = Depends(get_current_teacher),
    db: Session = Depends(get_db)
):
    """
    Per-question correct/incorrect split across the class

    Combines every submitted attempt with the live answers of students who
    have not submitted yet.
    """
    _check_access(db, class_id, test_id, teacher_id)
    quiz = directory_service.get_test(db, class_id, test_id)
    submissions = submission_service.list_all(db, class_id, test_id)
    sessions = live_session_service.list_sessions(db, class_id, test_id)

    active_names = set(live_session_service.active_students(sessions, submissions))
    active_sessions = [s for s in sessions if s.student_name in active_names]

    answer_sets = [s.answers or {} for s in submissions] + [s.answers or {} for s in active_sessions]
    stats = scoring_service.question_stats(quiz.questions or [], answer_sets)

    return QuizStatsResponse(
        test_id=test_id,
        total_participants=len(submissions) + len(active_sessions),
        completed=len(submissions),
        active=len(active_sessions),
        questions=[QuestionStats(**item) for item in stats]
    )


async def _authorize_socket(
    websocket: WebSocket,
    class_id: str,
    test_id: str,
    teacher_id: Optional[str]
) -> bool:
    """Browsers cannot set headers on WebSockets, so the id may come as a query param"""
    teacher_id = teacher_id or websocket.headers.get(TEACHER_HEADER)
    if not teacher_id:
        await websocket.close(code=1008)
        return False

    db = SessionLocal()
    try:
        _check_access(db, class_id, test_id, teacher_id)
    except QuizPlatformError as e:
        logger.info(f"Rejected live feed for {class_id}/{test_id}: {e.message}")
        await websocket.close(code=1008)
        return False
    finally:
        db.close()
    return True


async def _stream(websocket: WebSocket, subscription: Subscription, initial) -> None:
    """Send the current snapshot, then every new one until the client leaves"""

    async def watch_disconnect():
        # Ending the subscription ends the send loop below
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            subscription.dispose()

    watcher = asyncio.create_task(watch_disconnect())
    try:
        await websocket.send_json(initial)
        async for snapshot in subscription:
            await websocket.send_json(snapshot)
    except WebSocketDisconnect:
        pass
    finally:
        subscription.dispose()
        watcher.cancel()
        logger.info(f"Live feed closed: {subscription.key}")


@router.websocket("/live/ws")
async def live_sessions_feed(
    websocket: WebSocket,
    class_id: str,
    test_id: str,
    teacher_id: Optional[str] = None
):
    """Push the full live-session list whenever any student's progress changes"""
    await websocket.accept()
    if not await _authorize_socket(websocket, class_id, test_id, teacher_id):
        return

    subscription = live_session_service.subscribe(class_id, test_id)
    db = SessionLocal()
    try:
        initial = live_session_service.snapshot(db, class_id, test_id)
    finally:
        db.close()

    await _stream(websocket, subscription, initial)


@router.websocket("/submissions/ws")
async def submissions_feed(
    websocket: WebSocket,
    class_id: str,
    test_id: str,
    teacher_id: Optional[str] = None
):
    """Push the full newest-first submission list on every new attempt"""
    await websocket.accept()
    if not await _authorize_socket(websocket, class_id, test_id, teacher_id):
        return

    subscription = submission_service.subscribe(class_id, test_id)
    db = SessionLocal()
    try:
        initial = submission_service.snapshot(db, class_id, test_id)
    finally:
        db.close()

    await _stream(websocket, subscription, initial)
