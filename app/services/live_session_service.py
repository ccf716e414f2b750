"""
Live session tracking for in-progress attempts

One mutable row per (quiz, student_name). Every answer selection and every
navigation event overwrites it; teachers watch the full set through a
cancellable subscription.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import LiveSession, Submission
from app.models.base import utcnow
from app.schemas.live_session import LiveSessionResponse
from app.utils.change_feed import ChangeFeed, Subscription

logger = logging.getLogger(__name__)


class LiveSessionService:
    """
    Service for live attempt progress

    Writes are last-write-wins merges; there is no race detection between
    two tabs of the same student. Two concurrent first writes both land on
    the single (quiz, student) row.
    """

    def __init__(self):
        self.feed = ChangeFeed("live_sessions")

    def upsert(
        self,
        db: Session,
        class_id: str,
        test_id: str,
        student_name: str,
        current_question_index: Optional[int] = None,
        answers: Optional[Dict[str, str]] = None
    ) -> LiveSession:
        """
        Merge-write a student's progress

        Fields passed as None keep their stored value; last_updated is
        always refreshed. Publishes the quiz's full snapshot afterwards.
        """
        session = self._find(db, test_id, student_name)

        if not session:
            session = LiveSession(
                class_id=class_id,
                test_id=test_id,
                student_name=student_name,
                current_question_index=0,
                answers={}
            )
            db.add(session)
            try:
                db.flush()
            except IntegrityError:
                # Another writer created the row first; merge into theirs
                db.rollback()
                logger.info(f"Concurrent first write for {student_name} on {test_id}; merging")
                session = self._find(db, test_id, student_name)

        if current_question_index is not None:
            session.current_question_index = current_question_index
        if answers is not None:
            session.answers = {str(k): v for k, v in answers.items()}
        session.last_updated = utcnow()

        db.commit()
        db.refresh(session)

        logger.info(
            f"Live session updated: test={test_id}, student={student_name}, "
            f"q={session.current_question_index}, answered={len(session.answers or {})}"
        )

        self.publish(db, class_id, test_id)
        return session

    @staticmethod
    def _find(db: Session, test_id: str, student_name: str) -> Optional[LiveSession]:
        return db.query(LiveSession).filter(
            LiveSession.test_id == test_id,
            LiveSession.student_name == student_name
        ).first()

    def list_sessions(self, db: Session, class_id: str, test_id: str) -> List[LiveSession]:
        """All live sessions for a quiz, most recently updated first"""
        return db.query(LiveSession).filter(
            LiveSession.class_id == class_id,
            LiveSession.test_id == test_id
        ).order_by(LiveSession.last_updated.desc()).all()

    def snapshot(self, db: Session, class_id: str, test_id: str) -> List[Dict[str, Any]]:
        """JSON-ready snapshot delivered to subscribers"""
        return [
            LiveSessionResponse.model_validate(s).model_dump(mode="json")
            for s in self.list_sessions(db, class_id, test_id)
        ]

    def publish(self, db: Session, class_id: str, test_id: str) -> int:
        key = (class_id, test_id)
        if not self.feed.subscriber_count(key):
            return 0
        return self.feed.publish(key, self.snapshot(db, class_id, test_id))

    def subscribe(
        self,
        class_id: str,
        test_id: str,
        on_change: Optional[Callable[[List[Dict[str, Any]]], None]] = None
    ) -> Subscription:
        """
        Register for full-snapshot updates of a quiz's live sessions

        The caller must dispose() the returned handle; it is never expired
        by the server.
        """
        return self.feed.subscribe((class_id, test_id), on_change)

    @staticmethod
    def active_students(
        sessions: Iterable[Any],
        submissions: Iterable[Any]
    ) -> List[str]:
        """
        Students with a live session and no submission for the same quiz

        Accepts ORM rows or dicts. Names are matched exactly.
        """
        def name_of(item):
            return item["student_name"] if isinstance(item, dict) else item.student_name

        completed = {name_of(s) for s in submissions}
        return [name_of(s) for s in sessions if name_of(s) not in completed]

    def monitor_snapshot(self, db: Session, class_id: str, test_id: str) -> Dict[str, Any]:
        """Live sessions reconciled against completed submissions"""
        sessions = self.list_sessions(db, class_id, test_id)
        completed = sorted({
            name for (name,) in db.query(Submission.student_name).filter(
                Submission.class_id == class_id,
                Submission.test_id == test_id
            ).distinct()
        })
        return {
            "sessions": sessions,
            "active_students": self.active_students(sessions, [{"student_name": n} for n in completed]),
            "completed_students": completed
        }


# Global instance
live_session_service = LiveSessionService()
