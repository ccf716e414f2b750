"""
Submission store - append-only record of completed attempts
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import Submission
from app.schemas.submission import SubmissionResponse
from app.services.directory_service import directory_service
from app.services.scoring_service import scoring_service
from app.utils.change_feed import ChangeFeed, Subscription

logger = logging.getLogger(__name__)


class SubmissionService:
    """
    Service for recording and listing attempts

    No update or delete is exposed. A submission is immutable once written
    and every call to record() is a new attempt.
    """

    def __init__(self):
        self.feed = ChangeFeed("submissions")

    def record(
        self,
        db: Session,
        class_id: str,
        test_id: str,
        student_name: str,
        score: int,
        answers: Dict[str, str]
    ) -> Submission:
        """Insert a new attempt and notify subscribers"""
        submission = Submission(
            class_id=class_id,
            test_id=test_id,
            student_name=student_name,
            score=score,
            answers={str(k): v for k, v in answers.items()}
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)

        logger.info(
            f"Submission recorded: {submission.id}, test={test_id}, "
            f"student={student_name}, score={score}%"
        )

        self.publish(db, class_id, test_id)
        return submission

    def submit(
        self,
        db: Session,
        class_id: str,
        test_id: str,
        student_name: str,
        answers: Dict[str, str]
    ) -> Dict[str, Any]:
        """
        Score an attempt server-side and record it

        Returns:
            Dictionary with the stored submission and the grading breakdown
        """
        quiz = directory_service.get_test(db, class_id, test_id)
        questions = quiz.questions or []
        scoring_service.ensure_attemptable(questions)

        score = scoring_service.score(questions, answers)
        breakdown = scoring_service.grade(questions, answers)
        submission = self.record(db, class_id, test_id, student_name, score, answers)

        attempts = self.list_for_student(db, class_id, test_id, student_name)
        attempt_number = next(
            (i for i, s in enumerate(attempts, start=1) if s.id == submission.id),
            len(attempts)
        )

        return {
            "submission": submission,
            "attempt_number": attempt_number,
            "breakdown": breakdown
        }

    def list_for_student(
        self,
        db: Session,
        class_id: str,
        test_id: str,
        student_name: str
    ) -> List[Submission]:
        """A student's attempts, oldest first (Attempt 1, Attempt 2, ...)"""
        return db.query(Submission).filter(
            Submission.class_id == class_id,
            Submission.test_id == test_id,
            Submission.student_name == student_name
        ).order_by(Submission.timestamp.asc(), Submission.id.asc()).all()

    def list_all(self, db: Session, class_id: str, test_id: str) -> List[Submission]:
        """Every attempt on a quiz, newest first"""
        return db.query(Submission).filter(
            Submission.class_id == class_id,
            Submission.test_id == test_id
        ).order_by(Submission.timestamp.desc(), Submission.id.desc()).all()

    def get(self, db: Session, class_id: str, test_id: str, submission_id: str) -> Optional[Submission]:
        return db.query(Submission).filter(
            Submission.id == submission_id,
            Submission.class_id == class_id,
            Submission.test_id == test_id
        ).first()

    def snapshot(self, db: Session, class_id: str, test_id: str) -> List[Dict[str, Any]]:
        return [
            SubmissionResponse.model_validate(s).model_dump(mode="json")
            for s in self.list_all(db, class_id, test_id)
        ]

    def publish(self, db: Session, class_id: str, test_id: str) -> int:
        key = (class_id, test_id)
        if not self.feed.subscriber_count(key):
            return 0
        return self.feed.publish(key, self.snapshot(db, class_id, test_id))

    def subscribe(self, class_id: str, test_id: str, on_change=None) -> Subscription:
        """Register for the full newest-first submission list on every new attempt"""
        return self.feed.subscribe((class_id, test_id), on_change)


# Global instance
submission_service = SubmissionService()
