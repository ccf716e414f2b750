"""
Class and quiz directory
Join-code lookup, class ownership, and quiz documents per class
"""
import logging
import secrets
import string
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import (
    CascadeDeleteError, InvalidRequestError, NotFoundError, PermissionDeniedError, QuizPlatformError
)
from app.models import Classroom, LiveSession, Quiz, Submission
from app.schemas.quiz import QuizDocument
from app.services.demo_data import DEMO_CLASS_NAME, DEMO_QUIZ
from app.services.quiz_validator import validate_quiz_document

logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


class DirectoryService:
    """
    Service for classes and the quizzes assigned to them

    Join codes are generated uppercase and looked up by exact match; callers
    uppercase user input before lookup. Codes are unique: generation
    retries on collision.
    """

    def generate_join_code(self) -> str:
        return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(settings.JOIN_CODE_LENGTH))

    def create_class(self, db: Session, teacher_id: str, name: str) -> Classroom:
        """
        Create a class with a fresh join code

        Raises:
            InvalidRequestError: name is blank once trimmed
            QuizPlatformError: no free join code after JOIN_CODE_MAX_ATTEMPTS
        """
        name = name.strip()
        if not name:
            raise InvalidRequestError("Class name is required.")

        for attempt in range(1, settings.JOIN_CODE_MAX_ATTEMPTS + 1):
            code = self.generate_join_code()
            if db.query(Classroom.id).filter(Classroom.join_code == code).first():
                logger.warning(f"Join code collision on attempt {attempt}: {code}")
                continue

            classroom = Classroom(name=name, join_code=code, teacher_id=teacher_id)
            db.add(classroom)
            try:
                db.commit()
            except IntegrityError:
                # Another writer took the code between the check and the insert
                db.rollback()
                logger.warning(f"Join code collision on insert, attempt {attempt}: {code}")
                continue

            db.refresh(classroom)
            logger.info(f"Class created: {classroom.id} ({classroom.name}) code={code}")
            return classroom

        raise QuizPlatformError("Could not allocate a unique join code. Please try again.")

    def list_teacher_classes(self, db: Session, teacher_id: str) -> List[Classroom]:
        """A teacher's classes, most recently created first"""
        classes = db.query(Classroom).filter(
            Classroom.teacher_id == teacher_id
        ).order_by(Classroom.created_at.desc()).all()

        if not classes and settings.SEED_DEMO_CLASS:
            classes = [self.seed_demo_class(db, teacher_id)]

        return classes

    def seed_demo_class(self, db: Session, teacher_id: str) -> Classroom:
        """Create a demo class with a sample quiz set as active"""
        classroom = self.create_class(db, teacher_id, DEMO_CLASS_NAME)
        quiz = self.create_test(db, classroom.id, DEMO_QUIZ)
        classroom.active_test_id = quiz.id
        db.commit()
        db.refresh(classroom)
        logger.info(f"Seeded demo class {classroom.id} for teacher {teacher_id}")
        return classroom

    def get_class(self, db: Session, class_id: str) -> Classroom:
        classroom = db.query(Classroom).filter(Classroom.id == class_id).first()
        if not classroom:
            raise NotFoundError("Class not found.")
        return classroom

    def get_owned_class(self, db: Session, class_id: str, teacher_id: str) -> Classroom:
        """
        Raises:
            NotFoundError: unknown class
            PermissionDeniedError: class belongs to another teacher
        """
        classroom = self.get_class(db, class_id)
        if classroom.teacher_id != teacher_id:
            raise PermissionDeniedError("This class belongs to another teacher.")
        return classroom

    def join_by_code(self, db: Session, code: str) -> Classroom:
        """
        Resolve a join code with an exact match

        Raises:
            NotFoundError: no class carries this code
        """
        classroom = db.query(Classroom).filter(Classroom.join_code == code).first()
        if not classroom:
            logger.info(f"Join attempt with unknown code: {code}")
            raise NotFoundError("Invalid join code.")
        return classroom

    def set_active_test(self, db: Session, class_id: str, test_id: Optional[str]) -> Classroom:
        classroom = self.get_class(db, class_id)
        if test_id is not None:
            self.get_test(db, class_id, test_id)
        classroom.active_test_id = test_id
        db.commit()
        db.refresh(classroom)
        return classroom

    def delete_class(self, db: Session, class_id: str) -> None:
        """
        Delete a class with its quizzes, submissions and live sessions

        All rows go in one transaction; on failure nothing is removed.

        Raises:
            NotFoundError: unknown class
            CascadeDeleteError: the transaction was rolled back
        """
        classroom = self.get_class(db, class_id)

        try:
            sessions = db.query(LiveSession).filter(LiveSession.class_id == class_id).delete(synchronize_session=False)
            submissions = db.query(Submission).filter(Submission.class_id == class_id).delete(synchronize_session=False)
            tests = db.query(Quiz).filter(Quiz.class_id == class_id).delete(synchronize_session=False)
            db.delete(classroom)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete class {class_id}: {str(e)}")
            raise CascadeDeleteError(f"Failed to delete class: {str(e)}")

        logger.info(
            f"Class deleted: {class_id} (tests={tests}, submissions={submissions}, live_sessions={sessions})"
        )

    # Quizzes

    def create_test(self, db: Session, class_id: str, document: Any) -> Quiz:
        """
        Validate and store a new quiz

        Args:
            document: raw mapping or an already validated QuizDocument

        Raises:
            QuizValidationError: document rejected
            NotFoundError: unknown class
        """
        self.get_class(db, class_id)
        validated = self._validated(document, assign_ids=True)

        quiz = Quiz(
            class_id=class_id,
            title=validated.title,
            passage=validated.passage,
            passage_mode=validated.passage_mode,
            questions=validated.stored_questions()
        )
        db.add(quiz)
        db.commit()
        db.refresh(quiz)

        logger.info(f"Quiz created: {quiz.id} in class {class_id} ({len(quiz.questions)} questions)")
        return quiz

    def replace_test(self, db: Session, class_id: str, test_id: str, document: Any) -> Quiz:
        """
        Full-document replace of a stored quiz

        Question ids are kept as sent; submissions and live sessions key
        their answers by them.

        Raises:
            QuizValidationError: document rejected, including missing or
                duplicate question ids
        """
        quiz = self.get_test(db, class_id, test_id)
        validated = self._validated(document, assign_ids=False)

        quiz.title = validated.title
        quiz.passage = validated.passage
        quiz.passage_mode = validated.passage_mode
        quiz.questions = validated.stored_questions()
        db.commit()
        db.refresh(quiz)

        logger.info(f"Quiz replaced: {quiz.id} ({len(quiz.questions)} questions)")
        return quiz

    def get_test(self, db: Session, class_id: str, test_id: str) -> Quiz:
        quiz = db.query(Quiz).filter(Quiz.id == test_id, Quiz.class_id == class_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found.")
        return quiz

    def list_tests(self, db: Session, class_id: str) -> List[Quiz]:
        self.get_class(db, class_id)
        return db.query(Quiz).filter(Quiz.class_id == class_id).order_by(Quiz.created_at.desc()).all()

    def delete_test(self, db: Session, class_id: str, test_id: str) -> None:
        """Delete a quiz with its submissions and live sessions in one transaction"""
        quiz = self.get_test(db, class_id, test_id)

        try:
            db.query(LiveSession).filter(LiveSession.test_id == test_id).delete(synchronize_session=False)
            db.query(Submission).filter(Submission.test_id == test_id).delete(synchronize_session=False)
            db.query(Classroom).filter(
                Classroom.id == class_id,
                Classroom.active_test_id == test_id
            ).update({Classroom.active_test_id: None}, synchronize_session=False)
            db.delete(quiz)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete quiz {test_id}: {str(e)}")
            raise CascadeDeleteError(f"Failed to delete quiz: {str(e)}")

        logger.info(f"Quiz deleted: {test_id}")

    @staticmethod
    def _validated(document: Any, assign_ids: bool) -> QuizDocument:
        if isinstance(document, QuizDocument):
            document = document.model_dump(by_alias=True)
        return validate_quiz_document(document, assign_ids=assign_ids)


# Global instance
directory_service = DirectoryService()
