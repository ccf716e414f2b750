"""
Draft editing service
Applies edit operations to immutable drafts and persists them once, on save
"""
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.errors import QuizValidationError, ValidationReason
from app.models import Quiz
from app.schemas.draft import Draft, DraftIssue, DraftResponse
from app.services.directory_service import directory_service
from app.services.quiz_validator import validate_quiz_document

logger = logging.getLogger(__name__)

# op name -> (Draft method, required argument names)
EDIT_OPERATIONS = {
    "set_title": ("set_title", ["title"]),
    "set_passage": ("set_passage", ["paragraphs"]),
    "update_question_text": ("update_question_text", ["question_id", "text"]),
    "set_question_passage": ("set_question_passage", ["question_id", "paragraphs"]),
    "update_option": ("update_option", ["question_id", "label", "text"]),
    "set_correct_answer": ("set_correct_answer", ["question_id", "label"]),
    "update_explanation": ("update_explanation", ["question_id", "explanation"]),
    "add_question": ("add_question", []),
    "remove_question": ("remove_question", ["question_id"]),
}
OPTIONAL_ARGUMENTS = {"add_question": ["text", "labels"]}


class DraftService:
    """Service for the teacher's quiz editor"""

    def apply_edits(self, draft: Draft, edits: List[Dict[str, Any]]) -> Draft:
        """
        Apply a sequence of {"op": name, ...args} edits

        Each edit produces a new Draft; the input draft is unchanged.

        Raises:
            QuizValidationError: unknown op or missing argument
            NotFoundError: edit refers to a question or option not in the draft
        """
        for position, edit in enumerate(edits):
            op = edit.get("op")
            if op not in EDIT_OPERATIONS:
                raise QuizValidationError([
                    ValidationReason("unknown_edit", f"Edit {position + 1}: unknown operation '{op}'")
                ])

            method_name, arg_names = EDIT_OPERATIONS[op]
            missing = [name for name in arg_names if name not in edit]
            if missing:
                raise QuizValidationError([
                    ValidationReason(
                        "malformed_edit",
                        f"Edit {position + 1} ({op}) is missing {', '.join(missing)}"
                    )
                ])

            names = arg_names + [n for n in OPTIONAL_ARGUMENTS.get(op, []) if n in edit]
            draft = getattr(draft, method_name)(**{name: edit[name] for name in names})

        return draft

    def review(self, draft: Draft) -> DraftResponse:
        """Run the validator without persisting and report its findings"""
        try:
            validate_quiz_document(draft.to_document(), assign_ids=not draft.test_id)
        except QuizValidationError as e:
            return self._rejected(draft, e)
        return DraftResponse(draft=draft, issues=[], ready_to_save=True)

    def review_generated(self, document: Any) -> DraftResponse:
        """
        Turn raw AI output into a draft for the teacher

        The raw document is validated as received. Anything the editor would
        have to drop or coerce is reported instead of quietly repaired.
        """
        draft = Draft.from_document(document if isinstance(document, dict) else {})
        try:
            validate_quiz_document(document)
        except QuizValidationError as e:
            logger.info(f"Generated quiz needs review: {e.codes}")
            return self._rejected(draft, e)
        return self.review(draft)

    @staticmethod
    def _rejected(draft: Draft, error: QuizValidationError) -> DraftResponse:
        issues = [DraftIssue(**r.to_dict()) for r in error.reasons]
        return DraftResponse(draft=draft, issues=issues, ready_to_save=False)

    def save_draft(self, db: Session, class_id: str, draft: Draft) -> Quiz:
        """
        Validate and persist: create, or full replace if the draft has a test_id

        Raises:
            QuizValidationError: draft is not a valid quiz
        """
        document = draft.to_document()
        if draft.test_id:
            quiz = directory_service.replace_test(db, class_id, draft.test_id, document)
        else:
            quiz = directory_service.create_test(db, class_id, document)

        logger.info(f"Draft saved as quiz {quiz.id}")
        return quiz


# Global instance
draft_service = DraftService()
