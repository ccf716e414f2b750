"""
Draft quiz being authored

A Draft is an immutable value. Each edit returns a new Draft; nothing is
written until it is saved.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from app.errors import NotFoundError


class DraftOption(BaseModel):
    label: str
    text: str = ""

    class Config:
        frozen = True


class DraftQuestion(BaseModel):
    id: int
    text: str = ""
    passage: List[str] = []
    options: List[DraftOption] = []
    correct_answer: str = Field("", alias="correctAnswer")
    explanation: str = ""

    class Config:
        frozen = True
        populate_by_name = True


class Draft(BaseModel):
    """
    Quiz being authored; may be invalid until saved

    test_id is set when the draft edits an existing quiz, in which case
    saving replaces that quiz as a whole.
    """
    test_id: Optional[str] = None
    title: str = ""
    passage: List[str] = []
    questions: List[DraftQuestion] = []

    class Config:
        frozen = True
        populate_by_name = True

    @classmethod
    def from_document(cls, document: Dict[str, Any], test_id: Optional[str] = None) -> "Draft":
        """
        Load a document into the editor

        AI output is numbered 1..n here, the one time it gets ids. A draft of
        a stored quiz (test_id set) keeps the stored ids so existing answers
        still point at the same questions.

        Shapes the editor cannot represent are dropped, so callers holding
        untrusted input validate the raw document first and report its
        reasons (see DraftService.review_generated).
        """
        questions = []
        raw_questions = document.get("questions") if isinstance(document.get("questions"), list) else []
        for raw in raw_questions:
            if not isinstance(raw, dict):
                continue
            raw_options = raw.get("options") if isinstance(raw.get("options"), list) else []
            options = [
                DraftOption(label=_text(o.get("label")), text=_text(o.get("text")))
                for o in raw_options if isinstance(o, dict)
            ]
            stored_id = raw.get("id")
            keep_id = test_id and isinstance(stored_id, int) and not isinstance(stored_id, bool)
            questions.append(DraftQuestion(
                id=stored_id if keep_id else len(questions) + 1,
                text=_text(raw.get("text")),
                passage=_strings(raw.get("passage")),
                options=options,
                correct_answer=_text(raw.get("correctAnswer", raw.get("correct_answer"))),
                explanation=_text(raw.get("explanation"))
            ))

        return cls(
            test_id=test_id,
            title=_text(document.get("title")),
            passage=_strings(document.get("passage")),
            questions=questions
        )

    @classmethod
    def from_quiz(cls, quiz) -> "Draft":
        return cls.from_document(
            {"title": quiz.title, "passage": quiz.passage, "questions": quiz.questions},
            test_id=quiz.id
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "passage": list(self.passage),
            "questions": [q.model_dump(by_alias=True) for q in self.questions]
        }

    # Edit operations

    def set_title(self, title: str) -> "Draft":
        return self.model_copy(update={"title": title})

    def set_passage(self, paragraphs: List[str]) -> "Draft":
        return self.model_copy(update={"passage": list(paragraphs)})

    def update_question_text(self, question_id: int, text: str) -> "Draft":
        return self._replace_question(question_id, text=text)

    def set_question_passage(self, question_id: int, paragraphs: List[str]) -> "Draft":
        return self._replace_question(question_id, passage=list(paragraphs))

    def update_option(self, question_id: int, label: str, text: str) -> "Draft":
        question = self._question(question_id)
        if not any(o.label == label for o in question.options):
            raise NotFoundError(f"Question {question_id} has no option {label}.")
        options = [
            DraftOption(label=o.label, text=text) if o.label == label else o
            for o in question.options
        ]
        return self._replace_question(question_id, options=options)

    def set_correct_answer(self, question_id: int, label: str) -> "Draft":
        return self._replace_question(question_id, correct_answer=label)

    def update_explanation(self, question_id: int, explanation: str) -> "Draft":
        return self._replace_question(question_id, explanation=explanation)

    def add_question(self, text: str = "", labels: str = "ABCD") -> "Draft":
        """Append a blank question with empty options for each label"""
        next_id = max((q.id for q in self.questions), default=0) + 1
        question = DraftQuestion(
            id=next_id,
            text=text,
            options=[DraftOption(label=label) for label in labels]
        )
        return self.model_copy(update={"questions": [*self.questions, question]})

    def remove_question(self, question_id: int) -> "Draft":
        self._question(question_id)
        return self.model_copy(update={
            "questions": [q for q in self.questions if q.id != question_id]
        })

    def _question(self, question_id: int) -> DraftQuestion:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise NotFoundError(f"Question {question_id} is not in this draft.")

    def _replace_question(self, question_id: int, **changes) -> "Draft":
        updated = self._question(question_id).model_copy(update=changes)
        return self.model_copy(update={
            "questions": [updated if q.id == question_id else q for q in self.questions]
        })


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


class DraftIssue(BaseModel):
    """A validator finding the teacher should fix before saving"""
    code: str
    message: str
    question_index: Optional[int] = None


class DraftResponse(BaseModel):
    """Draft plus the reasons it would currently be rejected"""
    draft: Draft
    issues: List[DraftIssue] = []
    ready_to_save: bool


class DraftEditRequest(BaseModel):
    """Edits applied in order to a posted draft"""
    draft: Draft
    edits: List[Dict[str, Any]]


class DraftSaveRequest(BaseModel):
    draft: Draft
