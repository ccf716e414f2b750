"""
Quiz schema validation - the trust boundary for quiz documents

Both AI output and teacher edits arrive as untyped JSON. Nothing reaches
persistence without passing through validate_quiz_document().
"""
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from app.errors import QuizValidationError, ValidationReason
from app.schemas.quiz import QuizDocument, QuizOption, QuizQuestion

logger = logging.getLogger(__name__)

SHARED = "shared"
PER_QUESTION = "per_question"


def _clean_passage(value: Any, reasons: List[ValidationReason], question_index: Optional[int] = None) -> List[str]:
    """Drop blank paragraphs; reject anything that is not a list of strings"""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
        where = "the shared passage" if question_index is None else f"question {question_index + 1}'s passage"
        reasons.append(ValidationReason(
            "malformed_document",
            f"{where} must be a list of paragraph strings",
            question_index
        ))
        return []
    return [p for p in value if p.strip()]


def _normalize_options(
    raw_options: Any,
    index: int,
    reasons: List[ValidationReason]
) -> List[QuizOption]:
    """Uppercase labels and check they are present and unique"""
    if not isinstance(raw_options, list) or not raw_options:
        reasons.append(ValidationReason(
            "missing_options",
            f"Question {index + 1} has no answer options",
            index
        ))
        return []

    options = []
    seen = set()
    for raw in raw_options:
        if not isinstance(raw, dict) or not isinstance(raw.get("label"), str) or not raw["label"].strip():
            reasons.append(ValidationReason(
                "malformed_document",
                f"Question {index + 1} has an option without a label",
                index
            ))
            continue

        label = raw["label"].strip().upper()
        if label in seen:
            reasons.append(ValidationReason(
                "duplicate_option_label",
                f"Question {index + 1} repeats option label {label}",
                index
            ))
            continue
        seen.add(label)

        text = raw.get("text")
        if not isinstance(text, str):
            reasons.append(ValidationReason(
                "malformed_document",
                f"Question {index + 1} option {label} has no text",
                index
            ))
            continue
        options.append(QuizOption(label=label, text=text))

    return options


def _existing_id(raw: Dict[str, Any], index: int, seen: Set[int], reasons: List[ValidationReason]) -> int:
    """Question id carried over from the stored quiz; answers are keyed by it"""
    question_id = raw.get("id")
    if isinstance(question_id, bool) or not isinstance(question_id, int) or question_id < 1:
        reasons.append(ValidationReason(
            "invalid_question_id",
            f"Question {index + 1} has no valid id",
            index
        ))
        return 0
    if question_id in seen:
        reasons.append(ValidationReason(
            "duplicate_question_id",
            f"Question {index + 1} repeats question id {question_id}",
            index
        ))
        return 0
    seen.add(question_id)
    return question_id


def _normalize_question(
    raw: Any,
    index: int,
    reasons: List[ValidationReason],
    seen_ids: Optional[Set[int]] = None
) -> Optional[QuizQuestion]:
    if not isinstance(raw, dict):
        reasons.append(ValidationReason(
            "malformed_document",
            f"Question {index + 1} is not an object",
            index
        ))
        return None

    errors_before = len(reasons)

    question_id = index + 1
    if seen_ids is not None:
        question_id = _existing_id(raw, index, seen_ids, reasons)

    text = raw.get("text")
    if not isinstance(text, str) or not text.strip():
        reasons.append(ValidationReason(
            "missing_question_text",
            f"Question {index + 1} has no question text",
            index
        ))

    passage = _clean_passage(raw.get("passage"), reasons, index)
    options = _normalize_options(raw.get("options"), index, reasons)

    # AI output uses camelCase, stored documents may come back either way
    correct = raw.get("correctAnswer", raw.get("correct_answer"))
    correct = correct.strip().upper() if isinstance(correct, str) else ""
    labels = [o.label for o in options]
    if options and correct not in labels:
        reasons.append(ValidationReason(
            "invalid_correct_answer",
            f"Question {index + 1} marks '{correct or '(none)'}' as correct, "
            f"but its options are {', '.join(labels)}",
            index
        ))

    if len(reasons) > errors_before:
        return None

    explanation = raw.get("explanation")
    return QuizQuestion(
        id=question_id,
        text=text.strip(),
        passage=passage,
        options=options,
        correct_answer=correct,
        explanation=explanation if isinstance(explanation, str) else ""
    )


def _detect_passage_mode(
    shared: List[str],
    questions: List[Tuple[int, List[str]]],
    reasons: List[ValidationReason]
) -> str:
    """
    Decide between shared and per-question passages

    Exactly one mode must be populated. In per-question mode every question
    needs its own passage.
    """
    with_passage = [i for i, passage in questions if passage]

    if shared and with_passage:
        reasons.append(ValidationReason(
            "ambiguous_passage_mode",
            "The quiz has both a shared passage and per-question passages"
        ))
        return SHARED

    if not shared and not with_passage:
        reasons.append(ValidationReason(
            "ambiguous_passage_mode",
            "The quiz has no reading passage"
        ))
        return SHARED

    if shared:
        return SHARED

    for i, passage in questions:
        if not passage:
            reasons.append(ValidationReason(
                "missing_question_passage",
                f"Question {i + 1} has no passage while other questions have their own",
                i
            ))
    return PER_QUESTION


def validate_quiz_document(raw: Any, assign_ids: bool = True) -> QuizDocument:
    """
    Validate and normalize an untrusted quiz document

    Args:
        raw: Decoded JSON (AI response or manual edit)
        assign_ids: True when the document first enters the system; questions
            are numbered 1..n. False for edits of a stored quiz; each question
            must keep its existing, unique integer id.

    Returns:
        Normalized QuizDocument (uppercase labels, blank paragraphs removed)

    Raises:
        QuizValidationError: carrying every reason found
    """
    if not isinstance(raw, dict):
        raise QuizValidationError([
            ValidationReason("malformed_document", "The quiz document is not a JSON object")
        ])

    reasons: List[ValidationReason] = []

    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        reasons.append(ValidationReason("missing_title", "The quiz has no title"))

    shared_passage = _clean_passage(raw.get("passage"), reasons)

    raw_questions = raw.get("questions")
    if raw_questions is not None and not isinstance(raw_questions, list):
        reasons.append(ValidationReason("malformed_document", "questions must be a list"))
        raw_questions = []
    if not raw_questions:
        reasons.append(ValidationReason("no_questions", "The quiz has no questions"))
        raw_questions = []

    questions = []
    raw_passages = []
    seen_ids = None if assign_ids else set()
    for index, raw_question in enumerate(raw_questions):
        question = _normalize_question(raw_question, index, reasons, seen_ids)
        if question is not None:
            questions.append(question)
            raw_passages.append((index, question.passage))

    passage_mode = SHARED
    if raw_questions and len(questions) == len(raw_questions):
        passage_mode = _detect_passage_mode(shared_passage, raw_passages, reasons)

    if reasons:
        logger.warning(f"Quiz document rejected: {[r.code for r in reasons]}")
        raise QuizValidationError(reasons)

    return QuizDocument(
        title=title.strip(),
        passage=shared_passage,
        passage_mode=passage_mode,
        questions=questions
    )
