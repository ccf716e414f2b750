"""
Quiz scoring service
Exact label match against each question's correct answer
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.errors import UnscorableQuizError

logger = logging.getLogger(__name__)


def percentage(part: int, total: int) -> int:
    """round(100 * part / total) with halves rounded up, using integer math"""
    return (200 * part + total) // (2 * total)


class ScoringService:
    """
    Service for scoring quiz attempts

    Strategy:
    - A question is correct iff the submitted label equals correctAnswer exactly
    - Missing answers count as incorrect
    - Score is an integer percentage of all questions
    """

    @staticmethod
    def _selected(answers: Mapping[Any, str], question_id: Any) -> Optional[str]:
        # JSON round-trips turn integer keys into strings
        if question_id in answers:
            return answers[question_id]
        return answers.get(str(question_id))

    def ensure_attemptable(self, questions: List[Dict[str, Any]]) -> None:
        """
        Refuse to present a quiz with no questions

        Raises:
            UnscorableQuizError
        """
        if not questions:
            raise UnscorableQuizError()

    def grade(
        self,
        questions: List[Dict[str, Any]],
        answers: Mapping[Any, str]
    ) -> List[Dict[str, Any]]:
        """
        Per-question grading breakdown

        Args:
            questions: Stored question dictionaries
            answers: {question_id: label}

        Returns:
            List of {question_id, selected, correct_answer, is_correct, explanation}
        """
        breakdown = []
        for question in questions:
            selected = self._selected(answers, question["id"])
            correct_answer = question["correctAnswer"]
            breakdown.append({
                "question_id": question["id"],
                "selected": selected,
                "correct_answer": correct_answer,
                "is_correct": selected is not None and selected == correct_answer,
                "explanation": question.get("explanation", "")
            })
        return breakdown

    def score(
        self,
        questions: List[Dict[str, Any]],
        answers: Mapping[Any, str]
    ) -> int:
        """
        Integer percentage score for an attempt

        Raises:
            UnscorableQuizError: quiz has no questions
        """
        self.ensure_attemptable(questions)

        correct = sum(1 for item in self.grade(questions, answers) if item["is_correct"])
        result = percentage(correct, len(questions))

        logger.debug(f"Scored attempt: {correct}/{len(questions)} = {result}%")
        return result

    def question_stats(
        self,
        questions: List[Dict[str, Any]],
        answer_sets: Iterable[Mapping[Any, str]]
    ) -> List[Dict[str, Any]]:
        """
        Class-wide correct/incorrect distribution per question

        Only questions a participant actually answered count toward that
        question's percentages.
        """
        answer_sets = list(answer_sets)
        stats = []
        for question in questions:
            answered = correct = 0
            for answers in answer_sets:
                selected = self._selected(answers or {}, question["id"])
                if not selected:
                    continue
                answered += 1
                if selected == question["correctAnswer"]:
                    correct += 1

            incorrect = answered - correct
            stats.append({
                "question_id": question["id"],
                "text": question.get("text", ""),
                "answered": answered,
                "correct": correct,
                "incorrect": incorrect,
                "correct_percent": percentage(correct, answered) if answered else 0,
                "incorrect_percent": percentage(incorrect, answered) if answered else 0
            })
        return stats


# Global instance
scoring_service = ScoringService()
