# =============================================================================
# TESTS - Submission store
# =============================================================================

import pytest

from app.errors import NotFoundError, UnscorableQuizError
from app.models import Quiz
from app.services.submission_service import submission_service


class TestRecord:

    def test_round_trip(self, db, classroom, quiz):
        answers = {"1": "B", "2": "C"}
        submission_service.record(db, classroom.id, quiz.id, "Alice", 50, answers)

        [stored] = submission_service.list_for_student(db, classroom.id, quiz.id, "Alice")

        assert stored.score == 50
        assert stored.answers == answers

    def test_multiple_attempts(self, db, classroom, quiz):
        for score in (0, 50, 100):
            submission_service.record(db, classroom.id, quiz.id, "Alice", score, {})
        submission_service.record(db, classroom.id, quiz.id, "Bob", 100, {})

        mine = submission_service.list_for_student(db, classroom.id, quiz.id, "Alice")
        everyone = submission_service.list_all(db, classroom.id, quiz.id)

        assert [s.score for s in mine] == [0, 50, 100]
        assert len(everyone) == 4
        assert everyone[0].student_name == "Bob"
        assert [s.score for s in everyone if s.student_name == "Alice"] == [100, 50, 0]

    def test_names_are_exact_keys(self, db, classroom, quiz):
        submission_service.record(db, classroom.id, quiz.id, "Alice", 50, {})

        assert submission_service.list_for_student(db, classroom.id, quiz.id, "alice") == []

    def test_no_update_or_delete_api(self):
        assert not hasattr(submission_service, "update")
        assert not hasattr(submission_service, "delete")


class TestSubmit:

    def test_scores_server_side(self, db, classroom, quiz):
        result = submission_service.submit(db, classroom.id, quiz.id, "Alice", {"1": "B", "2": "C"})

        assert result["submission"].score == 50
        assert result["attempt_number"] == 1
        assert [b["is_correct"] for b in result["breakdown"]] == [True, False]

    def test_attempt_numbers_increase(self, db, classroom, quiz):
        submission_service.submit(db, classroom.id, quiz.id, "Alice", {})
        result = submission_service.submit(db, classroom.id, quiz.id, "Alice", {"1": "B", "2": "B"})

        assert result["attempt_number"] == 2
        assert result["submission"].score == 100

    def test_unknown_quiz(self, db, classroom):
        with pytest.raises(NotFoundError):
            submission_service.submit(db, classroom.id, "missing", "Alice", {})

    def test_zero_question_quiz_refused(self, db, classroom):
        empty = Quiz(class_id=classroom.id, title="Empty", passage=["p"], questions=[])
        db.add(empty)
        db.commit()

        with pytest.raises(UnscorableQuizError):
            submission_service.submit(db, classroom.id, empty.id, "Alice", {})


class TestFeed:

    def test_subscribers_get_newest_first_list(self, db, classroom, quiz):
        received = []
        subscription = submission_service.subscribe(classroom.id, quiz.id, received.append)

        submission_service.record(db, classroom.id, quiz.id, "Alice", 0, {})
        submission_service.record(db, classroom.id, quiz.id, "Bob", 100, {})
        subscription.dispose()
        submission_service.record(db, classroom.id, quiz.id, "Cara", 50, {})

        assert len(received) == 2
        assert [s["student_name"] for s in received[-1]] == ["Bob", "Alice"]
