# =============================================================================
# TESTS - HTTP and WebSocket endpoints
# =============================================================================

from unittest.mock import patch

import pytest
from starlette.websockets import WebSocketDisconnect

from app.errors import ExternalServiceError
from app.utils.rate_limiter import generation_limiter


@pytest.fixture
def class_id(client, teacher_headers):
    response = client.post("/api/classes", json={"name": "World History 101"}, headers=teacher_headers)
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def test_id(client, teacher_headers, class_id, shared_quiz_document):
    response = client.post(f"/api/classes/{class_id}/tests", json=shared_quiz_document, headers=teacher_headers)
    assert response.status_code == 201
    return response.json()["id"]


def _student(class_id, test_id):
    return f"/api/student/classes/{class_id}/tests/{test_id}"


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["generation_cache"] == "disabled"


class TestClasses:

    def test_requires_teacher_identity(self, client):
        response = client.get("/api/classes")

        assert response.status_code == 401

    def test_create_and_list(self, client, teacher_headers, class_id):
        response = client.get("/api/classes", headers=teacher_headers)

        assert [c["id"] for c in response.json()] == [class_id]
        assert len(response.json()[0]["join_code"]) == 6

    def test_blank_name_rejected(self, client, teacher_headers):
        response = client.post("/api/classes", json={"name": "   "}, headers=teacher_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_other_teacher_forbidden(self, client, class_id):
        response = client.get(f"/api/classes/{class_id}/tests", headers={"X-Teacher-Id": "teacher-2"})

        assert response.status_code == 403
        assert response.json()["error"] == "permission_denied"

    def test_join_normalizes_case(self, client, teacher_headers, class_id):
        code = client.get("/api/classes", headers=teacher_headers).json()[0]["join_code"]

        response = client.post("/api/join", json={"join_code": f" {code.lower()} ", "student_name": " Alice "})

        assert response.status_code == 200
        assert response.json()["class_id"] == class_id
        assert response.json()["student_name"] == "Alice"

    def test_join_unknown_code(self, client):
        response = client.post("/api/join", json={"join_code": "NOPE00", "student_name": "Alice"})

        assert response.status_code == 404
        assert response.json()["message"] == "Invalid join code."

    def test_delete_class(self, client, teacher_headers, class_id, test_id):
        response = client.delete(f"/api/classes/{class_id}", headers=teacher_headers)

        assert response.status_code == 204
        assert client.get("/api/classes", headers=teacher_headers).json() == []

    def test_set_active_test(self, client, teacher_headers, class_id, test_id):
        response = client.put(
            f"/api/classes/{class_id}/active-test", json={"test_id": test_id}, headers=teacher_headers
        )

        assert response.json()["active_test_id"] == test_id


class TestQuizAuthoring:

    def test_invalid_document_rejected(self, client, teacher_headers, class_id, shared_quiz_document):
        shared_quiz_document["questions"][0]["correctAnswer"] = "E"

        response = client.post(f"/api/classes/{class_id}/tests", json=shared_quiz_document, headers=teacher_headers)

        assert response.status_code == 422
        assert response.json()["reasons"][0]["code"] == "invalid_correct_answer"

    def test_get_normalized_quiz(self, client, teacher_headers, class_id, test_id):
        quiz = client.get(f"/api/classes/{class_id}/tests/{test_id}", headers=teacher_headers).json()

        assert quiz["total_questions"] == 2
        assert quiz["questions"][1]["correctAnswer"] == "B"
        assert quiz["passage_mode"] == "shared"

    def test_replace(self, client, teacher_headers, class_id, test_id, per_question_document):
        response = client.put(
            f"/api/classes/{class_id}/tests/{test_id}", json=per_question_document, headers=teacher_headers
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Words in Context"

    def test_generate_draft(self, client, teacher_headers, class_id, shared_quiz_document):
        shared_quiz_document["questions"][0]["correctAnswer"] = "F"
        with patch("app.api.quizzes.gemini_service.generate_quiz", return_value=shared_quiz_document) as generate:
            response = client.post(
                f"/api/classes/{class_id}/drafts/generate",
                data={"raw_text": "The Roman Empire..."},
                files=[("files", ("page1.png", b"\x89PNG", "image/png"))],
                headers=teacher_headers,
            )

        assert response.status_code == 200
        body = response.json()
        assert body["ready_to_save"] is False
        assert body["issues"][0]["code"] == "invalid_correct_answer"
        assert generate.call_args[0][0] == [(b"\x89PNG", "image/png")]

    def test_generate_reports_malformed_output(self, client, teacher_headers, class_id, shared_quiz_document):
        shared_quiz_document["questions"].append("stray text")
        with patch("app.api.quizzes.gemini_service.generate_quiz", return_value=shared_quiz_document):
            response = client.post(
                f"/api/classes/{class_id}/drafts/generate",
                data={"raw_text": "text"},
                headers=teacher_headers,
            )

        body = response.json()
        assert body["ready_to_save"] is False
        assert [i["code"] for i in body["issues"]] == ["malformed_document"]
        assert body["issues"][0]["question_index"] == 2

    def test_replace_keeps_question_ids(self, client, teacher_headers, class_id, test_id):
        url = f"/api/classes/{class_id}/tests/{test_id}"
        document = client.get(url, headers=teacher_headers).json()
        document["questions"] = document["questions"][1:]

        replaced = client.put(url, json=document, headers=teacher_headers)

        assert [q["id"] for q in replaced.json()["questions"]] == [2]

    def test_replace_rejects_duplicate_ids(self, client, teacher_headers, class_id, test_id):
        url = f"/api/classes/{class_id}/tests/{test_id}"
        document = client.get(url, headers=teacher_headers).json()
        document["questions"][1]["id"] = 1

        response = client.put(url, json=document, headers=teacher_headers)

        assert response.status_code == 422
        assert response.json()["reasons"][0]["code"] == "duplicate_question_id"

    def test_generate_rejects_non_images(self, client, teacher_headers, class_id):
        response = client.post(
            f"/api/classes/{class_id}/drafts/generate",
            files=[("files", ("notes.pdf", b"%PDF", "application/pdf"))],
            headers=teacher_headers,
        )

        assert response.status_code == 400

    def test_generate_external_failure(self, client, teacher_headers, class_id):
        with patch(
            "app.api.quizzes.gemini_service.generate_quiz",
            side_effect=ExternalServiceError("The AI returned an empty response."),
        ):
            response = client.post(
                f"/api/classes/{class_id}/drafts/generate",
                data={"raw_text": "text"},
                headers=teacher_headers,
            )

        assert response.status_code == 502
        assert response.json()["message"] == "The AI returned an empty response."
        assert "retry" in response.json()

    def test_edit_and_save_draft(self, client, teacher_headers, class_id, shared_quiz_document):
        with patch("app.api.quizzes.gemini_service.generate_quiz", return_value=shared_quiz_document):
            draft = client.post(
                f"/api/classes/{class_id}/drafts/generate",
                data={"raw_text": "text"},
                headers=teacher_headers,
            ).json()["draft"]

        edited = client.post(
            f"/api/classes/{class_id}/drafts/edit",
            json={"draft": draft, "edits": [{"op": "set_title", "title": "Edited title"}]},
            headers=teacher_headers,
        ).json()
        assert edited["ready_to_save"] is True

        saved = client.post(
            f"/api/classes/{class_id}/drafts/save", json={"draft": edited["draft"]}, headers=teacher_headers
        )

        assert saved.status_code == 201
        assert saved.json()["title"] == "Edited title"

    def test_generation_rate_limited(self, client, teacher_headers, class_id, shared_quiz_document):
        with patch("app.api.quizzes.gemini_service.generate_quiz", return_value=shared_quiz_document), \
                patch.object(generation_limiter, "windows", [(60, 1)]):
            first = client.post(f"/api/classes/{class_id}/drafts/generate", data={"raw_text": "a"}, headers=teacher_headers)
            second = client.post(f"/api/classes/{class_id}/drafts/generate", data={"raw_text": "b"}, headers=teacher_headers)

        assert first.status_code == 200
        assert second.status_code == 429


class TestStudentAttempt:

    def test_start_hides_answer_key(self, client, class_id, test_id):
        response = client.post(f"{_student(class_id, test_id)}/start", json={"student_name": "Alice"})

        assert response.status_code == 200
        question = response.json()["questions"][0]
        assert "correctAnswer" not in question
        assert "explanation" not in question

    def test_start_unknown_quiz(self, client, class_id):
        response = client.post(f"{_student(class_id, 'missing')}/start", json={"student_name": "Alice"})

        assert response.status_code == 404

    def test_submit_scores(self, client, class_id, test_id):
        response = client.post(
            f"{_student(class_id, test_id)}/submit",
            json={"student_name": "Alice", "answers": {"1": "B", "2": "C"}},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["submission"]["score"] == 50
        assert body["score_display"] == "50%"
        assert body["submission"]["attempt_number"] == 1

    def test_attempt_history(self, client, class_id, test_id):
        for answers in ({}, {"1": "B"}, {"1": "B", "2": "B"}):
            client.post(f"{_student(class_id, test_id)}/submit", json={"student_name": "Alice", "answers": answers})

        history = client.get(f"{_student(class_id, test_id)}/submissions", params={"student_name": "Alice"}).json()

        assert [s["score"] for s in history] == [0, 50, 100]
        assert [s["attempt_number"] for s in history] == [1, 2, 3]

    def test_review_requires_submission(self, client, class_id, test_id):
        url = f"{_student(class_id, test_id)}/review"

        assert client.get(url, params={"student_name": "Alice"}).status_code == 404

        client.post(f"{_student(class_id, test_id)}/submit", json={"student_name": "Alice", "answers": {}})
        review = client.get(url, params={"student_name": "Alice"})

        assert review.status_code == 200
        assert review.json()["questions"][0]["correctAnswer"] == "B"


class TestTeacherMonitor:

    def test_submissions_newest_first(self, client, teacher_headers, class_id, test_id):
        client.post(f"{_student(class_id, test_id)}/submit", json={"student_name": "Alice", "answers": {}})
        client.post(f"{_student(class_id, test_id)}/submit", json={"student_name": "Bob", "answers": {"1": "B"}})

        subs = client.get(f"/api/classes/{class_id}/tests/{test_id}/submissions", headers=teacher_headers).json()

        assert [s["student_name"] for s in subs] == ["Bob", "Alice"]

    def test_submission_detail(self, client, teacher_headers, class_id, test_id):
        submitted = client.post(
            f"{_student(class_id, test_id)}/submit", json={"student_name": "Alice", "answers": {"1": "B"}}
        ).json()["submission"]

        detail = client.get(
            f"/api/classes/{class_id}/tests/{test_id}/submissions/{submitted['id']}", headers=teacher_headers
        ).json()

        assert [b["is_correct"] for b in detail["breakdown"]] == [True, False]

    def test_live_reconciliation_and_stats(self, client, teacher_headers, class_id, test_id):
        base = _student(class_id, test_id)
        client.post(f"{base}/start", json={"student_name": "Alice"})
        client.post(f"{base}/start", json={"student_name": "Bob"})
        client.put(f"{base}/live", json={"student_name": "Bob", "answers": {"1": "A"}})
        client.put(f"{base}/live", json={"student_name": "Bob", "current_question_index": 1})
        client.post(f"{base}/submit", json={"student_name": "Alice", "answers": {"1": "B", "2": "B"}})

        live = client.get(f"/api/classes/{class_id}/tests/{test_id}/live", headers=teacher_headers).json()
        stats = client.get(f"/api/classes/{class_id}/tests/{test_id}/stats", headers=teacher_headers).json()

        assert live["active_students"] == ["Bob"]
        assert live["completed_students"] == ["Alice"]
        bob = next(s for s in live["sessions"] if s["student_name"] == "Bob")
        assert bob["current_question_index"] == 1
        assert bob["answers"] == {"1": "A"}

        assert stats["total_participants"] == 2
        assert stats["active"] == 1
        assert stats["questions"][0]["answered"] == 2
        assert stats["questions"][0]["correct_percent"] == 50

    def test_live_feed_websocket(self, client, class_id, test_id):
        url = f"/api/classes/{class_id}/tests/{test_id}/live/ws?teacher_id=teacher-1"

        with client.websocket_connect(url) as websocket:
            assert websocket.receive_json() == []

            client.put(f"{_student(class_id, test_id)}/live", json={"student_name": "Alice", "current_question_index": 1})
            snapshot = websocket.receive_json()

        assert snapshot[0]["student_name"] == "Alice"
        assert snapshot[0]["current_question_index"] == 1

    def test_submissions_feed_websocket(self, client, class_id, test_id):
        url = f"/api/classes/{class_id}/tests/{test_id}/submissions/ws"

        with client.websocket_connect(url, headers={"X-Teacher-Id": "teacher-1"}) as websocket:
            assert websocket.receive_json() == []

            client.post(f"{_student(class_id, test_id)}/submit", json={"student_name": "Alice", "answers": {}})
            snapshot = websocket.receive_json()

        assert snapshot[0]["score"] == 0

    def test_websocket_rejects_other_teacher(self, client, class_id, test_id):
        url = f"/api/classes/{class_id}/tests/{test_id}/live/ws?teacher_id=teacher-2"

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(url) as websocket:
                websocket.receive_json()
