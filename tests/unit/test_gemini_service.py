# =============================================================================
# TESTS - Gemini quiz generation
# =============================================================================

import json
from unittest.mock import MagicMock, patch

import pytest

from app.errors import EmptyGenerationInputError, ExternalServiceError
from app.services.gemini_service import QUIZ_PROMPT, GeminiService


@pytest.fixture
def service():
    with patch("app.services.gemini_service.genai.GenerativeModel") as model_cls:
        svc = GeminiService()
        svc.model = model_cls.return_value
        yield svc


@pytest.fixture(autouse=True)
def no_cache():
    with patch("app.services.gemini_service.cache_service") as cache:
        cache.get_generation.return_value = None
        cache.generation_key.return_value = "quizgen:test"
        yield cache


def _respond(service, text):
    service.model.generate_content.return_value = MagicMock(text=text)


class TestGenerateQuiz:

    def test_returns_decoded_document(self, service, shared_quiz_document):
        _respond(service, json.dumps(shared_quiz_document))

        document = service.generate_quiz([], "Some reading")

        assert document["title"] == shared_quiz_document["title"]

    def test_parts_order(self, service, shared_quiz_document):
        _respond(service, json.dumps(shared_quiz_document))

        service.generate_quiz([(b"img1", "image/png"), (b"img2", "image/jpeg")], "text")

        parts = service.model.generate_content.call_args[0][0]
        assert parts[0] == QUIZ_PROMPT
        assert parts[1] == {"mime_type": "image/png", "data": b"img1"}
        assert parts[2] == {"mime_type": "image/jpeg", "data": b"img2"}
        assert parts[3].endswith("text")

    def test_strips_code_fence(self, service, shared_quiz_document):
        _respond(service, "```json\n" + json.dumps(shared_quiz_document) + "\n```")

        assert service.generate_quiz([], "x")["questions"]

    def test_empty_input(self, service):
        with pytest.raises(EmptyGenerationInputError):
            service.generate_quiz([], "   ")
        service.model.generate_content.assert_not_called()

    def test_empty_response(self, service):
        _respond(service, "")

        with pytest.raises(ExternalServiceError) as exc_info:
            service.generate_quiz([], "x")

        assert "empty response" in exc_info.value.message

    def test_invalid_json(self, service):
        _respond(service, "not json")

        with pytest.raises(ExternalServiceError):
            service.generate_quiz([], "x")

    def test_non_object_json(self, service):
        _respond(service, "[1, 2]")

        with pytest.raises(ExternalServiceError):
            service.generate_quiz([], "x")

    def test_sdk_error_surfaced_verbatim(self, service):
        service.model.generate_content.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(ExternalServiceError) as exc_info:
            service.generate_quiz([], "x")

        assert exc_info.value.message == "quota exceeded"
        assert "retry" in exc_info.value.to_dict()

    def test_cached_generation_skips_api(self, service, no_cache, shared_quiz_document):
        no_cache.get_generation.return_value = shared_quiz_document

        assert service.generate_quiz([], "x") == shared_quiz_document
        service.model.generate_content.assert_not_called()

    def test_result_cached(self, service, no_cache, shared_quiz_document):
        _respond(service, json.dumps(shared_quiz_document))

        service.generate_quiz([], "x")

        no_cache.store_generation.assert_called_once_with("quizgen:test", shared_quiz_document)
