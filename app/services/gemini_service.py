"""
Gemini AI service for extracting quizzes from reading material
"""
import google.generativeai as genai
from app.config import settings
from app.errors import EmptyGenerationInputError, ExternalServiceError
from app.utils.cache import cache_service
import json
import logging
from typing import List, Dict, Any, Tuple

logger = logging.getLogger(__name__)

# Configure Gemini API
genai.configure(api_key=settings.GEMINI_API_KEY)


QUIZ_PROMPT = """
You are an expert educational curriculum designer.
Analyze the provided material (image or raw text) and generate a rigorous reading comprehension quiz.

Follow these strict requirements:

**PASSAGE HANDLING - READ CAREFULLY:**
- SCENARIO A (Shared passage): If the document has ONE single reading passage followed by multiple questions,
  put the entire passage in the top-level "passage" array and set every question's "passage" field to an empty array [].
- SCENARIO B (Per-question passages): If each question has its OWN self-contained paragraph or excerpt
  (common in SAT/ACT-style "Words in Context" sections), set the top-level "passage" to an empty array []
  and put each question's dedicated passage text in that question's own "passage" field.
- Do NOT mix both. Choose one scenario that matches the document structure.

For EITHER scenario:
- Retain the original paragraph structure exactly. Do NOT break paragraphs into individual sentences.
- If line numbers appear in the margin (e.g., 5, 10, 15), embed them inline in brackets (e.g., "[5]")
  at the exact location they appear in the original text.

1. EXTRACT the multiple-choice questions written in the material itself. Do NOT create your own questions.
   If and only if the material contains NO questions, create 3 to 5 multiple-choice questions based on it.
2. Provide all options for each question as they appear in the source (typically A-D, sometimes E).
   Transcribe options VERBATIM, including repeated leading phrases.
3. Provide a clear, pedagogical "explanation" for the correct answer. If the question refers to specific
   lines, the explanation MUST cite those lines.
4. Return ONLY valid JSON in this exact format (no markdown, no preamble):

{
  "title": "Short descriptive title",
  "passage": ["paragraph 1", "paragraph 2"],
  "questions": [
    {
      "id": 1,
      "passage": [],
      "text": "Question text?",
      "options": [
        {"label": "A", "text": "First choice"},
        {"label": "B", "text": "Second choice"},
        {"label": "C", "text": "Third choice"},
        {"label": "D", "text": "Fourth choice"}
      ],
      "correctAnswer": "B",
      "explanation": "Why B is correct, citing the passage."
    }
  ]
}
"""


class GeminiService:
    """Service for all Gemini AI operations"""

    def __init__(self):
        self.model = genai.GenerativeModel(settings.GEMINI_MODEL)
        self.generation_config = genai.GenerationConfig(
            response_mime_type="application/json",
            temperature=settings.GENERATION_TEMPERATURE
        )

    def generate_quiz(
        self,
        images: List[Tuple[bytes, str]],
        raw_text: str = ""
    ) -> Dict[str, Any]:
        """
        Extract a quiz document from images and/or raw text

        The result is untrusted and must go through the quiz validator
        before it is stored.

        Args:
            images: Ordered (data, mime_type) pairs
            raw_text: Optional pasted text

        Returns:
            Decoded JSON object from the model

        Raises:
            EmptyGenerationInputError: no images and blank text
            ExternalServiceError: API failure, empty or unparseable output
        """
        raw_text = raw_text or ""
        if not images and not raw_text.strip():
            raise EmptyGenerationInputError(
                "Please provide either screenshots or raw text to generate a quiz."
            )

        cache_key = cache_service.generation_key(images, raw_text, settings.GEMINI_MODEL)
        cached = cache_service.get_generation(cache_key)
        if cached:
            logger.info(f"Returning cached generation for {cache_key}")
            return cached

        parts = self._build_parts(images, raw_text)

        try:
            response = self.model.generate_content(parts, generation_config=self.generation_config)
            response_text = response.text
        except Exception as e:
            # Blocked responses raise ValueError on .text; SDK errors surface verbatim
            logger.error(f"Failed to generate quiz: {str(e)}")
            raise ExternalServiceError(str(e) or "Unknown API error")

        document = self._parse_quiz_response(response_text)
        logger.info(
            f"Generated quiz '{document.get('title')}' with "
            f"{len(document.get('questions') or [])} questions from "
            f"{len(images)} image(s) and {len(raw_text)} chars of text"
        )

        cache_service.store_generation(cache_key, document)
        return document

    def _build_parts(self, images: List[Tuple[bytes, str]], raw_text: str) -> List[Any]:
        """Prompt first, then images in upload order, then raw text"""
        parts: List[Any] = [QUIZ_PROMPT]
        for data, mime_type in images:
            parts.append({"mime_type": mime_type, "data": data})
        if raw_text.strip():
            parts.append(f"Here is the raw text to analyze: \n\n{raw_text}")
        return parts

    def _parse_quiz_response(self, response_text: str) -> Dict[str, Any]:
        """Decode the model's JSON output"""
        if not response_text or not response_text.strip():
            raise ExternalServiceError(
                "The AI returned an empty response. This may be due to safety filters flagging "
                "the reading passage, or a temporary API hiccup. Please try a different text."
            )

        cleaned = response_text.strip()

        # Remove markdown code blocks
        if cleaned.startswith("```json"):
            cleaned = cleaned[7:-3].strip()
        elif cleaned.startswith("```"):
            cleaned = cleaned[3:-3].strip()

        try:
            document = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse quiz JSON: {str(e)}")
            logger.error(f"Response text: {response_text[:500]}")
            raise ExternalServiceError(f"The AI returned invalid JSON: {str(e)}")

        if not isinstance(document, dict):
            raise ExternalServiceError("The AI response is not a quiz object.")

        return document


# Global instance
gemini_service = GeminiService()
