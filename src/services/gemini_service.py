import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from src.utils.config import Settings

class GeminiService:
    """Thin async wrapper over the Gemini generateContent call."""

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.model_name = settings.GEMINI_MODEL
        self.temperature = settings.GEMINI_TEMPERATURE
        self.max_output_tokens = settings.GEMINI_MAX_OUTPUT_TOKENS
        self.logger = logging.getLogger(__name__)

        if client is not None:
            self.client = client
        elif settings.GEMINI_API_KEY:
            self.client = genai.Client(api_key=settings.GEMINI_API_KEY)
        else:
            self.client = genai.Client(
                vertexai=True,
                project=settings.GOOGLE_CLOUD_PROJECT,
                location=settings.GOOGLE_CLOUD_LOCATION,
            )
        self.logger.info(f"Gemini client ready for model {self.model_name}")

    async def generate_json_from_prompt(self, prompt: str) -> str:
        """Return the raw model text for a JSON-producing prompt.

        The text may still be wrapped in code fences; callers parse it.
        Raises RuntimeError if generation fails.
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=self.temperature,
                    top_k=1,
                    top_p=0.8,
                    max_output_tokens=self.max_output_tokens,
                    response_mime_type="application/json",
                    candidate_count=1,
                ),
            )
        except Exception as e:
            raise RuntimeError(f"Gemini generation failed: {str(e)}") from e

        text = self._extract_response_text(response)
        if not text:
            raise RuntimeError("Gemini returned an empty response")
        self.logger.debug(f"[gemini] Response text length: {len(text)}")
        return text

    def _extract_response_text(self, response: Any) -> Optional[str]:
        """Extract text from a Gemini response, handling candidates and multi-part content."""
        try:
            text_attr = getattr(response, "text", None)
        except ValueError:
            text_attr = None
        if isinstance(text_attr, str) and text_attr.strip():
            return text_attr

        parts_text: list[str] = []
        for cand in getattr(response, "candidates", None) or []:
            content = getattr(cand, "content", None)
            for part in getattr(content, "parts", None) or []:
                t = getattr(part, "text", None)
                if t:
                    parts_text.append(t)
        combined = "\n".join(parts_text).strip()
        return combined or None
