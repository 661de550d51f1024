"""Adapter: Gemini-backed TextGenerator."""

from __future__ import annotations

from google import genai
from google.genai import types


class GeminiTextGenerator:
    """Concrete TextGenerator using the google-genai client.

    The HTTP timeout is a transport guard; the pipeline also enforces its
    own wall-clock budget around every call.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout_seconds: float = 30.0,
        temperature: float = 0.2,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._api_key = api_key
        self._timeout_ms = int(timeout_seconds * 1000)
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=self._timeout_ms),
            )
        return self._client

    def generate(self, prompt: str) -> str:
        response = self._get_client().models.generate_content(
            model=self._model,
            contents=prompt,
            config=types.GenerateContentConfig(temperature=self._temperature),
        )
        return response.text or ""
