"""
Gemini Client - Review Text Generation
======================================

ARCHITECTURAL DECISION:
- Calls the Gemini ``generateContent`` REST endpoint directly with requests
- The API key and model come from the stored router configuration, not the
  environment, so the shop owner can change them from the admin page
- No retries: a failed call is reported to the caller, who may try again

USAGE:
    client = GeminiClient()
    text = client.generate("Write a short review...", api_key="...", model="gemini-1.5-flash-latest")
"""

import logging
from typing import Optional

import requests

from ...domain import UpstreamError
from ..config import GenerationSettings, get_settings

logger = logging.getLogger(__name__)


class GeminiClient:
    """
    Thin client for the Gemini generative-language API.

    FAILURE BEHAVIOR:
    - API answered with an error status: UpstreamError (502) carrying the API's message
    - Transport failure or timeout: UpstreamError (500)
    - Response without usable text: UpstreamError (502)
    """

    API_ERROR_MESSAGE = "Gemini APIからエラーが返されました。設定を見直してください。"
    EMPTY_TEXT_MESSAGE = "Gemini APIから有効な文章が返されませんでした。"
    TRANSPORT_ERROR_MESSAGE = "口コミ生成処理に失敗しました。"

    def __init__(self, settings: Optional[GenerationSettings] = None):
        settings = settings or get_settings().generation
        self._api_base = settings.api_base
        self._timeout = settings.timeout_seconds
        self.default_model = settings.default_model

    def endpoint(self, model: str) -> str:
        return f"{self._api_base}/models/{model}:generateContent"

    def generate(self, prompt: str, api_key: str, model: Optional[str] = None) -> str:
        """
        Generate text for a single user prompt.

        Args:
            prompt: Complete prompt text.
            api_key: Gemini API key.
            model: Model name; the configured default when empty.

        Returns:
            Generated text, trimmed and never empty.
        """
        model = model or self.default_model
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": prompt}]
                }
            ]
        }

        try:
            response = requests.post(
                self.endpoint(model),
                params={"key": api_key},
                json=payload,
                timeout=self._timeout
            )
        except requests.RequestException as e:
            logger.exception(f"Gemini request failed: {e}")
            raise UpstreamError(self.TRANSPORT_ERROR_MESSAGE, status_code=500) from e

        if not response.ok:
            message = self._extract_error_message(response)
            logger.error(f"Gemini error (HTTP {response.status_code}): {message}")
            raise UpstreamError(message, status_code=502)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Gemini returned non-JSON body: {e}")
            raise UpstreamError(self.EMPTY_TEXT_MESSAGE, status_code=502) from e

        text = self.extract_text(data)
        if not text:
            logger.warning(f"Gemini returned no text for model {model}")
            raise UpstreamError(self.EMPTY_TEXT_MESSAGE, status_code=502)

        logger.info(f"Gemini generated {len(text)} characters with {model}")
        return text

    def _extract_error_message(self, response: requests.Response) -> str:
        try:
            error = response.json().get("error") or {}
            message = error.get("message")
        except (ValueError, AttributeError):
            message = None
        return message if isinstance(message, str) and message else self.API_ERROR_MESSAGE

    @staticmethod
    def extract_text(data: dict) -> str:
        """Join the text parts of the first candidate."""
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not isinstance(candidates, list) or not candidates:
            return ""

        first = candidates[0] if isinstance(candidates[0], dict) else {}
        content = first.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return ""

        texts = [
            part["text"] if isinstance(part, dict) and isinstance(part.get("text"), str) else ""
            for part in parts
        ]
        return "\n".join(texts).strip()
