"""
GAS Sample Client - Survey Data for Review Prompts
==================================================

Fetches reference answers from a Google Apps Script web app. The app may
answer with JSON (usually a list of rows) or with plain text; both are
normalized into a list of samples.
"""

import logging
from typing import Any, List, Optional

import requests

from ...domain import UpstreamError
from ..config import GenerationSettings, get_settings

logger = logging.getLogger(__name__)


class GasSampleClient:
    """Reads sample rows from a GAS web app URL."""

    FETCH_ERROR_MESSAGE = "GASアプリからデータを取得できませんでした。"

    def __init__(self, settings: Optional[GenerationSettings] = None):
        settings = settings or get_settings().generation
        self._timeout = settings.gas_timeout_seconds

    def fetch_samples(self, url: str) -> List[Any]:
        """
        GET the GAS app and return its samples.

        Raises:
            UpstreamError: (500) on non-2xx status, transport failure or bad JSON.
        """
        try:
            response = requests.get(url, timeout=self._timeout)
            response.raise_for_status()

            content_type = response.headers.get("content-type", "")
            if "application/json" in content_type:
                data = response.json()
                # rows come back as a JSON array; any other JSON value carries no samples
                return data if isinstance(data, list) else []

            text = response.text
            return [text] if text else []

        except (requests.RequestException, ValueError) as e:
            logger.exception(f"Failed to retrieve GAS data from {url}: {e}")
            raise UpstreamError(self.FETCH_ERROR_MESSAGE, status_code=500) from e
