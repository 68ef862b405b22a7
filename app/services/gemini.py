"""Integration helpers for the Google Gemini API.

This client mirrors the interface of OpenRouterClient so the content source
can switch engines without branching call sites.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)


class GeminiClient:
    """Client responsible for talking to Gemini's generateContent endpoint."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    async def generate_json(
        self,
        prompt: str,
        *,
        schema: dict[str, Any],
        api_key: str | None = None,
        model: str | None = None,
    ) -> Any:
        """Request a structured generation and return the decoded JSON value."""

        resolved_key = api_key or self._settings.gemini_api_key
        resolved_model = model or self._settings.gemini_model
        if not resolved_key:
            raise RuntimeError("Gemini API key is required to generate content")

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        headers = {
            "x-goog-api-key": resolved_key,
            "Content-Type": "application/json",
        }

        response = await self._client.post(
            f"/models/{resolved_model}:generateContent", json=payload, headers=headers
        )
        if response.status_code >= 400:
            logger.error(
                "Gemini request failed (%s): %s", response.status_code, response.text
            )
            raise RuntimeError(response.text)

        data = response.json()
        candidates = data.get("candidates") or []
        if not candidates:
            raise RuntimeError("Model returned no candidates")
        content = candidates[0].get("content") or {}
        parts = content.get("parts") or []
        text = "".join(
            str(part.get("text", "")) for part in parts if isinstance(part, dict)
        )
        if not text.strip():
            raise RuntimeError("Model response missing content")

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid JSON payload produced by the model") from exc
