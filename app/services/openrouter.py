"""Integration helpers for the OpenRouter API."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..config import Settings
from ..utils import extract_json_payload

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are ArcheoPlay, an AI that writes realistic but fictional catalog entries "
    "for a video platform about archaeology and history. You always respond with "
    "JSON that matches the documented schema and never include commentary outside JSON."
)


class OpenRouterClient:
    """Client responsible for talking to OpenRouter."""

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

        resolved_model = model or self._settings.openrouter_model
        resolved_key = api_key or self._settings.openrouter_api_key
        if not resolved_key:
            raise RuntimeError("OpenRouter API key is required to generate content")

        prompt_lines = [
            prompt,
            "Respond strictly with JSON matching this schema:",
            json.dumps(schema, ensure_ascii=False),
        ]
        payload = {
            "model": resolved_model,
            "temperature": 0.95,
            "top_p": 0.95,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": "\n".join(prompt_lines)},
            ],
        }
        headers = {
            "Authorization": f"Bearer {resolved_key}",
            "Content-Type": "application/json",
            "X-Title": self._settings.app_name,
        }

        response = await self._client.post("/chat/completions", json=payload, headers=headers)
        if response.status_code >= 400:
            logger.error(
                "OpenRouter request failed (%s): %s", response.status_code, response.text
            )
            raise RuntimeError(response.text)

        data = response.json()
        choices = data.get("choices", [])
        if not choices:
            raise RuntimeError("Model returned no choices")
        message = choices[0].get("message", {})
        content = message.get("content")
        if not isinstance(content, str):
            raise RuntimeError("Model response missing content")

        return extract_json_payload(content)
