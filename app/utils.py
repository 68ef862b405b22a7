"""Utility helpers for the ArcheoPlay service."""

from __future__ import annotations

import json
import re
import secrets
from typing import Any


JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*([\[{].*?[\]}])\s*```", re.DOTALL)
BARE_JSON_RE = re.compile(r"[\[{].*[\]}]", re.DOTALL)


def extract_json_payload(content: str) -> Any:
    """Extract and parse the first JSON object or array from a model response."""

    match = JSON_BLOCK_RE.search(content)
    if match:
        payload = match.group(1)
    else:
        match = BARE_JSON_RE.search(content)
        if not match:
            raise ValueError("No JSON payload found in response")
        payload = match.group(0)

    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid JSON payload produced by the model") from exc


def title_seed(title: str) -> str:
    """Collapse spaces out of a title for placeholder image seeds."""

    return title.replace(" ", "")


def default_username(email: str) -> str:
    """Derive a username from the local part of an email address."""

    return email.split("@")[0]


def generate_id(prefix: str) -> str:
    """Return a session-unique identifier such as ``u-3f9a1c2b7d4e``."""

    return f"{prefix}-{secrets.token_hex(6)}"
