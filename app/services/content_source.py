"""Catalog and search content backed by a generative model."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config import Settings
from ..models import Category, Movie
from ..stable_catalogs import CATALOG_CATEGORIES, CATEGORY_TITLES, fallback_catalog
from .gemini import GeminiClient
from .openrouter import OpenRouterClient

logger = logging.getLogger(__name__)

MOVIE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "id": {"type": "STRING"},
        "title": {"type": "STRING"},
        "description": {"type": "STRING"},
        "matchScore": {"type": "INTEGER"},
        "year": {"type": "INTEGER"},
        "duration": {"type": "STRING"},
        "genre": {"type": "STRING"},
    },
    "required": [
        "id",
        "title",
        "description",
        "matchScore",
        "year",
        "duration",
        "genre",
    ],
}

CATEGORY_LIST_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "movies": {"type": "ARRAY", "items": MOVIE_SCHEMA},
        },
        "required": ["title", "movies"],
    },
}

MOVIE_LIST_SCHEMA: dict[str, Any] = {"type": "ARRAY", "items": MOVIE_SCHEMA}

_CATEGORY_LIST = TypeAdapter(list[Category])
_MOVIE_LIST = TypeAdapter(list[Movie])


def build_catalog_prompt() -> str:
    """Return the static prompt requesting the default catalog."""

    quoted = ", ".join(f"'{definition.title}'" for definition in CATALOG_CATEGORIES)
    empty = [d.title for d in CATALOG_CATEGORIES if not d.generate_items]
    lines = [
        f"Generate a list of {len(CATALOG_CATEGORIES)} movie categories strictly titled: {quoted}.",
    ]
    for title in empty:
        lines.append(f"The '{title}' category should be empty.")
    lines.append(
        "For other categories, generate 4-5 realistic fictional items fitting the theme."
    )
    lines.append("Return JSON.")
    return " ".join(lines)


def build_search_prompt(query: str, count: int) -> str:
    return (
        f"Generate {count} fictional movie suggestions based on the search query: "
        f"\"{query}\". Return JSON."
    )


def has_required_titles(categories: list[Category]) -> bool:
    """True when every fixed category appears (case-insensitive substring)."""

    lowered = [category.title.lower() for category in categories]
    return all(
        any(required.lower() in title for title in lowered)
        for required in CATEGORY_TITLES
    )


def _unwrap_list(data: Any, key: str) -> Any:
    """Accept ``{"<key>": [...]}`` wrappers some chat models emit."""

    if isinstance(data, dict):
        candidate = data.get(key)
        if isinstance(candidate, list):
            return candidate
        lists = [value for value in data.values() if isinstance(value, list)]
        if len(lists) == 1:
            return lists[0]
    return data


class ContentGenerator(Protocol):
    async def generate_json(self, prompt: str, *, schema: dict[str, Any]) -> Any:
        ...


class ContentSource:
    """Fetches the default catalog and search results, never raising."""

    def __init__(self, settings: Settings, generator: ContentGenerator):
        self._settings = settings
        self._generator = generator

    async def fetch_catalog(self) -> list[Category]:
        """Return generated categories, or the static catalog on any failure."""

        try:
            data = await self._generator.generate_json(
                build_catalog_prompt(), schema=CATEGORY_LIST_SCHEMA
            )
            categories = _CATEGORY_LIST.validate_python(_unwrap_list(data, "categories"))
        except ValidationError as exc:
            logger.warning(
                "Generated catalog failed validation, using fallback data: %s", exc
            )
            return fallback_catalog()
        except Exception as exc:
            logger.warning("Catalog generation failed, using fallback data: %s", exc)
            return fallback_catalog()

        if not has_required_titles(categories):
            logger.warning(
                "Generated catalog is missing required categories (got %s), using fallback data",
                [category.title for category in categories],
            )
            return fallback_catalog()
        return categories

    async def search(self, query: str) -> list[Movie]:
        """Return generated matches for ``query``; empty on any failure."""

        if len(query) <= self._settings.search_min_query_length:
            return []
        try:
            data = await self._generator.generate_json(
                build_search_prompt(query, self._settings.search_result_count),
                schema=MOVIE_LIST_SCHEMA,
            )
            return _MOVIE_LIST.validate_python(_unwrap_list(data, "movies"))
        except Exception as exc:
            logger.warning("Search for %r failed: %s", query, exc)
            return []


def create_generator(
    settings: Settings, http_client: httpx.AsyncClient
) -> ContentGenerator:
    """Return the transport for the configured content engine."""

    if settings.content_engine == "openrouter":
        return OpenRouterClient(settings, http_client)
    return GeminiClient(settings, http_client)
