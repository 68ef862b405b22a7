"""Admin-owned movies and the categories they were filed under."""

from __future__ import annotations

import logging
from datetime import datetime

from ..errors import MissingRequiredField
from ..models import CustomMovieEntry, Movie
from ..stable_catalogs import CATEGORY_TITLES
from ..utils import generate_id

logger = logging.getLogger(__name__)

DEFAULT_GENRE = "General"
DEFAULT_DURATION = "10m"
DEFAULT_MATCH_SCORE = 99


def _check_category(category: str) -> None:
    if category not in CATEGORY_TITLES:
        raise ValueError(
            f"Unknown category {category!r}; expected one of {', '.join(CATEGORY_TITLES)}"
        )


def build_movie(
    *,
    title: str,
    description: str,
    genre: str = "",
    year: int | None = None,
    duration: str = "",
    video_url: str | None = None,
    thumbnail_url: str | None = None,
    movie_id: str | None = None,
    match_score: int = DEFAULT_MATCH_SCORE,
) -> Movie:
    """Build a movie from the admin upload form, filling form defaults."""

    if not title or not description:
        raise MissingRequiredField("Title and description are required.")
    return Movie(
        id=movie_id or generate_id("custom"),
        title=title,
        description=description,
        genre=genre or DEFAULT_GENRE,
        year=year if year is not None else datetime.now().year,
        duration=duration or DEFAULT_DURATION,
        match_score=match_score,
        video_url=video_url,
        thumbnail_url=thumbnail_url,
        backdrop_url=thumbnail_url,
    )


def revise_movie(
    previous: Movie,
    *,
    title: str | None = None,
    description: str | None = None,
    genre: str | None = None,
    year: int | None = None,
    duration: str | None = None,
    video_url: str | None = None,
    thumbnail_url: str | None = None,
) -> Movie:
    """Apply an edit form to ``previous``; omitted or blank fields keep their value.

    Title and description may be left out but not cleared. A new thumbnail
    also replaces the backdrop.
    """

    if (title is not None and not title) or (
        description is not None and not description
    ):
        raise MissingRequiredField("Title and description are required.")

    changes: dict[str, object] = {
        "title": title,
        "description": description,
        "genre": genre or None,
        "year": year,
        "duration": duration or None,
        "video_url": video_url or None,
        "thumbnail_url": thumbnail_url or None,
    }
    if changes["thumbnail_url"] is not None:
        changes["backdrop_url"] = changes["thumbnail_url"]
    return previous.model_copy(
        update={key: value for key, value in changes.items() if value is not None}
    )


class CustomRegistry:
    """Flat list of ``{movie, category}`` pairs keyed by movie id."""

    def __init__(self) -> None:
        self._entries: list[CustomMovieEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[CustomMovieEntry]:
        return list(self._entries)

    def get(self, movie_id: str) -> CustomMovieEntry | None:
        for entry in self._entries:
            if entry.movie.id == movie_id:
                return entry
        return None

    def add(self, movie: Movie, category: str) -> CustomMovieEntry:
        _check_category(category)
        entry = CustomMovieEntry(movie=movie, category=category)
        self._entries.append(entry)
        logger.info("Added custom movie %s to %s", movie.id, category)
        return entry

    def edit(self, movie_id: str, updated: Movie, category: str) -> CustomMovieEntry:
        """Replace an entry; media references missing from ``updated`` carry forward."""

        _check_category(category)
        for index, entry in enumerate(self._entries):
            if entry.movie.id != movie_id:
                continue
            previous = entry.movie
            movie = updated.model_copy(
                update={
                    "id": movie_id,
                    "match_score": previous.match_score,
                    "video_url": updated.video_url or previous.video_url,
                    "thumbnail_url": updated.thumbnail_url or previous.thumbnail_url,
                    "backdrop_url": updated.backdrop_url or previous.backdrop_url,
                }
            )
            replacement = CustomMovieEntry(movie=movie, category=category)
            self._entries[index] = replacement
            logger.info("Edited custom movie %s", movie_id)
            return replacement
        raise KeyError(f"Custom movie {movie_id} not found")

    def delete(self, movie_id: str) -> None:
        entry = self.get(movie_id)
        if entry is None:
            raise KeyError(f"Custom movie {movie_id} not found")
        self._entries.remove(entry)
        logger.info("Deleted custom movie %s", movie_id)
