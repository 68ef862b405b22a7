"""Combine generated categories, admin uploads and the user's list."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from ..models import Category, CustomMovieEntry, Movie
from ..stable_catalogs import MY_LIST_TITLE


@dataclass(frozen=True)
class MergedCatalog:
    """Render-ready snapshot. Not diffable against previous snapshots."""

    categories: list[Category] = field(default_factory=list)
    featured: Movie | None = None
    my_list: Category | None = None

    def rows(self) -> list[Category]:
        """All rows in display order; "my list" first when it has items."""

        if self.my_list is not None:
            return [self.my_list, *self.categories]
        return list(self.categories)

    def find_movie(self, movie_id: str) -> Movie | None:
        for row in self.rows():
            for movie in row.movies:
                if movie.id == movie_id:
                    return movie
        if self.featured is not None and self.featured.id == movie_id:
            return self.featured
        return None


def merge_categories(
    base: Sequence[Category], custom_entries: Sequence[CustomMovieEntry]
) -> list[Category]:
    """Prepend custom movies to the base category with the same title.

    Entries filed under a title the base catalog does not contain are left out.
    """

    merged: list[Category] = []
    for category in base:
        extra = [
            entry.movie for entry in custom_entries if entry.category == category.title
        ]
        merged.append(
            Category(title=category.title, movies=[*extra, *category.movies])
        )
    return merged


def select_featured(
    base: Sequence[Category], custom_entries: Sequence[CustomMovieEntry]
) -> Movie | None:
    if custom_entries:
        return custom_entries[-1].movie
    if base and base[0].movies:
        return base[0].movies[0]
    return None


def my_list_row(my_list: Sequence[Movie]) -> Category | None:
    if not my_list:
        return None
    return Category(title=MY_LIST_TITLE, movies=list(my_list))


def merge_catalog(
    base: Sequence[Category],
    custom_entries: Sequence[CustomMovieEntry],
    my_list: Sequence[Movie] = (),
) -> MergedCatalog:
    return MergedCatalog(
        categories=merge_categories(base, custom_entries),
        featured=select_featured(base, custom_entries),
        my_list=my_list_row(my_list),
    )
