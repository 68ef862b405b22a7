"""Pydantic models describing catalog, account and request payloads."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .utils import default_username, title_seed

UserRole = Literal["user", "admin"]
AppView = Literal["auth", "browse", "watch", "admin"]

PLACEHOLDER_IMAGE_URL = "https://picsum.photos/seed/{seed}/{width}/{height}"


class Movie(BaseModel):
    """A single playable catalog entry."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    title: str
    description: str = ""
    genre: str = ""
    year: int
    duration: str = ""
    match_score: int = Field(default=99, ge=0, le=100, alias="matchScore")
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    backdrop_url: str | None = Field(default=None, alias="backdropUrl")
    video_url: str | None = Field(default=None, alias="videoUrl")

    def image_seed(self) -> str:
        """Return the deterministic placeholder seed for this movie."""

        digits = re.sub(r"\D", "", self.id)
        return f"{title_seed(self.title)}{digits or len(self.title)}"

    def card_image(self, width: int = 400, height: int = 225) -> str:
        if self.thumbnail_url:
            return self.thumbnail_url
        return PLACEHOLDER_IMAGE_URL.format(
            seed=self.image_seed(), width=width, height=height
        )

    def modal_backdrop(self) -> str:
        """Backdrop shown in the detail modal."""

        image = self.backdrop_url or self.thumbnail_url
        if image:
            return image
        return PLACEHOLDER_IMAGE_URL.format(
            seed=self.image_seed(), width=900, height=500
        )

    def hero_image(self) -> str:
        """Full-bleed banner image used when the movie is featured."""

        image = self.backdrop_url or self.thumbnail_url
        if image:
            return image
        return PLACEHOLDER_IMAGE_URL.format(
            seed=title_seed(self.title), width=1920, height=1080
        )

    def search_card_image(self) -> str:
        return PLACEHOLDER_IMAGE_URL.format(
            seed=title_seed(self.title), width=400, height=225
        )

    def to_payload(self) -> dict[str, object]:
        """Return the camelCase representation sent to clients."""

        payload = self.model_dump(by_alias=True, exclude_none=True)
        payload["imageUrl"] = self.card_image()
        return payload


class Category(BaseModel):
    """A titled row of movies. Titles are the merge key."""

    title: str
    movies: list[Movie] = Field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        return {
            "title": self.title,
            "movies": [movie.to_payload() for movie in self.movies],
        }


class User(BaseModel):
    """An in-memory account. Passwords are compared in clear (mock auth)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    username: str | None = None
    password: str
    name: str
    surname: str | None = None
    phone: str | None = None
    role: UserRole = "user"
    is_paused: bool = Field(default=False, alias="isPaused")
    my_list: list[Movie] = Field(default_factory=list, alias="myList")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def display_username(self) -> str:
        return self.username or default_username(self.email)

    def has_in_list(self, movie_id: str) -> bool:
        return any(movie.id == movie_id for movie in self.my_list)

    def to_public(self) -> dict[str, object]:
        """Return the account without its password."""

        return {
            "id": self.id,
            "email": self.email,
            "username": self.display_username(),
            "name": self.name,
            "surname": self.surname,
            "phone": self.phone,
            "role": self.role,
            "isPaused": self.is_paused,
            "myListCount": len(self.my_list),
        }


class CustomMovieEntry(BaseModel):
    """Admin-uploaded movie paired with the category it belongs to."""

    movie: Movie
    category: str

    def to_payload(self) -> dict[str, object]:
        return {"movie": self.movie.to_payload(), "category": self.category}


class PlatformSettings(BaseModel):
    """Admin-editable branding shared by every session."""

    model_config = ConfigDict(populate_by_name=True)

    auth_background_url: str = Field(alias="authBackgroundUrl")
    subtitle: str

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)


class LoginRequest(BaseModel):
    """Credentials submitted from the sign-in form."""

    identifier: str = Field(
        default="",
        validation_alias=AliasChoices("identifier", "email", "username"),
    )
    password: str = ""


class RegisterRequest(BaseModel):
    email: str = ""
    password: str = ""
    name: str = ""


class MovieForm(BaseModel):
    """Admin movie form. Media fields carry opaque upload references."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    description: str = ""
    genre: str = ""
    year: int | None = None
    duration: str = ""
    category: str
    video_url: str | None = Field(
        default=None, validation_alias=AliasChoices("videoUrl", "video_url")
    )
    thumbnail_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("thumbnailUrl", "thumbnail_url"),
    )


class UserForm(BaseModel):
    """Admin user-creation form."""

    name: str = ""
    surname: str | None = None
    email: str = ""
    phone: str | None = None
    username: str | None = None
    password: str = ""


class PlatformSettingsUpdate(BaseModel):
    auth_background_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("authBackgroundUrl", "auth_background_url"),
    )
    subtitle: str | None = None
