"""In-memory account registry backing the mocked authentication."""

from __future__ import annotations

import logging
from typing import Iterable

from ..errors import (
    AccountSuspended,
    DuplicateEmail,
    InvalidCredentials,
    MissingRequiredField,
    WeakPassword,
)
from ..models import Movie, User
from ..utils import default_username, generate_id

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 4


def seed_users() -> list[User]:
    """Accounts available when the process starts."""

    return [
        User(
            id="u-admin",
            email="admin",
            username="admin",
            password="12345",
            name="Main",
            surname="Administrator",
            role="admin",
        ),
        User(
            id="u-test",
            email="test@gmail.com",
            username="testuser",
            password="12345678",
            name="Test",
            surname="User",
            phone="123-456-7890",
            role="user",
        ),
    ]


def build_user(
    *,
    user_id: str,
    email: str,
    password: str,
    name: str,
    username: str | None = None,
    surname: str | None = None,
    phone: str | None = None,
) -> User:
    """Construct a complete ``user`` record from a partial one."""

    return User(
        id=user_id,
        email=email,
        username=username or default_username(email),
        password=password,
        name=name,
        surname=surname or None,
        phone=phone or None,
        role="user",
        is_paused=False,
        my_list=[],
    )


class UserStore:
    """Ordered collection of accounts; the single source of truth for users."""

    def __init__(self, users: Iterable[User] | None = None):
        self._users: list[User] = list(seed_users() if users is None else users)

    def __iter__(self):
        return iter(self._users)

    def __len__(self) -> int:
        return len(self._users)

    def all(self) -> list[User]:
        return list(self._users)

    def get(self, user_id: str) -> User | None:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def require(self, user_id: str) -> User:
        user = self.get(user_id)
        if user is None:
            raise KeyError(f"User {user_id} not found")
        return user

    def find_by_credential(self, identifier: str, password: str) -> User | None:
        """Return the first user whose email or username and password match."""

        for user in self._users:
            if identifier in (user.email, user.username) and user.password == password:
                return user
        return None

    def authenticate(self, identifier: str, password: str) -> User:
        if not identifier or not password:
            raise MissingRequiredField(
                "Please enter both email (or username) and password."
            )
        user = self.find_by_credential(identifier, password)
        if user is None:
            raise InvalidCredentials()
        if user.is_paused:
            logger.info("Rejected login for suspended account %s", user.id)
            raise AccountSuspended()
        return user

    def register(self, email: str, password: str, name: str) -> User:
        """Create a regular account from the public sign-up form."""

        if not email or not password:
            raise MissingRequiredField(
                "Please enter both email (or username) and password."
            )
        if not name:
            raise MissingRequiredField("Please enter a name.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPassword()
        if any(user.email == email for user in self._users):
            raise DuplicateEmail()

        user = build_user(
            user_id=generate_id("u"), email=email, password=password, name=name
        )
        self._users.append(user)
        logger.info("Registered user %s", user.id)
        return user

    def create(
        self,
        *,
        email: str,
        password: str,
        name: str,
        username: str | None = None,
        surname: str | None = None,
        phone: str | None = None,
    ) -> User:
        """Create an account from the admin panel."""

        if not email or not password or not name:
            raise MissingRequiredField("Name, email and password are required.")
        user = build_user(
            user_id=generate_id("u-admin-created"),
            email=email,
            password=password,
            name=name,
            username=username,
            surname=surname,
            phone=phone,
        )
        self._users.append(user)
        logger.info("Admin created user %s", user.id)
        return user

    def delete(self, user_id: str) -> User:
        user = self.require(user_id)
        self._users.remove(user)
        logger.info("Deleted user %s", user_id)
        return user

    def set_paused(self, user_id: str, paused: bool) -> User:
        user = self.require(user_id)
        user.is_paused = paused
        logger.info("User %s %s", user_id, "paused" if paused else "resumed")
        return user

    def toggle_paused(self, user_id: str) -> User:
        user = self.require(user_id)
        return self.set_paused(user_id, not user.is_paused)

    def toggle_list_membership(self, user_id: str, movie: Movie) -> bool:
        """Add or remove ``movie`` from the user's list; return new membership."""

        user = self.require(user_id)
        if user.has_in_list(movie.id):
            user.my_list = [entry for entry in user.my_list if entry.id != movie.id]
            return False
        user.my_list = [*user.my_list, movie]
        return True
