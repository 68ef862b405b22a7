"""View state machine tests driven through an in-memory content source."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from app.config import Settings
from app.errors import AccountSuspended, DuplicateEmail, ViewTransitionError
from app.models import MovieForm, PlatformSettingsUpdate, UserForm
from app.services.content_source import MOVIE_LIST_SCHEMA, ContentSource
from app.services.view_controller import (
    DEFAULT_VIDEO_URL,
    NO_RESULTS_MESSAGE,
    SEARCHING_MESSAGE,
    AppContext,
    ViewController,
)
from app.stable_catalogs import MY_LIST_TITLE


class _StubGenerator:
    """Fails catalog generation and answers searches from a fixed list."""

    def __init__(self, search_results: list[dict[str, Any]] | None = None):
        self.search_results = search_results or []
        self.prompts: list[str] = []
        self.release_catalog: asyncio.Event | None = None

    async def generate_json(self, prompt: str, *, schema: dict[str, Any]) -> Any:
        self.prompts.append(prompt)
        if schema is MOVIE_LIST_SCHEMA:
            return self.search_results
        if self.release_catalog is not None:
            await self.release_catalog.wait()
        raise RuntimeError("Gemini API key is required to generate content")


def _make_context(generator: _StubGenerator | None = None) -> AppContext:
    settings = Settings(_env_file=None, SEARCH_DEBOUNCE_MS=10)
    return AppContext(
        settings=settings, content=ContentSource(settings, generator or _StubGenerator())
    )


def _row_titles(snapshot: dict[str, Any]) -> list[str]:
    return [row["title"] for row in snapshot["browse"]["rows"]]


def _row(snapshot: dict[str, Any], title: str) -> dict[str, Any]:
    for row in snapshot["browse"]["rows"]:
        if row["title"] == title:
            return row
    raise AssertionError(f"Row {title!r} missing")


@pytest.mark.anyio("asyncio")
async def test_register_then_catalog_falls_back() -> None:
    view = ViewController(_make_context())

    user = view.register("a@x.com", "pass1", "Anna")
    assert view.view == "browse"
    assert view.is_loading
    assert view.snapshot()["browse"]["loadingMessage"]

    await view.wait_until_idle()

    snapshot = view.snapshot()
    assert snapshot["user"]["id"] == user.id
    assert not snapshot["browse"]["loading"]
    assert len(_row(snapshot, "Conferenze")["movies"]) == 4
    assert snapshot["browse"]["featured"]["id"] == "c1"
    assert snapshot["browse"]["featured"]["heroImageUrl"].endswith("/1920/1080")


@pytest.mark.anyio("asyncio")
async def test_register_failure_keeps_auth_view() -> None:
    view = ViewController(_make_context())

    with pytest.raises(DuplicateEmail):
        view.register("test@gmail.com", "12345678", "Test")

    assert view.view == "auth"
    assert view.auth_error == "Email is already in use."
    view.set_auth_mode("register")
    assert view.auth_error is None


@pytest.mark.anyio("asyncio")
async def test_paused_user_login_is_rejected() -> None:
    context = _make_context()
    context.users.set_paused("u-test", True)
    view = ViewController(context)

    with pytest.raises(AccountSuspended):
        view.login("testuser", "12345678")

    assert view.view == "auth"
    assert view.current_user is None
    assert view.snapshot()["auth"]["error"].startswith("Accesso account sospeso")


@pytest.mark.anyio("asyncio")
async def test_admin_login_opens_admin_panel() -> None:
    view = ViewController(_make_context())

    view.login("admin", "12345")

    assert view.view == "admin"
    admin = view.snapshot()["admin"]
    controls = {user["id"]: user["controls"] for user in admin["users"]}
    assert controls["u-admin"] == {"canDelete": False, "canToggleStatus": False}
    assert controls["u-test"] == {"canDelete": True, "canToggleStatus": True}
    assert "password" not in admin["users"][0]

    with pytest.raises(PermissionError):
        view.delete_user("u-admin")
    with pytest.raises(PermissionError):
        view.toggle_user_status("u-admin")
    await view.aclose()


@pytest.mark.anyio("asyncio")
async def test_regular_user_cannot_use_admin_actions() -> None:
    view = ViewController(_make_context())
    view.login("test@gmail.com", "12345678")

    with pytest.raises(PermissionError):
        view.open_admin()
    with pytest.raises(PermissionError):
        view.add_custom_movie(
            MovieForm(title="T", description="D", category="Conferenze")
        )
    assert "admin" not in view.snapshot()
    await view.aclose()


@pytest.mark.anyio("asyncio")
async def test_play_and_back_keep_selection() -> None:
    view = ViewController(_make_context())
    view.login("testuser", "12345678")
    await view.wait_until_idle()

    with pytest.raises(ViewTransitionError):
        view.back()

    view.select_movie("s3")
    movie = view.play()
    assert movie.id == "s3"
    assert view.view == "watch"
    watch = view.snapshot()["watch"]
    assert watch == {"title": "Sotto Roma", "videoUrl": DEFAULT_VIDEO_URL}

    view.back()
    assert view.view == "browse"
    assert view.selected_movie is not None and view.selected_movie.id == "s3"

    view.close_movie()
    with pytest.raises(ViewTransitionError):
        view.play()


@pytest.mark.anyio("asyncio")
async def test_my_list_row_tracks_toggles() -> None:
    view = ViewController(_make_context())
    view.login("testuser", "12345678")
    await view.wait_until_idle()

    assert view.toggle_my_list("p2") is True
    snapshot = view.snapshot()
    assert _row_titles(snapshot)[0] == MY_LIST_TITLE
    assert [movie["id"] for movie in snapshot["browse"]["rows"][0]["movies"]] == ["p2"]

    view.select_movie("p2")
    assert view.snapshot()["selected"]["inMyList"] is True

    assert view.toggle_my_list("p2") is False
    assert MY_LIST_TITLE not in _row_titles(view.snapshot())

    with pytest.raises(KeyError):
        view.toggle_my_list("missing")


@pytest.mark.anyio("asyncio")
async def test_logout_clears_session_state() -> None:
    view = ViewController(_make_context())
    view.login("testuser", "12345678")
    await view.wait_until_idle()
    view.select_movie("c2")
    view.open_search()

    view.logout()

    snapshot = view.snapshot()
    assert snapshot["view"] == "auth"
    assert snapshot["user"] is None
    assert snapshot["browse"]["rows"] == []
    assert snapshot["browse"]["featured"] is None
    assert snapshot["selected"] is None
    assert snapshot["search"]["open"] is False
    with pytest.raises(ViewTransitionError):
        view.logout()


@pytest.mark.anyio("asyncio")
async def test_catalog_arriving_after_logout_is_discarded() -> None:
    generator = _StubGenerator()
    generator.release_catalog = asyncio.Event()
    view = ViewController(_make_context(generator))

    view.login("testuser", "12345678")
    await asyncio.sleep(0)
    view.logout()
    generator.release_catalog.set()
    await view.wait_until_idle()

    assert view.catalog.rows() == []
    assert not view.is_loading


@pytest.mark.anyio("asyncio")
async def test_search_overlay_debounces_queries() -> None:
    result = {
        "id": "q1",
        "title": "Tesori di Mont'e Prama",
        "description": "I giganti di pietra.",
        "matchScore": 95,
        "year": 2024,
        "duration": "52m",
        "genre": "Documentario",
    }
    generator = _StubGenerator(search_results=[result])
    view = ViewController(_make_context(generator))
    view.login("testuser", "12345678")
    await view.wait_until_idle()

    with pytest.raises(ViewTransitionError):
        view.set_search_query("giganti")

    view.toggle_search()
    view.set_search_query("gi")
    assert not view.snapshot()["search"]["pending"]
    view.set_search_query("giganti")
    pending = view.snapshot()["search"]
    assert pending["pending"]
    assert pending["emptyMessage"] == SEARCHING_MESSAGE
    await view.wait_until_idle()

    search = view.snapshot()["search"]
    assert [movie["id"] for movie in search["results"]] == ["q1"]
    assert search["results"][0]["imageUrl"].endswith("/TesoridiMont'ePrama/400/225")
    assert sum('"giganti"' in prompt for prompt in generator.prompts) == 1

    view.select_movie("q1")
    view.toggle_search()
    assert view.search_results == []
    assert view.toggle_my_list("q1") is True


@pytest.mark.anyio("asyncio")
async def test_admin_custom_movie_lifecycle() -> None:
    view = ViewController(_make_context())
    view.login("admin", "12345")
    await view.wait_until_idle()

    entry = view.add_custom_movie(
        MovieForm(
            title="Nuraghe Losa",
            description="Scavi 2024",
            category="Scavi archeologici",
            thumbnailUrl="blob:thumb",
        )
    )
    view.preview()
    snapshot = view.snapshot()
    scavi = _row(snapshot, "Scavi archeologici")["movies"]
    assert [movie["id"] for movie in scavi][:2] == [entry.movie.id, "s1"]
    assert len(scavi) == 6
    assert snapshot["browse"]["featured"]["id"] == entry.movie.id

    view.open_admin()
    view.edit_custom_movie(
        entry.movie.id,
        MovieForm(title="Nuraghe Losa", description="Aggiornato", category="Conferenze"),
    )
    edited = view.snapshot()["admin"]["movies"][0]
    assert edited["category"] == "Conferenze"
    assert edited["movie"]["thumbnailUrl"] == "blob:thumb"

    view.delete_custom_movie(entry.movie.id)
    assert view.snapshot()["admin"]["movies"] == []
    with pytest.raises(KeyError):
        view.delete_custom_movie(entry.movie.id)


@pytest.mark.anyio("asyncio")
async def test_deleted_user_session_ends() -> None:
    context = _make_context()
    admin_view = ViewController(context)
    user_view = ViewController(context)
    admin_view.login("admin", "12345")
    user_view.login("testuser", "12345678")

    admin_view.delete_user("u-test")

    assert user_view.snapshot()["view"] == "auth"
    await admin_view.aclose()
    await user_view.aclose()


@pytest.mark.anyio("asyncio")
async def test_admin_creates_user_and_updates_branding() -> None:
    view = ViewController(_make_context())
    view.login("admin", "12345")

    created = view.create_user(
        UserForm(name="Guida", email="guida@museo.it", password="pw")
    )
    paused = view.toggle_user_status(created.id)
    assert paused.is_paused

    view.update_platform_settings(PlatformSettingsUpdate(subtitle="Nuovo sottotitolo"))
    view.update_platform_settings(PlatformSettingsUpdate(authBackgroundUrl=""))

    platform = view.snapshot()["platform"]
    assert platform["subtitle"] == "Nuovo sottotitolo"
    assert platform["authBackgroundUrl"].startswith("https://images.unsplash.com/")
    await view.aclose()


@pytest.mark.anyio("asyncio")
async def test_end_to_end_admin_upload_visible_in_preview() -> None:
    context = _make_context()
    view = ViewController(context)

    view.register("a@x.com", "pass1", "Anna")
    assert view.view == "browse"
    await view.wait_until_idle()
    assert len(_row(view.snapshot(), "Conferenze")["movies"]) == 4

    view.logout()
    view.login("admin", "12345")
    assert view.view == "admin"
    await view.wait_until_idle()

    view.add_custom_movie(
        MovieForm(title="Test", description="Video di prova", category="Altri video")
    )
    view.preview()

    altri = _row(view.snapshot(), "Altri video")["movies"]
    assert [movie["title"] for movie in altri] == ["Test"]


@pytest.mark.anyio("asyncio")
async def test_finished_search_without_matches_reports_no_results() -> None:
    view = ViewController(_make_context(_StubGenerator(search_results=[])))
    view.login("testuser", "12345678")
    await view.wait_until_idle()
    view.open_search()

    view.set_search_query("ro")
    assert view.snapshot()["search"]["emptyMessage"] is None

    view.set_search_query("roma")
    await view.wait_until_idle()

    search = view.snapshot()["search"]
    assert search["results"] == []
    assert not search["pending"]
    assert search["emptyMessage"] == NO_RESULTS_MESSAGE
