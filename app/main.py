"""Entry point for the FastAPI-powered ArcheoPlay service."""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Callable, TypeVar

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from .config import settings
from .errors import AuthError, ViewTransitionError
from .models import (
    LoginRequest,
    MovieForm,
    PlatformSettingsUpdate,
    RegisterRequest,
    UserForm,
)
from .services.content_source import ContentSource, create_generator
from .services.view_controller import AppContext, ViewController

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI

ModelT = TypeVar("ModelT", bound=BaseModel)


@asynccontextmanager
async def lifespan(_: FastAPI):
    exit_stack = AsyncExitStack()
    content_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=settings.content_api_url,
            timeout=httpx.Timeout(60.0, connect=10.0),
        )
    )
    generator = create_generator(settings, content_http_client)
    context = AppContext(settings=settings, content=ContentSource(settings, generator))

    app.state.context = context
    logger.info("Content engine: %s", settings.content_engine)

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await context.sessions.aclose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Archaeology video catalog with AI-generated content",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_app_context(app: FastAPI) -> AppContext:
    context = getattr(app.state, "context", None)
    if not isinstance(context, AppContext):
        raise RuntimeError("Application context not initialised")
    return context


def _coerce_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in {"1", "true", "yes", "on"}
    if isinstance(value, (int, float)):
        return bool(value)
    return False


async def _read_payload(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        payload = {}
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")
    return payload


def _parse(model: type[ModelT], payload: dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=400, detail=exc.errors(include_url=False, include_context=False)
        ) from exc


def register_routes(fastapi_app: FastAPI) -> None:
    async def _resolve_session(
        request: Request, *, persist: bool = True
    ) -> tuple[str | None, ViewController]:
        """Return the cookie session, creating one only when ``persist`` is set.

        The returned id is ``None`` unless a new session was stored.
        """

        context = get_app_context(fastapi_app)
        controller = context.sessions.get(
            request.cookies.get(settings.session_cookie_name)
        )
        if controller is not None:
            return None, controller
        controller = ViewController(context)
        if not persist:
            return None, controller
        return await context.sessions.add(controller), controller

    async def _dispatch(
        request: Request,
        action: Callable[[ViewController], object] | None = None,
        *,
        wait: bool = False,
        persist: bool = True,
    ) -> JSONResponse:
        new_session_id, controller = await _resolve_session(request, persist=persist)
        status_code = 200
        detail: Any = None
        if action is not None:
            try:
                action(controller)
            except AuthError as exc:
                status_code, detail = 400, exc.to_detail()
            except ViewTransitionError as exc:
                status_code, detail = 409, str(exc)
            except PermissionError as exc:
                status_code, detail = 403, str(exc)
            except KeyError as exc:
                status_code, detail = 404, exc.args[0] if exc.args else "Not found"
            except ValueError as exc:
                status_code, detail = 400, str(exc)
        if wait:
            await controller.wait_until_idle()

        body: dict[str, Any] = {"state": controller.snapshot()}
        if detail is not None:
            body["detail"] = detail
        response = JSONResponse(body, status_code=status_code)
        if new_session_id is not None:
            response.set_cookie(
                settings.session_cookie_name,
                new_session_id,
                httponly=True,
                samesite="lax",
            )
        return response

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/state")
    async def state(request: Request) -> JSONResponse:
        wait = _coerce_bool(request.query_params.get("waitForCompletion", False))
        # Reading state does not open a session on its own.
        return await _dispatch(request, wait=wait, persist=False)

    # Authentication -------------------------------------------------------

    @fastapi_app.post("/api/auth/mode")
    async def auth_mode(request: Request) -> JSONResponse:
        payload = await _read_payload(request)
        mode = payload.get("mode")
        if mode not in {"login", "register"}:
            raise HTTPException(status_code=400, detail="mode must be 'login' or 'register'")
        return await _dispatch(request, lambda view: view.set_auth_mode(mode))

    @fastapi_app.post("/api/auth/login")
    async def login(request: Request) -> JSONResponse:
        payload = await _read_payload(request)
        credentials = _parse(LoginRequest, payload)
        return await _dispatch(
            request,
            lambda view: view.login(credentials.identifier, credentials.password),
            wait=_coerce_bool(payload.get("waitForCompletion", False)),
        )

    @fastapi_app.post("/api/auth/register")
    async def register(request: Request) -> JSONResponse:
        payload = await _read_payload(request)
        form = _parse(RegisterRequest, payload)
        return await _dispatch(
            request,
            lambda view: view.register(form.email, form.password, form.name),
            wait=_coerce_bool(payload.get("waitForCompletion", False)),
        )

    @fastapi_app.post("/api/auth/logout")
    async def logout(request: Request) -> JSONResponse:
        return await _dispatch(request, lambda view: view.logout())

    # Browsing -------------------------------------------------------------

    @fastapi_app.post("/api/movies/close")
    async def close_movie(request: Request) -> JSONResponse:
        return await _dispatch(request, lambda view: view.close_movie())

    @fastapi_app.post("/api/movies/{movie_id}/select")
    async def select_movie(request: Request, movie_id: str) -> JSONResponse:
        return await _dispatch(request, lambda view: view.select_movie(movie_id))

    @fastapi_app.post("/api/movies/{movie_id}/my-list")
    async def toggle_my_list(request: Request, movie_id: str) -> JSONResponse:
        return await _dispatch(request, lambda view: view.toggle_my_list(movie_id))

    @fastapi_app.post("/api/watch")
    async def play(request: Request) -> JSONResponse:
        payload = await _read_payload(request)
        movie_id = payload.get("movieId")
        if movie_id is not None and not isinstance(movie_id, str):
            raise HTTPException(status_code=400, detail="movieId must be a string")
        return await _dispatch(request, lambda view: view.play(movie_id))

    @fastapi_app.post("/api/watch/back")
    async def back(request: Request) -> JSONResponse:
        return await _dispatch(request, lambda view: view.back())

    # Search ---------------------------------------------------------------

    @fastapi_app.post("/api/search/toggle")
    async def toggle_search(request: Request) -> JSONResponse:
        return await _dispatch(request, lambda view: view.toggle_search())

    @fastapi_app.post("/api/search/open")
    async def open_search(request: Request) -> JSONResponse:
        return await _dispatch(request, lambda view: view.open_search())

    @fastapi_app.post("/api/search/close")
    async def close_search(request: Request) -> JSONResponse:
        return await _dispatch(request, lambda view: view.close_search())

    @fastapi_app.put("/api/search")
    async def update_search(request: Request) -> JSONResponse:
        payload = await _read_payload(request)
        query = payload.get("query", "")
        if not isinstance(query, str):
            raise HTTPException(status_code=400, detail="query must be a string")
        return await _dispatch(
            request,
            lambda view: view.set_search_query(query),
            wait=_coerce_bool(payload.get("waitForCompletion", False)),
        )

    # Administration -------------------------------------------------------

    @fastapi_app.post("/api/admin/open")
    async def open_admin(request: Request) -> JSONResponse:
        return await _dispatch(request, lambda view: view.open_admin())

    @fastapi_app.post("/api/admin/preview")
    async def preview(request: Request) -> JSONResponse:
        return await _dispatch(request, lambda view: view.preview())

    @fastapi_app.post("/api/admin/movies")
    async def add_movie(request: Request) -> JSONResponse:
        form = _parse(MovieForm, await _read_payload(request))
        return await _dispatch(request, lambda view: view.add_custom_movie(form))

    @fastapi_app.put("/api/admin/movies/{movie_id}")
    async def edit_movie(request: Request, movie_id: str) -> JSONResponse:
        form = _parse(MovieForm, await _read_payload(request))
        return await _dispatch(
            request, lambda view: view.edit_custom_movie(movie_id, form)
        )

    @fastapi_app.delete("/api/admin/movies/{movie_id}")
    async def delete_movie(request: Request, movie_id: str) -> JSONResponse:
        return await _dispatch(request, lambda view: view.delete_custom_movie(movie_id))

    @fastapi_app.post("/api/admin/users")
    async def create_user(request: Request) -> JSONResponse:
        form = _parse(UserForm, await _read_payload(request))
        return await _dispatch(request, lambda view: view.create_user(form))

    @fastapi_app.delete("/api/admin/users/{user_id}")
    async def delete_user(request: Request, user_id: str) -> JSONResponse:
        return await _dispatch(request, lambda view: view.delete_user(user_id))

    @fastapi_app.post("/api/admin/users/{user_id}/toggle-status")
    async def toggle_user_status(request: Request, user_id: str) -> JSONResponse:
        return await _dispatch(request, lambda view: view.toggle_user_status(user_id))

    @fastapi_app.put("/api/admin/settings")
    async def update_settings(request: Request) -> JSONResponse:
        update = _parse(PlatformSettingsUpdate, await _read_payload(request))
        return await _dispatch(
            request, lambda view: view.update_platform_settings(update)
        )


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
