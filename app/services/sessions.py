"""Cookie-keyed table of browser sessions."""

from __future__ import annotations

import logging
import secrets
from collections import OrderedDict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .view_controller import ViewController

logger = logging.getLogger(__name__)


class SessionTable:
    """Keeps at most ``limit`` sessions, evicting the least recently used."""

    def __init__(self, limit: int):
        self._limit = limit
        self._sessions: OrderedDict[str, ViewController] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str | None) -> ViewController | None:
        if not session_id or session_id not in self._sessions:
            return None
        self._sessions.move_to_end(session_id)
        return self._sessions[session_id]

    async def add(self, controller: ViewController) -> str:
        """Store ``controller`` under a new session id and return the id."""

        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = controller
        while len(self._sessions) > self._limit:
            evicted_id, evicted = self._sessions.popitem(last=False)
            logger.info("Evicting least recently used session %s", evicted_id[:8])
            await evicted.aclose()
        return session_id

    async def aclose(self) -> None:
        while self._sessions:
            _, controller = self._sessions.popitem(last=False)
            await controller.aclose()
