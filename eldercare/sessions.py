# eldercare/sessions.py
from __future__ import annotations

import time
from typing import Callable, Dict, Optional

from fastapi import Request

from .engine.persistence import AssessmentStore, CurrentUser
from .engine.session import AssessmentSession
from .errors import SessionNotFound, UserInputError
from .logging_config import log_event
from .settings import get_settings


class SessionRegistry:
    """
    Open assessment forms, keyed by session id. Lives on ``app.state``.

    Sessions untouched for ``idle_seconds`` are closed before a new one is
    opened, so abandoned forms do not hold slots against ``limit``.
    """

    def __init__(
        self,
        store: AssessmentStore,
        limit: Optional[int] = None,
        idle_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = get_settings()
        self.store = store
        self.limit = settings.SESSION_LIMIT if limit is None else limit
        self.idle_seconds = settings.SESSION_IDLE_SECONDS if idle_seconds is None else idle_seconds
        self._clock = clock
        self._sessions: Dict[str, AssessmentSession] = {}
        self._last_seen: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def expire_idle(self) -> int:
        now = self._clock()
        stale = [sid for sid, seen in self._last_seen.items() if now - seen >= self.idle_seconds]
        for session_id in stale:
            session = self._sessions.pop(session_id)
            self._last_seen.pop(session_id, None)
            session.close()
            log_event("SESSION_EXPIRED", "idle assessment session closed", {
                "session_id": session_id,
                "assessment_id": session.state.data.id,
            })
        return len(stale)

    async def open(self, user: CurrentUser, assessment_id: Optional[str] = None) -> AssessmentSession:
        self.expire_idle()
        if len(self._sessions) >= self.limit:
            raise UserInputError("Too many open assessments; close one before starting another")
        session = AssessmentSession(self.store, user)
        await session.open(assessment_id)
        self._sessions[session.id] = session
        self._last_seen[session.id] = self._clock()
        log_event("SESSION_OPENED", "assessment session opened", {
            "session_id": session.id,
            "assessment_id": session.state.data.id,
            "user_id": user.id,
        })
        return session

    def get(self, session_id: str, user: Optional[CurrentUser] = None) -> AssessmentSession:
        session = self._sessions.get(session_id)
        # another user's form is reported the same way as a missing one
        if session is None or (user is not None and session.user is not None and session.user.id != user.id):
            raise SessionNotFound(f"Session {session_id} not found")
        self._last_seen[session_id] = self._clock()
        return session

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if session is None:
            raise SessionNotFound(f"Session {session_id} not found")
        session.close()

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self._last_seen.pop(session_id, None)
            self._sessions.pop(session_id).close()


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions
