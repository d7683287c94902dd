"""Session repositories holding MVI projects between conversation turns."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

from .schemas import Project

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Storage seam for projects keyed by session id."""

    def get(self, session_id: str) -> Optional[Project]:
        ...

    def put(self, session_id: str, project: Project) -> None:
        ...

    def delete(self, session_id: str) -> None:
        ...


class InMemorySessionRepository:
    """Process-local store; unbounded and lost on restart.

    Concurrent writes to the same session id are last-write-wins.
    """

    def __init__(self) -> None:
        self._store: Dict[str, Project] = {}

    def get(self, session_id: str) -> Optional[Project]:
        return self._store.get(session_id)

    def put(self, session_id: str, project: Project) -> None:
        self._store[session_id] = project

    def delete(self, session_id: str) -> None:
        if self._store.pop(session_id, None) is not None:
            logger.debug("Dropped session %s", session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._store

    def __len__(self) -> int:
        return len(self._store)
