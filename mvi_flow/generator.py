"""Conversation orchestrator that walks a project through the MVI stages."""

from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from .concepts import analyze_business_idea
from .errors import SessionNotFoundError
from .journey import STAGE_REGISTRY, next_prompt
from .memory import InMemorySessionRepository, SessionRepository
from .schemas import BusinessIdea, ConversationTurn, MVIStage, Project, ProjectContext

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
UNKNOWN_STEP_RESULT = {"message": "Unknown step"}


def generate_session_id() -> str:
    """Return ``mvi_<epoch millis>_<9 base36 chars>``."""

    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"mvi_{int(time.time() * 1000)}_{suffix}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _preview(text: str, limit: int = 80) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


@dataclass(frozen=True)
class SessionStart:
    session_id: str
    project: Project
    analysis: Dict[str, Any]
    next_prompt: str


@dataclass(frozen=True)
class TurnResult:
    project: Project
    result: Dict[str, Any]
    next_prompt: str


class MVIGenerator:
    """Advance projects one stage per founder reply.

    The stage order is fixed by ``STAGE_REGISTRY``: each registered stage runs
    its handler once and moves to its ``next_stage``. A stage without a
    handler (``complete``) answers with an "Unknown step" no-op.
    """

    def __init__(self, repository: SessionRepository | None = None) -> None:
        self.repository: SessionRepository = repository if repository is not None else InMemorySessionRepository()

    def start_session(self, user_id: str, idea: str) -> SessionStart:
        """Create a project, run the opening market analysis and store it."""

        session_id = generate_session_id()
        insight = analyze_business_idea(idea)
        project = Project(
            id=session_id,
            user_id=user_id,
            idea=idea,
            created_at=_utcnow(),
            context=ProjectContext(
                business_idea=BusinessIdea(original=idea),
                market_analysis=insight.market,
                visual_maps={"marketOpportunity": insight.visual_data},
            ),
        )
        prompt = next_prompt(project.current_step)
        self._append_turn(project, "user", idea)
        self._append_turn(project, "assistant", prompt)
        self.repository.put(session_id, project)

        logger.info(
            "Started session %s for user %s (industry=%s)",
            session_id,
            user_id,
            insight.concepts.industry or "default",
        )
        return SessionStart(
            session_id=session_id,
            project=project,
            analysis=insight.as_payload(),
            next_prompt=prompt,
        )

    def process_user_response(self, session_id: str, response: str) -> TurnResult:
        """Apply the current stage's handler to the reply and advance one stage."""

        project = self.get_session(session_id)
        self._append_turn(project, "user", response)

        info = STAGE_REGISTRY.get(project.current_step)
        if info is None:
            step = getattr(project.current_step, "value", project.current_step)
            logger.warning("Session %s has no handler for step %s", session_id, step)
            result = dict(UNKNOWN_STEP_RESULT)
        else:
            logger.info("Session %s: %s <- %r", session_id, info.slug.value, _preview(response))
            result = info.handler(project, response)
            project.current_step = info.next_stage
            if project.current_step is MVIStage.COMPLETE:
                logger.info("Session %s complete", session_id)

        prompt = next_prompt(project.current_step)
        self._append_turn(project, "assistant", prompt)
        self.repository.put(session_id, project)
        return TurnResult(project=project, result=result, next_prompt=prompt)

    def get_session(self, session_id: str) -> Project:
        project = self.repository.get(session_id)
        if project is None:
            raise SessionNotFoundError(session_id)
        return project

    def record_turn(self, session_id: str, role: str, content: str) -> Project:
        """Append a free-form turn to a session without touching its stage."""

        project = self.get_session(session_id)
        self._append_turn(project, role, content)
        self.repository.put(session_id, project)
        return project

    @staticmethod
    def _append_turn(project: Project, role: str, content: str) -> None:
        project.context.conversation_history.append(
            ConversationTurn(role=role, content=content, timestamp=_utcnow())
        )
