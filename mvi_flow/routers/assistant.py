"""Direct chat passthrough to the configured AI provider."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from .. import llm
from ..errors import LLMUnavailableError, SessionNotFoundError
from ..generator import MVIGenerator
from ..parser import parse_response
from ..schemas import ChatData, ChatRequest, ChatResponse
from .mvi import get_generator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
def chat(payload: ChatRequest, generator: MVIGenerator = Depends(get_generator)) -> ChatResponse:
    """Answer with the DevbrainAI consultant prompt and parse the reply.

    Provider failures are reported in the body with HTTP 200 so the chat UI
    can show them inline.
    """

    if not payload.message:
        raise HTTPException(status_code=400, detail="Message is required")

    history = [{"role": turn.role, "content": turn.content} for turn in payload.context or []]
    try:
        completion = llm.chat(payload.message, history)
    except LLMUnavailableError as exc:
        return ChatResponse(success=False, error=str(exc))

    if payload.session_id:
        try:
            generator.record_turn(payload.session_id, "user", payload.message)
            generator.record_turn(payload.session_id, "assistant", completion.content)
        except SessionNotFoundError:
            logger.info("Chat referenced unknown session %s; history not recorded", payload.session_id)

    parsed = parse_response(completion.content)
    if parsed.missing_fields():
        logger.debug("Chat reply missing fields: %s", ", ".join(parsed.missing_fields()))
    return ChatResponse(
        success=True,
        data=ChatData(
            content=completion.content,
            provider=completion.provider,
            model=completion.model,
            usage=completion.usage,
            parsed=parsed.as_dict(),
        ),
    )
