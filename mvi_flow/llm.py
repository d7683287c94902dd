"""OpenAI-powered conversational helpers for the MVI flow."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Dict, List, Optional, Sequence, Tuple

from openai import OpenAI, OpenAIError

from .config import get_settings
from .errors import LLMUnavailableError
from .schemas import MVIStage

logger = logging.getLogger(__name__)

OPENING_FALLBACK = "Great idea! Let me analyze the market opportunity for you..."

CHAT_SYSTEM_PROMPT = dedent(
    """\
    You are DevbrainAI, a conversational AI business consultant that helps founders transform ideas into deployed MVPs.

    IMPORTANT: Provide SPECIFIC data with real numbers in EVERY response. Follow this exact format:

    When user shares a business idea, respond with:

    💰 Market Analysis
    "Interesting! Let me start mapping this opportunity..."
    - [Specific market segment] Market: $[X.X]B total addressable market
    - 📈 [XX]% annual growth rate (CAGR)
    - Market segments:
      • [Segment 1]: $[XXX]M
      • [Segment 2]: $[XXX]M
      • [Segment 3]: $[XXX]M

    Then ask: "I see potential here. Tell me more - are you thinking [specific aspect 1], [specific aspect 2], or [specific aspect 3]?"

    When user clarifies direction, respond with:

    🎯 Target Segments
    "Perfect! I'm detecting several potential user segments..."

    [Emoji] [Segment Name 1]
    Size: [X.X]M users | Avg Income: $[XX]K
    Pain: [XX]% [specific pain point]

    [Emoji] [Segment Name 2]
    Size: [X.X]M users | Avg Income: $[XX]K
    Pain: [XX]% [specific pain point]

    "Which group feels like your ideal user?"

    When user selects segment, provide:

    🏆 Competition
    "Great choice! Let me map the competitive landscape..."

    Competitors Analysis:
    - [Company 1]: [XX]% market share, [strength] but [weakness]
    - [Company 2]: [XX]% share, [strength] but [weakness]
    - [Gap]: [Your opportunity description], $[XX-XX]/mo

    Then provide:

    🚀 MVP Features
    "Based on your target market, here's the MVP specification..."

    Must-Have Features:
    1. [Feature 1] - [Why it's critical]
    2. [Feature 2] - [Why it's critical]

    Nice-to-Have Features:
    • [Feature 1] - [Value add]
    • [Feature 2] - [Value add]

    Technical Stack:
    - Frontend: [Framework] - [Reason]
    - Backend: [Framework] - [Reason]
    - Database: [Type] - [Reason]
    - Payments: [Provider] - [Reason]

    Timeline: [X-X] weeks for MVP
    - Week 1-2: [Phase]
    - Week 3-4: [Phase]

    Finally provide:

    📋 Action Plan
    "Here's your roadmap to launch..."

    Immediate Next Steps:
    1. [Technical requirement]
    2. [Resource need]
    3. [Market validation step]

    Go-to-Market Strategy:
    - Launch channel: [Channel]
    - Initial pricing: $[XX]/month
    - First 100 users: [Strategy]

    Success Metrics:
    - [Metric 1]: [Target]
    - [Metric 2]: [Target]

    ALWAYS include specific numbers, percentages, and dollar amounts. Make data feel real and researched."""
)


@dataclass(frozen=True)
class PromptSpec:
    """Container describing one chat-completions call."""

    system_prompt: str
    user_prompt: str
    temperature: float = 0.7
    max_tokens: int = 200


@dataclass(frozen=True)
class ChatCompletion:
    content: str
    provider: str
    model: str
    usage: Dict[str, Any] | None = None


ClientCache = Tuple[Tuple[str, Optional[str]], OpenAI]
_client_cache: ClientCache | None = None


def _get_client() -> OpenAI | None:
    """Return a cached OpenAI client when an API key is configured."""

    global _client_cache
    settings = get_settings()
    api_key = settings.openai_api_key
    if not api_key:
        return None
    cache_key = (api_key, settings.openai_base_url)
    if _client_cache and _client_cache[0] == cache_key:
        return _client_cache[1]
    client = OpenAI(
        api_key=api_key,
        base_url=settings.openai_base_url,
        timeout=settings.request_timeout,
        max_retries=0,
    )
    _client_cache = (cache_key, client)
    return client


def _complete(client: OpenAI, messages: List[Dict[str, str]], spec: PromptSpec) -> ChatCompletion | None:
    model = get_settings().openai_model
    try:
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=spec.temperature,
            max_tokens=spec.max_tokens,
        )
    except OpenAIError as exc:
        logger.warning("OpenAI request failed (%s): %s", type(exc).__name__, exc)
        return None

    content = response.choices[0].message.content if response.choices else None
    if not content:
        logger.warning("OpenAI returned an empty completion")
        return None
    usage = response.usage.model_dump() if response.usage is not None else None
    return ChatCompletion(content=content.strip(), provider="openai", model=model, usage=usage)


def _invoke(client: OpenAI, spec: PromptSpec) -> str | None:
    completion = _complete(
        client,
        [
            {"role": "system", "content": spec.system_prompt.strip()},
            {"role": "user", "content": spec.user_prompt.strip()},
        ],
        spec,
    )
    return completion.content if completion else None


def opening_response(idea: str) -> str:
    """Encouraging first reply to a new idea, or a fixed line without a provider."""

    client = _get_client()
    if client is None:
        return OPENING_FALLBACK
    spec = PromptSpec(
        system_prompt=(
            "You are DevbrainAI, an expert business consultant. "
            "Provide encouraging, insightful responses about business ideas."
        ),
        user_prompt=f'Analyze this business idea and provide an encouraging opening response: "{idea}"',
    )
    return _invoke(client, spec) or OPENING_FALLBACK


def stage_guidance(stage: MVIStage, user_text: str, result: Dict[str, Any]) -> str | None:
    """Short guidance for the stage the project just entered."""

    client = _get_client()
    if client is None:
        return None
    spec = PromptSpec(
        system_prompt=f"You are DevbrainAI. Current step: {MVIStage(stage).value}. Provide helpful guidance.",
        user_prompt=f'User said: "{user_text}". Context: {json.dumps(result, default=str)}',
    )
    return _invoke(client, spec)


def chat(message: str, history: Sequence[Dict[str, str]] = ()) -> ChatCompletion:
    """Send *message* after the DevbrainAI system prompt and any prior turns.

    Raises :class:`LLMUnavailableError` when no key is configured or the
    provider call fails.
    """

    client = _get_client()
    if client is None:
        raise LLMUnavailableError("No AI provider is configured")
    messages = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
    messages.extend({"role": turn["role"], "content": turn["content"]} for turn in history)
    messages.append({"role": "user", "content": message})
    spec = PromptSpec(system_prompt=CHAT_SYSTEM_PROMPT, user_prompt=message, max_tokens=1000)
    completion = _complete(client, messages, spec)
    if completion is None:
        raise LLMUnavailableError("Failed to generate response")
    return completion
