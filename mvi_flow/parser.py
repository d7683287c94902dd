"""Best-effort extraction of structured data from free-form assistant replies.

The chat system prompt asks the model to answer in a fixed, emoji-sectioned
layout (``💰 Market Analysis``, ``🎯 Target Segments`` ...). Every extractor
below targets one line convention of that layout and returns ``None`` when
the text does not follow it. Nothing here raises on arbitrary input; a field
that was not found is reported through :meth:`ParsedResponse.missing_fields`.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field, fields
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic.alias_generators import to_camel

from .schemas import MVIStage

UNIT_MULTIPLIERS: Dict[str, int] = {
    "B": 1_000_000_000,
    "M": 1_000_000,
    "K": 1_000,
}

# Section markers requested by the chat prompt, mapped to the labels the
# chat UI reports. Later markers win when a reply contains several.
STAGE_MARKERS: List[Tuple[str, str]] = [
    ("💰 Market Analysis", "idea_capture"),
    ("🎯 Target Segments", "persona_discovery"),
    ("Target Users", "persona_discovery"),
    ("🏆 Competition", "competitive_analysis"),
    ("🚀 MVP Features", "mvp_definition"),
    ("📋 Action Plan", "action_plan"),
]

UI_STAGE_MAP: Dict[str, MVIStage] = {
    "idea_capture": MVIStage.IDEA_CAPTURE,
    "persona_discovery": MVIStage.USER_PERSONA_DISCOVERY,
    "competitive_analysis": MVIStage.COMPETITIVE_INTELLIGENCE,
    "mvp_definition": MVIStage.FEATURE_PRIORITIZATION,
    "action_plan": MVIStage.CONTEXT_GENERATION,
}


# ---------------------------------------------------------------------------
# Parsed records
# ---------------------------------------------------------------------------


@dataclass
class MoneyFigure:
    amount: int
    label: str


@dataclass
class ParsedSegment:
    name: str
    value: int


@dataclass
class ParsedPersona:
    name: str
    size: str
    avg_income: Optional[str] = None
    pain_percentage: Optional[float] = None
    pain_point: Optional[str] = None


@dataclass
class ParsedCompetitor:
    name: str
    market_share: float
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    pricing: Optional[str] = None


@dataclass
class MarketGap:
    description: str
    pricing: Optional[str] = None


@dataclass
class ParsedFeature:
    name: str
    rationale: Optional[str] = None


@dataclass
class FeatureLists:
    must_have: List[ParsedFeature] = field(default_factory=list)
    nice_to_have: List[ParsedFeature] = field(default_factory=list)


@dataclass
class ParsedTimeline:
    min_weeks: int
    max_weeks: int
    phases: List[str] = field(default_factory=list)


@dataclass
class ActionPlan:
    next_steps: List[str] = field(default_factory=list)
    launch_channel: Optional[str] = None
    initial_pricing: Optional[str] = None
    first_users_strategy: Optional[str] = None
    success_metrics: Dict[str, str] = field(default_factory=dict)


@dataclass
class ParsedResponse:
    """Everything the extractors could find in one reply."""

    stage: Optional[MVIStage] = None
    tam: Optional[MoneyFigure] = None
    growth: Optional[float] = None
    segments: Optional[List[ParsedSegment]] = None
    personas: Optional[List[ParsedPersona]] = None
    competitors: Optional[List[ParsedCompetitor]] = None
    market_gap: Optional[MarketGap] = None
    features: Optional[FeatureLists] = None
    tech_stack: Optional[Dict[str, str]] = None
    timeline: Optional[ParsedTimeline] = None
    action_plan: Optional[ActionPlan] = None
    focus_options: Optional[List[str]] = None

    def missing_fields(self) -> List[str]:
        """Names of the fields no extractor could populate."""
        return [item.name for item in fields(self) if getattr(self, item.name) is None]

    def as_dict(self) -> Dict[str, Any]:
        """camelCase, JSON-ready view including the list of missing fields."""

        payload = _camelize(asdict(self))
        payload["stage"] = self.stage.value if self.stage else None
        payload["missingFields"] = [to_camel(name) for name in self.missing_fields()]
        return payload


_FIELD_NAME_RE = re.compile(r"[a-z]+(?:_[a-z]+)+")


def _camelize(value: Any) -> Any:
    # Only rename our own snake_case field names, never keys lifted from the reply.
    if isinstance(value, dict):
        return {
            to_camel(key) if isinstance(key, str) and _FIELD_NAME_RE.fullmatch(key) else key: _camelize(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_camelize(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def parse_money(value: str, unit: str) -> Optional[int]:
    """Convert ``("1.2", "B")`` into whole dollars; ``None`` if either part is unusable."""

    multiplier = UNIT_MULTIPLIERS.get(unit.upper())
    if multiplier is None:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        return None
    return int((amount * multiplier).to_integral_value(rounding=ROUND_HALF_UP))


def _to_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except ValueError:
        return None


_TAM_RE = re.compile(r"\$?([\d.]+)\s*([BMK])\s*(total addressable market|TAM|market)", re.IGNORECASE)
_GROWTH_RE = re.compile(r"([\d.]+)%\s*(?:annual growth|growth rate|CAGR)", re.IGNORECASE)
_SEGMENT_RE = re.compile(r"•\s*([^:\n]+):\s*\$?([\d.]+)\s*([MBK])\b")


def extract_tam(text: str) -> Optional[MoneyFigure]:
    for match in _TAM_RE.finditer(text):
        amount = parse_money(match.group(1), match.group(2))
        if amount is not None:
            return MoneyFigure(amount=amount, label=match.group(0).strip())
    return None


def extract_growth(text: str) -> Optional[float]:
    match = _GROWTH_RE.search(text)
    return _to_float(match.group(1)) if match else None


def extract_segments(text: str) -> Optional[List[ParsedSegment]]:
    segments = []
    for match in _SEGMENT_RE.finditer(text):
        value = parse_money(match.group(2), match.group(3))
        if value is not None:
            segments.append(ParsedSegment(name=match.group(1).strip(), value=value))
    return segments or None


# ---------------------------------------------------------------------------
# Personas and competitors
# ---------------------------------------------------------------------------

_SIZE_RE = re.compile(r"Size:\s*([^|\n]+)")
_INCOME_RE = re.compile(r"Avg Income:\s*(.+?)(?=\s*(?:\||Pain:)|$)")
_PAIN_RE = re.compile(r"Pain:\s*([\d.]+)%\s*(.+)")
_LEADING_NOISE_RE = re.compile(r"^[^\w$]+")


def _clean_label(text: str) -> str:
    """Drop emoji, bullets and markdown emphasis around a heading."""

    return _LEADING_NOISE_RE.sub("", text).strip().rstrip(":*|").strip()


def extract_personas(text: str) -> Optional[List[ParsedPersona]]:
    """Read persona blocks: a heading line followed by Size/Income/Pain lines."""

    personas: List[ParsedPersona] = []
    current: ParsedPersona | None = None
    heading = ""
    for raw_line in text.splitlines():
        line = raw_line.strip().replace("**", "")
        if not line:
            continue

        size = _SIZE_RE.search(line)
        income = _INCOME_RE.search(line)
        pain = _PAIN_RE.search(line)

        if size:
            name = _clean_label(line[: size.start()]) or _clean_label(heading)
            current = ParsedPersona(name=name, size=size.group(1).strip())
            personas.append(current)
        elif not income and not pain:
            heading = line
            continue

        if current is None:
            continue
        if income:
            current.avg_income = income.group(1).strip()
        if pain:
            current.pain_percentage = _to_float(pain.group(1))
            current.pain_point = pain.group(2).strip()

    return [persona for persona in personas if persona.name] or None


_COMPETITOR_RE = re.compile(
    r"^[-•*]?\s*([A-Za-z][\w .&'-]*?):\s*([\d.]+)%\s*(?:market\s+share|share),?\s*(.*)$",
    re.IGNORECASE,
)
_PRICING_RE = re.compile(r"\$[\d.]+(?:\s*-\s*\$?[\d.]+)?\s*/\s*mo(?:nth)?", re.IGNORECASE)
_GAP_RE = re.compile(r"^\s*[-•*]?\s*Gap:\s*(.+)$", re.IGNORECASE | re.MULTILINE)


def extract_competitors(text: str) -> Optional[List[ParsedCompetitor]]:
    competitors = []
    for raw_line in text.splitlines():
        match = _COMPETITOR_RE.match(raw_line.strip().replace("**", ""))
        if not match:
            continue
        share = _to_float(match.group(2))
        if share is None:
            continue
        remainder = match.group(3).strip()
        pricing = _PRICING_RE.search(remainder)
        if pricing:
            remainder = remainder.replace(pricing.group(0), "").strip(" ,")
        strengths, weaknesses = [], []
        if " but " in remainder:
            strength, weakness = remainder.split(" but ", 1)
            strengths.append(strength.strip(" ,"))
            weaknesses.append(weakness.strip(" ,."))
        elif remainder:
            strengths.append(remainder.strip(" ,."))
        competitors.append(
            ParsedCompetitor(
                name=match.group(1).strip(),
                market_share=share,
                strengths=strengths,
                weaknesses=weaknesses,
                pricing=pricing.group(0).replace(" ", "") if pricing else None,
            )
        )
    return competitors or None


def extract_market_gap(text: str) -> Optional[MarketGap]:
    match = _GAP_RE.search(text.replace("**", ""))
    if not match:
        return None
    body = match.group(1).strip()
    pricing = _PRICING_RE.search(body)
    description = body.replace(pricing.group(0), "").strip(" ,") if pricing else body
    return MarketGap(description=description, pricing=pricing.group(0).replace(" ", "") if pricing else None)


# ---------------------------------------------------------------------------
# Sectioned lists
# ---------------------------------------------------------------------------

_ITEM_RE = re.compile(r"^(?:\d+[.)]|[•*-])\s*(.+)$")
_SECTION_PATTERNS: List[Tuple[str, re.Pattern[str]]] = [
    ("must_have", re.compile(r"must[- ]have", re.IGNORECASE)),
    ("nice_to_have", re.compile(r"nice[- ]to[- ]have", re.IGNORECASE)),
    ("next_steps", re.compile(r"next steps", re.IGNORECASE)),
    ("success_metrics", re.compile(r"success metrics", re.IGNORECASE)),
    ("other", re.compile(r"timeline|technical stack|go-to-market|competitors? analysis", re.IGNORECASE)),
]
_OTHER_SECTION = "other"


def _section_key(line: str) -> Optional[str]:
    """Return the section a heading line opens, or ``None`` for content lines."""

    if _ITEM_RE.match(line):
        return None
    head = line.split(":", 1)[0]
    for key, pattern in _SECTION_PATTERNS:
        if pattern.search(head):
            return key
    if line.endswith(":") or any(marker in line for marker, _ in STAGE_MARKERS):
        return _OTHER_SECTION
    return None


def _section_items(text: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(section, item text)`` for every list item under a known heading."""

    section = _OTHER_SECTION
    for raw_line in text.splitlines():
        line = raw_line.strip().replace("**", "")
        if not line:
            continue
        key = _section_key(line)
        if key:
            section = key
            continue
        item = _ITEM_RE.match(line)
        if item:
            yield section, item.group(1).strip()


def _split_rationale(item: str) -> ParsedFeature:
    for separator in (" - ", " – ", " — "):
        if separator in item:
            name, rationale = item.split(separator, 1)
            return ParsedFeature(name=name.strip(), rationale=rationale.strip())
    return ParsedFeature(name=item)


def extract_features(text: str) -> Optional[FeatureLists]:
    lists = FeatureLists()
    for section, item in _section_items(text):
        if section == "must_have":
            lists.must_have.append(_split_rationale(item))
        elif section == "nice_to_have":
            lists.nice_to_have.append(_split_rationale(item))
    if not lists.must_have and not lists.nice_to_have:
        return None
    return lists


_TECH_RE = re.compile(r"^\s*[-•*]?\s*(Frontend|Backend|Database|Payments):\s*(.+)$", re.IGNORECASE | re.MULTILINE)


def extract_tech_stack(text: str) -> Optional[Dict[str, str]]:
    stack: Dict[str, str] = {}
    for match in _TECH_RE.finditer(text.replace("**", "")):
        choice = _split_rationale(match.group(2).strip()).name
        if choice:
            stack.setdefault(match.group(1).lower(), choice)
    return stack or None


_TIMELINE_RE = re.compile(r"Timeline:\s*(\d+)(?:\s*(?:-|–|to)\s*(\d+))?\s*weeks?", re.IGNORECASE)
_PHASE_RE = re.compile(r"^\s*[-•*]?\s*(Week\s+[\d\s\-–]+:\s*.+)$", re.IGNORECASE | re.MULTILINE)


def extract_timeline(text: str) -> Optional[ParsedTimeline]:
    match = _TIMELINE_RE.search(text)
    if not match:
        return None
    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) else low
    phases = [phase.group(1).strip() for phase in _PHASE_RE.finditer(text)]
    return ParsedTimeline(min_weeks=low, max_weeks=high, phases=phases)


_CHANNEL_RE = re.compile(r"Launch channel:\s*(.+)", re.IGNORECASE)
_PRICE_RE = re.compile(r"Initial pricing:\s*(.+)", re.IGNORECASE)
_FIRST_USERS_RE = re.compile(r"First 100 users:\s*(.+)", re.IGNORECASE)


def _line_value(pattern: re.Pattern[str], text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1).strip() if match else None


def extract_action_plan(text: str) -> Optional[ActionPlan]:
    plan = ActionPlan(
        launch_channel=_line_value(_CHANNEL_RE, text),
        initial_pricing=_line_value(_PRICE_RE, text),
        first_users_strategy=_line_value(_FIRST_USERS_RE, text),
    )
    for section, item in _section_items(text):
        if section == "next_steps":
            plan.next_steps.append(item)
        elif section == "success_metrics" and ":" in item:
            metric, target = item.split(":", 1)
            plan.success_metrics[metric.strip()] = target.strip()
    if plan == ActionPlan():
        return None
    return plan


_FOCUS_RE = re.compile(r"are you thinking ([^?]+)\?", re.IGNORECASE)
_OPTION_SPLIT_RE = re.compile(r",\s*|\s+or\s+")


def extract_focus_options(text: str) -> Optional[List[str]]:
    """Options offered in the closing "are you thinking a, b, or c?" question."""

    match = _FOCUS_RE.search(text)
    if not match:
        return None
    options = []
    for option in _OPTION_SPLIT_RE.split(match.group(1)):
        option = re.sub(r"^or\s+", "", option.strip())
        if option:
            options.append(option)
    return options or None


def detect_stage(text: str) -> Optional[MVIStage]:
    """Map the section markers found in a reply onto the conversation stage."""

    detected: Optional[MVIStage] = None
    for marker, ui_label in STAGE_MARKERS:
        if marker in text:
            detected = UI_STAGE_MAP[ui_label]
    return detected


def parse_response(text: str) -> ParsedResponse:
    """Run every extractor over one assistant reply."""

    return ParsedResponse(
        stage=detect_stage(text),
        tam=extract_tam(text),
        growth=extract_growth(text),
        segments=extract_segments(text),
        personas=extract_personas(text),
        competitors=extract_competitors(text),
        market_gap=extract_market_gap(text),
        features=extract_features(text),
        tech_stack=extract_tech_stack(text),
        timeline=extract_timeline(text),
        action_plan=extract_action_plan(text),
        focus_options=extract_focus_options(text),
    )
