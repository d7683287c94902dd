"""Pydantic models and enums for the DevbrainAI MVI conversation API."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-ready dict using wire (camelCase) keys."""

        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class MVIStage(str, Enum):
    """Enumerate the conversation stages in their fixed order."""

    IDEA_CAPTURE = "ideaCapture"
    USER_PERSONA_DISCOVERY = "userPersonaDiscovery"
    COMPETITIVE_INTELLIGENCE = "competitiveIntelligence"
    FEATURE_PRIORITIZATION = "featurePrioritization"
    TECHNICAL_RECOMMENDATION = "technicalRecommendation"
    CONTEXT_GENERATION = "contextGeneration"
    COMPLETE = "complete"

    @property
    def order(self) -> int:
        """Return the 1-based position of the stage in the flow."""
        return list(MVIStage).index(self) + 1


class ProjectStatus(str, Enum):
    ANALYZING = "analyzing"
    COMPLETE = "complete"


class ExportFormat(str, Enum):
    """Enumerate the supported export bundles."""

    MCP = "mcp"
    CURSOR = "cursor"
    GITHUB = "github"
    REPLIT = "replit"
    PDF = "pdf"


# ---------------------------------------------------------------------------
# Project context records
# ---------------------------------------------------------------------------


class ConversationTurn(CamelModel):
    role: str
    content: str
    timestamp: datetime


class BusinessIdea(CamelModel):
    original: str
    refined: Optional[str] = None
    focus_area: Optional[str] = None


class MarketSegment(CamelModel):
    name: str
    size: str
    avg_income: Optional[str] = None
    avg_revenue: Optional[str] = None


class MarketOpportunity(CamelModel):
    title: str
    description: str
    potential: str


class MarketAnalysis(CamelModel):
    """Canned market view attached to a project at session start."""

    total_addressable_market: Optional[str] = None
    growth_rate: Optional[str] = None
    segments: List[MarketSegment] = Field(default_factory=list)
    opportunities: List[MarketOpportunity] = Field(default_factory=list)


class UserPersona(CamelModel):
    name: str
    role: str
    age: str
    income: str
    pain_points: List[str] = Field(default_factory=list)
    needs: List[str] = Field(default_factory=list)
    tech_savvy: str = "Medium"


class Competitor(CamelModel):
    name: str
    market_share: str
    pricing: str
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    target_market: str = ""


class Feature(CamelModel):
    name: str
    priority: str
    effort: str
    impact: str
    category: str
    time_estimate: str


class TechStack(CamelModel):
    """Recommended stack grouped by layer; empty until the tech stage runs."""

    frontend: Dict[str, str] = Field(default_factory=dict)
    backend: Dict[str, str] = Field(default_factory=dict)
    integrations: Dict[str, str] = Field(default_factory=dict)
    tools: Dict[str, str] = Field(default_factory=dict)


class ProjectContext(CamelModel):
    """Accumulated business and technical data for one session."""

    business_idea: BusinessIdea
    market_analysis: MarketAnalysis = Field(default_factory=MarketAnalysis)
    user_personas: List[UserPersona] = Field(default_factory=list)
    competitors: List[Competitor] = Field(default_factory=list)
    features: List[Feature] = Field(default_factory=list)
    tech_stack: TechStack = Field(default_factory=TechStack)
    specifications: Dict[str, Any] = Field(default_factory=dict)
    visual_maps: Dict[str, Any] = Field(default_factory=dict)
    final_package: Optional[Dict[str, Any]] = None
    conversation_history: List[ConversationTurn] = Field(default_factory=list)


class Project(CamelModel):
    """The unit of conversation state keyed by session id."""

    id: str
    user_id: str
    idea: str
    created_at: datetime
    status: ProjectStatus = ProjectStatus.ANALYZING
    current_step: MVIStage = MVIStage.IDEA_CAPTURE
    context: ProjectContext


# ---------------------------------------------------------------------------
# HTTP payloads
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class StageDefinition(CamelModel):
    """Expose metadata that describes a stage to the UI."""

    id: MVIStage
    label: str
    order: int
    prompt: str


class ProjectSummary(CamelModel):
    id: str
    status: ProjectStatus
    current_step: MVIStage


class ProjectDetail(ProjectSummary):
    context: ProjectContext


class SessionProject(ProjectDetail):
    created_at: datetime


class StartRequest(CamelModel):
    """Payload that opens a new MVI session."""

    user_id: Optional[str] = Field(default=None, description="Optional owner of the session.")
    idea: Optional[str] = Field(default=None, description="Free-form business idea supplied by the founder.")


class StartResponse(CamelModel):
    success: bool = True
    session_id: str
    analysis: Dict[str, Any]
    next_prompt: str
    ai_response: str
    project: ProjectSummary


class ContinueRequest(CamelModel):
    session_id: Optional[str] = None
    response: Optional[str] = Field(default=None, description="The founder's reply to the last prompt.")


class ContinueResponse(CamelModel):
    success: bool = True
    session_id: str
    result: Dict[str, Any]
    next_prompt: str
    ai_response: Optional[str] = None
    project: ProjectDetail


class ExportRequest(CamelModel):
    session_id: Optional[str] = None
    format: Optional[str] = Field(default=None, description="One of mcp, cursor, github, replit, pdf.")


class ExportResponse(CamelModel):
    success: bool = True
    format: ExportFormat
    data: Dict[str, Any]
    download_url: str


class SessionResponse(CamelModel):
    success: bool = True
    project: SessionProject


class ChatMessage(CamelModel):
    role: str
    content: str


class ChatRequest(CamelModel):
    """Direct chat passthrough payload."""

    message: Optional[str] = None
    context: Optional[List[ChatMessage]] = Field(
        default=None,
        description="Optional prior turns forwarded to the provider ahead of the message.",
    )
    session_id: Optional[str] = Field(
        default=None,
        description="Optional session whose conversation history records both turns.",
    )


class ChatData(CamelModel):
    content: str
    provider: str
    model: str
    usage: Optional[Dict[str, Any]] = None
    parsed: Dict[str, Any] = Field(default_factory=dict)


class ChatResponse(CamelModel):
    success: bool
    data: Optional[ChatData] = None
    error: Optional[str] = None


class HealthResponse(CamelModel):
    status: str
    service: str
    version: str
    features: List[str]


class ProvidersResponse(CamelModel):
    available: List[str]
    current: Optional[str] = None


class ContextPack(CamelModel):
    """Catalog entry for a reusable feature pack."""

    id: str
    name: str
    description: str
    category: str
    rating: float
    downloads: int
    setup_time: str
    tech_stack: List[str]
    included: List[str]


class LibraryResponse(CamelModel):
    success: bool = True
    library: List[ContextPack]
    categories: List[str]


class PackRequirements(CamelModel):
    node: str
    npm: str
    frameworks: List[str]


class PackDetail(CamelModel):
    id: str
    name: str
    version: str
    description: str
    rating: float
    reviews: int
    downloads: int
    last_updated: datetime
    author: str
    tech_requirements: PackRequirements
    features: List[str]
    files: List[str]
    setup_steps: List[str]


class PackResponse(CamelModel):
    success: bool = True
    pack: PackDetail


class AddToProjectRequest(CamelModel):
    session_id: Optional[str] = None
    pack_id: Optional[str] = None


class AddToProjectResponse(CamelModel):
    success: bool = True
    message: str
    files: List[str]
