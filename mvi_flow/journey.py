"""Stage handlers, canned datasets and the registry that drives the MVI flow."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from .concepts import DEFAULT_BUCKET, IdeaConcepts, extract_concepts, lookup
from .planning import (
    acceptance_criteria,
    build_test_scenarios,
    build_timeline,
    dump_payloads,
    project_description,
    project_name,
    user_stories,
)
from .schemas import (
    BusinessIdea,
    Competitor,
    ExportFormat,
    Feature,
    MVIStage,
    Project,
    ProjectStatus,
    StageDefinition,
    TechStack,
    UserPersona,
)

FOCUS_AREA_LENGTH = 100


# ---------------------------------------------------------------------------
# Stage infrastructure
# ---------------------------------------------------------------------------


HandlerFn = Callable[[Project, str], Dict[str, Any]]


@dataclass(frozen=True)
class StageInfo:
    """Runtime definition used by the registry below."""

    slug: MVIStage
    label: str
    prompt: str
    handler: HandlerFn
    next_stage: MVIStage


def _concepts(project: Project) -> IdeaConcepts:
    return extract_concepts(project.idea)


# ---------------------------------------------------------------------------
# Canned datasets, keyed by industry bucket
# ---------------------------------------------------------------------------

PERSONAS: Dict[str, List[Dict[str, Any]]] = {
    "freelance": [
        {
            "name": "Sarah the Designer",
            "role": "Creative Freelancer",
            "age": "28-35",
            "income": "$45K/year",
            "pain_points": ["Complex invoicing tools", "Slow payment processing", "Time tracking hassles"],
            "needs": ["Simple, visual interfaces", "Quick invoice creation", "Mobile accessibility"],
            "tech_savvy": "Medium",
        },
        {
            "name": "John the Developer",
            "role": "Tech Freelancer",
            "age": "25-40",
            "income": "$75K/year",
            "pain_points": ["Manual invoice creation", "Client management overhead", "Integration limitations"],
            "needs": ["API integrations", "Automation features", "Advanced customization"],
            "tech_savvy": "High",
        },
    ],
    "ecommerce": [
        {
            "name": "Maya the Shop Owner",
            "role": "Small Business Seller",
            "age": "30-45",
            "income": "$50K/year",
            "pain_points": ["Store setup takes weeks", "Juggling inventory across channels", "High payment fees"],
            "needs": ["Ready-made storefront", "Unified inventory", "Transparent pricing"],
            "tech_savvy": "Low",
        },
        {
            "name": "Leo the Dropshipper",
            "role": "Dropshipping Entrepreneur",
            "age": "22-35",
            "income": "$25K/year",
            "pain_points": ["Supplier sync errors", "Abandoned carts", "Thin margins"],
            "needs": ["Supplier integrations", "Cart recovery", "Margin analytics"],
            "tech_savvy": "High",
        },
    ],
    DEFAULT_BUCKET: [
        {
            "name": "Alex the Operations Manager",
            "role": "Small Business Operator",
            "age": "30-50",
            "income": "$65K/year",
            "pain_points": ["Manual busywork", "Tools that do not talk to each other", "Unclear reporting"],
            "needs": ["Automation", "Simple integrations", "At-a-glance dashboards"],
            "tech_savvy": "Medium",
        },
        {
            "name": "Priya the Team Lead",
            "role": "Enterprise Team Lead",
            "age": "28-45",
            "income": "$110K/year",
            "pain_points": ["Slow procurement", "Security reviews", "Change management"],
            "needs": ["SSO and audit logs", "Admin controls", "Rollout support"],
            "tech_savvy": "High",
        },
    ],
}

COMPETITORS: Dict[str, List[Dict[str, Any]]] = {
    "freelance": [
        {
            "name": "QuickBooks",
            "market_share": "45%",
            "pricing": "$50-180/month",
            "strengths": ["Brand recognition", "Full accounting"],
            "weaknesses": ["Complex for freelancers", "Expensive"],
            "target_market": "SMB+",
        },
        {
            "name": "FreshBooks",
            "market_share": "22%",
            "pricing": "$15-50/month",
            "strengths": ["Good UX", "Time tracking"],
            "weaknesses": ["Limited mobile", "Pricing tiers"],
            "target_market": "Freelancers",
        },
        {
            "name": "Wave",
            "market_share": "15%",
            "pricing": "Free",
            "strengths": ["Free tier", "Simple"],
            "weaknesses": ["Limited features", "Support"],
            "target_market": "Solopreneurs",
        },
    ],
    "ecommerce": [
        {
            "name": "Shopify",
            "market_share": "45%",
            "pricing": "$39-399/month",
            "strengths": ["App ecosystem", "Brand trust"],
            "weaknesses": ["App costs add up", "Transaction fees"],
            "target_market": "SMB+",
        },
        {
            "name": "WooCommerce",
            "market_share": "22%",
            "pricing": "Free",
            "strengths": ["Open source", "Flexible"],
            "weaknesses": ["Self-hosting burden", "Plugin sprawl"],
            "target_market": "WordPress sites",
        },
        {
            "name": "BigCommerce",
            "market_share": "12%",
            "pricing": "$39-399/month",
            "strengths": ["Built-in features", "B2B support"],
            "weaknesses": ["Revenue caps per tier", "Smaller ecosystem"],
            "target_market": "Mid-market",
        },
    ],
    DEFAULT_BUCKET: [
        {
            "name": "Incumbent Suite",
            "market_share": "40%",
            "pricing": "$50-200/month",
            "strengths": ["Feature breadth", "Distribution"],
            "weaknesses": ["Complex onboarding", "Expensive"],
            "target_market": "Enterprise",
        },
        {
            "name": "Spreadsheets",
            "market_share": "30%",
            "pricing": "Free",
            "strengths": ["Familiar", "Flexible"],
            "weaknesses": ["Manual", "Error-prone"],
            "target_market": "Everyone",
        },
        {
            "name": "Point Tool",
            "market_share": "20%",
            "pricing": "$10-30/month",
            "strengths": ["Focused", "Affordable"],
            "weaknesses": ["Narrow scope", "Few integrations"],
            "target_market": "Small teams",
        },
    ],
}

MARKET_GAPS: Dict[str, Dict[str, str]] = {
    "freelance": {
        "gap": "Mobile-first, simple invoicing for creative freelancers",
        "opportunity": "High",
        "estimatedUsers": "2.3M",
    },
    "ecommerce": {
        "gap": "Done-for-you storefront setup for first-time sellers",
        "opportunity": "High",
        "estimatedUsers": "30M",
    },
    DEFAULT_BUCKET: {
        "gap": "Simple, affordable tooling for small teams",
        "opportunity": "Medium",
        "estimatedUsers": "1M",
    },
}

# Positioning matrix x-axis; competitors not listed sit at the complex end.
SIMPLICITY_SCORES: Dict[str, int] = {
    "Wave": 80,
    "FreshBooks": 60,
    "WooCommerce": 55,
    "BigCommerce": 50,
    "Spreadsheets": 70,
    "Point Tool": 65,
}
DEFAULT_SIMPLICITY = 30

FEATURES: Dict[str, List[Dict[str, str]]] = {
    "freelance": [
        {"name": "2-Click Invoice Creation", "priority": "P0", "effort": "Medium", "impact": "Very High", "category": "Core", "time_estimate": "1 week"},
        {"name": "Stripe Payment Integration", "priority": "P0", "effort": "High", "impact": "Very High", "category": "Core", "time_estimate": "2 weeks"},
        {"name": "Mobile-First Design", "priority": "P0", "effort": "Medium", "impact": "High", "category": "UX", "time_estimate": "1 week"},
        {"name": "Client Portal", "priority": "P1", "effort": "High", "impact": "Medium", "category": "Enhancement", "time_estimate": "2 weeks"},
        {"name": "Email Automation", "priority": "P1", "effort": "Low", "impact": "High", "category": "Automation", "time_estimate": "3 days"},
    ],
    "ecommerce": [
        {"name": "One-Click Storefront", "priority": "P0", "effort": "High", "impact": "Very High", "category": "Core", "time_estimate": "2 weeks"},
        {"name": "Stripe Checkout", "priority": "P0", "effort": "Medium", "impact": "Very High", "category": "Core", "time_estimate": "1 week"},
        {"name": "Inventory Sync", "priority": "P0", "effort": "High", "impact": "High", "category": "Core", "time_estimate": "2 weeks"},
        {"name": "Abandoned Cart Emails", "priority": "P1", "effort": "Low", "impact": "High", "category": "Automation", "time_estimate": "3 days"},
        {"name": "Sales Dashboard", "priority": "P1", "effort": "Medium", "impact": "Medium", "category": "Enhancement", "time_estimate": "1 week"},
    ],
    DEFAULT_BUCKET: [
        {"name": "Guided Onboarding", "priority": "P0", "effort": "Medium", "impact": "Very High", "category": "Core", "time_estimate": "1 week"},
        {"name": "Core Workflow Automation", "priority": "P0", "effort": "High", "impact": "Very High", "category": "Core", "time_estimate": "2 weeks"},
        {"name": "Mobile-First Design", "priority": "P0", "effort": "Medium", "impact": "High", "category": "UX", "time_estimate": "1 week"},
        {"name": "Team Collaboration", "priority": "P1", "effort": "High", "impact": "Medium", "category": "Enhancement", "time_estimate": "2 weeks"},
        {"name": "Email Notifications", "priority": "P1", "effort": "Low", "impact": "High", "category": "Automation", "time_estimate": "3 days"},
    ],
}

BASE_TECH_STACK: Dict[str, Dict[str, str]] = {
    "frontend": {
        "framework": "React",
        "ui": "Tailwind CSS",
        "state": "Zustand",
        "routing": "React Router",
        "reason": "Fast development, great ecosystem",
    },
    "backend": {
        "runtime": "Node.js",
        "framework": "Express",
        "database": "PostgreSQL",
        "orm": "Prisma",
        "reason": "JavaScript everywhere, rapid prototyping",
    },
    "integrations": {
        "payments": "Stripe",
        "email": "SendGrid",
        "storage": "AWS S3",
        "hosting": "Vercel + Railway",
    },
    "tools": {
        "development": "Cursor AI",
        "version": "Git + GitHub",
        "ci": "GitHub Actions",
        "monitoring": "Sentry",
    },
}

FRONTEND_FRAMEWORKS = ("React", "Vue", "Angular")
BACKEND_FRAMEWORKS = ("Express", "Fastify", "NestJS")

_PRICE_FLOOR_RE = re.compile(r"\$(\d+)")


# ---------------------------------------------------------------------------
# Visualization helpers
# ---------------------------------------------------------------------------


def _price_floor(pricing: str) -> int:
    """Lower bound of a ``$15-50/month`` price string; ``Free`` is zero."""

    if pricing.strip().lower() == "free":
        return 0
    match = _PRICE_FLOOR_RE.search(pricing)
    return int(match.group(1)) if match else 0


def _share(market_share: str) -> float:
    try:
        return float(market_share.rstrip("%"))
    except ValueError:
        return 0.0


def _competitive_matrix(competitors: Sequence[Competitor]) -> Dict[str, Any]:
    return {
        "type": "positioningMatrix",
        "axes": {
            "x": {"label": "Simplicity", "range": [0, 100]},
            "y": {"label": "Price", "range": [0, 200]},
        },
        "dataPoints": [
            {
                "name": competitor.name,
                "x": SIMPLICITY_SCORES.get(competitor.name, DEFAULT_SIMPLICITY),
                "y": _price_floor(competitor.pricing),
                "size": _share(competitor.market_share),
            }
            for competitor in competitors
        ],
        "opportunityZone": {"x": [60, 90], "y": [15, 35], "label": "Market Opportunity"},
    }


def _impact_chart(features: Sequence[Feature]) -> Dict[str, Any]:
    return {
        "type": "impactEffortMatrix",
        "data": [{"name": f.name, "impact": f.impact, "effort": f.effort} for f in features],
    }


def _implementation_plan() -> Dict[str, str]:
    return {
        "week1": "Setup and core backend",
        "week2": "Frontend and UI",
        "week3": "Integrations",
        "week4": "Testing and deployment",
    }


def _preferred(response: str, choices: Sequence[str]) -> Optional[str]:
    lowered = response.lower()
    for choice in choices:
        if choice.lower() in lowered:
            return choice
    return None


# ---------------------------------------------------------------------------
# Stage handlers
# ---------------------------------------------------------------------------


def _handle_idea_capture(project: Project, response: str) -> Dict[str, Any]:
    project.context.business_idea = BusinessIdea(
        original=project.idea,
        refined=response,
        focus_area=response[:FOCUS_AREA_LENGTH],
    )
    return {
        "message": "Idea refined successfully",
        "visualUpdate": {"updated": True},
    }


def _handle_user_personas(project: Project, response: str) -> Dict[str, Any]:
    personas = [UserPersona(**persona) for persona in lookup(PERSONAS, _concepts(project))]
    project.context.user_personas = personas
    return {
        "message": "User personas identified",
        "personas": dump_payloads(personas),
        "visualData": {"type": "personaCards", "data": dump_payloads(personas)},
    }


def _handle_competitive_analysis(project: Project, response: str) -> Dict[str, Any]:
    concepts = _concepts(project)
    competitors = [Competitor(**competitor) for competitor in lookup(COMPETITORS, concepts)]
    project.context.competitors = competitors
    return {
        "message": "Competitive landscape mapped",
        "competitors": dump_payloads(competitors),
        "visualData": _competitive_matrix(competitors),
        "opportunity": dict(lookup(MARKET_GAPS, concepts)),
    }


def _handle_feature_priorities(project: Project, response: str) -> Dict[str, Any]:
    features = [Feature(**feature) for feature in lookup(FEATURES, _concepts(project))]
    project.context.features = features
    return {
        "message": "Features prioritized",
        "features": dump_payloads(features),
        "visualData": _impact_chart(features),
        "mvpScope": dump_payloads([feature for feature in features if feature.priority == "P0"]),
    }


def _handle_tech_stack(project: Project, response: str) -> Dict[str, Any]:
    layers = {layer: dict(values) for layer, values in BASE_TECH_STACK.items()}
    frontend = _preferred(response, FRONTEND_FRAMEWORKS)
    if frontend:
        layers["frontend"]["framework"] = frontend
    backend = _preferred(response, BACKEND_FRAMEWORKS)
    if backend:
        layers["backend"]["framework"] = backend

    tech_stack = TechStack(**layers)
    project.context.tech_stack = tech_stack
    return {
        "message": "Technical architecture defined",
        "techStack": tech_stack.to_payload(),
        "visualData": {"type": "architectureDiagram", "layers": tech_stack.to_payload()},
        "implementation": _implementation_plan(),
    }


def _detailed_specs(features: Sequence[Feature]) -> Dict[str, Any]:
    return {
        "functional": {
            feature.name: {
                "description": f"{feature.category} capability: {feature.name}",
                "requirements": [
                    f"{feature.name} is implemented",
                    "User can access the feature",
                    "Feature works on mobile",
                    "Tests are passing",
                ],
            }
            for feature in features
            if feature.priority == "P0"
        },
        "nonFunctional": {
            "performance": {"pageLoad": "<2 seconds", "apiResponse": "<200ms", "concurrent": "1000 users"},
            "security": {"authentication": "JWT", "encryption": "AES-256", "compliance": "PCI DSS"},
        },
    }


def _handle_context_generation(project: Project, response: str) -> Dict[str, Any]:
    context = project.context
    context.specifications = _detailed_specs(context.features)
    name = project_name(project)
    must_have = [feature.name for feature in context.features if feature.priority == "P0"]

    package = {
        "meta": {
            "projectId": project.id,
            "createdAt": project.created_at.isoformat(),
            "version": "1.0.0",
            "format": "mcp-compliant",
        },
        "business": {
            "idea": context.business_idea.to_payload(),
            "marketAnalysis": context.market_analysis.to_payload(),
            "userPersonas": dump_payloads(context.user_personas),
            "competitors": dump_payloads(context.competitors),
        },
        "technical": {
            "features": dump_payloads(context.features),
            "techStack": context.tech_stack.to_payload(),
            "specifications": context.specifications,
            "architecture": {
                "type": "microservices",
                "services": ["api", "web", "worker"],
                "database": context.tech_stack.backend.get("database", "PostgreSQL"),
                "cache": "Redis",
            },
        },
        "implementation": {
            "userStories": user_stories(context.features),
            "acceptanceCriteria": acceptance_criteria(context.features),
            "testScenarios": build_test_scenarios(context.features),
            "timeline": build_timeline(context.features),
        },
        "export": {
            "cursor": {
                "format": "cursor-compatible",
                "files": ["README.md", "specs.md", "architecture.md"],
                "prompts": [f"Build {feature}" for feature in must_have[:2]],
            },
            "github": {
                "repoName": name,
                "description": project_description(project),
                "template": "node-react",
            },
            "documentation": {
                "readme": "Project overview and setup",
                "api": "API documentation",
                "deployment": "Deployment guide",
            },
        },
    }

    context.final_package = package
    project.status = ProjectStatus.COMPLETE
    return {
        "message": "MVI Context Generated Successfully",
        "context": package,
        "exportOptions": [
            {"format": ExportFormat.CURSOR.value, "label": "Export for Cursor AI"},
            {"format": ExportFormat.GITHUB.value, "label": "Initialize GitHub Repo"},
            {"format": ExportFormat.MCP.value, "label": "Download MCP Package"},
            {"format": ExportFormat.REPLIT.value, "label": "Open in Replit"},
            {"format": ExportFormat.PDF.value, "label": "Download PDF Report"},
        ],
    }


# ---------------------------------------------------------------------------
# Stage registry
# ---------------------------------------------------------------------------


STAGE_REGISTRY: Dict[MVIStage, StageInfo] = {
    MVIStage.IDEA_CAPTURE: StageInfo(
        slug=MVIStage.IDEA_CAPTURE,
        label="Idea Capture",
        prompt="Tell me more about your target users and main problem you're solving.",
        handler=_handle_idea_capture,
        next_stage=MVIStage.USER_PERSONA_DISCOVERY,
    ),
    MVIStage.USER_PERSONA_DISCOVERY: StageInfo(
        slug=MVIStage.USER_PERSONA_DISCOVERY,
        label="User Persona Discovery",
        prompt="Which user segment is your primary focus?",
        handler=_handle_user_personas,
        next_stage=MVIStage.COMPETITIVE_INTELLIGENCE,
    ),
    MVIStage.COMPETITIVE_INTELLIGENCE: StageInfo(
        slug=MVIStage.COMPETITIVE_INTELLIGENCE,
        label="Competitive Intelligence",
        prompt="What would make your solution better than existing options?",
        handler=_handle_competitive_analysis,
        next_stage=MVIStage.FEATURE_PRIORITIZATION,
    ),
    MVIStage.FEATURE_PRIORITIZATION: StageInfo(
        slug=MVIStage.FEATURE_PRIORITIZATION,
        label="Feature Prioritization",
        prompt="Which features are must-haves for your MVP?",
        handler=_handle_feature_priorities,
        next_stage=MVIStage.TECHNICAL_RECOMMENDATION,
    ),
    MVIStage.TECHNICAL_RECOMMENDATION: StageInfo(
        slug=MVIStage.TECHNICAL_RECOMMENDATION,
        label="Technical Recommendation",
        prompt="Do you have a preferred technology or platform?",
        handler=_handle_tech_stack,
        next_stage=MVIStage.CONTEXT_GENERATION,
    ),
    MVIStage.CONTEXT_GENERATION: StageInfo(
        slug=MVIStage.CONTEXT_GENERATION,
        label="Context Generation",
        prompt="Your MVI is ready! Choose how you'd like to export it.",
        handler=_handle_context_generation,
        next_stage=MVIStage.COMPLETE,
    ),
}

COMPLETE_PROMPT = "Your MVI is ready! Choose how you'd like to export it."
FALLBACK_PROMPT = "Continue describing your idea..."


def next_prompt(stage: MVIStage | str) -> str:
    """Prompt shown to the founder while the project sits at *stage*."""

    try:
        stage = MVIStage(stage)
    except ValueError:
        return FALLBACK_PROMPT
    if stage is MVIStage.COMPLETE:
        return COMPLETE_PROMPT
    return STAGE_REGISTRY[stage].prompt


def list_stage_definitions() -> List[StageDefinition]:
    """Return UI-friendly descriptors for every stage, terminal one included."""

    definitions = [
        StageDefinition(id=info.slug, label=info.label, order=info.slug.order, prompt=info.prompt)
        for info in sorted(STAGE_REGISTRY.values(), key=lambda item: item.slug.order)
    ]
    definitions.append(
        StageDefinition(
            id=MVIStage.COMPLETE,
            label="Complete",
            order=MVIStage.COMPLETE.order,
            prompt=COMPLETE_PROMPT,
        )
    )
    return definitions
