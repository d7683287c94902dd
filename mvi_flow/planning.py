"""Implementation-planning helpers derived from a project's prioritized features."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Sequence

from .schemas import CamelModel, Feature, Project

FEATURE_BENEFITS: Dict[str, str] = {
    "2-Click Invoice Creation": "create invoices quickly and efficiently",
    "Stripe Payment Integration": "receive payments securely and instantly",
    "Mobile-First Design": "work from anywhere on any device",
    "One-Click Storefront": "start selling without hiring a developer",
    "Stripe Checkout": "take payments the moment a customer is ready",
    "Guided Onboarding": "get value on my first day",
}
DEFAULT_BENEFIT = "improve my workflow"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def dump_payloads(items: Sequence[CamelModel]) -> List[Dict[str, Any]]:
    return [item.to_payload() for item in items]


def project_name(project: Project) -> str:
    """Slug of the refined idea (or raw idea), at most 50 characters."""

    idea = project.context.business_idea.refined or project.idea or "project"
    return _SLUG_RE.sub("-", idea.lower()).strip("-")[:50]


def project_description(project: Project) -> str:
    return project.context.business_idea.refined or project.idea


def feature_benefit(feature: Feature) -> str:
    return FEATURE_BENEFITS.get(feature.name, DEFAULT_BENEFIT)


def user_stories(features: Sequence[Feature]) -> List[Dict[str, Any]]:
    return [
        {
            "id": f"US-{index}",
            "title": f"As a user, I want {feature.name}",
            "description": f"So that I can {feature_benefit(feature)}",
            "priority": feature.priority,
            "estimate": feature.time_estimate,
            "acceptanceCriteria": [
                f"{feature.name} is accessible from the main interface",
                "Feature works as described in specifications",
                "All edge cases are handled gracefully",
                "Feature is tested and documented",
            ],
        }
        for index, feature in enumerate(features, start=1)
    ]


def acceptance_criteria(features: Sequence[Feature]) -> List[Dict[str, Any]]:
    return [
        {
            "feature": feature.name,
            "criteria": [
                {"id": f"AC-{index}-1", "description": f"{feature.name} meets functional requirements", "testable": True},
                {"id": f"AC-{index}-2", "description": "Feature is responsive on mobile devices", "testable": True},
                {"id": f"AC-{index}-3", "description": "Feature has >80% test coverage", "testable": True},
            ],
        }
        for index, feature in enumerate(features, start=1)
    ]


def build_test_scenarios(features: Sequence[Feature]) -> List[Dict[str, Any]]:
    return [
        {
            "feature": feature.name,
            "scenarios": [
                {"name": "Happy path", "steps": ["User accesses feature", "Performs main action", "Sees success result"]},
                {"name": "Error handling", "steps": ["User triggers error", "Sees helpful error message", "Can recover"]},
            ],
        }
        for feature in features
    ]


def build_timeline(features: Sequence[Feature]) -> Dict[str, Any]:
    """Four-week plan that slots P0 features into weeks 2-3 and one P1 into week 3."""

    must_have = [feature.name for feature in features if feature.priority == "P0"]
    should_have = [feature.name for feature in features if feature.priority == "P1"]
    return {
        "totalWeeks": 4,
        "milestones": [
            {"week": 1, "name": "Foundation", "deliverables": ["Project setup", "Core architecture", "Database schema"]},
            {"week": 2, "name": "Core Features", "deliverables": must_have[:2]},
            {"week": 3, "name": "Integration & Polish", "deliverables": must_have[2:] + should_have[:1]},
            {"week": 4, "name": "Testing & Deployment", "deliverables": ["Complete testing", "Documentation", "Deployment"]},
        ],
    }
