"""Keyword bucketing of business ideas and the canned market tables behind it."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .schemas import MarketAnalysis, MarketOpportunity, MarketSegment

DEFAULT_BUCKET = "default"


@dataclass(frozen=True)
class IdeaConcepts:
    """Coarse labels pulled out of the founder's idea text."""

    industry: str = ""
    target_user: str = ""
    main_problem: str = ""
    solution: str = ""
    keywords: List[str] = field(default_factory=list)

    @property
    def bucket(self) -> str:
        """Lookup key for the canned datasets."""
        return self.industry or DEFAULT_BUCKET

    def as_dict(self) -> Dict[str, Any]:
        return {
            "industry": self.industry,
            "targetUser": self.target_user,
            "mainProblem": self.main_problem,
            "solution": self.solution,
            "keywords": list(self.keywords),
        }


@dataclass(frozen=True)
class MarketInsight:
    """Result of the opening idea analysis."""

    concepts: IdeaConcepts
    market: MarketAnalysis
    visual_data: Dict[str, Any]

    def as_payload(self) -> Dict[str, Any]:
        return {
            "concepts": self.concepts.as_dict(),
            "market": self.market.to_payload(),
            "visualData": self.visual_data,
        }


# ---------------------------------------------------------------------------
# Substring rules, checked in order; first match wins per category
# ---------------------------------------------------------------------------

# (needles, industry, target user)
INDUSTRY_RULES: List[Tuple[Tuple[str, ...], str, str]] = [
    (("freelance",), "freelance", "freelancers"),
    (("ecommerce", "shop"), "ecommerce", "online shoppers"),
    (("saas", "software"), "saas", "businesses"),
]

# (needles, main problem, solution)
PROBLEM_RULES: List[Tuple[Tuple[str, ...], str, str]] = [
    (("invoice",), "invoice management", "automated invoicing"),
    (("payment",), "payment processing", "streamlined payments"),
    (("manage",), "management complexity", "simplified management"),
]

_WORD_RE = re.compile(r"\b\w+\b")


def _first_rule(text: str, rules: List[Tuple[Tuple[str, ...], str, str]]) -> Tuple[str, str]:
    for needles, first, second in rules:
        if any(needle in text for needle in needles):
            return first, second
    return "", ""


def extract_concepts(idea: str) -> IdeaConcepts:
    """Bucket the idea into industry and problem labels."""

    lowered = idea.lower()
    industry, target_user = _first_rule(lowered, INDUSTRY_RULES)
    main_problem, solution = _first_rule(lowered, PROBLEM_RULES)
    return IdeaConcepts(
        industry=industry,
        target_user=target_user,
        main_problem=main_problem,
        solution=solution,
        keywords=_WORD_RE.findall(idea),
    )


# ---------------------------------------------------------------------------
# Reference tables
# ---------------------------------------------------------------------------

MARKET_SIZES: Dict[str, str] = {
    "freelance": "$1.2T",
    "ecommerce": "$5.8T",
    "saas": "$195B",
    DEFAULT_BUCKET: "$500M",
}

GROWTH_RATES: Dict[str, str] = {
    "freelance": "15%",
    "ecommerce": "12%",
    "saas": "18%",
    DEFAULT_BUCKET: "10%",
}

MARKET_SEGMENTS: Dict[str, List[Dict[str, str]]] = {
    "freelance": [
        {"name": "Creative Freelancers", "size": "2.3M users", "avg_income": "$45K"},
        {"name": "Tech Freelancers", "size": "1.8M users", "avg_income": "$75K"},
        {"name": "Service Freelancers", "size": "3.1M users", "avg_income": "$35K"},
    ],
    "ecommerce": [
        {"name": "Small Businesses", "size": "30M stores", "avg_revenue": "$50K"},
        {"name": "Enterprise", "size": "10K stores", "avg_revenue": "$10M"},
        {"name": "Dropshippers", "size": "2M stores", "avg_revenue": "$25K"},
    ],
    DEFAULT_BUCKET: [
        {"name": "Small Business", "size": "1M users", "avg_revenue": "$100K"},
        {"name": "Enterprise", "size": "10K users", "avg_revenue": "$1M"},
    ],
}

OPPORTUNITIES: List[Dict[str, str]] = [
    {
        "title": "Mobile-first approach",
        "description": "73% of users prefer mobile solutions",
        "potential": "High",
    },
    {
        "title": "AI-powered automation",
        "description": "Reduce manual work by 60%",
        "potential": "Very High",
    },
    {
        "title": "Integration ecosystem",
        "description": "Connect with existing tools",
        "potential": "Medium",
    },
]


def lookup(table: Dict[str, Any], concepts: IdeaConcepts) -> Any:
    """Return the bucket's entry, falling back to the default bucket."""

    return table.get(concepts.industry) or table[DEFAULT_BUCKET]


def estimate_market_size(concepts: IdeaConcepts) -> str:
    return lookup(MARKET_SIZES, concepts)


def estimate_growth_rate(concepts: IdeaConcepts) -> str:
    return lookup(GROWTH_RATES, concepts)


def identify_market_segments(concepts: IdeaConcepts) -> List[MarketSegment]:
    return [MarketSegment(**segment) for segment in lookup(MARKET_SEGMENTS, concepts)]


def identify_opportunities(concepts: IdeaConcepts) -> List[MarketOpportunity]:
    # Same three opportunities for every bucket.
    return [MarketOpportunity(**opportunity) for opportunity in OPPORTUNITIES]


def market_visualization(concepts: IdeaConcepts) -> Dict[str, Any]:
    """Bubble chart placing the core solution against two adjacent markets."""

    return {
        "bubbles": [
            {"name": "Core Solution", "x": 70, "y": 85, "size": 45, "color": "#4F46E5"},
            {"name": "Adjacent Market 1", "x": 45, "y": 65, "size": 30, "color": "#7C3AED"},
            {"name": "Adjacent Market 2", "x": 30, "y": 75, "size": 25, "color": "#EC4899"},
        ],
        "axes": {
            "x": {"label": "Competition Level", "min": 0, "max": 100},
            "y": {"label": "Growth Rate", "min": 0, "max": 100},
        },
    }


def analyze_business_idea(idea: str) -> MarketInsight:
    """Extract concepts and attach the matching canned market view."""

    concepts = extract_concepts(idea)
    market = MarketAnalysis(
        total_addressable_market=estimate_market_size(concepts),
        growth_rate=estimate_growth_rate(concepts),
        segments=identify_market_segments(concepts),
        opportunities=identify_opportunities(concepts),
    )
    visual_data = {"type": "marketBubbleChart", "data": market_visualization(concepts)}
    return MarketInsight(concepts=concepts, market=market, visual_data=visual_data)
