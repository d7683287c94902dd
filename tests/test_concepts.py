import pytest

from mvi_flow.concepts import DEFAULT_BUCKET, analyze_business_idea, extract_concepts


@pytest.mark.parametrize(
    ("idea", "industry", "main_problem"),
    [
        ("A freelance invoice tracker", "freelance", "invoice management"),
        ("Online shop that handles payment splits", "ecommerce", "payment processing"),
        ("SaaS to manage volunteer rosters", "saas", "management complexity"),
        ("Dog walking marketplace", "", ""),
    ],
)
def test_extract_concepts_buckets_by_keyword(idea: str, industry: str, main_problem: str) -> None:
    concepts = extract_concepts(idea)

    assert concepts.industry == industry
    assert concepts.main_problem == main_problem
    assert concepts.bucket == (industry or DEFAULT_BUCKET)


def test_first_matching_rule_wins() -> None:
    concepts = extract_concepts("Freelance software for invoice and payment follow-ups")

    assert concepts.industry == "freelance"
    assert concepts.target_user == "freelancers"
    assert concepts.main_problem == "invoice management"


def test_keywords_keep_original_words() -> None:
    assert extract_concepts("Invoices, for freelancers!").keywords == ["Invoices", "for", "freelancers"]


def test_analysis_is_deterministic() -> None:
    first = analyze_business_idea("A freelance invoice tracker")
    second = analyze_business_idea("A freelance invoice tracker")

    assert first.as_payload() == second.as_payload()


def test_freelance_market_view() -> None:
    payload = analyze_business_idea("A freelance invoice tracker").as_payload()

    market = payload["market"]
    assert market["totalAddressableMarket"] == "$1.2T"
    assert market["growthRate"] == "15%"
    assert [segment["name"] for segment in market["segments"]] == [
        "Creative Freelancers",
        "Tech Freelancers",
        "Service Freelancers",
    ]
    assert len(market["opportunities"]) == 3
    assert payload["visualData"]["type"] == "marketBubbleChart"
    assert payload["concepts"]["targetUser"] == "freelancers"


def test_saas_uses_its_own_size_but_default_segments() -> None:
    market = analyze_business_idea("SaaS for dentists").market

    assert market.total_addressable_market == "$195B"
    assert market.growth_rate == "18%"
    assert [segment.name for segment in market.segments] == ["Small Business", "Enterprise"]


def test_unmatched_idea_uses_default_bucket() -> None:
    market = analyze_business_idea("Dog walking marketplace").market

    assert market.total_addressable_market == "$500M"
    assert market.growth_rate == "10%"
