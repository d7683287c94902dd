import pytest

from mvi_flow.errors import SessionNotFoundError
from mvi_flow.generator import MVIGenerator, generate_session_id
from mvi_flow.journey import COMPLETE_PROMPT, FALLBACK_PROMPT, STAGE_REGISTRY, list_stage_definitions, next_prompt
from mvi_flow.memory import InMemorySessionRepository
from mvi_flow.schemas import MVIStage, ProjectStatus

IDEA = "A freelance invoice tool for designers"

REPLIES = [
    "Designers who hate chasing late payments",
    "Creative freelancers",
    "Simpler than QuickBooks and mobile first",
    "Invoices and Stripe payments",
    "I like Vue and NestJS",
    "Nothing else, ship it",
]


@pytest.fixture
def repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def generator(repository: InMemorySessionRepository) -> MVIGenerator:
    return MVIGenerator(repository)


def test_session_id_format() -> None:
    prefix, millis, suffix = generate_session_id().split("_")

    assert prefix == "mvi"
    assert millis.isdigit()
    assert len(suffix) == 9 and suffix.isalnum()


def test_start_session_stores_project(generator: MVIGenerator, repository: InMemorySessionRepository) -> None:
    started = generator.start_session("founder-1", IDEA)

    assert started.session_id in repository
    project = started.project
    assert project.current_step is MVIStage.IDEA_CAPTURE
    assert project.status is ProjectStatus.ANALYZING
    assert project.context.market_analysis.total_addressable_market == "$1.2T"
    assert project.context.visual_maps["marketOpportunity"]["type"] == "marketBubbleChart"
    assert started.next_prompt == STAGE_REGISTRY[MVIStage.IDEA_CAPTURE].prompt
    assert [turn.role for turn in project.context.conversation_history] == ["user", "assistant"]


def test_first_response_moves_to_persona_discovery(generator: MVIGenerator) -> None:
    started = generator.start_session("founder-1", IDEA)

    turn = generator.process_user_response(started.session_id, REPLIES[0])

    assert turn.project.current_step is MVIStage.USER_PERSONA_DISCOVERY
    assert turn.project.context.business_idea.refined == REPLIES[0]
    assert turn.result["visualUpdate"] == {"updated": True}


def test_full_run_advances_one_stage_per_reply(generator: MVIGenerator) -> None:
    session_id = generator.start_session("founder-1", IDEA).session_id
    seen = [MVIStage.IDEA_CAPTURE]

    for reply in REPLIES:
        turn = generator.process_user_response(session_id, reply)
        seen.append(turn.project.current_step)

    assert seen == list(MVIStage)
    assert [stage.order for stage in seen] == sorted(stage.order for stage in seen)
    project = generator.get_session(session_id)
    assert project.status is ProjectStatus.COMPLETE
    assert project.context.final_package is not None
    assert turn.next_prompt == COMPLETE_PROMPT
    assert len(turn.result["exportOptions"]) == 5


def test_each_stage_fills_its_context(generator: MVIGenerator) -> None:
    session_id = generator.start_session("founder-1", IDEA).session_id
    for reply in REPLIES:
        generator.process_user_response(session_id, reply)

    context = generator.get_session(session_id).context
    assert [persona.name for persona in context.user_personas] == ["Sarah the Designer", "John the Developer"]
    assert context.competitors[0].name == "QuickBooks"
    assert [feature.priority for feature in context.features].count("P0") == 3
    assert context.tech_stack.frontend["framework"] == "Vue"
    assert context.tech_stack.backend["framework"] == "NestJS"
    assert "2-Click Invoice Creation" in context.specifications["functional"]
    assert context.final_package["export"]["github"]["repoName"] == "designers-who-hate-chasing-late-payments"


def test_competitive_matrix_prices_free_at_zero(generator: MVIGenerator) -> None:
    session_id = generator.start_session("founder-1", IDEA).session_id
    for reply in REPLIES[:2]:
        generator.process_user_response(session_id, reply)

    turn = generator.process_user_response(session_id, REPLIES[2])

    points = {point["name"]: point for point in turn.result["visualData"]["dataPoints"]}
    assert points["Wave"]["y"] == 0
    assert points["FreshBooks"]["y"] == 15
    assert points["QuickBooks"]["x"] == 30
    assert turn.result["opportunity"]["estimatedUsers"] == "2.3M"


def test_reply_after_completion_is_a_no_op(generator: MVIGenerator) -> None:
    session_id = generator.start_session("founder-1", IDEA).session_id
    for reply in REPLIES:
        generator.process_user_response(session_id, reply)

    turn = generator.process_user_response(session_id, "one more thing")

    assert turn.result == {"message": "Unknown step"}
    assert turn.project.current_step is MVIStage.COMPLETE
    assert turn.next_prompt == COMPLETE_PROMPT


def test_unknown_session_is_rejected_without_side_effects(
    generator: MVIGenerator,
    repository: InMemorySessionRepository,
) -> None:
    started = generator.start_session("founder-1", IDEA)
    before = started.project.model_dump()

    with pytest.raises(SessionNotFoundError) as excinfo:
        generator.process_user_response("mvi_0_missing", "hello")

    assert isinstance(excinfo.value, KeyError)
    assert str(excinfo.value) == "Session not found"
    assert len(repository) == 1
    assert generator.get_session(started.session_id).model_dump() == before


def test_record_turn_keeps_stage(generator: MVIGenerator) -> None:
    session_id = generator.start_session("founder-1", IDEA).session_id

    project = generator.record_turn(session_id, "assistant", "Here is some chat output")

    assert project.current_step is MVIStage.IDEA_CAPTURE
    assert project.context.conversation_history[-1].content == "Here is some chat output"


def test_next_prompt_falls_back_for_unknown_stage() -> None:
    assert next_prompt("brainstorming") == FALLBACK_PROMPT
    assert next_prompt("complete") == COMPLETE_PROMPT
    assert next_prompt("featurePrioritization") == STAGE_REGISTRY[MVIStage.FEATURE_PRIORITIZATION].prompt


def test_stage_definitions_cover_every_stage_in_order() -> None:
    definitions = list_stage_definitions()

    assert [definition.id for definition in definitions] == list(MVIStage)
    assert [definition.order for definition in definitions] == list(range(1, len(MVIStage) + 1))


def test_repository_delete_forgets_session(generator: MVIGenerator, repository: InMemorySessionRepository) -> None:
    session_id = generator.start_session("founder-1", IDEA).session_id

    repository.delete(session_id)
    repository.delete(session_id)

    assert session_id not in repository
    with pytest.raises(SessionNotFoundError):
        generator.get_session(session_id)


def test_unregistered_step_label_is_a_no_op(generator: MVIGenerator, repository: InMemorySessionRepository) -> None:
    session_id = generator.start_session("founder-1", IDEA).session_id
    project = repository.get(session_id)
    project.current_step = "brainstorming"
    history_before = len(project.context.conversation_history)

    turn = generator.process_user_response(session_id, "x")

    assert turn.result == {"message": "Unknown step"}
    assert turn.project.current_step == "brainstorming"
    assert turn.next_prompt == FALLBACK_PROMPT
    assert len(turn.project.context.conversation_history) == history_before + 2


def test_context_generation_prompt_invites_export(generator: MVIGenerator) -> None:
    session_id = generator.start_session("founder-1", IDEA).session_id
    for reply in REPLIES[:5]:
        turn = generator.process_user_response(session_id, reply)

    assert turn.project.current_step is MVIStage.CONTEXT_GENERATION
    assert turn.next_prompt == "Your MVI is ready! Choose how you'd like to export it."
