from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from mvi_flow import llm
from mvi_flow.app import create_app
from mvi_flow.generator import MVIGenerator
from mvi_flow.llm import ChatCompletion
from mvi_flow.schemas import MVIStage


client = TestClient(create_app())

IDEA = "Freelance invoice tool for designers"


def _start(idea: str = IDEA) -> dict:
    response = client.post("/api/mvi/start", json={"userId": "founder-1", "idea": idea})
    assert response.status_code == 200
    return response.json()


def test_healthcheck() -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "2.0.0"
    assert "MCP context export" in data["features"]


def test_providers_without_keys() -> None:
    response = TestClient(create_app()).get("/api/ai/providers")

    assert response.json() == {"available": [], "current": None}


def test_providers_with_openai_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    response = TestClient(create_app()).get("/api/ai/providers")

    assert response.json() == {"available": ["openai"], "current": "openai"}


def test_list_stages_exposes_all() -> None:
    response = client.get("/api/mvi/stages")

    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [stage.value for stage in MVIStage]


def test_start_returns_analysis_and_first_stage() -> None:
    data = _start()

    assert data["success"] is True
    assert data["sessionId"].startswith("mvi_")
    assert data["project"] == {"id": data["sessionId"], "status": "analyzing", "currentStep": "ideaCapture"}
    assert data["analysis"]["market"]["totalAddressableMarket"] == "$1.2T"
    assert data["analysis"]["visualData"]["type"] == "marketBubbleChart"
    assert data["aiResponse"] == llm.OPENING_FALLBACK
    assert data["nextPrompt"]


@pytest.mark.parametrize("payload", [{}, {"idea": "   "}])
def test_start_requires_an_idea(payload: dict) -> None:
    response = client.post("/api/mvi/start", json=payload)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Business idea is required"}


def test_continue_advances_and_returns_context() -> None:
    session_id = _start()["sessionId"]

    response = client.post("/api/mvi/continue", json={"sessionId": session_id, "response": "Designers"})

    assert response.status_code == 200
    data = response.json()
    assert data["project"]["currentStep"] == "userPersonaDiscovery"
    assert data["project"]["context"]["businessIdea"]["refined"] == "Designers"
    assert data["result"]["message"] == "Idea refined successfully"
    assert data["aiResponse"] is None


def test_continue_requires_both_fields() -> None:
    response = client.post("/api/mvi/continue", json={"sessionId": "mvi_1_x"})

    assert response.status_code == 400
    assert response.json()["error"] == "Session ID and response are required"


def test_continue_unknown_session() -> None:
    response = client.post("/api/mvi/continue", json={"sessionId": "mvi_0_missing", "response": "hi"})

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Session not found"}


def test_full_flow_reaches_complete() -> None:
    session_id = _start()["sessionId"]
    steps = []
    for reply in ["Designers", "Creatives", "Simpler", "Invoices", "React please", "Done"]:
        response = client.post("/api/mvi/continue", json={"sessionId": session_id, "response": reply})
        steps.append(response.json()["project"]["currentStep"])

    assert steps == [stage.value for stage in list(MVIStage)[1:]]
    session = client.get(f"/api/mvi/session/{session_id}").json()["project"]
    assert session["status"] == "complete"
    assert session["context"]["finalPackage"]["meta"]["projectId"] == session_id


def test_export_defaults_to_mcp() -> None:
    session_id = _start()["sessionId"]

    response = client.post("/api/mvi/export", json={"sessionId": session_id})

    assert response.status_code == 200
    data = response.json()
    assert data["format"] == "mcp"
    assert data["downloadUrl"] == f"/api/mvi/download/{session_id}/mcp"
    assert data["data"]["package"]["project"]["id"] == session_id


def test_export_errors() -> None:
    session_id = _start()["sessionId"]

    missing_id = client.post("/api/mvi/export", json={"format": "mcp"})
    bad_format = client.post("/api/mvi/export", json={"sessionId": session_id, "format": "docx"})
    unknown = client.post("/api/mvi/export", json={"sessionId": "mvi_0_missing", "format": "mcp"})

    assert missing_id.status_code == 400
    assert bad_format.status_code == 400
    assert bad_format.json()["error"] == "Unsupported export format: docx"
    assert unknown.status_code == 404


def test_download_returns_attachment() -> None:
    session_id = _start()["sessionId"]

    response = client.get(f"/api/mvi/download/{session_id}/cursor")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    assert 'filename="freelance-invoice-tool-for-designers-cursor.json"' in response.headers["content-disposition"]
    assert response.json()["format"] == "cursor"


def test_session_lookup() -> None:
    session_id = _start()["sessionId"]

    project = client.get(f"/api/mvi/session/{session_id}").json()["project"]

    assert project["id"] == session_id
    assert project["currentStep"] == "ideaCapture"
    assert project["context"]["businessIdea"]["original"] == IDEA
    assert "createdAt" in project
    assert client.get("/api/mvi/session/mvi_0_missing").status_code == 404


def test_library_endpoints() -> None:
    library = client.get("/api/library/features").json()
    assert [pack["id"] for pack in library["library"]] == ["stripe-checkout", "auth-flow", "email-automation"]
    assert library["library"][0]["setupTime"] == "2 hours"
    assert "payments" in library["categories"]

    pack = client.get("/api/library/pack/stripe-checkout").json()["pack"]
    assert pack["version"] == "2.1.0"
    assert pack["techRequirements"]["node"] == ">=16.0.0"
    assert client.get("/api/library/pack/nope").status_code == 404


def test_add_to_project() -> None:
    missing = client.post("/api/library/add-to-project", json={"sessionId": "mvi_1_x"})
    added = client.post("/api/library/add-to-project", json={"sessionId": "mvi_1_x", "packId": "auth-flow"})

    assert missing.status_code == 400
    assert added.json()["message"] == "Pack auth-flow added to project"
    assert "backend/routes/auth.js" in added.json()["files"]


def test_chat_requires_message() -> None:
    response = client.post("/api/ai/chat", json={})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Message is required"}


def test_chat_without_provider_reports_failure_in_body() -> None:
    response = client.post("/api/ai/chat", json={"message": "hello"})

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "No AI provider is configured"}


def test_chat_parses_reply_and_records_history(monkeypatch: pytest.MonkeyPatch) -> None:
    reply = "💰 Market Analysis\n- Invoicing Market: $1.2B total addressable market\n- 15% annual growth rate"
    seen = {}

    def fake_chat(message, history=()):
        seen["history"] = list(history)
        return ChatCompletion(content=reply, provider="openai", model="gpt-4")

    monkeypatch.setattr(llm, "chat", fake_chat)
    session_id = _start()["sessionId"]

    response = client.post(
        "/api/ai/chat",
        json={
            "message": "Freelance invoicing",
            "context": [{"role": "user", "content": "Hi"}],
            "sessionId": session_id,
        },
    )

    data = response.json()
    assert data["success"] is True
    assert data["data"]["content"] == reply
    assert data["data"]["parsed"]["tam"]["amount"] == 1_200_000_000
    assert data["data"]["parsed"]["growth"] == 15
    assert data["data"]["parsed"]["stage"] == "ideaCapture"
    assert seen["history"] == [{"role": "user", "content": "Hi"}]
    history = client.get(f"/api/mvi/session/{session_id}").json()["project"]["context"]["conversationHistory"]
    assert [turn["role"] for turn in history[-2:]] == ["user", "assistant"]
    assert history[-1]["content"] == reply


def test_errors_use_the_envelope() -> None:
    not_found = client.get("/api/does-not-exist")
    malformed = client.post(
        "/api/mvi/start",
        content="{not json",
        headers={"content-type": "application/json"},
    )

    assert not_found.status_code == 404
    assert not_found.json() == {"success": False, "error": "Not Found"}
    assert malformed.status_code == 400
    assert malformed.json()["success"] is False


class _BrokenRepository:
    def get(self, session_id):
        raise RuntimeError("disk on fire")

    def put(self, session_id, project):
        raise RuntimeError("disk on fire")

    def delete(self, session_id):
        raise RuntimeError("disk on fire")


def test_unexpected_errors_are_hidden() -> None:
    broken = TestClient(create_app(MVIGenerator(_BrokenRepository())), raise_server_exceptions=False)

    response = broken.get("/api/mvi/session/mvi_1_x")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}
