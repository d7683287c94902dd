"""MVI conversation endpoints: start, continue, export and session lookup."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from .. import llm
from ..errors import SessionNotFoundError, UnsupportedExportFormatError
from ..exporter import export_context
from ..generator import MVIGenerator
from ..journey import list_stage_definitions
from ..planning import project_name
from ..schemas import (
    ContinueRequest,
    ContinueResponse,
    ExportFormat,
    ExportRequest,
    ExportResponse,
    MVIStage,
    Project,
    ProjectDetail,
    ProjectSummary,
    SessionProject,
    SessionResponse,
    StageDefinition,
    StartRequest,
    StartResponse,
)

router = APIRouter(prefix="/api/mvi", tags=["mvi"])

ANONYMOUS_USER = "anonymous"


def get_generator(request: Request) -> MVIGenerator:
    return request.app.state.generator


def _load(generator: MVIGenerator, session_id: str) -> Project:
    try:
        return generator.get_session(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def _export(project: Project, export_format: str) -> dict:
    try:
        return export_context(project, export_format)
    except UnsupportedExportFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/stages", response_model=list[StageDefinition])
def list_stages() -> list[StageDefinition]:
    """Expose the stage order and prompts to the UI."""

    return list_stage_definitions()


@router.post("/start", response_model=StartResponse)
def start_session(payload: StartRequest, generator: MVIGenerator = Depends(get_generator)) -> StartResponse:
    """Open a session for a business idea and return the opening analysis."""

    idea = (payload.idea or "").strip()
    if not idea:
        raise HTTPException(status_code=400, detail="Business idea is required")

    started = generator.start_session(payload.user_id or ANONYMOUS_USER, idea)
    project = started.project
    return StartResponse(
        session_id=started.session_id,
        analysis=started.analysis,
        next_prompt=started.next_prompt,
        ai_response=llm.opening_response(idea),
        project=ProjectSummary(id=project.id, status=project.status, current_step=project.current_step),
    )


@router.post("/continue", response_model=ContinueResponse)
def continue_session(payload: ContinueRequest, generator: MVIGenerator = Depends(get_generator)) -> ContinueResponse:
    """Feed the founder's reply into the current stage and advance one step."""

    if not payload.session_id or not payload.response:
        raise HTTPException(status_code=400, detail="Session ID and response are required")

    try:
        turn = generator.process_user_response(payload.session_id, payload.response)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    project = turn.project
    guidance = None
    if project.current_step is not MVIStage.COMPLETE:
        guidance = llm.stage_guidance(project.current_step, payload.response, turn.result)

    return ContinueResponse(
        session_id=payload.session_id,
        result=turn.result,
        next_prompt=turn.next_prompt,
        ai_response=guidance,
        project=ProjectDetail(
            id=project.id,
            status=project.status,
            current_step=project.current_step,
            context=project.context,
        ),
    )


@router.post("/export", response_model=ExportResponse)
def export_session(payload: ExportRequest, generator: MVIGenerator = Depends(get_generator)) -> ExportResponse:
    """Render the session's context in the requested export format."""

    if not payload.session_id:
        raise HTTPException(status_code=400, detail="Session ID is required")

    project = _load(generator, payload.session_id)
    export_format = payload.format or ExportFormat.MCP.value
    bundle = _export(project, export_format)
    return ExportResponse(
        format=bundle["format"],
        data=bundle,
        download_url=f"/api/mvi/download/{payload.session_id}/{bundle['format']}",
    )


@router.get("/download/{session_id}/{export_format}")
def download_export(
    session_id: str,
    export_format: str,
    generator: MVIGenerator = Depends(get_generator),
) -> Response:
    """Return an export bundle as a JSON attachment."""

    project = _load(generator, session_id)
    bundle = _export(project, export_format)
    filename = f"{project_name(project)}-{bundle['format']}.json"
    return Response(
        content=json.dumps(bundle, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/session/{session_id}", response_model=SessionResponse)
def fetch_session(session_id: str, generator: MVIGenerator = Depends(get_generator)) -> SessionResponse:
    """Return the stored project for the given session."""

    project = _load(generator, session_id)
    return SessionResponse(
        project=SessionProject(
            id=project.id,
            status=project.status,
            current_step=project.current_step,
            context=project.context,
            created_at=project.created_at,
        )
    )
