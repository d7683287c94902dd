"""Context library endpoints backed by the static pack catalog."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from .. import library
from ..errors import PackNotFoundError
from ..schemas import AddToProjectRequest, AddToProjectResponse, LibraryResponse, PackResponse

router = APIRouter(prefix="/api/library", tags=["library"])


@router.get("/features", response_model=LibraryResponse)
async def list_features() -> LibraryResponse:
    return LibraryResponse(library=library.list_features(), categories=library.CATEGORIES)


@router.get("/pack/{pack_id}", response_model=PackResponse)
async def get_pack(pack_id: str) -> PackResponse:
    try:
        return PackResponse(pack=library.get_pack(pack_id))
    except PackNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/add-to-project", response_model=AddToProjectResponse)
async def add_to_project(payload: AddToProjectRequest) -> AddToProjectResponse:
    """Attach a pack to a session's project and list the files it brings."""

    if not payload.session_id or not payload.pack_id:
        raise HTTPException(status_code=400, detail="Session ID and pack ID are required")
    try:
        files = library.add_to_project(payload.session_id, payload.pack_id)
    except PackNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return AddToProjectResponse(message=f"Pack {payload.pack_id} added to project", files=files)
