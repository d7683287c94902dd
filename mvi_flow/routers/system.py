"""Service metadata endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

from .. import __version__
from ..schemas import HealthResponse, ProvidersResponse

router = APIRouter(prefix="/api", tags=["system"])

SERVICE_NAME = "DevbrainAI MVI Generator"
SERVICE_FEATURES = [
    "Business idea analysis",
    "Market intelligence",
    "User persona generation",
    "Competitive analysis",
    "Feature prioritization",
    "Tech stack recommendation",
    "MCP context export",
]


@router.get("/health", response_model=HealthResponse)
async def healthcheck() -> HealthResponse:
    """Simple health check endpoint."""

    return HealthResponse(status="healthy", service=SERVICE_NAME, version=__version__, features=SERVICE_FEATURES)


@router.get("/ai/providers", response_model=ProvidersResponse)
async def list_providers(request: Request) -> ProvidersResponse:
    """Report which AI providers have credentials configured."""

    settings = request.app.state.settings
    return ProvidersResponse(available=settings.available_providers, current=settings.primary_provider)
