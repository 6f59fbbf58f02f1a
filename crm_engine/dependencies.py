"""FastAPI dependency providers."""

from typing import Annotated

from fastapi import Depends, Request

from crm_engine.clients.backend import CrmBackendClient
from crm_engine.config import Settings, get_settings


def get_backend_client(request: Request) -> CrmBackendClient:
    """Return the backend client owned by the application lifespan."""
    return request.app.state.backend_client


def create_backend_client(settings: Settings) -> CrmBackendClient:
    return CrmBackendClient(
        base_url=settings.backend_api_url,
        timeout=settings.backend_timeout_seconds,
    )


AppSettings = Annotated[Settings, Depends(get_settings)]
BackendClient = Annotated[CrmBackendClient, Depends(get_backend_client)]
