"""Client router - FastAPI endpoints for client operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import ArchiveRequest, ClientCreate, ClientResponse, ClientUpdate, PauseRequest
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    status: Optional[str] = Query(None, description="Filter by client status"),
    service: ClientService = Depends(get_client_service),
):
    """Get all clients, optionally filtered by status"""
    return service.get_clients(status)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, service: ClientService = Depends(get_client_service)):
    return service.get_client(client_id)


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(data: ClientCreate, service: ClientService = Depends(get_client_service)):
    """Create a new client"""
    return service.create_client(data)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    service: ClientService = Depends(get_client_service),
):
    return service.update_client(client_id, data)


@router.delete("/{client_id}", response_model=ClientResponse)
async def delete_client(client_id: int, service: ClientService = Depends(get_client_service)):
    """Soft delete: the client is archived as of today"""
    return service.delete_client(client_id)


@router.delete("/{client_id}/hard")
async def hard_delete_client(client_id: int, service: ClientService = Depends(get_client_service)):
    """Remove the client with all sessions, templates, packages and payments"""
    return service.hard_delete(client_id)


# ============================================================================
# LIFECYCLE
# ============================================================================


@router.post("/{client_id}/pause", response_model=ClientResponse)
async def pause_client(
    client_id: int,
    data: PauseRequest,
    service: ClientService = Depends(get_client_service),
):
    return service.pause(client_id, data.pause_from, data.pause_to)


@router.post("/{client_id}/resume", response_model=ClientResponse)
async def resume_client(client_id: int, service: ClientService = Depends(get_client_service)):
    """Resume a paused client and regenerate their schedule"""
    return service.resume(client_id)


@router.post("/{client_id}/archive", response_model=ClientResponse)
async def archive_client(
    client_id: int,
    data: Optional[ArchiveRequest] = None,
    service: ClientService = Depends(get_client_service),
):
    return service.archive(client_id, data.archive_date if data else None)
