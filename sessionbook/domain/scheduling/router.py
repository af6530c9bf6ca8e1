"""Schedule router - FastAPI endpoints for templates and session generation"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ..sessions.schemas import SessionResponse
from .schemas import (
    EnsureSessionsRequest,
    GenerateRequest,
    GenerationResult,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from .service import ScheduleService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scheduling"])


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    """Dependency injection for ScheduleService"""
    return ScheduleService(db)


@router.get("/clients/{client_id}/template", response_model=Optional[TemplateResponse])
async def get_client_template(
    client_id: int, service: ScheduleService = Depends(get_schedule_service)
):
    """The client's current template, or null"""
    return service.get_template_by_client(client_id)


@router.get("/clients/{client_id}/templates", response_model=list[TemplateResponse])
async def get_client_templates(
    client_id: int, service: ScheduleService = Depends(get_schedule_service)
):
    return service.get_all_templates_by_client(client_id)


@router.post("/clients/{client_id}/template", response_model=TemplateResponse, status_code=201)
async def create_template(
    client_id: int,
    data: TemplateCreate,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Create a template for the client and generate its sessions"""
    return service.create_template(client_id, data)


@router.get("/templates/{template_id}", response_model=TemplateResponse)
async def get_template(template_id: int, service: ScheduleService = Depends(get_schedule_service)):
    return service.get_template(template_id)


@router.patch("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: int,
    data: TemplateUpdate,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Edit a template; out-of-window sessions are canceled before regeneration"""
    return service.update_template(template_id, data)


@router.post("/templates/{template_id}/generate", response_model=GenerationResult)
async def generate_sessions(
    template_id: int,
    data: Optional[GenerateRequest] = None,
    service: ScheduleService = Depends(get_schedule_service),
):
    created = service.generate_sessions(template_id, data.horizon_days if data else None)
    return GenerationResult(
        template_id=template_id, created=len(created), session_ids=[s.id for s in created]
    )


@router.post("/schedule/ensure", response_model=list[SessionResponse])
async def ensure_sessions(
    data: EnsureSessionsRequest, service: ScheduleService = Depends(get_schedule_service)
):
    """Top up every current template so sessions exist through date_to"""
    created = service.ensure_sessions_up_to(data.date_to, data.client_ids)
    logger.info(f"Ensured sessions up to {data.date_to}: {len(created)} created")
    return created
