"""Payment router - FastAPI endpoints for payments and allocations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .allocation import AllocationEngine
from .schemas import (
    AllocationCreate,
    AllocationResponse,
    PaymentCreate,
    PaymentResponse,
    PaymentUpdate,
    ReallocateRequest,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


def get_allocation_engine(db: Session = Depends(get_db)) -> AllocationEngine:
    return AllocationEngine(db)


# ============================================================================
# PAYMENTS
# ============================================================================


@router.get("/payments", response_model=list[PaymentResponse])
async def get_payments(
    client_id: Optional[int] = Query(None, description="Only payments of this client, oldest first"),
    service: PaymentService = Depends(get_payment_service),
):
    """All payments newest first, or one client's payments oldest first"""
    if client_id is not None:
        return service.get_all_by_client(client_id)
    return service.get_all()


@router.post("/payments", response_model=PaymentResponse, status_code=201)
async def create_payment(data: PaymentCreate, service: PaymentService = Depends(get_payment_service)):
    return service.create_payment(data)


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
async def get_payment(payment_id: int, service: PaymentService = Depends(get_payment_service)):
    return service.get_payment(payment_id)


@router.patch("/payments/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: int,
    data: PaymentUpdate,
    service: PaymentService = Depends(get_payment_service),
):
    return service.update_payment(payment_id, data)


@router.delete("/payments/{payment_id}", status_code=204)
async def delete_payment(payment_id: int, service: PaymentService = Depends(get_payment_service)):
    service.delete_payment(payment_id)


# ============================================================================
# ALLOCATIONS
# ============================================================================


@router.get("/payments/{payment_id}/allocations", response_model=list[AllocationResponse])
async def get_payment_allocations(
    payment_id: int, engine: AllocationEngine = Depends(get_allocation_engine)
):
    return engine.get_by_payment(payment_id)


@router.post("/payments/{payment_id}/allocations", response_model=AllocationResponse, status_code=201)
async def allocate_payment(
    payment_id: int,
    data: AllocationCreate,
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Assign part of a payment to a session"""
    return engine.allocate(payment_id, data.session_id, data.amount)


@router.put("/payments/{payment_id}/allocations", response_model=list[AllocationResponse])
async def reallocate_payment(
    payment_id: int,
    data: ReallocateRequest,
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Replace every allocation of a payment"""
    return engine.reallocate(payment_id, data.allocations)


@router.post("/payments/{payment_id}/auto-allocate", response_model=list[AllocationResponse])
async def auto_allocate_payment(
    payment_id: int, engine: AllocationEngine = Depends(get_allocation_engine)
):
    return engine.auto_allocate(payment_id)


@router.delete("/allocations/{allocation_id}", status_code=204)
async def delete_allocation(
    allocation_id: int, engine: AllocationEngine = Depends(get_allocation_engine)
):
    engine.deallocate(allocation_id)
