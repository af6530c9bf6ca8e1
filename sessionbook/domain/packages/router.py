"""Package router - FastAPI endpoints for prepaid packages"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import PackageCreate, PackageResponse, PackageUpdate
from .service import PackageService

router = APIRouter(prefix="/packages", tags=["Packages"])


def get_package_service(db: Session = Depends(get_db)) -> PackageService:
    """Dependency injection for PackageService"""
    return PackageService(db)


@router.get("", response_model=list[PackageResponse])
async def get_packages(client_id: int = Query(...), service: PackageService = Depends(get_package_service)):
    return service.get_all_by_client(client_id)


@router.get("/active", response_model=Optional[PackageResponse])
async def get_active_package(
    client_id: int = Query(...), service: PackageService = Depends(get_package_service)
):
    """The active package currently pricing the client's sessions"""
    return service.get_active_by_client(client_id)


@router.post("", response_model=PackageResponse, status_code=201)
async def create_package(data: PackageCreate, service: PackageService = Depends(get_package_service)):
    return service.create_package(data)


@router.post("/expire-overdue", response_model=list[PackageResponse])
async def expire_overdue_packages(service: PackageService = Depends(get_package_service)):
    return service.expire_overdue()


@router.get("/{package_id}", response_model=PackageResponse)
async def get_package(package_id: int, service: PackageService = Depends(get_package_service)):
    return service.get_package(package_id)


@router.patch("/{package_id}", response_model=PackageResponse)
async def update_package(
    package_id: int,
    data: PackageUpdate,
    service: PackageService = Depends(get_package_service),
):
    return service.update_package(package_id, data)
