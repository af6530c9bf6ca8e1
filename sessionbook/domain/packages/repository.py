"""Package repository - Database operations for prepaid packages"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Package


class PackageRepository:
    """Repository for package database operations"""

    @staticmethod
    def get_by_id(db: Session, package_id: int) -> Optional[Package]:
        return db.query(Package).filter(Package.id == package_id).first()

    @staticmethod
    def get_all_by_client(db: Session, client_id: int) -> list[Package]:
        return (
            db.query(Package)
            .filter(Package.client_id == client_id)
            .order_by(Package.created_at, Package.id)
            .all()
        )

    @staticmethod
    def get_latest_active_by_client(db: Session, client_id: int) -> Optional[Package]:
        """The most recently created active package"""
        return (
            db.query(Package)
            .filter(Package.client_id == client_id, Package.status == "active")
            .order_by(Package.created_at.desc(), Package.id.desc())
            .first()
        )

    @staticmethod
    def get_overdue_active(db: Session, today: date) -> list[Package]:
        return (
            db.query(Package)
            .filter(
                Package.status == "active",
                Package.valid_until.isnot(None),
                Package.valid_until < today,
            )
            .all()
        )

    @staticmethod
    def create(db: Session, **package_data) -> Package:
        package = Package(**package_data)
        db.add(package)
        db.flush()
        return package

    @staticmethod
    def update(db: Session, package: Package, **updates) -> Package:
        for key, value in updates.items():
            if hasattr(package, key):
                setattr(package, key, value)
        db.flush()
        return package

    @staticmethod
    def delete_by_client(db: Session, client_id: int) -> int:
        return (
            db.query(Package)
            .filter(Package.client_id == client_id)
            .delete(synchronize_session=False)
        )
