"""Schedule template repository - Database operations for templates"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from ...models import ScheduleTemplate


class TemplateRepository:
    """Repository for schedule template database operations"""

    @staticmethod
    def get_by_id(db: Session, template_id: int) -> Optional[ScheduleTemplate]:
        return db.query(ScheduleTemplate).filter(ScheduleTemplate.id == template_id).first()

    @staticmethod
    def get_latest_by_client(db: Session, client_id: int) -> Optional[ScheduleTemplate]:
        """The most recently created template for a client"""
        return (
            db.query(ScheduleTemplate)
            .filter(ScheduleTemplate.client_id == client_id)
            .order_by(ScheduleTemplate.created_at.desc(), ScheduleTemplate.id.desc())
            .first()
        )

    @staticmethod
    def get_all_by_client(db: Session, client_id: int) -> list[ScheduleTemplate]:
        return (
            db.query(ScheduleTemplate)
            .filter(ScheduleTemplate.client_id == client_id)
            .order_by(ScheduleTemplate.created_at, ScheduleTemplate.id)
            .all()
        )

    @staticmethod
    def get_latest_for_clients(
        db: Session, client_ids: Optional[Iterable[int]] = None
    ) -> list[ScheduleTemplate]:
        """Latest template per client, for all clients or the given ones"""
        query = db.query(ScheduleTemplate)
        if client_ids is not None:
            query = query.filter(ScheduleTemplate.client_id.in_(list(client_ids)))
        latest: dict[int, ScheduleTemplate] = {}
        for template in query.order_by(ScheduleTemplate.created_at, ScheduleTemplate.id).all():
            latest[template.client_id] = template
        return list(latest.values())

    @staticmethod
    def create(db: Session, **template_data) -> ScheduleTemplate:
        template = ScheduleTemplate(**template_data)
        db.add(template)
        db.flush()
        return template

    @staticmethod
    def update(db: Session, template: ScheduleTemplate, **updates) -> ScheduleTemplate:
        for key, value in updates.items():
            if hasattr(template, key):
                setattr(template, key, value)
        if "rules" in updates:
            # JSON columns do not track in-place changes
            flag_modified(template, "rules")
        db.flush()
        return template

    @staticmethod
    def delete_by_client(db: Session, client_id: int) -> int:
        return (
            db.query(ScheduleTemplate)
            .filter(ScheduleTemplate.client_id == client_id)
            .delete(synchronize_session=False)
        )
