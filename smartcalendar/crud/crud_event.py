from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from smartcalendar.crud.base import CRUDBase
from smartcalendar.crud.crud_tag import tag as crud_tag
from smartcalendar.models.event import Event
from smartcalendar.models.tag import Tag
from smartcalendar.schemas.event import EventCreate, EventUpdate


class CRUDEvent(CRUDBase[Event]):
    def create(self, db: Session, *, obj_in: EventCreate) -> Event:
        data = obj_in.model_dump(exclude={"tags"})
        db_obj = Event(**data)
        db_obj.reminder_sent = False
        db_obj.tags = crud_tag.resolve(db, names=obj_in.tags)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(self, db: Session, *, db_obj: Event, obj_in: EventUpdate) -> Event:
        """Apply a partial update. reminder_sent is never reset by an edit."""
        data = obj_in.model_dump(exclude_unset=True, exclude={"tags"})
        for field, value in data.items():
            if value is None and field in ("title", "start_date"):
                continue
            setattr(db_obj, field, value)
        if obj_in.tags is not None:
            db_obj.tags = crud_tag.resolve(db, names=obj_in.tags)

        if db_obj.end_date is not None and db_obj.end_date < db_obj.start_date:
            db.rollback()
            raise ValueError("end_date must not be before start_date")

        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def list_for_user(
        self,
        db: Session,
        *,
        user_id: str,
        tag: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Event]:
        query = db.query(Event).filter(Event.user_id == user_id)
        if tag:
            query = query.filter(Event.tags.any(func.lower(Tag.name) == tag.strip().lower()))
        return query.order_by(Event.start_date.asc()).offset(skip).limit(limit).all()


event = CRUDEvent(Event)
