from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from smartcalendar.crud.base import CRUDBase
from smartcalendar.models.tag import Tag


def normalize_tag_names(names: Iterable[str]) -> List[str]:
    """Trim, drop blanks and de-duplicate while keeping the caller's order."""
    seen = set()
    result = []
    for raw in names:
        name = (raw or "").strip()
        if not name or name in seen:
            continue
        seen.add(name)
        result.append(name)
    return result


class CRUDTag(CRUDBase[Tag]):
    def get_by_name(self, db: Session, *, name: str) -> Optional[Tag]:
        return db.query(Tag).filter(Tag.name == name.strip()).first()

    def get_or_create(self, db: Session, *, name: str) -> Tag:
        """Lookup-or-create by name; tag names are unique."""
        name = name.strip()
        existing = self.get_by_name(db, name=name)
        if existing:
            return existing
        try:
            with db.begin_nested():
                tag = Tag(name=name)
                db.add(tag)
                db.flush()
        except IntegrityError:
            # Created by a concurrent request between lookup and insert
            existing = self.get_by_name(db, name=name)
            if existing is None:
                raise
            return existing
        return tag

    def resolve(self, db: Session, *, names: Iterable[str]) -> List[Tag]:
        return [self.get_or_create(db, name=n) for n in normalize_tag_names(names)]

    def list(self, db: Session) -> List[Tag]:
        return db.query(Tag).order_by(func.lower(Tag.name)).all()


tag = CRUDTag(Tag)
