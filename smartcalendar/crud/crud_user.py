from sqlalchemy.orm import Session

from smartcalendar.crud.base import CRUDBase
from smartcalendar.models.user import User


class CRUDUser(CRUDBase[User]):
    def set_receive_reminders(self, db: Session, *, db_obj: User, receive_reminders: bool) -> User:
        db_obj.receive_reminders = receive_reminders
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj


user = CRUDUser(User)
