from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from smartcalendar import crud
from smartcalendar.api import deps
from smartcalendar.schemas.user import ReminderSettings


router = APIRouter()


@router.get("/{user_id}/reminder-settings", response_model=ReminderSettings)
def get_reminder_settings(user_id: str, db: Session = Depends(deps.get_db)):
    user = crud.user.get(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return ReminderSettings(receive_reminders=user.receive_reminders)


@router.put("/{user_id}/reminder-settings", response_model=ReminderSettings)
def update_reminder_settings(
    user_id: str,
    payload: ReminderSettings,
    db: Session = Depends(deps.get_db),
):
    user = crud.user.get(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    user = crud.user.set_receive_reminders(db, db_obj=user, receive_reminders=payload.receive_reminders)
    return ReminderSettings(receive_reminders=user.receive_reminders)
