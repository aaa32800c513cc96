from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from smartcalendar import crud
from smartcalendar.api import deps
from smartcalendar.schemas.event import EventCreate, EventRead, EventUpdate


router = APIRouter()


@router.get("/", response_model=List[EventRead])
def list_events(
    user_id: str,
    tag: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(deps.get_db),
):
    return crud.event.list_for_user(db, user_id=user_id, tag=tag, skip=skip, limit=limit)


@router.post("/", response_model=EventRead, status_code=201)
def create_event(payload: EventCreate, db: Session = Depends(deps.get_db)):
    if not crud.user.get(db, payload.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return crud.event.create(db, obj_in=payload)


@router.get("/{event_id}", response_model=EventRead)
def get_event(event_id: int, db: Session = Depends(deps.get_db)):
    ev = crud.event.get(db, event_id)
    if not ev:
        raise HTTPException(status_code=404, detail="Event not found")
    return ev


@router.put("/{event_id}", response_model=EventRead)
def update_event(event_id: int, payload: EventUpdate, db: Session = Depends(deps.get_db)):
    ev = crud.event.get(db, event_id)
    if not ev:
        raise HTTPException(status_code=404, detail="Event not found")
    try:
        return crud.event.update(db, db_obj=ev, obj_in=payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{event_id}", status_code=204)
def delete_event(event_id: int, db: Session = Depends(deps.get_db)):
    """Delete an event; its tag associations go with it, the tags stay."""
    if not crud.event.remove(db, id=event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return Response(status_code=204)
