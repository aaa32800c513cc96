from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartcalendar import crud
from smartcalendar.api import deps
from smartcalendar.schemas.event import TagRead


router = APIRouter()


@router.get("/", response_model=List[TagRead])
def list_tags(db: Session = Depends(deps.get_db)):
    return crud.tag.list(db)
