from fastapi import APIRouter, Depends

from smartcalendar.api.deps import verify_api_key_dependency
from smartcalendar.api.v1.endpoints import events
from smartcalendar.api.v1.endpoints import tags
from smartcalendar.api.v1.endpoints import users
from smartcalendar.reminders.api import router as reminders_router

api_router = APIRouter(dependencies=[Depends(verify_api_key_dependency)])

api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(tags.router, prefix="/tags", tags=["tags"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(reminders_router, prefix="/reminders", tags=["reminders"])
