from contextlib import asynccontextmanager
from typing import Callable, Optional
import asyncio
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
import uvicorn

from smartcalendar.core.config import settings
from smartcalendar.api.v1.api import api_router
from smartcalendar.reminders.config import settings as reminder_settings
from smartcalendar.reminders.dispatcher import ReminderDispatcher
from smartcalendar.reminders.service import build_dispatcher

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


async def start_reminder_dispatcher(
    app: FastAPI,
    dispatcher_factory: Callable[[], ReminderDispatcher],
) -> Optional[ReminderDispatcher]:
    """Build and start the dispatch loop. Failures are logged; the API keeps serving."""
    if not reminder_settings.ENABLED:
        logger.info("[Startup] Reminder dispatcher disabled by REMINDER_ENABLED")
        return None

    try:
        dispatcher = dispatcher_factory()
    except ValueError as e:
        logger.warning(f"[Startup] Reminder dispatcher not configured: {e}")
        return None
    app.state.reminder_dispatcher = dispatcher

    try:
        await asyncio.to_thread(dispatcher.store.ping)
    except Exception as e:
        logger.error(f"❌ [Startup] Event store unreachable; reminder dispatcher not started: {e!r}")
        return dispatcher

    dispatcher.start()
    logger.info("✅ [Startup] Reminder dispatcher started")
    return dispatcher


def create_app(dispatcher_factory: Callable[[], ReminderDispatcher] = build_dispatcher) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        logger.info(f"Starting up {settings.PROJECT_NAME} backend...")
        app.state.reminder_dispatcher = None
        dispatcher = await start_reminder_dispatcher(app, dispatcher_factory)
        try:
            yield
        finally:
            if dispatcher is not None:
                logger.info("Stopping reminder dispatcher...")
                await dispatcher.stop()
            logger.info("Shutdown complete")

    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.API_V1_STR)

    if reminder_settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    @app.get("/health")
    def health():
        return {"status": "healthy", "service": settings.PROJECT_NAME}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "smartcalendar.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.is_development,
    )
