import logging

from celery import Celery
from .config import settings


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

broker_url = settings.CELERY_BROKER_URL or "redis://localhost:6379/0"
result_backend = settings.CELERY_RESULT_BACKEND or None

celery_app = Celery(
    "reminders",
    broker=broker_url,
    backend=result_backend,
)

celery_app.conf.update(
    task_acks_late=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    worker_prefetch_multiplier=1,
    # A single worker process keeps ticks sequential
    worker_concurrency=1,
    include=["smartcalendar.reminders.tasks"],
)

# Celery Beat schedule for periodic scanning
celery_app.conf.beat_schedule = {
    "scan-and-dispatch": {
        "task": "reminders.scan_and_dispatch",
        "schedule": settings.SCAN_INTERVAL_SECONDS,
    },
}
