"""
Celery application configuration.

Redis is both the message broker and the result backend.
"""

from celery import Celery
from app.core.config import settings

celery_app = Celery(
    "matrimony_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    timezone="UTC",
    enable_utc=True,

    task_time_limit=120,
    task_soft_time_limit=90,

    result_expires=3600,

    worker_prefetch_multiplier=1,
)

celery_app.autodiscover_tasks(['app'])
