"""
Celery application - RabbitMQ broker.
Workers keep the search index in step with the catalog; beat starts loans whose start date has come.
"""

from celery import Celery
from celery.schedules import crontab

from lendoo.config import get_settings

settings = get_settings()

celery_app = Celery(
    "lendoo",
    broker=settings.celery_broker_url,
    backend=settings.redis_url,
    include=["lendoo.queue.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,
    task_time_limit=300,
    task_soft_time_limit=60,
    worker_prefetch_multiplier=1,
    task_routes={
        "lendoo.queue.tasks.index_item_task": {"queue": "search"},
        "lendoo.queue.tasks.remove_item_task": {"queue": "search"},
    },
    beat_schedule={
        "start-due-loans": {
            "task": "lendoo.queue.tasks.start_due_loans_task",
            "schedule": crontab(minute=5, hour="*"),
        },
    },
)
