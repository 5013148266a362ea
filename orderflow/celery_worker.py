"""
Celery Worker Configuration
Sets up Celery with Redis as message broker and result backend,
and the hourly beat schedule for the sold-out reset.
"""

from celery import Celery
from celery.schedules import crontab

from orderflow.core.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    'orderflow_worker',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['orderflow.tasks']  # Module containing our tasks
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,  # Process one task at a time
    worker_concurrency=4,  # Number of worker processes

    # Result settings
    result_expires=3600,  # Results expire after 1 hour

    # Task execution settings
    task_acks_late=True,  # Acknowledge task after completion
    task_reject_on_worker_lost=True,  # Requeue task if worker dies

    # Fix for Celery 6.0 warning
    broker_connection_retry_on_startup=True,

    # Hourly tick; each tenant resets on the first tick of its local day
    beat_schedule={
        'reset-sold-out-hourly': {
            'task': 'orderflow.tasks.reset_sold_out_items',
            'schedule': crontab(minute=0),
            'kwargs': {'mode': 'smart'},
            'options': {'expires': 3000},
        },
    },
)


if __name__ == '__main__':
    celery_app.start()
