"""
Celery Worker Configuration
Redis is both broker and result backend. Start a worker with:

    celery -A heypaytm.celery_worker worker --loglevel=info
"""

from celery import Celery

from heypaytm.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "heypaytm_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["heypaytm.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Kolkata",
    enable_utc=True,

    # One export at a time per worker process
    worker_prefetch_multiplier=1,
    worker_concurrency=2,

    result_expires=3600,

    # Exports are re-run if the worker dies mid-write
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Inline execution for tests and single-box demos
    task_always_eager=settings.celery_always_eager,
    task_eager_propagates=True,

    broker_connection_retry_on_startup=True,
)


if __name__ == "__main__":
    celery_app.start()
