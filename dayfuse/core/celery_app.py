from celery import Celery
from celery.signals import worker_process_init

from dayfuse.configs import configs

celery_app = Celery(
    "dayfuse_worker",
    broker=configs.Redis.REDIS_URL,
    backend=configs.Redis.REDIS_URL,
    include=["dayfuse.tasks.push"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "push-sweep": {
            "task": "process_pending_notifications",
            "schedule": configs.Push.SweepIntervalSecs,
        },
    },
)


@worker_process_init.connect
def init_worker_process(**kwargs: object) -> None:
    """Validate VAPID keys once per worker process."""
    from dayfuse.core.push.vapid import ensure_vapid_keys

    ensure_vapid_keys()
