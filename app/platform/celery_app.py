from celery import Celery

from app.platform.config import get_settings


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Only periodic maintenance runs here; favicon resolution itself stays
    inside the request so its latency budget holds.
    """
    settings = get_settings()

    celery_app = Celery("favicon_service", broker=settings.CELERY_BROKER_URL)

    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        accept_content=[settings.CELERY_ACCEPT_CONTENT],
        timezone="UTC",
        enable_utc=True,
        task_ignore_result=True,
        task_default_queue="default",
        worker_prefetch_multiplier=1,
        beat_schedule={
            "cleanup-expired-favicons": {
                "task": "app.features.favicons.workers.tasks.cleanup_expired_favicons",
                "schedule": settings.CLEANUP_INTERVAL,
            },
        },
    )

    celery_app.autodiscover_tasks(["app.features.favicons.workers"])

    return celery_app


celery_app = create_celery_app()
