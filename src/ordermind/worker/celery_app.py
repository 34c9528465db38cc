from __future__ import annotations

from celery import Celery

from ordermind.core.config import Settings, settings


def make_celery(app_settings: Settings = settings) -> Celery:
    app = Celery("ordermind", broker=app_settings.redis_url, backend=app_settings.redis_url)
    app.conf.update(
        task_always_eager=app_settings.environment in {"dev", "test"},
        task_eager_propagates=True,
        task_track_started=True,
    )
    app.autodiscover_tasks(["ordermind.worker.tasks"])
    return app


celery_app = make_celery()
