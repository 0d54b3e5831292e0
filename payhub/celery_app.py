from celery import Celery, Task
from flask import has_app_context

_flask_app = None


class ContextTask(Task):
    """Run every task inside the Flask app context so tasks can use db.session."""

    def __call__(self, *args, **kwargs):
        if has_app_context() or _flask_app is None:
            return super().__call__(*args, **kwargs)
        with _flask_app.app_context():
            return super().__call__(*args, **kwargs)


celery_app = Celery('payhub', task_cls=ContextTask)


def init_celery(app):
    """
    Bind Celery to the Flask app: broker settings come from app.config and
    tasks run inside this app's context.
    """
    global _flask_app
    _flask_app = app

    celery_app.conf.update(
        broker_url=app.config.get('CELERY_BROKER_URL'),
        result_backend=app.config.get('CELERY_RESULT_BACKEND'),
        task_serializer='json',
        result_serializer='json',
        accept_content=['json'],
        timezone='UTC',
        enable_utc=True,
        task_track_started=True,
        task_time_limit=10 * 60,  # 10 minutes
        broker_connection_retry_on_startup=True,
        task_always_eager=app.config.get('CELERY_TASK_ALWAYS_EAGER', False),
        task_eager_propagates=app.config.get('CELERY_TASK_ALWAYS_EAGER', False),
    )
    return celery_app
