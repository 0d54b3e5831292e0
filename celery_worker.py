"""
Celery entry point for running worker commands.

Usage:
    celery -A celery_worker worker --loglevel=info
    celery -A celery_worker worker --loglevel=info --pool=solo   (Windows)
"""
import logging

from payhub import create_app
from payhub.celery_app import celery_app

# create_app binds Celery to the Flask app and imports the task modules
flask_app = create_app()

logger = logging.getLogger(__name__)
logger.info("Registered tasks: %s", sorted(name for name in celery_app.tasks if name.startswith('payhub.')))

# This makes the celery_app available for command line
if __name__ == '__main__':
    celery_app.start()
