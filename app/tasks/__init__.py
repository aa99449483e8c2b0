"""
Celery tasks package.

- email_tasks: operational notification emails
"""

from app.tasks import email_tasks

__all__ = ["email_tasks"]
