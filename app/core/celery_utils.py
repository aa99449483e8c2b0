"""
Helpers for queueing Celery tasks from request handlers.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Tuple
from celery import Task
from kombu import Connection

from app.core.config import settings

logger = logging.getLogger(__name__)

# Publishing happens off the event loop thread
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="celery_queue")

QUEUE_TIMEOUT_SECONDS = 5


def _publish(task: Task, args: tuple, kwargs: dict) -> Tuple[bool, str, str]:
    """Publish on a fresh broker connection. Returns (success, task_id, error)."""
    try:
        with Connection(settings.REDIS_URL) as conn:
            result = task.apply_async(
                args=args,
                kwargs=kwargs,
                connection=conn,
                retry=True,
                retry_policy={
                    'max_retries': 3,
                    'interval_start': 0,
                    'interval_step': 0.2,
                    'interval_max': 0.2,
                }
            )
            return (True, result.id, "")
    except Exception as e:
        return (False, "", str(e))


def queue_task_safely(task: Task, *args, **kwargs) -> bool:
    """
    Queue a Celery task without letting broker trouble fail the request.

    Returns:
        bool: True if the task was published, False otherwise
    """
    future = _executor.submit(_publish, task, args, kwargs)
    try:
        success, task_id, error = future.result(timeout=QUEUE_TIMEOUT_SECONDS)
    except FutureTimeoutError:
        success, task_id, error = False, "", f"timed out after {QUEUE_TIMEOUT_SECONDS}s"

    if success:
        logger.info(f"Task {task.name} queued: {task_id}")
    else:
        logger.error(f"Failed to queue task {task.name}: {error}")
    return success
