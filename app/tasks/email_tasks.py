"""
Celery tasks for email operations.

Verification codes are sent synchronously by the delivery gateway so the
caller learns about failures; only operational notifications go through
the queue.
"""

import html
import logging
from datetime import datetime, timezone
from typing import Dict, Tuple

from celery import shared_task

from app.core.celery_app import celery_app  # noqa: F401
from app.core.config import settings
from app.services.email_service import build_email_transport

logger = logging.getLogger(__name__)


def build_profile_notification(action: str, profile_id: int, profile_data: Dict[str, str]) -> Tuple[str, str, str]:
    """
    Build subject, plain text and HTML bodies for a profile notification.

    Args:
        action: "created" or "updated"
        profile_id: Profile primary key
        profile_data: first_name, last_name, gender, location, denomination

    Returns:
        Tuple[str, str, str]: (subject, text_body, html_body)
    """
    title = f"Profile {action.capitalize()}"
    subject = f"{title}: Profile #{profile_id}"
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")

    rows = [
        ("Profile ID", str(profile_id)),
        ("Name", f"{profile_data.get('first_name', '')} {profile_data.get('last_name', '')}".strip()),
        ("Gender", profile_data.get("gender", "")),
        ("Location", profile_data.get("location", "")),
        ("Denomination", profile_data.get("denomination", "")),
        ("Time", timestamp),
    ]

    text_body = "\n".join([title, ""] + [f"{label}: {value}" for label, value in rows])
    text_body += "\n\nThis is an automated notification from NRIChristianMatrimony.\n"

    html_rows = "\n".join(
        f"<p><strong>{label}:</strong> {html.escape(value)}</p>" for label, value in rows
    )
    html_body = (
        f"<h2>{title}</h2>\n{html_rows}\n<hr>\n"
        "<p><em>This is an automated notification from NRIChristianMatrimony.</em></p>"
    )

    return subject, text_body, html_body


@shared_task(
    bind=True,
    name="send_profile_notification_task",
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True
)
def send_profile_notification_task(
    self,
    action: str,
    profile_id: int,
    profile_data: Dict[str, str]
):
    """
    Email the operations inbox that a profile was created or updated.

    Raises:
        Exception: If sending fails (triggers Celery retry)
    """
    to_email = settings.PROFILE_NOTIFICATION_EMAIL
    if not to_email:
        logger.info("PROFILE_NOTIFICATION_EMAIL not set, skipping notification")
        return {"status": "skipped", "profile_id": profile_id}

    subject, text_body, html_body = build_profile_notification(action, profile_id, profile_data)
    transport = build_email_transport(settings)

    logger.info(f"Sending profile {action} notification for #{profile_id} (attempt {self.request.retries + 1})")
    if not transport.send_email(to_email, subject, text_body, html_body):
        if self.request.retries >= self.max_retries:
            logger.error(f"All retry attempts exhausted for profile #{profile_id} notification")
        raise Exception(f"Failed to send profile notification for #{profile_id}")

    return {"status": "success", "profile_id": profile_id}
