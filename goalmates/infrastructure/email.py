"""Utility helpers for sending transactional email notifications via SendGrid."""

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from goalmates.config import get_settings

logger = logging.getLogger(__name__)

_FALLBACK_NAME = "GoalMate"


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages = [
                str(item["message"])
                for item in errors
                if isinstance(item, dict) and item.get("message")
            ]
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _log_sendgrid_failure(status_code: Any, body: Any, recipient: str) -> None:
    details = _extract_sendgrid_error_details(body)
    if status_code and details:
        logger.error(
            "SendGrid request for %s failed with status %s: %s",
            recipient,
            status_code,
            details,
        )
    elif status_code:
        logger.error("SendGrid request for %s failed with status %s", recipient, status_code)
    elif details:
        logger.error("SendGrid request for %s failed: %s", recipient, details)
    else:
        logger.error("SendGrid request for %s failed", recipient)


def send_email(
    subject: str,
    html_content: str,
    recipient: str,
    *,
    text_content: str | None = None,
) -> bool:
    """Send an email using the configured SendGrid credentials."""

    settings = get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email to %s", recipient)
        return False

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
        plain_text_content=text_content,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        status_code = getattr(exc, "status_code", None)
        body = getattr(exc, "body", None)
        if status_code is None and body is None:
            logger.exception("Error sending email via SendGrid to %s", recipient)
        else:
            _log_sendgrid_failure(status_code, body, recipient)
        return False

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        _log_sendgrid_failure(status_code, getattr(response, "body", None), recipient)
        return False

    return True


@dataclass(frozen=True)
class NotificationEmail:
    """Rendered content of a notification email."""

    subject: str
    html: str
    text: str


def build_notification_email(
    *,
    username: str | None,
    title: str,
    body: str,
    action_url: str | None = None,
) -> NotificationEmail:
    """Render the subject, HTML and plain-text parts of a notification email."""

    name = username or _FALLBACK_NAME
    safe_title = html.escape(title)
    parts = [
        f"<h1>{safe_title}</h1>",
        f"<p>Hi <strong>{html.escape(name)}</strong>,</p>",
        f"<p>{html.escape(body)}</p>",
    ]
    if action_url:
        parts.append(
            f'<p><a href="{html.escape(action_url, quote=True)}">View the notification</a></p>'
        )
    parts.append("<p>You can manage your notifications in GoalMates.</p>")

    text_parts = [f"Hi {name},", "", title, body]
    if action_url:
        text_parts.extend(["", f"Open GoalMates: {action_url}"])

    return NotificationEmail(
        subject=f"[GoalMates] {title}",
        html="".join(parts),
        text="\n".join(text_parts),
    )


def build_frontend_url(path: str) -> str:
    """Join ``path`` onto the configured frontend base URL."""

    base = get_settings().frontend_url.rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def send_notification_email(
    *,
    to: str,
    username: str | None,
    title: str,
    body: str,
    action_path: str | None = None,
) -> bool:
    """Email a single notification to ``to``; returns ``True`` when accepted."""

    email = build_notification_email(
        username=username,
        title=title,
        body=body,
        action_url=build_frontend_url(action_path or "notifications"),
    )
    return send_email(email.subject, email.html, to, text_content=email.text)
