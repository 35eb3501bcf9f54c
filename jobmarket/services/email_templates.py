"""Email templates for queued notifications.

Each template turns a notification's template_data into a subject, an HTML
body and a plain-text body. Values are HTML-escaped in the HTML body;
missing keys render as empty strings rather than failing the send.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Any


@dataclass(frozen=True)
class EmailTemplate:
    """Rendered email content.

    Attributes:
        subject: Subject line.
        html: HTML body.
        text: Plain-text body.
    """

    subject: str
    html: str
    text: str


class UnknownTemplateError(LookupError):
    """Raised when a notification type has no email template."""


def _plural_days(days: int) -> str:
    return f"{days} day" if days == 1 else f"{days} days"


def _format_expiry(value: Any) -> str:
    if isinstance(value, datetime):
        moment = value
    else:
        try:
            moment = datetime.fromisoformat(str(value))
        except ValueError:
            return str(value)
    return moment.strftime("%A, %B %d, %Y %H:%M UTC")


def _footer(app_url: str, reason: str) -> tuple[str, str]:
    prefs_url = f"{app_url}/privacy-centre"
    html = (
        '<p style="font-size: 12px; color: #6b7280;">'
        f"You're receiving this because you have {escape(reason)} notifications "
        f'enabled. <a href="{escape(prefs_url)}">Update preferences</a></p>'
    )
    text = f"---\nUpdate notification preferences: {prefs_url}"
    return html, text


def _job_expiration(data: Mapping[str, Any], app_url: str) -> EmailTemplate:
    title = str(data.get("job_title", ""))
    company = str(data.get("company_name") or "there")
    days = int(data.get("days_until_expiration", 0))
    expires = _format_expiry(data.get("expires_at", ""))
    extend_url = f"{app_url}{data.get('extend_url', '')}"
    dashboard_url = f"{app_url}/dashboard/company"
    footer_html, footer_text = _footer(app_url, "job expiration")

    subject = f'Your job "{title}" expires in {_plural_days(days)}'
    html = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px;">'
        "<h1>Job Expiration Reminder</h1>"
        f"<h2>Hi {escape(company)},</h2>"
        f"<p>Your job posting <strong>\"{escape(title)}\"</strong> will expire in "
        f"<strong>{_plural_days(days)}</strong>.</p>"
        f"<p><strong>Expiration Date:</strong> {escape(expires)}</p>"
        "<p>Once expired, your job will no longer be visible to candidates on the "
        "job map and in search results. You can extend it at any time to keep it "
        "active.</p>"
        f'<p><a href="{escape(extend_url)}">Extend Job Posting</a></p>'
        f'<p>You can also manage all your job postings from your '
        f'<a href="{escape(dashboard_url)}">company dashboard</a>.</p>'
        f"{footer_html}</div>"
    )
    text = (
        f"Hi {company},\n\n"
        f'Your job posting "{title}" will expire in {_plural_days(days)}.\n\n'
        f"Expiration Date: {expires}\n\n"
        "Once expired, your job will no longer be visible to candidates. "
        "You can extend it at any time to keep it active.\n\n"
        f"Extend your job: {extend_url}\n\n"
        f"Manage all jobs: {dashboard_url}\n\n"
        f"{footer_text}"
    )
    return EmailTemplate(subject=subject, html=html, text=text)


def _new_applications(data: Mapping[str, Any], app_url: str) -> EmailTemplate:
    title = str(data.get("job_title", ""))
    company = str(data.get("company_name") or "there")
    application_id = str(data.get("application_id", ""))
    view_url = f"{app_url}{data.get('view_url', '')}"
    footer_html, footer_text = _footer(app_url, "application")

    subject = f'New application for "{title}"'
    html = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px;">'
        "<h1>New Job Application</h1>"
        f"<h2>Great news, {escape(company)}!</h2>"
        "<p>You have received a new application for your job posting "
        f"<strong>\"{escape(title)}\"</strong>.</p>"
        f"<p><strong>Job:</strong> {escape(title)}<br>"
        f"<strong>Application ID:</strong> {escape(application_id)}</p>"
        f'<p><a href="{escape(view_url)}">View Application</a></p>'
        f"{footer_html}</div>"
    )
    text = (
        f"Great news, {company}!\n\n"
        f'You have received a new application for your job posting "{title}".\n\n'
        f"Job: {title}\n"
        f"Application ID: {application_id}\n\n"
        f"View Application: {view_url}\n\n"
        f"{footer_text}"
    )
    return EmailTemplate(subject=subject, html=html, text=text)


def _messages(data: Mapping[str, Any], app_url: str) -> EmailTemplate:
    message_subject = str(data.get("subject") or "")
    view_url = f"{app_url}{data.get('view_url', '')}"
    footer_html, footer_text = _footer(app_url, "message")

    html = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px;">'
        "<h1>New Message</h1>"
        "<h2>You have a new message</h2>"
        f"<p><strong>Subject:</strong> {escape(message_subject or 'No subject')}</p>"
        f'<p><a href="{escape(view_url)}">View Message</a></p>'
        f"{footer_html}</div>"
    )
    text = (
        "You have a new message.\n\n"
        f"Subject: {message_subject or 'No subject'}\n\n"
        f"View Message: {view_url}\n\n"
        f"{footer_text}"
    )
    return EmailTemplate(
        subject=message_subject or "New message", html=html, text=text
    )


_TEMPLATES: dict[str, Callable[[Mapping[str, Any], str], EmailTemplate]] = {
    "job_expiration": _job_expiration,
    "new_applications": _new_applications,
    "messages": _messages,
}

NOTIFICATION_TYPES: frozenset[str] = frozenset(_TEMPLATES)


def render_email(
    notification_type: str,
    template_data: Mapping[str, Any],
    *,
    app_url: str,
) -> EmailTemplate:
    """Render the email for a notification.

    Args:
        notification_type: Template key.
        template_data: Values for the template.
        app_url: Public frontend URL, prefixed to relative links.

    Returns:
        Rendered EmailTemplate.

    Raises:
        UnknownTemplateError: If notification_type has no template.
    """
    template = _TEMPLATES.get(notification_type)
    if template is None:
        msg = f"No template found for notification type: {notification_type}"
        raise UnknownTemplateError(msg)
    return template(template_data, app_url.rstrip("/"))
