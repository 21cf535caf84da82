"""Render the subject and HTML body of a lifecycle notice."""

from __future__ import annotations

from email.utils import format_datetime
from html import escape

from apinotice.domain.entities import DueNotification, NotificationKind
from apinotice.utils import ensure_utc

DEFAULT_SUBJECT_PREFIX = "[apinotice]"

_SUBJECT_LABELS = {
    NotificationKind.DEPRECATE: "Deprecation notice",
    NotificationKind.SUNSET: "Sunset notice",
}
_TITLES = {
    NotificationKind.DEPRECATE: "Deprecation Notice",
    NotificationKind.SUNSET: "Sunset Notice",
}


def build_subject(
    notice: DueNotification, *, prefix: str = DEFAULT_SUBJECT_PREFIX
) -> str:
    label = _SUBJECT_LABELS.get(notice.kind, "Notice")
    subject = f"{label} – {notice.api_name} {notice.version}"
    return f"{prefix} {subject}" if prefix else subject


def _link_paragraph(label: str, url: str | None) -> str:
    if not url:
        return ""
    return (
        f'<p style="margin:8px 0"><b>{label}:</b> '
        f'<a href="{escape(url)}">{escape(url)}</a></p>'
    )


def build_html(notice: DueNotification) -> str:
    """Return the HTML body; every interpolated value is escaped."""

    title = _TITLES.get(notice.kind, "API Notice")
    scheduled_at = format_datetime(ensure_utc(notice.scheduled_at), usegmt=True)
    parts = [
        '<div style="font-family:ui-sans-serif,system-ui,Segoe UI,Roboto,Arial,'
        'sans-serif;line-height:1.5;color:#111">',
        f'<h2 style="margin:0 0 12px 0">{escape(title)}</h2>',
        f'<p style="margin:0 0 8px 0"><b>API:</b> {escape(notice.api_name)}<br/>',
        f"<b>Version:</b> {escape(notice.version)}<br/>",
        f"<b>Scheduled at:</b> {escape(scheduled_at)}</p>",
        _link_paragraph("Base URL", notice.base_url),
        _link_paragraph("Docs", notice.docs_url),
        '<p style="margin-top:16px">If you have questions, please reply to this email.</p>',
        "</div>",
    ]
    return "".join(parts)


__all__ = ["DEFAULT_SUBJECT_PREFIX", "build_html", "build_subject"]
