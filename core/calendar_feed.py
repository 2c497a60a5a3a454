# core/calendar_feed.py

"""
iCalendar (RFC 5545) subscription feed: project events, inventory
reorder reminders and service reminders for one homeowner.
"""

import hashlib
import hmac
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from core.config import settings


CRLF = "\r\n"
UID_DOMAIN = "homebot"
TOKEN_LENGTH = 32


# ============================================================
# Feed tokens
# ============================================================
def _token_secret() -> Optional[str]:
    return settings.CRON_SECRET or settings.SUPABASE_SERVICE_ROLE_KEY


def calendar_token(user_id: str) -> str:
    secret = _token_secret()
    if not secret:
        raise RuntimeError("Server misconfigured")
    digest = hmac.new(secret.encode(), user_id.encode(), hashlib.sha256).hexdigest()
    return digest[:TOKEN_LENGTH]


def verify_calendar_token(user_id: str, token: Optional[str]) -> bool:
    if not token:
        return False
    return hmac.compare_digest(calendar_token(user_id), token)


# ============================================================
# Formatting helpers
# ============================================================
def escape_ical(text: Optional[str]) -> str:
    return (
        (text or "")
        .replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def ical_date(value: str) -> str:
    """'YYYY-MM-DD' → 'YYYYMMDD'"""
    return value.replace("-", "")


def next_day(value: str) -> str:
    return (date.fromisoformat(value) + timedelta(days=1)).isoformat()


def dtstamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def frequency_label(months: Optional[int]) -> str:
    if not months:
        return "as needed"
    if months == 1:
        return "monthly"
    if months == 12:
        return "annually"
    return f"every {months} months"


def _all_day(lines: List[str], day: str):
    lines.append(f"DTSTART;VALUE=DATE:{ical_date(day)}")
    lines.append(f"DTEND;VALUE=DATE:{ical_date(next_day(day))}")


# ============================================================
# VEVENT builders
# ============================================================
def project_event_vevent(event: dict, stamp: str) -> str:
    project = event.get("projects") or {}
    completed = project.get("status") == "Completed"
    summary = f"{project.get('name') or ''}: {event.get('title') or ''}"

    lines = [
        "BEGIN:VEVENT",
        f"UID:{event['id']}@{UID_DOMAIN}",
        f"DTSTAMP:{stamp}",
    ]

    event_time = event.get("event_time")
    if event_time:
        # Timed events default to one hour
        hour, minute = (int(part) for part in event_time.split(":")[:2])
        start = datetime.combine(date.fromisoformat(event["event_date"]), datetime.min.time()).replace(
            hour=hour, minute=minute
        )
        end = start + timedelta(hours=1)
        lines.append(f"DTSTART:{start.strftime('%Y%m%dT%H%M%S')}")
        lines.append(f"DTEND:{end.strftime('%Y%m%dT%H%M%S')}")
    else:
        _all_day(lines, event["event_date"])

    lines += [
        f"SUMMARY:{escape_ical(summary)}{' [Completed]' if completed else ''}",
        f"DESCRIPTION:{escape_ical(project.get('description'))}",
        f"STATUS:{'COMPLETED' if completed else 'CONFIRMED'}",
        "END:VEVENT",
    ]
    return CRLF.join(lines)


def inventory_vevent(item: dict, stamp: str) -> str:
    freq = frequency_label(item.get("frequency_months"))
    description = f"{item.get('description') or item.get('name') or ''} - replenish {freq}"

    lines = [
        "BEGIN:VEVENT",
        f"UID:inv-{item['id']}@{UID_DOMAIN}",
        f"DTSTAMP:{stamp}",
    ]
    _all_day(lines, item["next_reminder_date"])
    lines += [
        f"SUMMARY:{escape_ical('Reorder: ' + (item.get('name') or ''))}",
        f"DESCRIPTION:{escape_ical(description)}",
        "STATUS:CONFIRMED",
        "END:VEVENT",
    ]
    return CRLF.join(lines)


def service_vevent(service: dict, stamp: str) -> str:
    freq = frequency_label(service.get("frequency_months"))
    provider = service.get("provider")
    description = f"{provider} - {freq}" if provider else freq

    lines = [
        "BEGIN:VEVENT",
        f"UID:svc-{service['id']}@{UID_DOMAIN}",
        f"DTSTAMP:{stamp}",
    ]
    _all_day(lines, service["next_service_date"])
    lines += [
        f"SUMMARY:{escape_ical('Service: ' + (service.get('name') or ''))}",
        f"DESCRIPTION:{escape_ical(description)}",
        "STATUS:CONFIRMED",
        "END:VEVENT",
    ]
    return CRLF.join(lines)


def build_calendar(
    events: Iterable[dict],
    inventory_items: Iterable[dict],
    services: Iterable[dict],
    now: Optional[datetime] = None,
) -> str:
    stamp = dtstamp(now)

    parts = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//HOMEBOT//Home Projects//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "X-WR-CALNAME:HOMEBOT Projects",
        "X-WR-CALDESC:Home project schedule from HOMEBOT",
    ]
    parts += [project_event_vevent(e, stamp) for e in events]
    parts += [inventory_vevent(i, stamp) for i in inventory_items if i.get("next_reminder_date")]
    parts += [service_vevent(s, stamp) for s in services if s.get("next_service_date")]
    parts.append("END:VCALENDAR")

    return CRLF.join(parts)
