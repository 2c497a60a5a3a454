# core/alerts.py

"""
Inventory reorder reminders, sent per homeowner by email or SMS.
Run daily from the scheduler, the CLI job, or the cron endpoints.
"""

from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

import pytz
from supabase import Client

from core.account_lifecycle import get_identity
from core.config import get_site_url, settings
from core.email_templates import (
    AlertItem,
    inventory_alert_email,
    inventory_alert_text,
    items_phrase,
)
from core.errors import UpstreamFailure, upstream_error
from core.logging_config import logger
from core.notifications import get_twilio_client, send_email, send_sms


def local_today() -> date:
    tz = pytz.timezone(settings.ALERT_TIMEZONE)
    return datetime.now(pytz.UTC).astimezone(tz).date()


def days_until(day: str, today: date) -> int:
    return (date.fromisoformat(day[:10]) - today).days


# ============================================================
# Record store reads
# ============================================================
def fetch_due_items(admin: Client, columns: str, today: date) -> "OrderedDict[str, List[dict]]":
    """Items due within the alert window (or overdue), grouped by user."""
    cutoff = (today + timedelta(days=settings.ALERT_WINDOW_DAYS)).isoformat()

    try:
        rows = (
            admin.table("inventory_items")
            .select(columns)
            .lte("next_reminder_date", cutoff)
            .order("next_reminder_date")
            .execute()
        ).data or []
    except Exception as e:
        raise upstream_error(e, "Failed to fetch inventory items") from e

    by_user: "OrderedDict[str, List[dict]]" = OrderedDict()
    for row in rows:
        by_user.setdefault(row["user_id"], []).append(row)
    return by_user


def fetch_preferences(admin: Client, user_ids: List[str], columns: str) -> Dict[str, dict]:
    try:
        rows = (
            admin.table("notification_preferences")
            .select(columns)
            .in_("user_id", user_ids)
            .execute()
        ).data or []
    except Exception as e:
        # Missing preferences fall back to defaults
        logger.warning(f"Notification preference lookup failed: {e}")
        rows = []
    return {row["user_id"]: row for row in rows}


def to_alert_items(rows: List[dict], today: date) -> List[AlertItem]:
    return [
        AlertItem(
            name=row.get("name") or "",
            next_reminder_date=row["next_reminder_date"],
            days_until=days_until(row["next_reminder_date"], today),
            purchase_url=row.get("purchase_url") or None,
        )
        for row in rows
    ]


# ============================================================
# Email
# ============================================================
def send_email_alerts(admin: Client, today: Optional[date] = None) -> dict:
    today = today or local_today()
    items_by_user = fetch_due_items(
        admin, "id, name, next_reminder_date, purchase_url, user_id", today
    )

    if not items_by_user:
        return {"sent": False, "reason": "no alerts"}

    prefs = fetch_preferences(admin, list(items_by_user), "user_id, email_enabled")
    site_url = get_site_url()
    details = []

    for user_id, rows in items_by_user.items():
        # Email is on unless the user turned it off
        if not prefs.get(user_id, {}).get("email_enabled", True):
            details.append({"userId": user_id, "success": False, "error": "email disabled"})
            continue

        try:
            user = get_identity(admin, user_id)
        except UpstreamFailure as e:
            logger.error(f"Alert recipient lookup failed for {user_id}: {e.message}")
            details.append({"userId": user_id, "success": False, "error": "lookup failed"})
            continue
        if user is None or not user.email:
            details.append({"userId": user_id, "success": False, "error": "no email found"})
            continue

        user_name = user.editable.full_name or user.email.split("@")[0]
        items = to_alert_items(rows, today)

        try:
            sent = send_email(
                subject=f"HOMEBOT: {items_phrase(len(items))} attention",
                body=inventory_alert_text(items),
                to=user.email,
                html_body=inventory_alert_email(user_name, items, site_url),
            )
        except Exception as e:
            logger.error(f"Alert email error for {user_id}: {e}")
            sent = False
        details.append(
            {"userId": user_id, "success": sent} if sent
            else {"userId": user_id, "success": False, "error": "send failed"}
        )

    sent_count = sum(1 for d in details if d["success"])
    logger.info(f"Inventory email alerts: {sent_count}/{len(details)} sent")
    return {"sent": sent_count > 0, "emailsSent": sent_count, "details": details}


# ============================================================
# SMS
# ============================================================
def send_sms_alerts(admin: Client, today: Optional[date] = None, sms_client=None) -> dict:
    today = today or local_today()
    items_by_user = fetch_due_items(admin, "id, name, next_reminder_date, user_id", today)

    if not items_by_user:
        return {"sent": False, "reason": "no alerts"}

    prefs = fetch_preferences(admin, list(items_by_user), "user_id, sms_enabled, sms_phone")
    sms_client = sms_client or get_twilio_client()
    details = []

    for user_id, rows in items_by_user.items():
        pref = prefs.get(user_id) or {}
        # SMS is off unless the user opted in with a phone number
        if not pref.get("sms_enabled") or not pref.get("sms_phone"):
            continue

        message = inventory_alert_text(to_alert_items(rows, today))
        try:
            send_sms(pref["sms_phone"], message, client=sms_client)
            details.append({"userId": user_id, "success": True})
        except Exception as e:
            logger.error(f"Twilio SMS error for {user_id}: {e}")
            details.append({"userId": user_id, "success": False, "error": "send failed"})

    sent_count = sum(1 for d in details if d["success"])
    logger.info(f"Inventory SMS alerts: {sent_count}/{len(details)} sent")
    return {"sent": sent_count > 0, "smsSent": sent_count, "details": details}
