# core/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime
import traceback

from core.alerts import send_email_alerts, send_sms_alerts
from core.config import settings
from core.logging_config import logger
from core.notifications import send_webhook_message, sms_configured
from core.supabase_client import get_supabase_client


def run_inventory_alerts() -> dict:
    """Sends the daily email and SMS reminders, then posts a summary to the ops webhook."""
    start_time = datetime.utcnow()
    summary = {}

    try:
        client = get_supabase_client()
        if client is None:
            raise RuntimeError("Supabase not configured")

        summary["email"] = send_email_alerts(client)
        if sms_configured():
            summary["sms"] = send_sms_alerts(client)

        duration = (datetime.utcnow() - start_time).total_seconds()
        logger.info(f"[SCHEDULER] Inventory alerts finished in {duration:.1f}s: {summary}")
        send_webhook_message(
            f"HOMEBOT inventory alerts ✅ emails={summary['email'].get('emailsSent', 0)} "
            f"sms={summary.get('sms', {}).get('smsSent', 0)}"
        )

    except Exception as e:
        logger.error(f"[SCHEDULER] Inventory alerts failed: {e}")
        send_webhook_message(
            f"HOMEBOT inventory alerts failed ❌\n{e}\n\n{traceback.format_exc()}"
        )
        summary["error"] = str(e)

    return summary


def start_scheduler() -> BackgroundScheduler:
    """
    Initialize the APScheduler background process.
    Runs the alert job once a day.
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_inventory_alerts,
        trigger=CronTrigger(hour=settings.ALERT_HOUR_UTC, minute=0),
        id="inventory_alerts_job",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(f"⏰ Scheduler started. Inventory alerts set for {settings.ALERT_HOUR_UTC:02d}:00 UTC.")
    return scheduler
