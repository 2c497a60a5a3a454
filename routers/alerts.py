# routers/alerts.py

from fastapi import APIRouter, Depends

from dependencies.auth import require_cron_secret
from core.alerts import send_email_alerts, send_sms_alerts
from core.errors import UpstreamFailure
from core.notifications import email_configured, sms_configured
from core.supabase_helpers import require_supabase_client


router = APIRouter(
    prefix="/alerts",
    tags=["Alerts"],
    dependencies=[Depends(require_cron_secret)],
)


@router.get("/email", summary="Cron: email inventory reminders")
def email_alerts():
    if not email_configured():
        raise UpstreamFailure("Missing SMTP configuration")
    return send_email_alerts(require_supabase_client())


@router.get("/sms", summary="Cron: SMS inventory reminders")
def sms_alerts():
    if not sms_configured():
        raise UpstreamFailure("Missing Twilio configuration")
    return send_sms_alerts(require_supabase_client())
