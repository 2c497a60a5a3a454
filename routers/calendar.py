# routers/calendar.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from dependencies.auth import get_current_identity
from core.calendar_feed import build_calendar, calendar_token, verify_calendar_token
from core.errors import Forbidden, UpstreamFailure, ValidationFailed
from core.supabase_helpers import require_supabase_client, select_rows
from models.identity import Identity


router = APIRouter(
    prefix="/calendar",
    tags=["Calendar"],
)


# -----------------------------------------------------
# GET /calendar/token
# -----------------------------------------------------
@router.get("/token", summary="Calendar subscription token for the caller")
def get_calendar_token(identity: Identity = Depends(get_current_identity)):
    try:
        token = calendar_token(identity.id)
    except RuntimeError as e:
        raise UpstreamFailure("Server misconfigured") from e
    return {"token": token}


# -----------------------------------------------------
# GET /calendar/feed?userId=...&token=...
# Public: calendar apps cannot send bearer tokens
# -----------------------------------------------------
@router.get("/feed", summary="iCalendar feed")
def get_calendar_feed(
    userId: Optional[str] = Query(None),
    token: Optional[str] = Query(None),
):
    if not userId:
        raise ValidationFailed("userId is required")

    try:
        valid = verify_calendar_token(userId, token)
    except RuntimeError as e:
        raise UpstreamFailure("Server misconfigured") from e
    if not valid:
        raise Forbidden()

    admin = require_supabase_client()

    events = select_rows(
        admin, "project_events",
        "id, title, event_date, event_time, projects(name, description, status)",
        order="event_date", user_id=userId,
    )
    inventory = select_rows(
        admin, "inventory_items",
        "id, name, description, next_reminder_date, frequency_months",
        order="next_reminder_date", user_id=userId,
    )
    services = select_rows(
        admin, "services",
        "id, name, provider, next_service_date, frequency_months",
        order="next_service_date", user_id=userId,
    )

    return Response(
        content=build_calendar(events, inventory, services),
        media_type="text/calendar; charset=utf-8",
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
