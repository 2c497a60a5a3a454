from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from dependencies.auth import get_current_identity, get_optional_identity
from core.access_control import fetch_profile, resolve_caller_role
from core.config import get_site_url
from core.gatekeeper import landing_path, resolve_redirect, safe_next_path
from core.logging_config import logger
from core.supabase_helpers import require_supabase_client
from models.identity import Identity


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# ============================================================
# AUTH CALLBACK (invite / magic links land here)
# ============================================================
@router.get("/callback", summary="Exchange an auth code and redirect")
def auth_callback(
    code: Optional[str] = Query(None),
    next: Optional[str] = Query(None),
):
    site = get_site_url()

    if code:
        client = require_supabase_client()
        try:
            resp = client.auth.exchange_code_for_session({"auth_code": code})
        except Exception as e:
            logger.warning(f"Auth code exchange failed: {type(e).__name__}")
            resp = None

        if resp is not None and getattr(resp, "user", None):
            dest = safe_next_path(next)
            if dest is None:
                identity = Identity.from_auth_user(resp.user)
                dest = landing_path(identity.system.role)
            return RedirectResponse(f"{site}{dest}")

    return RedirectResponse(f"{site}/login?error=auth_callback_failed")


# ============================================================
# EDGE GATEKEEPER
# ============================================================
@router.get("/gate", summary="Page-level redirect decision for the frontend")
def gate(
    path: str = Query("/", description="Path the browser is about to render"),
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    return {"redirect": resolve_redirect(identity, path)}


# ============================================================
# CURRENT USER
# ============================================================
@router.get("/me", summary="Current authenticated account")
def read_me(identity: Identity = Depends(get_current_identity)):
    """Role and activation state as stored server-side."""
    admin = require_supabase_client()
    role = resolve_caller_role(admin, identity)
    profile = fetch_profile(admin, identity.id)

    return {
        "id": identity.id,
        "email": identity.email,
        "fullName": identity.editable.full_name,
        "propertyName": identity.editable.property_name,
        "role": str(role),
        "organizationId": profile.organization_id if profile else None,
        "managedBy": profile.managed_by if profile else None,
        "activatedAt": profile.activated_at if profile else None,
    }
