# routers/admin_clients.py

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dependencies.auth import get_current_identity
from core.access_control import (
    authorize_manager_access,
    authorize_manager_role,
    require_managed_client,
)
from core.account_lifecycle import (
    client_status,
    delete_client,
    get_identity,
    invite_or_reinvite,
    preload_client_data,
    provision,
)
from core.errors import NotFound, UpstreamFailure
from core.logging_config import logger
from core.supabase_helpers import count_rows, require_supabase_client, select_rows
from models.client import ClientCreate
from models.enums import Role
from models.identity import Identity
from models.profile import Profile


router = APIRouter(
    prefix="/admin/clients",
    tags=["Admin Clients"],
)


CLIENT_PROFILE_COLUMNS = "id, managed_by, activated_at, created_at"


# -----------------------------------------------------
# Helper: client summary row
# -----------------------------------------------------
def summarize_client(admin, profile: Profile, identity: Identity = None) -> dict:
    identity = identity or get_identity(admin, profile.id)

    return {
        "id": profile.id,
        "email": (identity.email if identity else None) or "",
        "fullName": identity.editable.full_name if identity else None,
        "propertyName": identity.editable.property_name if identity else None,
        "status": str(client_status(profile, identity)),
        "activatedAt": profile.activated_at,
        "createdAt": profile.created_at or (identity.created_at if identity else None),
        "assetCount": count_rows(admin, "home_assets", user_id=profile.id),
        "inventoryCount": count_rows(admin, "inventory_items", user_id=profile.id),
    }


# -----------------------------------------------------
# 1️⃣ LIST CLIENTS
# -----------------------------------------------------
@router.get("", summary="List managed clients")
def list_clients(identity: Identity = Depends(get_current_identity)):
    """
    Managers see the clients they provisioned. Superadmins see every
    managed client.
    """
    admin = require_supabase_client()
    access = authorize_manager_role(admin, identity)

    query = admin.table("profiles").select(CLIENT_PROFILE_COLUMNS)
    if access.is_superadmin:
        query = query.not_.is_("managed_by", "null")
    else:
        query = query.eq("managed_by", identity.id)

    try:
        rows = query.order("created_at", desc=True).execute().data or []
    except Exception as e:
        logger.error(f"Client list failed: {e}")
        raise UpstreamFailure("Failed to load clients") from e

    clients = [summarize_client(admin, Profile.from_row(row)) for row in rows]
    return {"clients": clients}


# -----------------------------------------------------
# 2️⃣ CREATE CLIENT (+ pre-loaded data)
# -----------------------------------------------------
@router.post("", summary="Provision a managed homeowner account", status_code=201)
def create_managed_client(
    payload: ClientCreate,
    identity: Identity = Depends(get_current_identity),
):
    admin = require_supabase_client()

    account = provision(
        admin,
        identity,
        email=payload.email,
        role=Role.homeowner,
        full_name=payload.full_name,
        property_name=payload.property_name,
    )

    client = {
        "id": account.id,
        "email": account.email,
        "fullName": account.full_name,
        "propertyName": account.property_name,
        "assetsCreated": 0,
        "inventoryCreated": 0,
    }

    # The account is already valid at this point; a failed pre-load
    # is reported alongside it rather than undoing the account.
    try:
        client.update(
            preload_client_data(admin, account.id, payload.home_assets, payload.inventory_items)
        )
    except UpstreamFailure as e:
        logger.error(f"Pre-load failed for client {account.id}: {e.message}")
        client["preloadError"] = e.message

    return JSONResponse(status_code=201, content={"client": client})


# -----------------------------------------------------
# 3️⃣ CLIENT DETAIL (read-only, also after activation)
# -----------------------------------------------------
@router.get("/{client_id}", summary="Client detail")
def get_client(client_id: str, identity: Identity = Depends(get_current_identity)):
    admin = require_supabase_client()
    access = authorize_manager_access(admin, identity, client_id, require_unactivated=False)

    target = require_managed_client(access, "Not found")

    client_identity = get_identity(admin, client_id)
    if client_identity is None:
        raise NotFound("Not found")

    client = summarize_client(admin, target, client_identity)
    client["assets"] = select_rows(
        admin,
        "home_assets",
        "id, name, category, make, model",
        order="name",
        user_id=client_id,
    )

    return {"client": client}


# -----------------------------------------------------
# 4️⃣ DELETE CLIENT (un-activated only)
# -----------------------------------------------------
@router.delete("/{client_id}", summary="Delete an un-activated client and their data")
def remove_client(client_id: str, identity: Identity = Depends(get_current_identity)):
    admin = require_supabase_client()
    delete_client(admin, identity, client_id)
    return {"success": True}


# -----------------------------------------------------
# 5️⃣ SEND / RESEND INVITE
# -----------------------------------------------------
@router.post("/{client_id}/invite", summary="Send or resend the client invite")
def invite_client(client_id: str, identity: Identity = Depends(get_current_identity)):
    admin = require_supabase_client()
    result = invite_or_reinvite(admin, identity, client_id)

    return {
        "success": True,
        "invited": True,
        "emailSent": result.email_sent,
        "emailError": result.email_error,
    }
