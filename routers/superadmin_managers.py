# routers/superadmin_managers.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from dependencies.auth import get_current_identity
from core.access_control import authorize_superadmin_access, count_profiles
from core.account_lifecycle import (
    delete_manager,
    get_identity,
    invite_manager,
    manager_status,
    provision,
)
from core.errors import UpstreamFailure
from core.logging_config import logger
from core.supabase_helpers import require_supabase_client, select_rows
from models.enums import Role
from models.identity import Identity
from models.manager import ManagerCreate
from models.profile import Profile


router = APIRouter(
    prefix="/superadmin/managers",
    tags=["Superadmin Managers"],
)


# -----------------------------------------------------
# LIST MANAGERS
# -----------------------------------------------------
@router.get("", summary="List managers, optionally filtered by organization")
def list_managers(
    org: Optional[str] = Query(None, description="Organization id"),
    identity: Identity = Depends(get_current_identity),
):
    admin = require_supabase_client()
    authorize_superadmin_access(admin, identity)

    filters = {"role": str(Role.manager)}
    if org:
        filters["organization_id"] = org

    rows = select_rows(
        admin, "profiles", "id, role, organization_id, activated_at, created_at",
        order="created_at", desc=True, **filters,
    )

    org_names = {}
    managers = []
    for row in rows:
        profile = Profile.from_row(row)
        manager_identity = get_identity(admin, profile.id)

        org_id = profile.organization_id
        if org_id and org_id not in org_names:
            found = select_rows(admin, "organizations", "name", id=org_id)
            org_names[org_id] = found[0]["name"] if found else ""

        managers.append({
            "id": profile.id,
            "email": (manager_identity.email if manager_identity else None) or "",
            "fullName": manager_identity.editable.full_name if manager_identity else None,
            "organizationId": org_id,
            "organizationName": org_names.get(org_id, ""),
            "clientCount": count_profiles(admin, managed_by=profile.id),
            "status": str(manager_status(profile)),
            "createdAt": profile.created_at,
        })

    return {"managers": managers}


# -----------------------------------------------------
# CREATE MANAGER (+ invite)
# -----------------------------------------------------
@router.post("", summary="Provision a manager account and send the invite", status_code=201)
def create_manager(
    payload: ManagerCreate,
    identity: Identity = Depends(get_current_identity),
):
    admin = require_supabase_client()

    account = provision(
        admin,
        identity,
        email=payload.email,
        role=Role.manager,
        full_name=payload.full_name,
        organization_id=payload.organization_id,
    )

    email_sent = False
    email_error = None
    try:
        invite = invite_manager(admin, account)
        email_sent, email_error = invite.email_sent, invite.email_error
    except UpstreamFailure as e:
        logger.error(f"Manager {account.id} created but invite failed: {e.message}")
        email_error = e.message

    return JSONResponse(
        status_code=201,
        content={
            "manager": {
                "id": account.id,
                "email": account.email,
                "fullName": account.full_name,
                "organizationId": account.organization_id,
                "organizationName": account.organization_name,
            },
            "emailSent": email_sent,
            "emailError": email_error,
        },
    )


# -----------------------------------------------------
# DELETE MANAGER
# -----------------------------------------------------
@router.delete("/{manager_id}", summary="Delete a manager with no un-activated clients")
def remove_manager(manager_id: str, identity: Identity = Depends(get_current_identity)):
    admin = require_supabase_client()
    released = delete_manager(admin, identity, manager_id)
    return {"success": True, "releasedClients": released}
