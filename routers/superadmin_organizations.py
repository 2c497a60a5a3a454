# routers/superadmin_organizations.py

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dependencies.auth import get_current_identity
from core.access_control import authorize_superadmin_access, count_profiles
from core.account_lifecycle import delete_organization, get_identity, manager_status
from core.errors import NotFound, UpstreamFailure, ValidationFailed
from core.logging_config import logger
from core.supabase_helpers import require_supabase_client, select_rows
from models.enums import Role
from models.identity import Identity
from models.organization import OrganizationCreate, OrganizationRead
from models.profile import Profile


router = APIRouter(
    prefix="/superadmin/organizations",
    tags=["Superadmin Organizations"],
)


def _manager_ids(admin, org_id: str) -> list:
    rows = select_rows(admin, "profiles", "id", organization_id=org_id, role=str(Role.manager))
    return [row["id"] for row in rows]


def _client_count(admin, manager_ids: list) -> int:
    if not manager_ids:
        return 0
    try:
        result = (
            admin.table("profiles")
            .select("id", count="exact")
            .in_("managed_by", manager_ids)
            .execute()
        )
    except Exception as e:
        logger.error(f"Client count failed: {e}")
        raise UpstreamFailure("Failed to load organizations") from e
    return result.count or 0


# -----------------------------------------------------
# LIST ORGANIZATIONS
# -----------------------------------------------------
@router.get("", summary="List organizations with manager/client counts")
def list_organizations(identity: Identity = Depends(get_current_identity)):
    admin = require_supabase_client()
    authorize_superadmin_access(admin, identity)

    orgs = select_rows(admin, "organizations", "id, name, created_at", order="created_at", desc=True)

    organizations = []
    for org in orgs:
        manager_ids = _manager_ids(admin, org["id"])
        organizations.append({
            "id": org["id"],
            "name": org["name"],
            "managerCount": len(manager_ids),
            "clientCount": _client_count(admin, manager_ids),
            "createdAt": org.get("created_at"),
        })

    return {"organizations": organizations}


# -----------------------------------------------------
# CREATE ORGANIZATION
# -----------------------------------------------------
@router.post("", summary="Create an organization", status_code=201)
def create_organization(
    payload: OrganizationCreate,
    identity: Identity = Depends(get_current_identity),
):
    admin = require_supabase_client()
    authorize_superadmin_access(admin, identity)

    name = (payload.name or "").strip()
    if not name:
        raise ValidationFailed("Name is required")

    try:
        result = admin.table("organizations").insert({"name": name}).execute()
    except Exception as e:
        logger.error(f"Organization insert failed: {e}")
        raise UpstreamFailure("Failed to create organization") from e

    if not result.data:
        raise UpstreamFailure("Failed to create organization")

    row = result.data[0]
    organization = OrganizationRead.model_validate(row).model_dump()
    logger.info(f"Organization {row['id']} created by {identity.id}")

    return JSONResponse(status_code=201, content={"organization": organization})


# -----------------------------------------------------
# ORGANIZATION DETAIL
# -----------------------------------------------------
@router.get("/{org_id}", summary="Organization detail with managers")
def get_organization(org_id: str, identity: Identity = Depends(get_current_identity)):
    admin = require_supabase_client()
    authorize_superadmin_access(admin, identity)

    rows = select_rows(admin, "organizations", "id, name, created_at", id=org_id)
    if not rows:
        raise NotFound("Not found")
    org = rows[0]

    managers = []
    for row in select_rows(
        admin, "profiles", "id, role, activated_at, created_at",
        organization_id=org_id, role=str(Role.manager),
    ):
        profile = Profile.from_row(row)
        manager_identity = get_identity(admin, profile.id)
        managers.append({
            "id": profile.id,
            "email": (manager_identity.email if manager_identity else None) or "",
            "fullName": manager_identity.editable.full_name if manager_identity else None,
            "status": str(manager_status(profile)),
            "clientCount": count_profiles(admin, managed_by=profile.id),
            "createdAt": profile.created_at,
        })

    return {
        "organization": {"id": org["id"], "name": org["name"], "createdAt": org.get("created_at")},
        "managers": managers,
    }


# -----------------------------------------------------
# DELETE ORGANIZATION (only without managers)
# -----------------------------------------------------
@router.delete("/{org_id}", summary="Delete an organization with no managers")
def remove_organization(org_id: str, identity: Identity = Depends(get_current_identity)):
    admin = require_supabase_client()
    delete_organization(admin, identity, org_id)
    return {"success": True}
