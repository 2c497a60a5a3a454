# core/access_control.py

"""
Role and ownership checks for the admin and superadmin surfaces.

Every function here re-reads the `profiles` table through the
service-role client on each call. Roles are never taken from the
caller's token claims or from a previous request.
"""

from dataclasses import dataclass
from typing import Optional

from supabase import Client

from core.errors import Conflict, Forbidden, NotFound, Unauthenticated, upstream_error
from core.logging_config import logger
from core.supabase_helpers import count_rows
from models.enums import Role
from models.identity import Identity
from models.profile import Profile


PROFILE_COLUMNS = "id, role, organization_id, managed_by, activated_at, created_at"


# ============================================================
# Scoped admin handle
# ============================================================
@dataclass
class AdminAccess:
    """
    Returned once a check passes. `admin` is the privileged client the
    route may now use; `target` is the profile the check was about
    (None for role-only checks, or for a superadmin whose target is
    missing).
    """

    caller: Identity
    role: Role
    admin: Client
    target: Optional[Profile] = None

    @property
    def is_superadmin(self) -> bool:
        return self.role == Role.superadmin


# ============================================================
# Record store reads
# ============================================================
def fetch_profile(admin: Client, user_id: str, managed_by: Optional[str] = None) -> Optional[Profile]:
    """Fresh read of one profile row; optionally scoped to a manager."""
    try:
        query = admin.table("profiles").select(PROFILE_COLUMNS).eq("id", user_id)
        if managed_by is not None:
            query = query.eq("managed_by", managed_by)
        rows = query.limit(1).execute().data
    except Exception as e:
        raise upstream_error(e, "Profile lookup") from e

    return Profile.from_row(rows[0] if rows else None)


def count_profiles(admin: Client, **filters) -> int:
    return count_rows(admin, "profiles", **filters)


# ============================================================
# Role resolution
# ============================================================
def resolve_caller_role(admin: Client, caller: Identity) -> Role:
    """
    The caller's role as stored on their profile row.

    app_metadata.role on the token is ignored here: a stale or forged
    session must not be able to raise privileges. No profile row means
    homeowner.
    """
    profile = fetch_profile(admin, caller.id)
    if profile is None:
        return Role.homeowner
    return profile.role


def _require_caller(caller: Optional[Identity]) -> Identity:
    if caller is None:
        raise Unauthenticated()
    return caller


def _deny(caller: Identity, reason: str):
    logger.warning(f"Access denied for {caller.id}: {reason}")
    raise Forbidden()


# ============================================================
# Superadmin
# ============================================================
def authorize_superadmin_access(admin: Client, caller: Optional[Identity]) -> AdminAccess:
    caller = _require_caller(caller)
    role = resolve_caller_role(admin, caller)

    if role != Role.superadmin:
        _deny(caller, f"superadmin required (role={role})")

    return AdminAccess(caller=caller, role=role, admin=admin)


# ============================================================
# Manager (or superadmin)
# ============================================================
def authorize_manager_role(admin: Client, caller: Optional[Identity]) -> AdminAccess:
    """Role-only gate for the /admin surface: manager or superadmin."""
    caller = _require_caller(caller)
    role = resolve_caller_role(admin, caller)

    if role not in (Role.manager, Role.superadmin):
        _deny(caller, f"manager required (role={role})")

    return AdminAccess(caller=caller, role=role, admin=admin)


def authorize_manager_access(
    admin: Client,
    caller: Optional[Identity],
    target_profile_id: str,
    require_unactivated: bool,
) -> AdminAccess:
    """
    May `caller` act on the managed account `target_profile_id`?

    - superadmin: always (target may be None if it does not exist)
    - manager: only for profiles they provisioned; with
      require_unactivated, only until the client activates
    - anyone else: never

    A missing target and a target owned by someone else are both
    Forbidden for managers.
    """
    caller = _require_caller(caller)
    role = resolve_caller_role(admin, caller)

    if role == Role.superadmin:
        target = fetch_profile(admin, target_profile_id)
        return AdminAccess(caller=caller, role=role, admin=admin, target=target)

    if role != Role.manager:
        _deny(caller, f"manager required (role={role})")

    target = fetch_profile(admin, target_profile_id, managed_by=caller.id)
    if target is None:
        _deny(caller, "target not managed by caller")

    if require_unactivated and target.is_activated:
        _deny(caller, "target already activated")

    return AdminAccess(caller=caller, role=role, admin=admin, target=target)


def require_managed_client(access: AdminAccess, message: str = "Client not found") -> Profile:
    """
    The client routes only act on managed homeowner profiles. A
    superadmin's target can be any profile, so managers and superadmins
    are refused here; managers go through authorize_manager_deletion.
    """
    target = access.target
    if target is None or target.role != Role.homeowner or not target.is_managed:
        raise NotFound(message)
    return target


# ============================================================
# Deletion guards
# ============================================================
def authorize_org_deletion(admin: Client, org_id: str) -> None:
    """An organization with manager profiles cannot be deleted."""
    manager_count = count_profiles(
        admin,
        organization_id=org_id,
        role=str(Role.manager),
    )

    if manager_count > 0:
        raise Conflict(
            f"Cannot delete: organization has {manager_count} manager(s). Remove them first."
        )


def authorize_manager_deletion(admin: Client, manager_id: str) -> Profile:
    """
    A manager with un-activated clients cannot be deleted. Returns the
    manager's profile on success.

    The count and the later delete are separate round trips: a client
    provisioned in between is not seen here.
    """
    manager = fetch_profile(admin, manager_id)
    if manager is None or manager.role != Role.manager:
        raise NotFound("Manager not found")

    pending = count_profiles(
        admin,
        managed_by=manager_id,
        activated_at=None,
    )

    if pending > 0:
        raise Conflict(
            f"Cannot delete: manager has {pending} un-activated client(s). "
            "Delete or reassign them first."
        )

    return manager


def release_activated_clients(admin: Client, manager_id: str) -> int:
    """
    Null `managed_by` on the manager's activated clients so they
    become self-owned. Must run before the manager is deleted.
    """
    try:
        result = (
            admin.table("profiles")
            .update({"managed_by": None})
            .eq("managed_by", manager_id)
            .not_.is_("activated_at", "null")
            .execute()
        )
    except Exception as e:
        raise upstream_error(e, "Release activated clients") from e

    released = len(result.data or [])
    logger.info(f"Released {released} activated client(s) from manager {manager_id}")
    return released
