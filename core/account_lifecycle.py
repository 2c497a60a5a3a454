# core/account_lifecycle.py

"""
Managed-account lifecycle: provision → (invite) → activate, plus the
account deletions that end it.

State of a managed profile:

    created    profile row exists, activated_at is null
    invited    the auth provider has recorded invited_at (inferred only)
    activated  activated_at set; terminal

The only transition this module writes is created/invited → activated,
and it does so with a conditional update on `activated_at IS NULL`.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional

from supabase import Client

from core.access_control import (
    AdminAccess,
    authorize_manager_access,
    authorize_manager_deletion,
    authorize_manager_role,
    authorize_org_deletion,
    authorize_superadmin_access,
    fetch_profile,
    release_activated_clients,
    require_managed_client,
)
from core.config import get_site_url
from core.email_templates import client_invite_email, manager_invite_email
from core.errors import (
    AlreadyActivated,
    Conflict,
    NotFound,
    NotManaged,
    Unauthenticated,
    UpstreamFailure,
    ValidationFailed,
    extract_supabase_error,
    upstream_error,
)
from core.logging_config import logger
from core.notifications import send_email
from models.client import HomeAssetSeed, InventoryItemSeed
from models.enums import ClientStatus, ManagerStatus, Role
from models.identity import EditableMetadata, Identity, SystemMetadata
from models.profile import Profile


ACTIVATE_PATH = "/activate"

# Children first: the profile and identity go last
CLIENT_CHILD_TABLES = ("inventory_items", "home_assets", "services")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if not email:
        raise ValidationFailed("Email is required")
    return email


def clean_text(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def invite_redirect_url() -> str:
    return f"{get_site_url()}/auth/callback?next={ACTIVATE_PATH}"


# ============================================================
# Identity provider reads
# ============================================================
def _is_missing_user(error: Exception) -> bool:
    # GoTrue answers an unknown id with 404 "User not found"
    if getattr(error, "status", None) == 404:
        return True
    return "user not found" in extract_supabase_error(error).lower()


def get_identity(admin: Client, user_id: str) -> Optional[Identity]:
    """
    Look up an auth user; None if the provider does not know the id.
    Any other provider failure raises UpstreamFailure.
    """
    try:
        resp = admin.auth.admin.get_user_by_id(user_id)
    except Exception as e:
        if _is_missing_user(e):
            logger.warning(f"Auth user {user_id} not found")
            return None
        raise upstream_error(e, "Auth user lookup") from e

    user = getattr(resp, "user", None)
    if user is None:
        return None
    return Identity.from_auth_user(user)


def client_status(profile: Optional[Profile], identity: Optional[Identity]) -> ClientStatus:
    if profile is not None and profile.is_activated:
        return ClientStatus.activated
    if identity is not None and identity.invited_at:
        return ClientStatus.invited
    return ClientStatus.pending


def manager_status(profile: Profile) -> ManagerStatus:
    return ManagerStatus.active if profile.is_activated else ManagerStatus.pending


# ============================================================
# PROVISION
# ============================================================
@dataclass
class ProvisionedAccount:
    id: str
    email: str
    role: Role
    full_name: Optional[str] = None
    property_name: Optional[str] = None
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None
    managed_by: Optional[str] = None


def _get_organization(admin: Client, organization_id: str) -> Optional[dict]:
    try:
        rows = (
            admin.table("organizations")
            .select("id, name")
            .eq("id", organization_id)
            .limit(1)
            .execute()
        ).data
    except Exception as e:
        raise upstream_error(e, "Organization lookup") from e
    return rows[0] if rows else None


def provision(
    admin: Client,
    caller: Optional[Identity],
    email: Optional[str],
    role: Role,
    full_name: Optional[str] = None,
    property_name: Optional[str] = None,
    organization_id: Optional[str] = None,
) -> ProvisionedAccount:
    """
    Create an auth user and its profile row as one unit.

    Managers (and superadmins) may create homeowners, who are then
    managed by the caller. Only superadmins may create managers, who
    must belong to an existing organization. If the profile write
    fails the auth user is deleted again.
    """
    if role == Role.manager:
        access = authorize_superadmin_access(admin, caller)
    elif role == Role.homeowner:
        access = authorize_manager_role(admin, caller)
    else:
        raise ValidationFailed(f"Cannot provision role: {role}")

    email = normalize_email(email)
    full_name = clean_text(full_name)
    property_name = clean_text(property_name)

    org = None
    if role == Role.manager:
        if not organization_id:
            raise ValidationFailed("Organization is required")
        org = _get_organization(admin, organization_id)
        if org is None:
            raise NotFound("Organization not found")

    managed_by = access.caller.id if role == Role.homeowner else None
    system = SystemMetadata(
        role=role,
        managed_by=managed_by,
        organization_id=organization_id if role == Role.manager else None,
    )
    editable = EditableMetadata(full_name=full_name, property_name=property_name)

    # Step 1: auth user (role lives in app_metadata, which users cannot write)
    try:
        created = admin.auth.admin.create_user({
            "email": email,
            "email_confirm": False,
            "user_metadata": editable.model_dump(exclude_none=True),
            "app_metadata": system.to_provider(),
        })
    except Exception as e:
        raise upstream_error(e, "Auth user creation") from e

    new_id = str(created.user.id)

    # Step 2: profile row; roll back step 1 on failure
    profile_row = {
        "id": new_id,
        "role": str(role),
        "managed_by": managed_by,
        "organization_id": system.organization_id,
    }
    try:
        result = admin.table("profiles").upsert(profile_row, on_conflict="id").execute()
        if not result.data:
            raise RuntimeError("profile upsert returned no rows")
    except Exception as e:
        logger.error(f"Profile creation failed for {email}, rolling back auth user {new_id}: {e}")
        _rollback_identity(admin, new_id)
        raise UpstreamFailure("Failed to create profile") from e

    logger.info(f"Provisioned {role} {new_id} ({email}) by {access.caller.id}")

    return ProvisionedAccount(
        id=new_id,
        email=email,
        role=role,
        full_name=full_name,
        property_name=property_name,
        organization_id=system.organization_id,
        organization_name=org["name"] if org else None,
        managed_by=managed_by,
    )


def _rollback_identity(admin: Client, user_id: str):
    try:
        admin.auth.admin.delete_user(user_id)
    except Exception as e:
        # Orphaned auth user: needs manual cleanup
        logger.error(f"Rollback failed, orphaned auth user {user_id}: {e}", exc_info=True)


def preload_client_data(
    admin: Client,
    client_id: str,
    home_assets: List[HomeAssetSeed],
    inventory_items: List[InventoryItemSeed],
) -> dict:
    """Insert the manager-supplied assets and inventory for a new client."""
    assets_created = 0
    inventory_created = 0

    if home_assets:
        try:
            inserted = admin.table("home_assets").insert(
                [a.to_row(client_id) for a in home_assets]
            ).execute()
        except Exception as e:
            raise upstream_error(e, "Home asset pre-load") from e
        assets_created = len(inserted.data or [])

    if inventory_items:
        today = date.today().isoformat()
        try:
            inserted = admin.table("inventory_items").insert(
                [i.to_row(client_id, today) for i in inventory_items]
            ).execute()
        except Exception as e:
            raise upstream_error(e, "Inventory pre-load") from e
        inventory_created = len(inserted.data or [])

    return {"assetsCreated": assets_created, "inventoryCreated": inventory_created}


# ============================================================
# ACTIVATE
# ============================================================
@dataclass
class ActivationResult:
    profile_id: str
    activated_at: str
    identity_synced: bool = True


def activate(admin: Client, identity: Optional[Identity]) -> ActivationResult:
    """
    Hand a managed account over to its owner.

    Exactly one concurrent caller wins: the write is conditional on
    `activated_at IS NULL`, and a write that matches no row means
    someone else already activated.
    """
    if identity is None:
        raise Unauthenticated()

    profile = fetch_profile(admin, identity.id)
    if profile is None or not profile.is_managed:
        raise NotManaged()

    if profile.is_activated:
        raise AlreadyActivated()

    activated_at = utc_now_iso()
    try:
        updated = (
            admin.table("profiles")
            .update({"activated_at": activated_at})
            .eq("id", identity.id)
            .is_("activated_at", "null")
            .execute()
        )
    except Exception as e:
        raise upstream_error(e, "Activation") from e

    if not updated.data:
        logger.info(f"Activation race lost for {identity.id}")
        raise AlreadyActivated()

    logger.info(f"Account {identity.id} activated")

    # Denormalized flag read by the edge gatekeeper. The profile is the
    # source of truth; a failure here is logged, not rolled back.
    synced = True
    try:
        admin.auth.admin.update_user_by_id(
            identity.id,
            {"app_metadata": {"activated": True}},
        )
    except Exception as e:
        synced = False
        logger.error(
            f"Activated profile {identity.id} but app_metadata.activated was not written: {e}"
        )

    return ActivationResult(profile_id=identity.id, activated_at=activated_at, identity_synced=synced)


# ============================================================
# INVITE / RE-INVITE
# ============================================================
@dataclass
class InviteResult:
    client_id: str
    email: str
    action_link: str
    email_sent: bool = False
    email_error: Optional[str] = None


def _generate_invite_link(admin: Client, email: str) -> str:
    try:
        link = admin.auth.admin.generate_link({
            "type": "invite",
            "email": email,
            "options": {"redirect_to": invite_redirect_url()},
        })
    except Exception as e:
        raise upstream_error(e, "Invite link generation") from e

    action_link = getattr(getattr(link, "properties", None), "action_link", None)
    if not action_link:
        raise UpstreamFailure("No action_link generated")
    return action_link


def _deliver(email: str, subject: str, body: str, html_body: str):
    """Returns (sent, error). Delivery problems never fail the request."""
    try:
        sent = send_email(subject=subject, body=body, to=email, html_body=html_body)
    except Exception as e:
        logger.error(f"Invite email to {email} failed: {e}")
        return False, str(e)
    if not sent:
        return False, "Email not configured"
    return True, None


def invite_or_reinvite(admin: Client, caller: Optional[Identity], target_id: str) -> InviteResult:
    """
    (Re)send the invite for an un-activated managed client. Safe to
    repeat; the provider replaces the previous link.
    """
    access = authorize_manager_access(admin, caller, target_id, require_unactivated=True)

    # Only a superadmin can get here with a missing, non-client or activated target
    target = require_managed_client(access)
    if target.is_activated:
        raise Conflict("Client already activated")

    client_identity = get_identity(admin, target_id)
    if client_identity is None or not client_identity.email:
        raise ValidationFailed("Client has no email")

    action_link = _generate_invite_link(admin, client_identity.email)

    subject, body, html_body = client_invite_email(
        access.caller.editable.full_name,
        client_identity.editable.property_name,
        action_link,
    )
    sent, error = _deliver(client_identity.email, subject, body, html_body)

    logger.info(f"Invite issued for client {target_id} by {access.caller.id} (email sent: {sent})")

    return InviteResult(
        client_id=target_id,
        email=client_identity.email,
        action_link=action_link,
        email_sent=sent,
        email_error=error,
    )


def invite_manager(admin: Client, account: ProvisionedAccount) -> InviteResult:
    """Invite a freshly provisioned manager. Email failures are reported, not raised."""
    action_link = _generate_invite_link(admin, account.email)
    subject, body, html_body = manager_invite_email(account.organization_name or "", action_link)
    sent, error = _deliver(account.email, subject, body, html_body)

    return InviteResult(
        client_id=account.id,
        email=account.email,
        action_link=action_link,
        email_sent=sent,
        email_error=error,
    )


# ============================================================
# DELETIONS
# ============================================================
def _delete_rows(admin: Client, table: str, column: str, value: str):
    try:
        admin.table(table).delete().eq(column, value).execute()
    except Exception as e:
        raise upstream_error(e, f"Delete from {table}") from e


def _delete_identity(admin: Client, user_id: str):
    try:
        admin.auth.admin.delete_user(user_id)
    except Exception as e:
        raise upstream_error(e, "Auth user deletion") from e


def delete_client(admin: Client, caller: Optional[Identity], client_id: str) -> AdminAccess:
    """
    Delete an un-activated client and everything they own.

    The record store has no multi-table transaction over this API, so
    the steps run children first and stop at the first failure; a
    partial delete surfaces as UpstreamFailure.
    """
    access = authorize_manager_access(admin, caller, client_id, require_unactivated=True)
    require_managed_client(access)

    for table in CLIENT_CHILD_TABLES:
        _delete_rows(admin, table, "user_id", client_id)
    _delete_rows(admin, "profiles", "id", client_id)
    _delete_identity(admin, client_id)

    logger.info(f"Deleted client {client_id} (by {access.caller.id})")
    return access


def delete_manager(admin: Client, caller: Optional[Identity], manager_id: str) -> int:
    """
    Delete a manager once no un-activated clients remain. Activated
    clients are released first. Returns how many were released.
    """
    access = authorize_superadmin_access(admin, caller)
    authorize_manager_deletion(admin, manager_id)

    released = release_activated_clients(admin, manager_id)
    _delete_rows(admin, "profiles", "id", manager_id)
    _delete_identity(admin, manager_id)

    logger.info(f"Deleted manager {manager_id} (by {access.caller.id}), released {released} client(s)")
    return released


def delete_organization(admin: Client, caller: Optional[Identity], org_id: str):
    access = authorize_superadmin_access(admin, caller)
    authorize_org_deletion(admin, org_id)

    try:
        admin.table("organizations").delete().eq("id", org_id).execute()
    except Exception as e:
        raise upstream_error(e, "Organization deletion") from e

    logger.info(f"Deleted organization {org_id} (by {access.caller.id})")
