# tests/test_account_lifecycle.py

"""
Tests for provisioning, activation, invites and account deletion.
"""

import threading

import pytest

from core.access_control import authorize_manager_access
from core.account_lifecycle import (
    activate,
    client_status,
    delete_client,
    delete_manager,
    delete_organization,
    get_identity,
    invite_or_reinvite,
    preload_client_data,
    provision,
)
from core.errors import (
    AlreadyActivated,
    Conflict,
    Forbidden,
    NotFound,
    NotManaged,
    UpstreamFailure,
    ValidationFailed,
)
from models.client import HomeAssetSeed, InventoryItemSeed
from models.enums import ClientStatus, Role
from models.profile import Profile
from tests.fake_supabase import FakeAuthError, identity_for


# -----------------------------------------------------
# Provision
# -----------------------------------------------------
def test_manager_provisions_managed_homeowner(fake_db, manager_id):
    account = provision(
        fake_db,
        identity_for(fake_db, manager_id),
        email="  New.Owner@Home.test ",
        role=Role.homeowner,
        full_name="New Owner",
        property_name="1 Elm St",
    )

    assert account.email == "new.owner@home.test"
    assert account.managed_by == manager_id

    profile = fake_db.profile(account.id)
    assert profile["role"] == "homeowner"
    assert profile["managed_by"] == manager_id
    assert profile["activated_at"] is None

    user = fake_db.users[account.id]
    assert user["app_metadata"] == {"role": "homeowner", "managed_by": manager_id}
    assert user["user_metadata"] == {"full_name": "New Owner", "property_name": "1 Elm St"}


def test_profile_failure_rolls_back_identity(fake_db, manager_id):
    fake_db.failures[("profiles", "upsert")] = RuntimeError("insert violates constraint")
    users_before = set(fake_db.users)

    with pytest.raises(UpstreamFailure) as exc:
        provision(fake_db, identity_for(fake_db, manager_id), "x@home.test", Role.homeowner)

    assert exc.value.message == "Failed to create profile"
    assert set(fake_db.users) == users_before


def test_duplicate_email_is_user_facing(fake_db, manager_id, client_id):
    with pytest.raises(UpstreamFailure) as exc:
        provision(fake_db, identity_for(fake_db, manager_id), "c1@home.test", Role.homeowner)

    assert exc.value.status_code == 400
    assert "already been registered" in exc.value.message


def test_missing_email_rejected(fake_db, manager_id):
    with pytest.raises(ValidationFailed) as exc:
        provision(fake_db, identity_for(fake_db, manager_id), "   ", Role.homeowner)
    assert exc.value.message == "Email is required"


def test_homeowner_cannot_provision(fake_db, client_id):
    with pytest.raises(Forbidden):
        provision(fake_db, identity_for(fake_db, client_id), "y@home.test", Role.homeowner)


def test_only_superadmin_provisions_managers(fake_db, manager_id, org_id):
    with pytest.raises(Forbidden):
        provision(
            fake_db, identity_for(fake_db, manager_id), "m3@acme.test", Role.manager,
            organization_id=org_id,
        )


def test_superadmin_provisions_manager_into_org(fake_db, superadmin_id, org_id):
    account = provision(
        fake_db, identity_for(fake_db, superadmin_id), "m3@acme.test", Role.manager,
        full_name="Max", organization_id=org_id,
    )

    assert account.organization_name == "Acme"
    assert account.managed_by is None
    assert fake_db.profile(account.id)["organization_id"] == org_id


def test_manager_provision_requires_existing_org(fake_db, superadmin_id):
    caller = identity_for(fake_db, superadmin_id)
    with pytest.raises(ValidationFailed):
        provision(fake_db, caller, "m3@acme.test", Role.manager)
    with pytest.raises(NotFound):
        provision(fake_db, caller, "m3@acme.test", Role.manager, organization_id="nope")


def test_superadmin_role_cannot_be_provisioned(fake_db, superadmin_id):
    with pytest.raises(ValidationFailed):
        provision(fake_db, identity_for(fake_db, superadmin_id), "z@x.test", Role.superadmin)


def test_preload_inserts_assets_and_inventory(fake_db, client_id):
    result = preload_client_data(
        fake_db,
        client_id,
        [HomeAssetSeed(name="Furnace", category="HVAC"), HomeAssetSeed(name="Fridge")],
        [InventoryItemSeed(name="Furnace filter", frequencyMonths=3)],
    )

    assert result == {"assetsCreated": 2, "inventoryCreated": 1}
    item = fake_db.rows("inventory_items", user_id=client_id)[0]
    assert item["frequency_months"] == 3
    assert item["next_reminder_date"]


# -----------------------------------------------------
# Activate
# -----------------------------------------------------
def test_activate_sets_profile_and_flag(fake_db, client_id):
    result = activate(fake_db, identity_for(fake_db, client_id))

    assert fake_db.profile(client_id)["activated_at"] == result.activated_at
    assert fake_db.users[client_id]["app_metadata"]["activated"] is True
    # Other system metadata survives the flag write
    assert fake_db.users[client_id]["app_metadata"]["role"] == "homeowner"
    assert result.identity_synced


def test_activate_twice_is_already_activated(fake_db, client_id):
    identity = identity_for(fake_db, client_id)
    activate(fake_db, identity)

    with pytest.raises(AlreadyActivated):
        activate(fake_db, identity)


def test_activate_self_registered_is_not_managed(fake_db):
    owner = fake_db.add_account("solo@home.test")
    with pytest.raises(NotManaged):
        activate(fake_db, identity_for(fake_db, owner))


def test_concurrent_activation_has_one_winner(fake_db, client_id):
    identity = identity_for(fake_db, client_id)
    attempts = 12
    barrier = threading.Barrier(attempts)
    outcomes = []
    lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            activate(fake_db, identity)
            outcome = "ok"
        except AlreadyActivated:
            outcome = "already"
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("already") == attempts - 1
    writes = [c for c in fake_db.calls if c == ("profiles", "update")]
    assert len(writes) >= 1
    assert fake_db.profile(client_id)["activated_at"] is not None


def test_flag_write_failure_keeps_activation(fake_db, client_id):
    fake_db.auth_failures["update_user_by_id"] = RuntimeError("gotrue down")

    result = activate(fake_db, identity_for(fake_db, client_id))

    assert not result.identity_synced
    assert fake_db.profile(client_id)["activated_at"] is not None


# -----------------------------------------------------
# Invite
# -----------------------------------------------------
def test_invite_sends_link_and_marks_invited(fake_db, manager_id, client_id, outbox):
    result = invite_or_reinvite(fake_db, identity_for(fake_db, manager_id), client_id)

    assert result.email_sent
    assert outbox[0]["to"] == "c1@home.test"
    assert "Mia Manager" in outbox[0]["subject"]
    assert result.action_link in outbox[0]["body"]
    assert fake_db.links[0]["options"]["redirect_to"] == (
        "https://app.homebot.test/auth/callback?next=/activate"
    )

    profile = Profile.from_row(fake_db.profile(client_id))
    assert client_status(profile, get_identity(fake_db, client_id)) == ClientStatus.invited


def test_reinvite_is_repeatable(fake_db, manager_id, client_id, outbox):
    caller = identity_for(fake_db, manager_id)
    invite_or_reinvite(fake_db, caller, client_id)
    invite_or_reinvite(fake_db, caller, client_id)
    assert len(outbox) == 2


def test_invite_without_smtp_reports_error(fake_db, manager_id, client_id):
    result = invite_or_reinvite(fake_db, identity_for(fake_db, manager_id), client_id)

    assert not result.email_sent
    assert result.email_error == "Email not configured"


def test_superadmin_invite_activated_client_conflicts(fake_db, superadmin_id, manager_id, outbox):
    done = fake_db.add_account("d@home.test", managed_by=manager_id, activated=True)
    caller = identity_for(fake_db, superadmin_id)

    with pytest.raises(Conflict):
        invite_or_reinvite(fake_db, caller, done)
    with pytest.raises(NotFound):
        invite_or_reinvite(fake_db, caller, "no-such-id")
    with pytest.raises(NotFound):
        invite_or_reinvite(fake_db, caller, manager_id)
    assert outbox == []


def test_identity_lookup_missing_vs_outage(fake_db, client_id):
    assert get_identity(fake_db, "no-such-id") is None

    fake_db.auth_failures["get_user_by_id"] = FakeAuthError("connection reset")
    with pytest.raises(UpstreamFailure) as exc:
        get_identity(fake_db, client_id)
    assert exc.value.status_code == 500
    assert exc.value.message == "Auth user lookup failed"


def test_invite_lookup_outage_is_upstream(fake_db, manager_id, client_id, outbox):
    fake_db.auth_failures["get_user_by_id"] = FakeAuthError("connection reset")

    with pytest.raises(UpstreamFailure):
        invite_or_reinvite(fake_db, identity_for(fake_db, manager_id), client_id)
    assert outbox == []


# -----------------------------------------------------
# Deletions
# -----------------------------------------------------
def test_delete_client_cascades(fake_db, manager_id, client_id):
    fake_db.add_row("home_assets", user_id=client_id, name="Furnace")
    fake_db.add_row("inventory_items", user_id=client_id, name="Filter")
    fake_db.add_row("services", user_id=client_id, name="Gutter cleaning")
    keep = fake_db.add_row("home_assets", user_id=manager_id, name="Other")

    delete_client(fake_db, identity_for(fake_db, manager_id), client_id)

    assert fake_db.profile(client_id) is None
    assert client_id not in fake_db.users
    for table in ("home_assets", "inventory_items", "services"):
        assert fake_db.rows(table, user_id=client_id) == []
    assert fake_db.rows("home_assets", id=keep)


def test_delete_client_stops_at_first_failure(fake_db, manager_id, client_id):
    fake_db.failures[("home_assets", "delete")] = RuntimeError("timeout")

    with pytest.raises(UpstreamFailure):
        delete_client(fake_db, identity_for(fake_db, manager_id), client_id)

    assert fake_db.profile(client_id) is not None
    assert client_id in fake_db.users


def test_delete_activated_client_forbidden_for_manager(fake_db, manager_id):
    done = fake_db.add_account("d@home.test", managed_by=manager_id, activated=True)
    with pytest.raises(Forbidden):
        delete_client(fake_db, identity_for(fake_db, manager_id), done)


def test_superadmin_cannot_delete_non_client_accounts(fake_db, superadmin_id, manager_id, client_id):
    caller = identity_for(fake_db, superadmin_id)

    with pytest.raises(NotFound):
        delete_client(fake_db, caller, manager_id)
    with pytest.raises(NotFound):
        delete_client(fake_db, caller, superadmin_id)

    assert fake_db.profile(manager_id)["role"] == "manager"
    assert manager_id in fake_db.users
    assert superadmin_id in fake_db.users
    assert fake_db.profile(client_id)["managed_by"] == manager_id


def test_delete_organization(fake_db, superadmin_id, org_id, manager_id):
    caller = identity_for(fake_db, superadmin_id)
    with pytest.raises(Conflict):
        delete_organization(fake_db, caller, org_id)

    empty = fake_db.add_org("Empty Co")
    delete_organization(fake_db, caller, empty)
    assert fake_db.rows("organizations", id=empty) == []


# -----------------------------------------------------
# End-to-end scenarios
# -----------------------------------------------------
def test_provision_then_activate_changes_manager_access(fake_db, manager_id):
    manager = identity_for(fake_db, manager_id)
    account = provision(fake_db, manager, "c@home.test", Role.homeowner)

    authorize_manager_access(fake_db, manager, account.id, require_unactivated=True)

    activate(fake_db, identity_for(fake_db, account.id))

    with pytest.raises(Forbidden):
        authorize_manager_access(fake_db, manager, account.id, require_unactivated=True)
    authorize_manager_access(fake_db, manager, account.id, require_unactivated=False)


def test_manager_deletion_after_client_activates(fake_db, superadmin_id, manager_id, client_id):
    caller = identity_for(fake_db, superadmin_id)

    with pytest.raises(Conflict) as exc:
        delete_manager(fake_db, caller, manager_id)
    assert "1 un-activated client(s)" in exc.value.message

    activate(fake_db, identity_for(fake_db, client_id))

    assert delete_manager(fake_db, caller, manager_id) == 1
    assert fake_db.profile(client_id)["managed_by"] is None
    assert fake_db.profile(manager_id) is None
    assert manager_id not in fake_db.users
