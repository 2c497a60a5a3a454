# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

Every test gets a fresh in-memory Supabase (tests/fake_supabase.py)
in place of the real service-role client.
"""

import pytest
from fastapi.testclient import TestClient
from typing import Generator

from core.config import settings
from tests.fake_supabase import FakeSupabase


@pytest.fixture(autouse=True)
def configured_settings(monkeypatch):
    """Configured Supabase + cron secret; SMTP and Twilio off."""
    monkeypatch.setattr(settings, "SUPABASE_URL", "https://fake.supabase.co")
    monkeypatch.setattr(settings, "SUPABASE_SERVICE_ROLE_KEY", "service-role-key")
    monkeypatch.setattr(settings, "CRON_SECRET", "cron-secret")
    monkeypatch.setattr(settings, "SITE_URL", "https://app.homebot.test")
    monkeypatch.setattr(settings, "SMTP_HOST", None)
    monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", None)
    monkeypatch.setattr(settings, "ENABLE_SCHEDULER", False)
    return settings


@pytest.fixture(scope="function")
def fake_db(monkeypatch) -> FakeSupabase:
    db = FakeSupabase()
    monkeypatch.setattr("core.supabase_client.create_client", lambda url, key: db)
    return db


@pytest.fixture(scope="function")
def app(fake_db):
    """Create a test FastAPI application instance."""
    from main import create_app
    return create_app()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def outbox(monkeypatch):
    """Capture invite emails instead of talking to SMTP."""
    sent = []

    def fake_send_email(subject, body, to=None, recipients=None, html_body=None):
        sent.append({"subject": subject, "body": body, "to": to, "html": html_body})
        return True

    monkeypatch.setattr("core.account_lifecycle.send_email", fake_send_email)
    return sent


# -----------------------------------------------------
# Accounts
# -----------------------------------------------------
@pytest.fixture
def org_id(fake_db):
    return fake_db.add_org("Acme")


@pytest.fixture
def superadmin_id(fake_db):
    return fake_db.add_account("root@homebot.test", role="superadmin")


@pytest.fixture
def manager_id(fake_db, org_id):
    return fake_db.add_account(
        "m1@acme.test", role="manager", organization_id=org_id, full_name="Mia Manager"
    )


@pytest.fixture
def other_manager_id(fake_db, org_id):
    return fake_db.add_account("m2@acme.test", role="manager", organization_id=org_id)


@pytest.fixture
def client_id(fake_db, manager_id):
    return fake_db.add_account(
        "c1@home.test", managed_by=manager_id, property_name="12 Oak Lane"
    )
