# core/gatekeeper.py

"""
Per-request page gating for the frontend.

Reads only the caller's app_metadata, which is fine for navigation:
every data endpoint behind these pages re-checks the profile row via
core.access_control.
"""

from typing import Optional

from models.enums import Role
from models.identity import Identity


LOGIN_PATH = "/login"
ACTIVATE_PATH = "/activate"
AUTH_CALLBACK_PATH = "/auth/callback"

LANDING_PATHS = {
    Role.homeowner: "/",
    Role.manager: "/admin",
    Role.superadmin: "/superadmin",
}

PUBLIC_PREFIXES = ("/login", "/signup", AUTH_CALLBACK_PATH, ACTIVATE_PATH)
AUTH_PAGE_PREFIXES = ("/login", "/signup")


def landing_path(role: Role) -> str:
    return LANDING_PATHS.get(role, "/")


def _under(path: str, prefix: str) -> bool:
    return path.startswith(prefix)


def resolve_redirect(identity: Optional[Identity], path: str) -> Optional[str]:
    """
    Where to send the browser instead of `path`, or None to let it
    through.
    """
    if identity is None:
        if any(_under(path, p) for p in PUBLIC_PREFIXES):
            return None
        return LOGIN_PATH

    role = identity.system.role

    if any(_under(path, p) for p in AUTH_PAGE_PREFIXES):
        return landing_path(role)

    if _under(path, "/superadmin") and role != Role.superadmin:
        return "/"

    if _under(path, "/admin") and role not in (Role.manager, Role.superadmin):
        return "/"

    if (
        identity.is_managed
        and not identity.system.activated
        and not _under(path, ACTIVATE_PATH)
        and not _under(path, AUTH_CALLBACK_PATH)
    ):
        return ACTIVATE_PATH

    return None


def safe_next_path(next_path: Optional[str]) -> Optional[str]:
    """Accept only same-origin absolute paths ('/x', never '//host')."""
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return next_path
    return None
