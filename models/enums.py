from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """Account role. Fixed at provisioning, stored in app_metadata and profiles."""

    homeowner = "homeowner"
    manager = "manager"
    superadmin = "superadmin"


# -----------------------------------------------------
# CLIENT STATUS (managed homeowner accounts)
# -----------------------------------------------------
class ClientStatus(BaseStrEnum):
    """
    pending   → profile exists, no invite recorded by the auth provider
    invited   → provider recorded invited_at (not stored on the profile)
    activated → profile.activated_at set; terminal
    """

    pending = "pending"
    invited = "invited"
    activated = "activated"


# -----------------------------------------------------
# MANAGER STATUS
# -----------------------------------------------------
class ManagerStatus(BaseStrEnum):
    pending = "pending"
    active = "active"
