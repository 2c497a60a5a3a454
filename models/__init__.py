# -------------------------
# Enums
# -------------------------
from .enums import (
    Role,
    ClientStatus,
    ManagerStatus,
)

# -------------------------
# Identity (Supabase Auth) + Profile
# -------------------------
from .identity import (
    EditableMetadata,
    SystemMetadata,
    Identity,
)
from .profile import Profile

# -------------------------
# Request payloads
# -------------------------
from .organization import OrganizationCreate, OrganizationRead
from .client import ClientCreate, HomeAssetSeed, InventoryItemSeed
from .manager import ManagerCreate

__all__ = [
    # enums
    "Role",
    "ClientStatus",
    "ManagerStatus",

    # identity
    "EditableMetadata",
    "SystemMetadata",
    "Identity",
    "Profile",

    # organizations
    "OrganizationCreate",
    "OrganizationRead",

    # clients
    "ClientCreate",
    "HomeAssetSeed",
    "InventoryItemSeed",

    # managers
    "ManagerCreate",
]
