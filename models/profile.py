# models/profile.py

from typing import Optional, Any, Dict
from pydantic import BaseModel, ConfigDict

from models.enums import Role


class Profile(BaseModel):
    """Row of the `profiles` table (1:1 with a Supabase Auth user)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    role: Role = Role.homeowner
    organization_id: Optional[str] = None
    managed_by: Optional[str] = None
    activated_at: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def is_managed(self) -> bool:
        return self.managed_by is not None

    @property
    def is_activated(self) -> bool:
        return self.activated_at is not None

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]) -> Optional["Profile"]:
        if not row:
            return None
        row = dict(row)
        if row.get("role") not in Role.list():
            row["role"] = Role.homeowner
        return cls.model_validate(row)
