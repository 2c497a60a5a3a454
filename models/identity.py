# models/identity.py

from typing import Optional, Any, Dict
from pydantic import BaseModel, ConfigDict

from models.enums import Role


class EditableMetadata(BaseModel):
    """
    Supabase `user_metadata`: the bag the account owner may write
    from the browser. Never consulted for authorization.
    """

    model_config = ConfigDict(extra="ignore")

    full_name: Optional[str] = None
    property_name: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Optional[Dict[str, Any]]) -> "EditableMetadata":
        return cls.model_validate(raw or {})


class SystemMetadata(BaseModel):
    """
    Supabase `app_metadata`, writable only with the service-role key.

    Frozen so code holding a caller's identity cannot mutate it in
    place; changes go through core.account_lifecycle, which writes the
    provider directly.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    role: Role = Role.homeowner
    managed_by: Optional[str] = None
    organization_id: Optional[str] = None
    activated: bool = False

    @classmethod
    def from_raw(cls, raw: Optional[Dict[str, Any]]) -> "SystemMetadata":
        raw = dict(raw or {})
        # Unknown role strings degrade to homeowner rather than failing auth
        if raw.get("role") not in Role.list():
            raw.pop("role", None)
        return cls.model_validate(raw)

    def to_provider(self) -> Dict[str, Any]:
        """Payload for auth.admin.create_user / update_user_by_id."""
        data: Dict[str, Any] = {"role": str(self.role)}
        if self.managed_by:
            data["managed_by"] = self.managed_by
        if self.organization_id:
            data["organization_id"] = self.organization_id
        if self.activated:
            data["activated"] = True
        return data


class Identity(BaseModel):
    """An authenticated Supabase Auth principal."""

    id: str
    email: Optional[str] = None
    editable: EditableMetadata = EditableMetadata()
    system: SystemMetadata = SystemMetadata()
    invited_at: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def is_managed(self) -> bool:
        return bool(self.system.managed_by)

    @classmethod
    def from_auth_user(cls, user: Any) -> "Identity":
        """Build from a gotrue `User` object returned by supabase-py."""
        invited_at = getattr(user, "invited_at", None)
        created_at = getattr(user, "created_at", None)
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            editable=EditableMetadata.from_raw(getattr(user, "user_metadata", None)),
            system=SystemMetadata.from_raw(getattr(user, "app_metadata", None)),
            invited_at=str(invited_at) if invited_at else None,
            created_at=str(created_at) if created_at else None,
        )
