# models/manager.py

from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from models.client import blank_to_none


class ManagerCreate(BaseModel):
    """Payload used by superadmins when provisioning a manager account."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, alias="fullName")
    organization_id: Optional[str] = Field(None, alias="organizationId")

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, v):
        return blank_to_none(v)
