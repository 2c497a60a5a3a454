# models/organization.py

from typing import Optional
from pydantic import BaseModel, Field


class OrganizationCreate(BaseModel):
    """Create organization model."""
    name: Optional[str] = Field(None, description="Organization name (required)")


class OrganizationRead(BaseModel):
    """Read organization model."""
    id: str
    name: str
    created_at: Optional[str] = None

    model_config = {"from_attributes": True}
