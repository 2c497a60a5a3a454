# models/client.py

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def blank_to_none(value):
    """Strip string input; empty means not given."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class HomeAssetSeed(BaseModel):
    """A home asset pre-loaded into a managed client's account."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    category: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = Field(None, alias="serialNumber")
    purchase_date: Optional[str] = Field(None, alias="purchaseDate")
    warranty_expiration: Optional[str] = Field(None, alias="warrantyExpiration")
    location: Optional[str] = None
    notes: Optional[str] = None
    product_url: Optional[str] = Field(None, alias="productUrl")

    def to_row(self, user_id: str) -> dict:
        return {
            "user_id": user_id,
            "name": self.name or "",
            "category": self.category or "",
            "make": self.make or "",
            "model": self.model or "",
            "serial_number": self.serial_number or "",
            "purchase_date": self.purchase_date or None,
            "warranty_expiration": self.warranty_expiration or None,
            "location": self.location or "",
            "notes": self.notes or "",
            "product_url": self.product_url or "",
        }


class InventoryItemSeed(BaseModel):
    """A consumable pre-loaded into a managed client's account."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    description: Optional[str] = None
    frequency_months: Optional[int] = Field(None, alias="frequencyMonths")
    next_reminder_date: Optional[str] = Field(None, alias="nextReminderDate")
    purchase_url: Optional[str] = Field(None, alias="purchaseUrl")
    thumbnail_url: Optional[str] = Field(None, alias="thumbnailUrl")
    notes: Optional[str] = None
    cost: Optional[float] = None
    home_asset_id: Optional[str] = Field(None, alias="homeAssetId")

    def to_row(self, user_id: str, today: str) -> dict:
        return {
            "user_id": user_id,
            "name": self.name or "",
            "description": self.description or "",
            "frequency_months": self.frequency_months or 6,
            "next_reminder_date": self.next_reminder_date or today,
            "purchase_url": self.purchase_url or "",
            "thumbnail_url": self.thumbnail_url or "",
            "notes": self.notes or "",
            "cost": self.cost or None,
            "home_asset_id": self.home_asset_id or None,
        }


class ClientCreate(BaseModel):
    """
    Payload used by managers when provisioning a homeowner account.
    A blank email becomes None so the lifecycle reports
    "Email is required"; a malformed one fails validation.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, alias="fullName")
    property_name: Optional[str] = Field(None, alias="propertyName")
    home_assets: List[HomeAssetSeed] = Field(default_factory=list, alias="homeAssets")
    inventory_items: List[InventoryItemSeed] = Field(default_factory=list, alias="inventoryItems")

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, v):
        return blank_to_none(v)
