from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Any, Dict, List, Optional

from shipsheet.domain.models import CARRIERS, STATUSES, ISSUE_REASONS, OrderStatus

def _one_of(value: Optional[str], allowed: set, name: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if value not in allowed:
        raise ValueError(f"{name} must be one of {', '.join(sorted(allowed))}")
    return value

class OrderCreate(BaseModel):
    assigned_vendor_id: Optional[str] = None
    order_number: Optional[str] = None
    customer_name: Optional[str] = None
    shipping_address: Optional[str] = None
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    status: Optional[str] = OrderStatus.PRE_SHIPMENT.value
    issue_reason: Optional[str] = None
    ship_date: Optional[str] = None

    @field_validator("order_number")
    @classmethod
    def _order_number(cls, v):
        if v is None:
            return None
        return v.strip() or None

    @field_validator("carrier")
    @classmethod
    def _carrier(cls, v):
        return _one_of(v, CARRIERS, "carrier")

    @field_validator("status")
    @classmethod
    def _status(cls, v):
        return _one_of(v, STATUSES, "status") or OrderStatus.PRE_SHIPMENT.value

    @field_validator("issue_reason")
    @classmethod
    def _issue_reason(cls, v):
        return _one_of(v, ISSUE_REASONS, "issue_reason")

class AuditDescriptor(BaseModel):
    field: Optional[str] = None
    old_value: Any = Field(None, alias="oldValue")
    new_value: Any = Field(None, alias="newValue")

    class Config:
        populate_by_name = True

class OrderPatch(BaseModel):
    id: str
    changes: Dict[str, Any]
    audit: Optional[AuditDescriptor] = None

class OrderDelete(BaseModel):
    id: str

class OrderRead(BaseModel):
    id: str
    assigned_vendor_id: Optional[str] = None
    order_number: Optional[str] = None
    customer_name: Optional[str] = None
    shipping_address: Optional[str] = None
    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    status: str
    issue_reason: Optional[str] = None
    ship_date: Optional[str] = None
    updated_at: datetime
    created_by: Optional[str] = None
    class Config:
        from_attributes = True

class ImportedOrder(BaseModel):
    order_number: Optional[str] = None
    customer_name: Optional[str] = None
    shipping_address: Optional[str] = None
    # Raw storefront address, flattened when shipping_address is not given
    address: Optional[Dict[str, Any]] = None

class OrderImport(BaseModel):
    orders: List[ImportedOrder]

class ImportResult(BaseModel):
    imported: int
    skipped: int
    total: int

class OkResponse(BaseModel):
    ok: bool = True

class ProfileRead(BaseModel):
    id: str
    email: Optional[str] = None
    role: str
    vendor_name: Optional[str] = None
    is_active: bool
    class Config:
        from_attributes = True

class VendorRead(BaseModel):
    id: str
    email: Optional[str] = None
    vendor_name: Optional[str] = None
    class Config:
        from_attributes = True
