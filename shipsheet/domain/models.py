from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, DateTime
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
import uuid

class Base(DeclarativeBase):
    pass

class Carrier(str, Enum):
    DHL = "DHL"
    UPS = "UPS"
    FEDEX = "FedEx"
    USPS = "USPS"
    OTHER = "Other"

class OrderStatus(str, Enum):
    PRE_SHIPMENT = "pre_shipment"
    SHIPPED = "shipped"
    ISSUE = "issue"

class IssueReason(str, Enum):
    OUT_OF_STOCK = "Out of stock"
    ADDRESS_PROBLEM = "Address problem"
    SUPPLIER_DELAY = "Supplier delay"
    PAYMENT_MISMATCH = "Payment mismatch"
    OTHER = "Other"

class Role(str, Enum):
    ADMIN = "admin"
    VENDOR = "vendor"

CARRIERS = {c.value for c in Carrier}
STATUSES = {s.value for s in OrderStatus}
ISSUE_REASONS = {r.value for r in IssueReason}

def _new_id() -> str:
    return str(uuid.uuid4())

def utcnow() -> datetime:
    # Naive UTC so values compare the same way after a round trip through SQLite
    return datetime.now(timezone.utc).replace(tzinfo=None)

def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Server-assigned updated_at that never moves backwards for a row."""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now

class Profile(Base):
    __tablename__ = "profiles"
    # Subject id issued by the identity provider
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default=Role.VENDOR.value)
    vendor_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

class Order(Base):
    __tablename__ = "orders"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    assigned_vendor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    order_number: Mapped[Optional[str]] = mapped_column(String(100), unique=True, index=True, nullable=True)
    customer_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    shipping_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    carrier: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    tracking_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tracking_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(30), default=OrderStatus.PRE_SHIPMENT.value)
    issue_reason: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ship_date: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    def to_row(self) -> dict:
        return {field: getattr(self, field) for field in ORDER_FIELDS}

class OrderUpdate(Base):
    """One entry of the append-only audit trail."""
    __tablename__ = "order_updates"
    id: Mapped[int] = mapped_column(primary_key=True)
    # No FK: history outlives the order it describes
    order_id: Mapped[str] = mapped_column(String(36), index=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    field: Mapped[str] = mapped_column(String(50))
    old_value: Mapped[str] = mapped_column(Text, default="")
    new_value: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

ORDER_FIELDS = (
    "id",
    "assigned_vendor_id",
    "order_number",
    "customer_name",
    "shipping_address",
    "carrier",
    "tracking_number",
    "tracking_url",
    "status",
    "issue_reason",
    "ship_date",
    "updated_at",
    "created_by",
)

# Columns a change-set may name at all; the rest are server-owned
EDITABLE_FIELDS = frozenset({
    "assigned_vendor_id",
    "order_number",
    "customer_name",
    "shipping_address",
    "carrier",
    "tracking_number",
    "tracking_url",
    "status",
    "issue_reason",
    "ship_date",
})

ROLE_ALLOWED_FIELDS = {
    Role.ADMIN.value: EDITABLE_FIELDS,
    Role.VENDOR.value: frozenset({
        "order_number",
        "carrier",
        "tracking_number",
        "tracking_url",
        "status",
        "issue_reason",
    }),
}
