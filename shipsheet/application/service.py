from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, List, Optional

from shared.core import get_logger
from shipsheet.domain.models import (
    Order,
    OrderUpdate,
    Profile,
    Role,
    Carrier,
    OrderStatus,
    CARRIERS,
    STATUSES,
    ISSUE_REASONS,
    ROLE_ALLOWED_FIELDS,
    next_timestamp,
    utcnow,
)
from shipsheet.domain.rules import validate, VIOLATION_MESSAGES, is_blank
from shipsheet.domain.tracking import build_tracking_url
from .errors import ValidationViolation, AuthorizationDenied, NotFound, PersistenceFailure
from .schemas import OrderCreate, OrderImport, AuditDescriptor, ImportResult

logger = get_logger(__name__)

_ENUM_FIELDS = {
    "carrier": CARRIERS,
    "status": STATUSES,
    "issue_reason": ISSUE_REASONS,
}

def _stringify(value: Any) -> str:
    return "" if value is None else str(value)

class OrderService:
    def __init__(self, db: Session, actor: Profile):
        self.db = db
        self.actor = actor

    @property
    def is_admin(self) -> bool:
        return self.actor.role == Role.ADMIN.value

    def _require_admin(self):
        if not self.is_admin:
            logger.warning(
                "Admin-only operation refused",
                extra={'extra_fields': {'actor': self.actor.id, 'role': self.actor.role}}
            )
            raise AuthorizationDenied("forbidden")

    def _get_or_404(self, order_id: str) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFound("order not found")
        return order

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Order write failed", exc_info=True)
            raise PersistenceFailure(str(e))

    def _check_unique_order_number(self, order_number: Optional[str], exclude_id: Optional[str] = None):
        if is_blank(order_number):
            return
        query = self.db.query(Order.id).filter(Order.order_number == order_number)
        if exclude_id is not None:
            query = query.filter(Order.id != exclude_id)
        if query.first() is not None:
            raise ValidationViolation("order number already exists")

    def list(self) -> List[Order]:
        query = self.db.query(Order)
        if not self.is_admin:
            query = query.filter(Order.assigned_vendor_id == self.actor.id)
        return query.order_by(Order.updated_at.desc(), Order.id.desc()).all()

    def create(self, data: OrderCreate) -> Order:
        self._require_admin()

        tracking_url = build_tracking_url(data.carrier, data.tracking_number)
        if tracking_url is None and data.carrier == Carrier.OTHER.value:
            tracking_url = data.tracking_url

        order = Order(
            status=data.status,
            created_by=self.actor.id,
            assigned_vendor_id=data.assigned_vendor_id,
            order_number=data.order_number,
            customer_name=data.customer_name,
            shipping_address=data.shipping_address,
            carrier=data.carrier,
            tracking_number=data.tracking_number,
            tracking_url=tracking_url,
            issue_reason=data.issue_reason,
            ship_date=data.ship_date,
            updated_at=utcnow(),
        )
        violation = validate(order.to_row())
        if violation is not None:
            raise ValidationViolation(VIOLATION_MESSAGES[violation])
        self._check_unique_order_number(data.order_number)

        self.db.add(order)
        self._commit()
        self.db.refresh(order)
        logger.info(
            "Order created",
            extra={'extra_fields': {'order_id': order.id, 'actor': self.actor.id}}
        )
        return order

    def _scope_changes(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Drop what the caller's role may not touch and check enum values."""
        allowed = ROLE_ALLOWED_FIELDS.get(self.actor.role, frozenset())
        scoped = {}
        for field, value in changes.items():
            if field not in allowed:
                if self.is_admin:
                    raise ValidationViolation(f"field {field} cannot be edited")
                # Vendors editing outside their columns are ignored, not refused
                continue
            if field == "order_number" and is_blank(value):
                value = None
            if field in _ENUM_FIELDS:
                if value == "":
                    value = None
                if value is not None and value not in _ENUM_FIELDS[field]:
                    raise ValidationViolation(f"invalid {field}: {value}")
            elif value is not None and not isinstance(value, str):
                raise ValidationViolation(f"{field} must be a string")
            scoped[field] = value
        if "status" in scoped and scoped["status"] is None:
            raise ValidationViolation("status cannot be empty")
        return scoped

    def update(self, order_id: str, changes: Dict[str, Any], audit: Optional[AuditDescriptor] = None):
        order = self._get_or_404(order_id)
        if not self.is_admin and order.assigned_vendor_id != self.actor.id:
            logger.warning(
                "Vendor edit on unassigned order refused",
                extra={'extra_fields': {'order_id': order_id, 'actor': self.actor.id}}
            )
            raise AuthorizationDenied("forbidden")

        sanitized = self._scope_changes(changes)
        dropped = set(changes) - set(sanitized)

        # Validate the row as it would look after the write, never just the delta
        prospective = {**order.to_row(), **sanitized}
        violation = validate(prospective)
        if violation is not None:
            logger.info(
                "Order update rejected",
                extra={'extra_fields': {
                    'order_id': order_id,
                    'violation': violation.value,
                    'fields': sorted(sanitized),
                }}
            )
            raise ValidationViolation(VIOLATION_MESSAGES[violation])

        auto_tracking_url = build_tracking_url(prospective["carrier"], prospective["tracking_number"])
        if auto_tracking_url:
            sanitized["tracking_url"] = auto_tracking_url
        elif prospective["carrier"] != Carrier.OTHER.value:
            sanitized.pop("tracking_url", None)

        if "order_number" in sanitized:
            self._check_unique_order_number(sanitized["order_number"], exclude_id=order.id)

        for field, value in sanitized.items():
            setattr(order, field, value)
        order.updated_at = next_timestamp(order.updated_at)
        self._commit()
        logger.info(
            "Order updated",
            extra={'extra_fields': {'order_id': order_id, 'fields': sorted(sanitized)}}
        )

        if audit is not None and audit.field in dropped:
            # Nothing was written to that column, so there is no history to keep
            logger.info(
                "Audit skipped for out-of-scope field",
                extra={'extra_fields': {'order_id': order_id, 'field': audit.field}}
            )
        else:
            self._record_audit(order.id, audit)
        return order

    def _record_audit(self, order_id: str, audit: Optional[AuditDescriptor]):
        if audit is None or not audit.field:
            return
        if audit.old_value == audit.new_value:
            return
        entry = OrderUpdate(
            order_id=order_id,
            updated_by=self.actor.id,
            field=audit.field,
            old_value=_stringify(audit.old_value),
            new_value=_stringify(audit.new_value),
            created_at=utcnow(),
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError:
            # The order write already landed; losing one history line is tolerated
            self.db.rollback()
            logger.error(
                "Audit append failed",
                exc_info=True,
                extra={'extra_fields': {'order_id': order_id, 'field': audit.field}}
            )

    def delete(self, order_id: str):
        order = self._get_or_404(order_id)
        if not self.is_admin and order.created_by != self.actor.id:
            logger.warning(
                "Delete of another user's order refused",
                extra={'extra_fields': {'order_id': order_id, 'actor': self.actor.id}}
            )
            raise AuthorizationDenied("forbidden")
        self.db.delete(order)
        self._commit()
        logger.info(
            "Order deleted",
            extra={'extra_fields': {'order_id': order_id, 'actor': self.actor.id}}
        )

    def import_orders(self, data: OrderImport) -> ImportResult:
        """Insert a batch of external orders, skipping known order numbers."""
        self._require_admin()

        numbers = [o.order_number.strip() for o in data.orders if not is_blank(o.order_number)]
        existing = set()
        if numbers:
            rows = self.db.query(Order.order_number).filter(Order.order_number.in_(numbers)).all()
            existing = {r[0] for r in rows}

        imported = 0
        for item in data.orders:
            number = item.order_number.strip() if item.order_number else ""
            if not number or number in existing:
                continue
            existing.add(number)
            address = item.address or {}
            self.db.add(Order(
                status=OrderStatus.PRE_SHIPMENT.value,
                created_by=self.actor.id,
                assigned_vendor_id=None,
                order_number=number,
                customer_name=item.customer_name or address.get("name"),
                shipping_address=item.shipping_address or format_address(item.address),
                carrier=None,
                tracking_number=None,
                tracking_url=None,
                issue_reason=None,
                ship_date=None,
                updated_at=utcnow(),
            ))
            imported += 1

        if imported:
            self._commit()
        total = len(data.orders)
        logger.info(
            "Orders imported",
            extra={'extra_fields': {'imported': imported, 'skipped': total - imported}}
        )
        return ImportResult(imported=imported, skipped=total - imported, total=total)

def format_address(address: Optional[Dict[str, Any]]) -> Optional[str]:
    """Flatten a storefront address into the single shipping_address line."""
    if not address:
        return None
    header = " - ".join(p for p in (address.get("name"), address.get("company")) if p)
    body = ", ".join(
        p for p in (
            address.get("address1"),
            address.get("address2"),
            address.get("city"),
            address.get("province"),
            address.get("zip"),
            address.get("country"),
        ) if p
    )
    if header and body:
        return f"{header} | {body}"
    return header or body or None

class ProfileService:
    def __init__(self, db: Session, actor: Profile):
        self.db = db
        self.actor = actor

    def active_vendors(self) -> List[Profile]:
        """Vendors an order can be assigned to, newest first. Admins only."""
        if self.actor.role != Role.ADMIN.value:
            logger.warning(
                "Vendor listing refused",
                extra={'extra_fields': {'actor': self.actor.id, 'role': self.actor.role}}
            )
            raise AuthorizationDenied("forbidden")
        return (
            self.db.query(Profile)
            .filter(Profile.role == Role.VENDOR.value, Profile.is_active.is_(True))
            .order_by(Profile.created_at.desc(), Profile.id)
            .all()
        )
