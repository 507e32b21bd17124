"""Cross-field rules an order row must satisfy before it is persisted."""
from enum import Enum
from typing import Any, Mapping, Optional

from .models import OrderStatus

class Violation(str, Enum):
    SHIPPED_MISSING_CARRIER_OR_TRACKING = "ShippedMissingCarrierOrTracking"
    ISSUE_MISSING_REASON = "IssueMissingReason"

VIOLATION_MESSAGES = {
    Violation.SHIPPED_MISSING_CARRIER_OR_TRACKING: "carrier and tracking number required for shipped",
    Violation.ISSUE_MISSING_REASON: "issue reason required for issue status",
}

def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()

def validate(row: Mapping[str, Any]) -> Optional[Violation]:
    """Check a full prospective row; None means the row is acceptable."""
    status = row.get("status")
    if status == OrderStatus.SHIPPED.value:
        if is_blank(row.get("carrier")) or is_blank(row.get("tracking_number")):
            return Violation.SHIPPED_MISSING_CARRIER_OR_TRACKING
    if status == OrderStatus.ISSUE.value and is_blank(row.get("issue_reason")):
        return Violation.ISSUE_MISSING_REASON
    return None
