"""Client-side reconciliation of a single cell edit.

A user edit is validated against the whole post-edit row, may pull dependent
cells along (tracking URL, issue reason), and is then sent to the order store.
Every local write made on the way is recorded in a pending log; if the edit
is refused, locally or by the server, the log is replayed backwards so the
grid never shows state the store does not have.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from shared.core import get_logger
from shipsheet.application.errors import OrderStoreError
from shipsheet.domain.models import IssueReason, OrderStatus
from shipsheet.domain.rules import Violation, validate
from shipsheet.domain.tracking import build_tracking_url
from .grid import CellEdit, OrderGrid, UserEdit
from .store_client import OrderStoreClient

logger = get_logger(__name__)

SHIPPED_REQUIRES_TRACKING = "Carrier and tracking number are required for shipped orders."
ISSUE_REASON_DEFAULTED = "Issue reason required. Set to Other; update if needed."
ISSUE_REQUIRES_REASON = "Issue reason is required when status is issue."

TRACKING_INPUTS = ("carrier", "tracking_number")

class Outcome(str, Enum):
    NO_OP = "no_op"
    REJECTED = "rejected"
    SAVED = "saved"
    REVERTED = "reverted"

@dataclass
class ReconcileResult:
    outcome: Outcome
    changes: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None

@dataclass(frozen=True)
class PendingMutation:
    row_id: str
    field: str
    previous_value: Any

class PendingLog:
    """Optimistic cell writes not yet confirmed by the store, per row."""

    def __init__(self):
        self._entries: Dict[str, List[PendingMutation]] = defaultdict(list)

    def record(self, row_id: str, field: str, previous_value: Any):
        self._entries[row_id].append(PendingMutation(row_id, field, previous_value))

    def pending(self, row_id: str) -> List[PendingMutation]:
        return list(self._entries.get(row_id, ()))

    def confirm(self, row_id: str):
        self._entries.pop(row_id, None)

    def rollback(self, row_id: str) -> List[PendingMutation]:
        """Remove and return the row's entries, newest first."""
        return list(reversed(self._entries.pop(row_id, [])))

def _log_notice(message: str):
    logger.warning(message)

class EditReconciler:
    def __init__(
        self,
        grid: OrderGrid,
        store: OrderStoreClient,
        notify: Optional[Callable[[str], None]] = None,
    ):
        self.grid = grid
        self.store = store
        self.notify = notify or _log_notice
        self.pending = PendingLog()
        grid.on_cell_value_changed = self.handle

    def handle(self, edit: CellEdit) -> Optional[ReconcileResult]:
        # Writes made by code (including our own) are never reconciled
        if not isinstance(edit, UserEdit):
            return None
        return self.reconcile(edit)

    def _write(self, row_id: str, field: str, value: Any):
        row = self.grid.row(row_id)
        self.pending.record(row_id, field, row.get(field))
        self.grid.write_silently(row_id, field, value)

    def _revert(self, row_id: str):
        for mutation in self.pending.rollback(row_id):
            self.grid.write_silently(row_id, mutation.field, mutation.previous_value)

    def _reject(self, edit: UserEdit, message: str) -> ReconcileResult:
        self._revert(edit.row_id)
        self.notify(message)
        logger.info(
            "Cell edit rejected",
            extra={'extra_fields': {'order_id': edit.row_id, 'field': edit.field}}
        )
        return ReconcileResult(Outcome.REJECTED, message=message)

    def reconcile(self, edit: UserEdit) -> ReconcileResult:
        if edit.new_value == edit.old_value:
            return ReconcileResult(Outcome.NO_OP)

        row_id = edit.row_id
        row = self.grid.row(row_id)
        # The grid already shows the user's value; that is the first pending write
        self.pending.record(row_id, edit.field, edit.old_value)

        violation = validate(row)
        if violation == Violation.SHIPPED_MISSING_CARRIER_OR_TRACKING:
            return self._reject(edit, SHIPPED_REQUIRES_TRACKING)
        if violation == Violation.ISSUE_MISSING_REASON:
            if edit.field != "status":
                return self._reject(edit, ISSUE_REQUIRES_REASON)
            self._write(row_id, "issue_reason", IssueReason.OTHER.value)
            self.notify(ISSUE_REASON_DEFAULTED)

        changes: Dict[str, Any] = {edit.field: edit.new_value}

        if edit.field in TRACKING_INPUTS:
            tracking_url = build_tracking_url(row.get("carrier"), row.get("tracking_number"))
            if tracking_url and tracking_url != row.get("tracking_url"):
                changes["tracking_url"] = tracking_url
                self._write(row_id, "tracking_url", tracking_url)

        if (
            edit.field == "status"
            and row.get("status") == OrderStatus.ISSUE.value
            and row.get("issue_reason") == IssueReason.OTHER.value
        ):
            changes["issue_reason"] = IssueReason.OTHER.value

        audit = {"field": edit.field, "oldValue": edit.old_value, "newValue": edit.new_value}
        try:
            self.store.patch_order(row_id, changes, audit)
        except OrderStoreError as e:
            self._revert(row_id)
            message = f"Save failed: {e.message}"
            self.notify(message)
            logger.warning(
                "Cell edit reverted after store refusal",
                extra={'extra_fields': {
                    'order_id': row_id,
                    'field': edit.field,
                    'status_code': e.status_code,
                }}
            )
            return ReconcileResult(Outcome.REVERTED, changes=changes, message=message)
        except Exception:
            # Unconfirmed is treated as refused; the grid must not keep the edit
            self._revert(row_id)
            logger.error(
                "Cell edit reverted after unexpected store error",
                exc_info=True,
                extra={'extra_fields': {'order_id': row_id, 'field': edit.field}}
            )
            raise

        self.pending.confirm(row_id)
        return ReconcileResult(Outcome.SAVED, changes=changes)
