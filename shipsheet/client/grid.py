"""In-memory model of the editable order grid.

The grid owns the row dicts the user sees. Every cell write is reported to
``on_cell_value_changed`` tagged with its origin: ``UserEdit`` when a person
typed the value, ``SystemDerivedEdit`` when code wrote it (a derived tracking
URL, an auto-filled issue reason, a revert). Only user edits are meant to be
reconciled; the tag is what keeps programmatic writes from re-entering the
edit handler.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from shipsheet.domain.models import Carrier, OrderStatus, Role

@dataclass(frozen=True)
class UserEdit:
    row_id: str
    field: str
    old_value: Any
    new_value: Any

@dataclass(frozen=True)
class SystemDerivedEdit:
    row_id: str
    field: str
    old_value: Any
    new_value: Any

CellEdit = Union[UserEdit, SystemDerivedEdit]

EDITABLE_COLUMNS = {
    Role.ADMIN.value: frozenset({
        "assigned_vendor_id",
        "order_number",
        "customer_name",
        "shipping_address",
        "carrier",
        "tracking_number",
        "tracking_url",
        "status",
        "issue_reason",
    }),
    Role.VENDOR.value: frozenset({
        "order_number",
        "carrier",
        "tracking_number",
        "tracking_url",
        "status",
        "issue_reason",
    }),
}

class CellNotEditable(ValueError):
    pass

class OrderGrid:
    def __init__(self, role: str = Role.ADMIN.value):
        self.role = role
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._order: List[str] = []
        self.on_cell_value_changed: Optional[Callable[[CellEdit], Any]] = None

    def set_rows(self, rows: Iterable[Dict[str, Any]]):
        self._rows = {}
        self._order = []
        for row in rows:
            self._rows[row["id"]] = dict(row)
            self._order.append(row["id"])

    def prepend(self, row: Dict[str, Any]):
        self._rows[row["id"]] = dict(row)
        self._order.insert(0, row["id"])

    def remove(self, row_id: str):
        self._rows.pop(row_id, None)
        self._order = [r for r in self._order if r != row_id]

    def row(self, row_id: str) -> Dict[str, Any]:
        return self._rows[row_id]

    def rows(self) -> List[Dict[str, Any]]:
        return [self._rows[r] for r in self._order]

    def is_editable(self, row_id: str, field: str) -> bool:
        if field not in EDITABLE_COLUMNS.get(self.role, frozenset()):
            return False
        row = self._rows[row_id]
        if field == "tracking_url":
            return row.get("carrier") == Carrier.OTHER.value
        if field == "issue_reason":
            return row.get("status") == OrderStatus.ISSUE.value
        return True

    def edit_cell(self, row_id: str, field: str, value: Any) -> Any:
        """Apply a value typed by the user and hand the change to the handler."""
        if not self.is_editable(row_id, field):
            raise CellNotEditable(f"{field} is not editable on this row")
        row = self._rows[row_id]
        old_value = row.get(field)
        row[field] = value
        return self._dispatch(UserEdit(row_id, field, old_value, value))

    def write_silently(self, row_id: str, field: str, value: Any):
        row = self._rows[row_id]
        old_value = row.get(field)
        row[field] = value
        self._dispatch(SystemDerivedEdit(row_id, field, old_value, value))

    def _dispatch(self, edit: CellEdit) -> Any:
        if self.on_cell_value_changed is None:
            return None
        return self.on_cell_value_changed(edit)
