from typing import Any, Callable, Dict, List, Optional

from shared.core import get_logger
from shipsheet.application.errors import AuthorizationDenied, OrderStoreError
from shipsheet.domain.models import OrderStatus, Role
from .grid import OrderGrid
from .reconciler import EditReconciler, ReconcileResult
from .store_client import OrderStoreClient

logger = get_logger(__name__)

class OrderSheet:
    """The order grid of the signed-in user, wired to the order store.

    Identity and role come from the store's profile endpoint on ``load``;
    until then the grid is empty and vendor-scoped.
    """

    def __init__(self, store: OrderStoreClient, notify: Optional[Callable[[str], None]] = None):
        self.store = store
        self.user_id: Optional[str] = None
        self.role: str = Role.VENDOR.value
        self.vendors: List[Dict[str, Any]] = []
        self.grid = OrderGrid(self.role)
        self.reconciler = EditReconciler(self.grid, store, notify)

    @property
    def notify(self) -> Callable[[str], None]:
        return self.reconciler.notify

    def load(self) -> Dict[str, Any]:
        profile = self.store.get_profile()
        if not profile.get("is_active"):
            raise AuthorizationDenied("inactive")

        self.user_id = profile["id"]
        self.role = profile["role"]
        self.grid.role = self.role
        # Assignment choices for the admin's vendor column
        self.vendors = self.store.list_vendors() if self.role == Role.ADMIN.value else []
        self.grid.set_rows(self.store.list_orders())
        logger.info(
            "Sheet loaded",
            extra={'extra_fields': {'role': self.role, 'rows': len(self.grid.rows())}}
        )
        return profile

    def vendor_label(self, vendor_id: Optional[str]) -> str:
        for vendor in self.vendors:
            if vendor["id"] == vendor_id:
                return vendor.get("vendor_name") or vendor.get("email") or vendor_id
        return vendor_id or ""

    def edit(self, row_id: str, field: str, value: Any) -> ReconcileResult:
        return self.grid.edit_cell(row_id, field, value)

    def create_blank(self) -> Optional[Dict[str, Any]]:
        try:
            row = self.store.create_order({"status": OrderStatus.PRE_SHIPMENT.value})
        except OrderStoreError as e:
            self.notify(e.message or "Failed")
            return None
        self.grid.prepend(row)
        return row

    def can_delete(self, row_id: str) -> bool:
        if self.role == Role.ADMIN.value:
            return True
        return self.grid.row(row_id).get("created_by") == self.user_id

    def delete(self, row_id: str) -> bool:
        try:
            self.store.delete_order(row_id)
        except OrderStoreError as e:
            self.notify(e.message or "Delete failed")
            return False
        self.grid.remove(row_id)
        logger.info("Order removed from sheet", extra={'extra_fields': {'order_id': row_id}})
        return True
