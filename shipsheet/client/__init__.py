from .grid import OrderGrid, UserEdit, SystemDerivedEdit, CellNotEditable
from .reconciler import EditReconciler, Outcome, ReconcileResult, PendingLog
from .sheet import OrderSheet
from .store_client import OrderStoreClient

__all__ = [
    "OrderGrid",
    "UserEdit",
    "SystemDerivedEdit",
    "CellNotEditable",
    "EditReconciler",
    "Outcome",
    "ReconcileResult",
    "PendingLog",
    "OrderSheet",
    "OrderStoreClient",
]
