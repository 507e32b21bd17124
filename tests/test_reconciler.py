import httpx
import pytest

from shipsheet.application.errors import AuthorizationDenied, PersistenceFailure
from shipsheet.client.grid import CellNotEditable, OrderGrid, SystemDerivedEdit, UserEdit
from shipsheet.client.store_client import OrderStoreClient
from shipsheet.client.reconciler import (
    EditReconciler,
    Outcome,
    PendingLog,
    ISSUE_REASON_DEFAULTED,
    ISSUE_REQUIRES_REASON,
    SHIPPED_REQUIRES_TRACKING,
)

UPS_URL = "https://www.ups.com/track?tracknum=1Z999AA10123456784"

class FakeStore:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def patch_order(self, order_id, changes, audit):
        self.calls.append((order_id, changes, audit))
        if self.error is not None:
            raise self.error

def order_row(**fields):
    row = {
        "id": "o1",
        "order_number": None,
        "customer_name": None,
        "shipping_address": None,
        "carrier": None,
        "tracking_number": None,
        "tracking_url": None,
        "status": "pre_shipment",
        "issue_reason": None,
        "created_by": "admin-1",
    }
    row.update(fields)
    return row

@pytest.fixture
def messages():
    return []

def make_grid(store, messages, role="admin", **fields):
    grid = OrderGrid(role)
    grid.set_rows([order_row(**fields)])
    reconciler = EditReconciler(grid, store, notify=messages.append)
    return grid, reconciler

def test_unchanged_value_is_a_no_op(messages):
    store = FakeStore()
    grid, _ = make_grid(store, messages, carrier="DHL")
    result = grid.edit_cell("o1", "carrier", "DHL")
    assert result.outcome == Outcome.NO_OP
    assert store.calls == []

def test_shipped_without_tracking_is_reverted_locally(messages):
    store = FakeStore()
    grid, _ = make_grid(store, messages, carrier="UPS")
    result = grid.edit_cell("o1", "status", "shipped")

    assert result.outcome == Outcome.REJECTED
    assert grid.row("o1")["status"] == "pre_shipment"
    assert messages == [SHIPPED_REQUIRES_TRACKING]
    assert store.calls == []

def test_status_issue_fills_in_reason(messages):
    store = FakeStore()
    grid, _ = make_grid(store, messages)
    result = grid.edit_cell("o1", "status", "issue")

    assert result.outcome == Outcome.SAVED
    assert grid.row("o1")["issue_reason"] == "Other"
    assert messages == [ISSUE_REASON_DEFAULTED]
    assert store.calls == [(
        "o1",
        {"status": "issue", "issue_reason": "Other"},
        {"field": "status", "oldValue": "pre_shipment", "newValue": "issue"},
    )]

def test_status_issue_keeps_a_chosen_reason(messages):
    store = FakeStore()
    grid, _ = make_grid(store, messages, status="shipped", carrier="DHL",
                        tracking_number="JD1", issue_reason="Supplier delay")
    grid.edit_cell("o1", "status", "issue")
    assert store.calls[0][1] == {"status": "issue"}
    assert grid.row("o1")["issue_reason"] == "Supplier delay"

def test_other_field_on_reasonless_issue_row_is_rejected(messages):
    store = FakeStore()
    grid, _ = make_grid(store, messages, status="issue")
    result = grid.edit_cell("o1", "order_number", "#77")

    assert result.outcome == Outcome.REJECTED
    assert grid.row("o1")["order_number"] is None
    assert grid.row("o1")["issue_reason"] is None
    assert messages == [ISSUE_REQUIRES_REASON]
    assert store.calls == []

def test_carrier_change_derives_tracking_url(messages):
    store = FakeStore()
    grid, _ = make_grid(store, messages, tracking_number="1Z999AA10123456784")
    result = grid.edit_cell("o1", "carrier", "UPS")

    assert result.outcome == Outcome.SAVED
    assert grid.row("o1")["tracking_url"] == UPS_URL
    order_id, changes, audit = store.calls[0]
    assert changes == {"carrier": "UPS", "tracking_url": UPS_URL}
    # The audit describes the user's edit, not the derived URL
    assert audit == {"field": "carrier", "oldValue": None, "newValue": "UPS"}

def test_unchanged_derived_url_is_not_resent(messages):
    store = FakeStore()
    grid, _ = make_grid(store, messages, carrier="UPS", tracking_number="1Z999AA10123456784",
                        tracking_url=UPS_URL)
    grid.edit_cell("o1", "tracking_number", " 1Z999AA10123456784 ")
    assert store.calls[0][1] == {"tracking_number": " 1Z999AA10123456784 "}

def test_store_refusal_reverts_cell_and_derived_url(messages):
    store = FakeStore(error=AuthorizationDenied("forbidden"))
    grid, reconciler = make_grid(store, messages, tracking_number="1Z999AA10123456784",
                                 tracking_url="https://old.example")
    result = grid.edit_cell("o1", "carrier", "UPS")

    assert result.outcome == Outcome.REVERTED
    assert result.message == "Save failed: forbidden"
    assert grid.row("o1")["carrier"] is None
    assert grid.row("o1")["tracking_url"] == "https://old.example"
    assert messages == ["Save failed: forbidden"]
    assert reconciler.pending.pending("o1") == []

def test_store_refusal_reverts_auto_filled_reason(messages):
    store = FakeStore(error=PersistenceFailure("database unavailable"))
    grid, _ = make_grid(store, messages)
    result = grid.edit_cell("o1", "status", "issue")

    assert result.outcome == Outcome.REVERTED
    assert grid.row("o1")["status"] == "pre_shipment"
    assert grid.row("o1")["issue_reason"] is None

def test_confirmed_edit_clears_pending_log(messages):
    store = FakeStore()
    grid, reconciler = make_grid(store, messages, tracking_number="1Z999AA10123456784")
    grid.edit_cell("o1", "carrier", "UPS")
    assert reconciler.pending.pending("o1") == []

def test_system_writes_do_not_reenter(messages):
    store = FakeStore()
    grid, reconciler = make_grid(store, messages)
    grid.write_silently("o1", "carrier", "DHL")
    assert reconciler.handle(SystemDerivedEdit("o1", "carrier", None, "DHL")) is None
    assert store.calls == []

def test_handle_routes_user_edits(messages):
    store = FakeStore()
    grid, reconciler = make_grid(store, messages)
    grid.row("o1")["customer_name"] = "Ada"
    result = reconciler.handle(UserEdit("o1", "customer_name", None, "Ada"))
    assert result.outcome == Outcome.SAVED

class TestGridEditability:
    def test_tracking_url_only_for_other_carrier(self, messages):
        grid, _ = make_grid(FakeStore(), messages, carrier="UPS")
        with pytest.raises(CellNotEditable):
            grid.edit_cell("o1", "tracking_url", "https://x.example")
        grid.row("o1")["carrier"] = "Other"
        assert grid.is_editable("o1", "tracking_url")

    def test_issue_reason_only_for_issue_status(self, messages):
        grid, _ = make_grid(FakeStore(), messages)
        assert not grid.is_editable("o1", "issue_reason")
        grid.row("o1")["status"] = "issue"
        assert grid.is_editable("o1", "issue_reason")

    def test_vendor_columns(self, messages):
        grid, _ = make_grid(FakeStore(), messages, role="vendor")
        assert grid.is_editable("o1", "carrier")
        assert not grid.is_editable("o1", "shipping_address")
        assert not grid.is_editable("o1", "assigned_vendor_id")

def test_pending_log_rolls_back_newest_first():
    log = PendingLog()
    log.record("o1", "carrier", None)
    log.record("o1", "tracking_url", "https://old.example")
    log.record("o2", "status", "pre_shipment")

    undo = log.rollback("o1")
    assert [(m.field, m.previous_value) for m in undo] == [
        ("tracking_url", "https://old.example"),
        ("carrier", None),
    ]
    assert log.pending("o1") == []
    assert len(log.pending("o2")) == 1

def test_empty_success_response_confirms_edit(messages):
    http = httpx.Client(base_url="http://store", transport=httpx.MockTransport(lambda request: httpx.Response(204)))
    grid, reconciler = make_grid(OrderStoreClient(http), messages, tracking_number="1Z999AA10123456784")
    result = grid.edit_cell("o1", "carrier", "UPS")

    assert result.outcome == Outcome.SAVED
    assert grid.row("o1")["tracking_url"] == UPS_URL
    assert reconciler.pending.pending("o1") == []

def test_unexpected_store_error_reverts_before_propagating(messages):
    store = FakeStore(error=RuntimeError("boom"))
    grid, reconciler = make_grid(store, messages, tracking_number="1Z999AA10123456784")
    with pytest.raises(RuntimeError):
        grid.edit_cell("o1", "carrier", "UPS")

    assert grid.row("o1")["carrier"] is None
    assert grid.row("o1")["tracking_url"] is None
    assert reconciler.pending.pending("o1") == []
