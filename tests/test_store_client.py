import json

import httpx
import pytest

from shipsheet.application.errors import (
    AuthorizationDenied,
    NotFound,
    PersistenceFailure,
    ValidationViolation,
)
from shipsheet.client.store_client import OrderStoreClient

def client_for(handler) -> OrderStoreClient:
    return OrderStoreClient(httpx.Client(base_url="http://store", transport=httpx.MockTransport(handler)))

@pytest.mark.parametrize("status,error_cls", [
    (400, ValidationViolation),
    (403, AuthorizationDenied),
    (404, NotFound),
    (500, PersistenceFailure),
])
def test_error_responses_raise_matching_error(status, error_cls):
    store = client_for(lambda request: httpx.Response(status, json={"error": "nope"}))
    with pytest.raises(error_cls) as excinfo:
        store.patch_order("o1", {"carrier": "DHL"}, {"field": "carrier", "oldValue": None, "newValue": "DHL"})
    assert excinfo.value.message == "nope"
    assert excinfo.value.status_code == status

def test_non_json_error_uses_reason_phrase():
    store = client_for(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))
    with pytest.raises(PersistenceFailure) as excinfo:
        store.delete_order("o1")
    assert excinfo.value.message == "Bad Gateway"

def test_transport_failure_is_persistence_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PersistenceFailure):
        client_for(handler).list_orders()

def test_patch_sends_change_set_and_audit():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.read())
        return httpx.Response(200, json={"ok": True})

    client_for(handler).patch_order("o1", {"status": "issue"}, {"field": "status", "oldValue": "pre_shipment", "newValue": "issue"})
    assert seen["method"] == "PATCH"
    assert seen["path"] == "/orders"
    assert seen["body"] == {
        "id": "o1",
        "changes": {"status": "issue"},
        "audit": {"field": "status", "oldValue": "pre_shipment", "newValue": "issue"},
    }

def test_empty_success_body_is_accepted_for_mutations():
    store = client_for(lambda request: httpx.Response(204))
    store.patch_order("o1", {"carrier": "UPS"}, {"field": "carrier", "oldValue": None, "newValue": "UPS"})
    store.delete_order("o1")

def test_unreadable_list_body_is_persistence_failure():
    store = client_for(lambda request: httpx.Response(200, text="not json"))
    with pytest.raises(PersistenceFailure):
        store.list_orders()

def test_profile_and_vendors_paths():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path == "/profile":
            return httpx.Response(200, json={"id": "admin-1", "role": "admin", "is_active": True})
        return httpx.Response(200, json=[{"id": "vendor-1", "email": None, "vendor_name": "Acme"}])

    store = client_for(handler)
    assert store.get_profile()["role"] == "admin"
    assert store.list_vendors()[0]["vendor_name"] == "Acme"
    assert paths == ["/profile", "/vendors"]
