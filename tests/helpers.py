from shipsheet.auth import create_access_token
from shipsheet.infrastructure.db import SessionLocal
from shipsheet.domain.models import Order, OrderUpdate

ADMIN_ID = "admin-1"
VENDOR_ID = "vendor-1"
OTHER_VENDOR_ID = "vendor-2"

def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}

def fetch_order(order_id: str):
    with SessionLocal() as db:
        return db.get(Order, order_id)

def audit_entries(order_id: str = None):
    with SessionLocal() as db:
        query = db.query(OrderUpdate)
        if order_id is not None:
            query = query.filter(OrderUpdate.order_id == order_id)
        return query.order_by(OrderUpdate.id).all()

def patch(client, headers, order_id, changes, field=None, old=None, new=None):
    body = {"id": order_id, "changes": changes}
    if field is not None:
        body["audit"] = {"field": field, "oldValue": old, "newValue": new}
    return client.patch("/orders", json=body, headers=headers)
