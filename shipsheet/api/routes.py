from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from shipsheet.infrastructure.db import get_db
from shipsheet.auth import get_current_profile
from shipsheet.application.service import OrderService
from shipsheet.application.schemas import (
    OrderCreate,
    OrderRead,
    OrderPatch,
    OrderDelete,
    OrderImport,
    ImportResult,
    OkResponse,
)
from shipsheet.domain.models import Profile

router = APIRouter(prefix="/orders", tags=["orders"])

@router.get("", response_model=list[OrderRead])
def list_orders(db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    """All orders for admins, assigned orders for vendors; newest first."""
    return OrderService(db, profile).list()

@router.post("", response_model=OrderRead)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return OrderService(db, profile).create(payload)

@router.patch("", response_model=OkResponse)
def update_order(
    payload: OrderPatch,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    OrderService(db, profile).update(payload.id, payload.changes, payload.audit)
    return OkResponse()

@router.delete("", response_model=OkResponse)
def delete_order(
    payload: OrderDelete,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    OrderService(db, profile).delete(payload.id)
    return OkResponse()

@router.post("/import", response_model=ImportResult)
def import_orders(
    payload: OrderImport,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Bulk-insert externally sourced orders; known order numbers are skipped."""
    return OrderService(db, profile).import_orders(payload)
