from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from shipsheet.infrastructure.db import get_db
from shipsheet.auth import get_current_profile, get_signed_in_profile
from shipsheet.application.service import ProfileService
from shipsheet.application.schemas import ProfileRead, VendorRead
from shipsheet.domain.models import Profile

router = APIRouter(tags=["profiles"])

@router.get("/profile", response_model=ProfileRead)
def read_profile(profile: Profile = Depends(get_signed_in_profile)):
    """The caller's own profile; clients read their role and active flag here."""
    return profile

@router.get("/vendors", response_model=list[VendorRead])
def list_vendors(db: Session = Depends(get_db), profile: Profile = Depends(get_current_profile)):
    return ProfileService(db, profile).active_vendors()
