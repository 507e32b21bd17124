from datetime import datetime, timedelta, timezone
import jwt
from typing import Optional
from fastapi import Depends, Request
from sqlalchemy.orm import Session
from shared.core import get_logger, set_request_context
from .core_settings import get_settings
from .application.errors import Unauthenticated, AuthorizationDenied
from .domain.models import Profile, Role
from .infrastructure.db import get_db

settings = get_settings()
logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "

def create_access_token(subject: str, expires_minutes: int = 60, email: Optional[str] = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": subject, "iat": now, "exp": now + timedelta(minutes=expires_minutes)}
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.PyJWTError:
        return None

def _fetch_or_create_profile(db: Session, user_id: str, email: Optional[str]) -> Profile:
    profile = db.get(Profile, user_id)
    if profile is not None:
        return profile
    # First sign-in: everyone starts as an active vendor until an admin says otherwise
    profile = Profile(id=user_id, email=email, role=Role.VENDOR.value, is_active=True)
    db.add(profile)
    db.commit()
    logger.info(
        "Provisioned vendor profile",
        extra={'extra_fields': {'user_id': user_id}}
    )
    return profile

def get_signed_in_profile(request: Request, db: Session = Depends(get_db)) -> Profile:
    """The caller's profile, provisioned on first sight; inactive ones included."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise Unauthenticated("unauthorized")
    token_data = decode_access_token(auth_header[len(BEARER_PREFIX):])
    if not token_data or not token_data.get("sub"):
        raise Unauthenticated("unauthorized")

    profile = _fetch_or_create_profile(db, str(token_data["sub"]), token_data.get("email"))
    set_request_context(user_id=profile.id)
    return profile

def get_current_profile(profile: Profile = Depends(get_signed_in_profile)) -> Profile:
    if not profile.is_active:
        raise AuthorizationDenied("inactive")
    return profile
