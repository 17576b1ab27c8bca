"""
Account endpoints.

A visitor can start designing straight away as a guest (a provisional user
with no password). Registering while holding the guest token upgrades that
same account, so designs and orders made as a guest are kept. E-mails listed in
ADMIN_EMAILS become admins when they register.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import models
from ..auth import (
    ACCESS,
    REFRESH,
    bearer,
    create_access_token,
    decode_token,
    find_refresh_token,
    get_current_user,
    hash_password,
    issue_tokens,
    revoke_refresh_tokens,
    unauthorized,
    verify_password,
)
from ..config import settings
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

GUEST_DOMAIN = "provisional.local"


class Credentials(BaseModel):
    email: str
    password: str


class RegisterRequest(Credentials):
    display_name: Optional[str] = None


class RefreshRequest(BaseModel):
    refresh_token: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def user_summary(user: models.User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "is_provisional": user.is_provisional,
        "is_admin": user.is_admin,
        "design_count": len(user.designs),
        "order_count": len(user.orders),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _session(db: Session, user: models.User, **extra) -> dict:
    return {**issue_tokens(db, user), "user": user_summary(user), **extra}


def _provisional_caller(db: Session, credentials) -> Optional[models.User]:
    """The guest behind the request's bearer token, if there is one."""
    if credentials is None:
        return None
    payload = decode_token(credentials.credentials, ACCESS)
    user = db.query(models.User).filter(models.User.id == int(payload["sub"])).first()
    if user and user.is_provisional and not user.password_hash:
        return user
    return None


@router.post("/register")
def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
):
    """
    Create an account. Sent with a guest's access token, the guest account
    itself is upgraded, keeping its designs and orders.
    """
    email = normalize_email(request.email)
    if db.query(models.User).filter(models.User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account with this email already exists",
        )

    user = _provisional_caller(db, credentials)
    claimed = user is not None
    if not claimed:
        user = models.User()
        db.add(user)
    user.email = email
    user.password_hash = hash_password(request.password)
    user.display_name = request.display_name or user.display_name
    user.is_provisional = False
    user.is_admin = email in settings.admin_emails
    user.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(user)

    logger.info("%s user %d%s", "Claimed guest" if claimed else "Registered", user.id,
                " (admin)" if user.is_admin else "")
    return _session(db, user, claimed_provisional=claimed)


@router.post("/login")
def login(request: Credentials, db: Session = Depends(get_db)):
    user = db.query(models.User).filter(models.User.email == normalize_email(request.email)).first()
    if not user or not user.password_hash or not verify_password(request.password, user.password_hash):
        raise unauthorized("Invalid email or password")
    return _session(db, user)


@router.post("/refresh")
def refresh(request: RefreshRequest, db: Session = Depends(get_db)):
    """New access token for a stored, unexpired refresh token."""
    payload = decode_token(request.refresh_token, REFRESH)

    stored = find_refresh_token(db, request.refresh_token)
    if not stored:
        raise unauthorized("Refresh token has been revoked")
    if stored.expires_at < datetime.utcnow():
        raise unauthorized("Refresh token expired")

    user = db.query(models.User).filter(models.User.id == int(payload["sub"])).first()
    if not user:
        raise unauthorized("User not found")

    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "user_id": user.id,
    }


@router.post("/logout")
def logout(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Revoke all refresh tokens. Outstanding access tokens run out on their own."""
    revoked = revoke_refresh_tokens(db, current_user)
    logger.info("User %d logged out, %d refresh tokens revoked", current_user.id, revoked)
    return {"ok": True, "revoked": revoked}


@router.post("/guest")
def guest(db: Session = Depends(get_db)):
    user = models.User(
        email=f"guest_{uuid.uuid4().hex[:12]}@{GUEST_DOMAIN}",
        password_hash=None,
        is_provisional=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return _session(db, user)


@router.get("/me")
def me(current_user: models.User = Depends(get_current_user)):
    return user_summary(current_user)
