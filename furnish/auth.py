"""
Identity for the design service: password hashing, JWTs, request users.

Libraries: python-jose[cryptography] for JWT, passlib[bcrypt] for passwords.
Access tokens are stateless; refresh tokens are stored hashed so they can be
revoked. The design engine never authenticates. Routers receive a User from
get_current_user, or from require_admin for rate and order-status changes.
"""

import hashlib
import uuid
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from . import models

ACCESS = "access"
REFRESH = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


# --- Tokens ---

def _secret() -> str:
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET is not configured",
        )
    return settings.JWT_SECRET


def _encode(user: models.User, token_type: str, lifetime: timedelta) -> str:
    payload = {
        "sub": str(user.id),
        "type": token_type,
        "role": "admin" if user.is_admin else "customer",
        "exp": datetime.utcnow() + lifetime,
    }
    if token_type == REFRESH:
        payload["jti"] = uuid.uuid4().hex
    return jwt.encode(payload, _secret(), algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: models.User) -> str:
    return _encode(user, ACCESS, timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES))


def create_refresh_token(user: models.User) -> str:
    """Raw token goes to the client; only its hash is stored."""
    return _encode(user, REFRESH, timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS))


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def decode_token(token: str, expected_type: str) -> dict:
    """Validate signature, expiry and token type. Raises a 401 HTTPException."""
    try:
        payload = jwt.decode(token, _secret(), algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise unauthorized("Invalid or expired token")
    if payload.get("type") != expected_type:
        raise unauthorized(f"Expected a {expected_type} token")
    if not str(payload.get("sub", "")).isdigit():
        raise unauthorized("Invalid token payload")
    return payload


def store_refresh_token(db: Session, user: models.User, token: str) -> models.AuthToken:
    record = models.AuthToken(
        user_id=user.id,
        token_hash=hash_token(token),
        token_type=REFRESH,
        expires_at=datetime.utcnow() + timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
    )
    db.add(record)
    db.commit()
    return record


def find_refresh_token(db: Session, token: str):
    return db.query(models.AuthToken).filter(
        models.AuthToken.token_hash == hash_token(token),
        models.AuthToken.token_type == REFRESH,
    ).first()


def revoke_refresh_tokens(db: Session, user: models.User) -> int:
    """Delete every stored refresh token of a user. Returns how many."""
    count = db.query(models.AuthToken).filter(models.AuthToken.user_id == user.id).delete()
    db.commit()
    return count


def issue_tokens(db: Session, user: models.User) -> dict:
    refresh_token = create_refresh_token(user)
    store_refresh_token(db, user, refresh_token)
    return {
        "access_token": create_access_token(user),
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "user_id": user.id,
    }


# --- FastAPI dependencies ---

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> models.User:
    """The User behind a bearer access token."""
    if credentials is None:
        raise unauthorized("Authentication required")
    payload = decode_token(credentials.credentials, ACCESS)
    user = db.query(models.User).filter(models.User.id == int(payload["sub"])).first()
    if not user:
        raise unauthorized("User not found")
    return user


def require_admin(current_user: models.User = Depends(get_current_user)) -> models.User:
    # The role claim is informational; the stored flag decides.
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
