from datetime import datetime, timezone, timedelta
from typing import Any, Union, Optional, Dict
import uuid

from jose import JWTError, jwt

# bcrypt directly, no passlib
import bcrypt

from app.core.config import settings


# =====================================================
# Password Hashing
# =====================================================
def get_password_hash(password: str) -> str:
    """
    Hash a password with a fresh bcrypt salt.
    """
    if not password:
        raise ValueError("Password cannot be empty")
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its bcrypt hash.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


# =====================================================
# Token Type Constants
# =====================================================
TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


# =====================================================
# JWT Creation
# =====================================================
def _encode_token(subject: Union[str, Any], token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {
        "exp": now + lifetime,
        "sub": str(subject),
        "type": token_type,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token for a user id.
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode_token(subject, TOKEN_TYPE_ACCESS, lifetime)


def create_refresh_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a long-lived JWT refresh token for a user id.
    """
    lifetime = expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode_token(subject, TOKEN_TYPE_REFRESH, lifetime)


# =====================================================
# Token Verification
# =====================================================
def verify_token(
    token: str,
    token_type: str = TOKEN_TYPE_ACCESS
) -> Optional[Dict[str, Any]]:
    """
    Decode a JWT and return its payload if the signature, expiry and
    token type are all valid; otherwise None.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None

    if payload.get("type") != token_type:
        return None
    return payload


def verify_refresh_token(token: str) -> Optional[str]:
    """
    Verify a refresh token and return its subject (user id).
    """
    payload = verify_token(token, TOKEN_TYPE_REFRESH)
    return payload.get("sub") if payload else None
