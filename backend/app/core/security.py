from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.settings import settings


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def _expiry_delta(expires_delta: Optional[timedelta]) -> timedelta:
    if expires_delta is not None:
        return expires_delta
    minutes = settings.access_token_expire_minutes
    if minutes <= 0:
        minutes = 60
    return timedelta(minutes=minutes)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + _expiry_delta(expires_delta)
    to_encode.setdefault("iat", now)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.algorithm])


def safe_decode_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return decode_token(token)
    except JWTError:
        return None


# ── Approval codes and signatures ───────────────────────────────────────


_OTP_DIGITS = 6


def generate_numeric_code(digits: int = _OTP_DIGITS) -> str:
    """Return a random numeric code without a leading zero (100000-999999 for six digits)."""
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))


def codes_match(expected: str, supplied: str) -> bool:
    return secrets.compare_digest(expected.encode(), supplied.strip().encode())


def signature_digest(signature: str) -> str:
    """SHA-256 hex digest of an e-signature; the raw signature is never stored."""
    return hashlib.sha256(signature.encode("utf-8")).hexdigest()
