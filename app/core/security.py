"""
Password hashing and the session token codec.

Tokens are HS256 JWTs carrying ``{userId, email, name, iat, exp}``. The
server keeps only ``token_digest(token)`` in the sessions table, a plain
SHA-256 of the token text that does not depend on the signing key.
"""

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from app.config import settings
from app.core.exceptions import TokenExpiredError, TokenInvalidError
from app.core.timeutils import utcnow

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class IssuedToken:
    token: str
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def issue_token(user_id: str, email: str, name: str, now: Optional[datetime] = None) -> IssuedToken:
    """Sign a session token valid for settings.token_ttl_hours."""
    issued_at = (now or utcnow()).replace(microsecond=0)
    expires_at = issued_at + timedelta(hours=settings.token_ttl_hours)
    payload = {
        "userId": user_id,
        "email": email,
        "name": name,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return IssuedToken(token=token, issued_at=issued_at, expires_at=expires_at)


def decode_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry; raises TokenExpiredError or TokenInvalidError."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError:
        raise TokenInvalidError()


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def claim_time(claims: Dict[str, Any], name: str) -> datetime:
    return datetime.fromtimestamp(int(claims[name]), tz=timezone.utc)
