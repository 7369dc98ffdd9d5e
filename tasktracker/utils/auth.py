import hashlib
import secrets
from datetime import datetime, timedelta, UTC
from typing import Optional

from fastapi import Header
from jose import jwt, JWTError
from passlib.context import CryptContext
from tasktracker.config import SECRET_KEY, ALGORITHM
from tasktracker.errors import InvalidTokenError, UnauthorizedError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str):
    """Hash a password after validating bcrypt's 72-byte limit.

    Raises ValueError if the UTF-8 encoding of the password exceeds 72 bytes.
    """
    if isinstance(password, str):
        b = password.encode("utf-8")
        if len(b) > 72:
            # make the failure explicit and consistent
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return pwd_context.hash(password)


def verify_password(plain, hashed):
    """Verify a plaintext password against a hash.

    If verification raises a ValueError (for example plain >72 bytes), return False
    to allow the caller to respond with an authentication failure instead of an error.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def generate_otp() -> str:
    """Six-digit code drawn uniformly from 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def digest_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_token(user_id) -> str:
    # read expiry at call-time so tests (and runtime overrides) that modify
    # tasktracker.config.ACCESS_TOKEN_EXPIRE_MINUTES take effect immediately
    import tasktracker.config as _cfg
    expire = datetime.now(UTC) + timedelta(minutes=_cfg.ACCESS_TOKEN_EXPIRE_MINUTES)
    data = {"sub": str(user_id), "exp": int(expire.timestamp())}  # exp is a Unix timestamp
    return jwt.encode(data, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> int:
    """Return the user id carried by ``token`` or raise InvalidTokenError."""
    try:
        # jwt.decode validates exp automatically
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise InvalidTokenError()
    sub = payload.get("sub")
    if not sub or not str(sub).isdigit():
        raise InvalidTokenError()
    return int(sub)


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


def get_current_user_id(authorization: Optional[str] = Header(None)) -> int:
    """FastAPI dependency attaching the authenticated user id to the request."""
    token = _extract_bearer(authorization)
    if not token:
        raise UnauthorizedError()
    return decode_token(token)
