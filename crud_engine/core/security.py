from datetime import datetime, timedelta, timezone
from jose import jwt

from crud_engine.core.config import settings

ALGORITHM = "HS256"

def create_jwt(claims: dict, secret: str | None = None, expires_delta: timedelta | None = None) -> str:
    """Sign ``claims`` (``sub``, ``role``, ``email``...) for use as a bearer token."""
    now = datetime.now(timezone.utc)
    ttl = expires_delta if expires_delta is not None else timedelta(minutes=settings.JWT_TTL_MINUTES)
    data = dict(claims)
    data.update({"iat": int(now.timestamp()), "exp": int((now + ttl).timestamp())})
    return jwt.encode(data, secret or settings.JWT_SECRET, algorithm=ALGORITHM)

def decode_jwt(token: str, secret: str | None = None) -> dict:
    return jwt.decode(token, secret or settings.JWT_SECRET, algorithms=[ALGORITHM])
