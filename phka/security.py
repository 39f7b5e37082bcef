"""
Authentication, role gates, login lockout and the in-memory rate limiter.

Bearer tokens are signed JWTs. Each one carries a `jti` whose SHA-256 digest
is stored in `personal_access_tokens`; deleting that row revokes the token.
"""
import functools
import inspect
import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import jwt  # PyJWT
from Crypto.Hash import SHA256
from fastapi import Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from passlib.hash import pbkdf2_sha256
from sqlalchemy.orm import Session

from phka.config import JWT_ALGORITHM, SECRET_KEY, TOKEN_EXPIRES_MINUTES
from phka.database import get_db, utcnow
from phka.models import PersonalAccessToken, User
from phka.models.user import ADMIN_ROLES, ROLE_SUPER_ADMIN

logger = logging.getLogger(__name__)

# Lockout parameters (account-based, in-memory)
LOCK_THRESHOLD = 5         # failed attempts
LOCK_WINDOW = 60           # seconds to count failed attempts
LOCK_DURATION = 60         # lock duration in seconds


# ---------- Passwords ----------
def hash_password(password: str) -> str:
    return pbkdf2_sha256.hash(password)


def verify_password(password: str, hashval: str) -> bool:
    return pbkdf2_sha256.verify(password, hashval)


# ---------- Tokens ----------
def hash_token_id(jti: str) -> str:
    h = SHA256.new()
    h.update(jti.encode())
    return h.hexdigest()


def create_token(payload: dict, expires_in_minutes: Optional[int] = None) -> str:
    to_encode = payload.copy()
    minutes = expires_in_minutes if expires_in_minutes is not None else TOKEN_EXPIRES_MINUTES
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def issue_token(db: Session, user: User, name: Optional[str] = None) -> str:
    """Sign a token for `user` and record it; the caller commits."""
    jti = uuid.uuid4().hex
    db.add(
        PersonalAccessToken(
            user_id=user.id,
            name=name or "api",
            token=hash_token_id(jti),
            expires_at=utcnow() + timedelta(minutes=TOKEN_EXPIRES_MINUTES),
        )
    )
    return create_token({"sub": str(user.id), "jti": jti})


def revoke_all_tokens(db: Session, user: User) -> int:
    return db.query(PersonalAccessToken).filter(PersonalAccessToken.user_id == user.id).delete()


def _resolve_token(db: Session, authorization: Optional[str]) -> PersonalAccessToken:
    if not authorization:
        raise HTTPException(status_code=401, detail="Unauthenticated")
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid auth header")
    data = decode_token(authorization.split(" ", 1)[1])
    record = (
        db.query(PersonalAccessToken)
        .filter(PersonalAccessToken.token == hash_token_id(str(data.get("jti", ""))))
        .first()
    )
    if not record or str(record.user_id) != str(data.get("sub")):
        raise HTTPException(status_code=401, detail="Token revoked")
    user = record.user
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        logger.warning("Rejected token for deactivated user %s", user.id)
        raise HTTPException(status_code=403, detail="Account is deactivated")
    record.last_used_at = utcnow()
    db.commit()
    return record


def get_current_token(
    authorization: Optional[str] = Header(None), db: Session = Depends(get_db)
) -> PersonalAccessToken:
    return _resolve_token(db, authorization)


def get_current_user(token: PersonalAccessToken = Depends(get_current_token)) -> User:
    """
    Dependency used by endpoints:
    - Expects Authorization: Bearer <token>
    - Decodes token (pyjwt validates exp) and checks it was not revoked
    - Rejects deactivated accounts with 403
    """
    return token.user


def get_optional_user(authorization: Optional[str] = Header(None), db: Session = Depends(get_db)) -> Optional[User]:
    """Signed-in user when a valid token is sent, otherwise None"""
    if not authorization:
        return None
    try:
        return _resolve_token(db, authorization).user
    except HTTPException as exc:
        logger.info("Ignoring unusable token on public endpoint: %s", exc.detail)
        return None


# ---------- Role gates ----------
def require_role(user: User, allowed, message: str = "Forbidden for this role"):
    if user.role not in allowed:
        raise HTTPException(status_code=403, detail=message)


def require_admin(user: User = Depends(get_current_user)) -> User:
    require_role(user, ADMIN_ROLES, "Access denied. Admin privileges required.")
    return user


def require_super_admin(user: User = Depends(get_current_user)) -> User:
    require_role(user, (ROLE_SUPER_ADMIN,), "Access denied. Super admin privileges required.")
    return user


# ---------- In-memory account failure tracker ----------
# Structure: account_failures[user_id] = {"attempts": [ts1, ts2, ...], "lock_until": ts_or_none}
account_failures: Dict[int, Dict[str, Any]] = {}


def _clean_attempts(attempts: List[float], window: int) -> List[float]:
    now = time.time()
    return [t for t in attempts if now - t < window]


def is_locked(user_id: int) -> Optional[float]:
    rec = account_failures.get(user_id)
    if not rec:
        return None
    lock_until = rec.get("lock_until")
    if lock_until and time.time() < lock_until:
        return lock_until
    return None


def record_failed_attempt(user_id: int) -> Optional[float]:
    """Store a failed login; returns the lock expiry when this attempt locks the account"""
    now = time.time()
    rec = account_failures.setdefault(user_id, {"attempts": [], "lock_until": None})
    attempts = _clean_attempts(rec["attempts"], LOCK_WINDOW)
    attempts.append(now)
    rec["attempts"] = attempts
    if len(attempts) >= LOCK_THRESHOLD:
        rec["lock_until"] = now + LOCK_DURATION
        logger.warning("Account %s locked after %d failed logins", user_id, len(attempts))
        return rec["lock_until"]
    return None


def clear_failures(user_id: int):
    account_failures.pop(user_id, None)


def lockout_message(lock_until: float) -> str:
    remaining = max(int(lock_until - time.time()), 0)
    return (
        "Account temporarily locked due to multiple failed login attempts. "
        f"Try again in {remaining} seconds."
    )


# ---------- Simple In-Memory Rate Limiter ----------
rate_store: Dict[tuple, List[float]] = {}


def _cleanup_old(ts_list: List[float], window: int) -> List[float]:
    now = time.time()
    return [t for t in ts_list if now - t < window]


def _find_request(args, kwargs) -> Optional[Request]:
    request = kwargs.get("request")
    if request is not None:
        return request
    for a in args:
        if isinstance(a, Request):
            return a
    return None


def _hit(func: Callable, limit: int, window: int, key: Optional[str], args, kwargs) -> bool:
    """Record one call; False when the caller is over its limit"""
    request = _find_request(args, kwargs)
    ip = request.client.host if request and request.client else "unknown"
    store_key = (ip, key or f"{func.__module__}.{func.__name__}")
    arr = _cleanup_old(rate_store.get(store_key, []), window)
    if len(arr) >= limit:
        rate_store[store_key] = arr
        logger.warning("Rate limit hit for %s on %s", ip, store_key[1])
        return False
    arr.append(time.time())
    rate_store[store_key] = arr
    return True


def _too_many() -> JSONResponse:
    return JSONResponse(status_code=429, content={"success": False, "message": "Too many requests"})


def rate_limit(limit: int, window: int, key: Optional[str] = None):
    """Sliding-window limiter keyed by client IP and endpoint; the endpoint must take `request: Request`"""

    def decorator(func: Callable):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            if not _hit(func, limit, window, key, args, kwargs):
                return _too_many()
            return await func(*args, **kwargs)

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            if not _hit(func, limit, window, key, args, kwargs):
                return _too_many()
            return func(*args, **kwargs)

        return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper

    return decorator
