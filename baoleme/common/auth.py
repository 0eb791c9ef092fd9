# baoleme/common/auth.py
"""JWT issuing, server-side token registry and the route guard."""

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request

from ..models import db, AuthToken
from .errors import BusinessError, PermissionDenied, Unauthorized

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_MERCHANT = "merchant"
ROLE_RIDER = "rider"
ROLE_ADMIN = "admin"
ROLES = {ROLE_USER, ROLE_MERCHANT, ROLE_RIDER, ROLE_ADMIN}

ALGORITHM = "HS256"
ALREADY_LOGGED_IN = "该用户已登录，请先登出"


def _subject(role: str, user_id) -> str:
    return f"{role}:{user_id}"


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def issue_token(user_id, role: str, username=None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": int(user_id),
        "role": role,
        "username": username,
        "iat": now,
        "exp": now + timedelta(hours=current_app.config["JWT_EXPIRE_HOURS"]),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=ALGORITHM)


def parse_token(token: str) -> dict:
    try:
        return jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[ALGORITHM])
    except jwt.PyJWTError as exc:
        logger.info("rejected token: %s", exc)
        raise Unauthorized()


def login_token(user_id, role: str, username=None) -> str:
    """
    Issue and register a token for a fresh login. A subject that still holds
    a live token has to log out first; an expired entry is replaced.
    """
    subject = _subject(role, user_id)
    existing = db.session.get(AuthToken, subject)
    if existing is not None and existing.expires_at > _now():
        raise BusinessError(ALREADY_LOGGED_IN)
    token = issue_token(user_id, role, username)
    _store(subject, token, existing)
    return token


def refresh_token(user_id, role: str, username=None) -> str:
    """Re-issue the token of a logged-in subject (e.g. after a rename)."""
    subject = _subject(role, user_id)
    token = issue_token(user_id, role, username)
    _store(subject, token, db.session.get(AuthToken, subject))
    return token


def _store(subject: str, token: str, existing):
    expires_at = _now() + timedelta(hours=current_app.config["JWT_EXPIRE_HOURS"])
    if existing is None:
        db.session.add(AuthToken(subject=subject, token=token, expires_at=expires_at))
    else:
        existing.token = token
        existing.expires_at = expires_at


def revoke_token(user_id, role: str):
    entry = db.session.get(AuthToken, _subject(role, user_id))
    if entry is not None:
        db.session.delete(entry)


def _verify(token: str) -> dict:
    claims = parse_token(token)
    user_id, role = claims.get("user_id"), claims.get("role")
    if user_id is None or role not in ROLES:
        raise Unauthorized()
    entry = db.session.get(AuthToken, _subject(role, user_id))
    if entry is None or entry.token != token:
        raise Unauthorized()
    return claims


def login_required(*roles):
    """Route guard: Bearer token must be live and, if given, of one of `roles`."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            header = request.headers.get("Authorization", "")
            if not header.startswith("Bearer "):
                raise Unauthorized()
            claims = _verify(header[len("Bearer "):].strip())
            if roles and claims["role"] not in roles:
                raise PermissionDenied()
            g.current_user = claims
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def current_id() -> int:
    return int(g.current_user["user_id"])


def current_role() -> str:
    return g.current_user["role"]


def current_username():
    return g.current_user.get("username")
