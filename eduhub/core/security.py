"""Password hashing and signed access tokens (JWT, HS256).

Two token kinds exist: ``standard`` for credentialed accounts (7 days) and
``guest`` for time-boxed guest identities (24 hours). Verification is pure
and stateless; there is no revocation list, expiry is the only invalidation.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from eduhub.core.config import get_settings
from eduhub.core.errors import InternalError
from eduhub.core.timeutils import utcnow

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_settings().bcrypt_rounds,
)


def verify_password(plain: str, hashed: str | None) -> bool:
    # guests and demoted guests have no password at all
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


class TokenKind(str, Enum):
    STANDARD = "standard"
    GUEST = "guest"


class TokenPayload(BaseModel):
    user_id: int
    is_guest: bool = False
    email: str | None = None
    mobile: str | None = None


class TokenError(Exception):
    """Base class for every token verification failure."""


class InvalidSignature(TokenError):
    """Token was tampered with or signed by another key."""


class TokenExpired(TokenError):
    """Token is past its expiry window."""


class MalformedToken(TokenError):
    """Value is not a token at all, or carries no usable identity."""


def _lifetime(kind: TokenKind) -> timedelta:
    settings = get_settings()
    if kind is TokenKind.GUEST:
        return timedelta(minutes=settings.guest_token_expire_minutes)
    return timedelta(minutes=settings.access_token_expire_minutes)


def create_access_token(
    payload: TokenPayload,
    kind: TokenKind = TokenKind.STANDARD,
    now: datetime | None = None,
) -> str:
    """Sign ``payload``; ``kind`` selects the expiry window."""
    settings = get_settings()
    if not settings.secret_key:
        logger.critical("SECRET_KEY is empty; refusing to sign tokens")
        raise InternalError("Token signing is not configured")

    issued_at = now or utcnow()
    claims = payload.model_dump(exclude_none=True)
    claims.update(
        {
            "kind": kind.value,
            "iat": issued_at,
            "exp": issued_at + _lifetime(kind),
        }
    )
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenPayload:
    """Verify signature and expiry and return the payload.

    Raises MalformedToken, InvalidSignature or TokenExpired.
    """
    settings = get_settings()
    if not token:
        raise MalformedToken("empty token")

    try:
        jwt.get_unverified_header(token)
    except JWTError as exc:
        raise MalformedToken(str(exc)) from exc

    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError as exc:
        raise TokenExpired(str(exc)) from exc
    except JWTError as exc:
        raise InvalidSignature(str(exc)) from exc

    try:
        return TokenPayload.model_validate(claims)
    except ValidationError as exc:
        raise MalformedToken("token carries no user identity") from exc
