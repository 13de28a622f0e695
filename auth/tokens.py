"""
auth/tokens.py -- Session tokens and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the process secret and
       carry user_id, username (as sub), role_id, iat and exp. TokenService
       takes the secret at construction instead of reading a global, so tests
       can use deterministic keys. verify() raises InvalidTokenError on any
       failure -- the gate turns that into a 401 without saying which check
       failed.

  Passwords: bcrypt directly (no passlib wrapper). The _DUMMY_HASH constant
       enables timing equalization in authenticate_user() so response time
       does not reveal whether a username exists.

Layer rule: no imports from api/ or contacts/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import bcrypt
from jose import JWTError, jwt

from auth.models import Claims

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("rubrica.auth")

_ALGORITHM = "HS256"
_DEFAULT_TTL = timedelta(hours=2)


class InvalidTokenError(Exception):
    """Token is malformed, has a bad signature, or is expired."""


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt rejects secrets over 72 bytes with ValueError; UserCreate and
    UserUpdate validate the UTF-8 length before a password gets here.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw does the constant-time comparison. A malformed hash raises
    ValueError inside bcrypt; that is a mismatch, not a server error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("rubrica_timing_dummy")


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Authenticate a username/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH
    - Wrong password: bcrypt runs against the real hash

    Returns the User on success, None on any failure.
    """
    user = store.get_by_username(username)
    if user is None or not user.hashed_password:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        logger.debug("Password mismatch for user_id=%s", user.id)
        return None
    return user


# ---------------------------------------------------------------------------
# JWT issue / verify
# ---------------------------------------------------------------------------


class TokenService:
    """Issues and verifies signed, time-limited session tokens.

    Verification is a pure function of the token and the secret, so any
    number of API processes sharing SECRET_KEY accept each other's tokens.

    Usage:
        tokens = TokenService(settings.secret_key, default_ttl=timedelta(hours=2))
        token = tokens.issue(Claims(user_id=1, username="admin", role_id=1))
        claims = tokens.verify(token)
    """

    def __init__(self, secret_key: str, algorithm: str = _ALGORITHM, default_ttl: timedelta = _DEFAULT_TTL) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key.")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.default_ttl = default_ttl

    def issue(self, claims: Claims, ttl: timedelta | None = None) -> str:
        """Encode and sign claims with iat=now and exp=now+ttl.

        ttl defaults to the service's default_ttl.
        """
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": claims.username,
            "user_id": claims.user_id,
            "role_id": claims.role_id,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self.default_ttl),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Claims:
        """Decode and verify a token, returning the claims it was issued with.

        Raises InvalidTokenError on a bad signature, a malformed token or
        payload, or an exp in the past.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require_exp": True, "require_iat": True, "require_sub": True},
            )
        except JWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

        user_id = payload.get("user_id")
        role_id = payload.get("role_id")
        username = payload.get("sub")
        # bool is an int subclass; a forged true/false must not pass as an id.
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidTokenError("Token payload has no valid user_id.")
        if not isinstance(role_id, int) or isinstance(role_id, bool):
            raise InvalidTokenError("Token payload has no valid role_id.")
        if not isinstance(username, str) or not username:
            raise InvalidTokenError("Token payload has no valid subject.")
        return Claims(user_id=user_id, username=username, role_id=role_id)
