"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in contacts/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or contacts/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A principal that can log in to Rubrica.

    role_id references roles.id. role_name is filled in by the store when the
    row is read through the roles join; it is never written.

    hashed_password is a bcrypt hash and must never leave the auth layer.
    """

    username: str
    role_id: int
    id: int | None = None
    hashed_password: str | None = None
    role_name: str | None = None
    created_at: str | None = None


@dataclass
class Role:
    id: int
    name: str


@dataclass(frozen=True)
class Claims:
    """Identity carried inside a session token.

    These three fields are exactly what TokenService.issue() signs and what
    TokenService.verify() hands back; iat/exp live only in the token.
    """

    user_id: int
    username: str
    role_id: int
