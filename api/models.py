"""
API request and response models for Rubrica REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
contacts/models.py, which own the internal domain representation. Route
handlers map between the two.

Password hashes have no field on any response model, so they cannot be
serialized by accident.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.models import Role, User
from contacts.models import Contact

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one @, no whitespace, a dot in the domain part.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt refuses secrets longer than 72 bytes (UTF-8), not 72 characters.
_MAX_PASSWORD_BYTES = 72

Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


def _check_password_bytes(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value.encode("utf-8")) > _MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {_MAX_PASSWORD_BYTES} bytes in UTF-8.")
    return value


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/login.

    Both fields are optional at the schema level so a body without them
    reaches the handler and gets the 400 missing_credentials error rather
    than a generic 422. Neither field has a length limit: an over-long
    password is just a wrong password and gets invalid_credentials.
    """

    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


class MeResponse(BaseModel):
    """Claims of the caller's token, as decoded by the auth gate."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str
    role_id: int


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


class ContactIn(BaseModel):
    """Request body for POST /api/contacts and PUT /api/contacts/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    surname: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=50)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    address: str = Field(min_length=1, max_length=500)

    def to_contact(self) -> Contact:
        return Contact(
            name=self.name,
            surname=self.surname,
            phone=self.phone,
            email=self.email,
            address=self.address,
        )


class ContactOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    surname: str
    phone: str
    email: str
    address: str

    @classmethod
    def from_contact(cls, contact: Contact) -> "ContactOut":
        """Factory method -- the domain-to-transport mapping lives next to the output model."""
        return cls(
            id=contact.id,
            name=contact.name,
            surname=contact.surname,
            phone=contact.phone,
            email=contact.email,
            address=contact.address,
        )


class ContactPage(BaseModel):
    """Response for GET /api/contacts."""

    model_config = ConfigDict(frozen=True)

    data: list[ContactOut]
    total: int


# ---------------------------------------------------------------------------
# Users and roles
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /api/users. A password is required for new accounts.

    Passwords are taken verbatim (no whitespace stripping) so the same string
    logs in later.
    """

    username: Username
    password: str = Field(min_length=1)
    role_id: int = Field(ge=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: Optional[str]) -> Optional[str]:
        return _check_password_bytes(v)


class UserUpdate(BaseModel):
    """Request body for PUT /api/users/{id}.

    password is optional: omitted, null or empty keeps the current hash.
    """

    username: Username
    password: Optional[str] = None
    role_id: int = Field(ge=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: Optional[str]) -> Optional[str]:
        return _check_password_bytes(v)


class UserOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    role_id: int
    role_name: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(id=user.id, username=user.username, role_id=user.role_id, role_name=user.role_name)


class UserPage(BaseModel):
    """Response for GET /api/users."""

    model_config = ConfigDict(frozen=True)

    data: list[UserOut]
    total: int


class RoleOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str

    @classmethod
    def from_role(cls, role: Role) -> "RoleOut":
        return cls(id=role.id, name=role.name)


class RolesResponse(BaseModel):
    """Response for GET /api/roles."""

    model_config = ConfigDict(frozen=True)

    data: list[RoleOut]
