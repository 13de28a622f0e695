"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

One auth method only: an `Authorization: Bearer <token>` header. There is no
cookie or API-key fallback.

require_claims() is the gate for every protected router:
  - no Authorization header         -> 403 missing_token
  - wrong shape, bad signature,
    malformed payload, or expired   -> 401 invalid_token (one message for all)
  - otherwise the decoded Claims are stored on request.state.claims and
    returned to the handler.

The gate does not look the user up in the database; tokens are self-contained.

Layer rule: may import fastapi (this module is part of the DI system) but not
api/ or contacts/.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.models import Claims
from auth.tokens import InvalidTokenError, TokenService

logger = logging.getLogger("rubrica.auth")

_SCHEME = "bearer"


def get_token_service(request: Request) -> TokenService:
    """Return the TokenService built in the app lifespan."""
    return request.app.state.token_service


def _extract_bearer(header: str) -> str | None:
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != _SCHEME:
        return None
    token = token.strip()
    return token or None


def require_claims(request: Request) -> Claims:
    """Require a valid bearer token. Raises 403 if absent, 401 if invalid.

    Use as a FastAPI dependency:
        router = APIRouter(dependencies=[Depends(require_claims)])

        @router.get("/me")
        async def me(claims: Claims = Depends(require_claims)): ...
    """
    header = request.headers.get("Authorization", "")
    if not header.strip():
        raise HTTPException(
            status_code=403,
            detail={"code": "missing_token", "message": "A token is required for authentication."},
        )

    token = _extract_bearer(header)
    try:
        if token is None:
            raise InvalidTokenError("Authorization header is not a bearer token.")
        claims = get_token_service(request).verify(token)
    except InvalidTokenError as exc:
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, exc)
        raise HTTPException(
            status_code=401,
            detail={"code": "invalid_token", "message": "Invalid token."},
        ) from exc

    request.state.claims = claims
    return claims
