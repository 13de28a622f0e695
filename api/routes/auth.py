"""
api/routes/auth.py -- Credential exchange and identity endpoints.

Routes:
  POST /api/login  -- exchange {username, password} for {token}; public
  GET  /api/me     -- claims of the current token (requires auth)

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_username() + verify_password().
  Unknown user and wrong password get the same 400 invalid_credentials
  response, so the endpoint cannot be used to enumerate usernames.
  Cache-Control: no-store on login responses.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, LoginRequest, LoginResponse, MeResponse
from auth.dependencies import get_token_service, require_claims
from auth.models import Claims
from auth.store import UserStore
from auth.tokens import TokenService, authenticate_user

logger = logging.getLogger("rubrica.api")

router = APIRouter()


def _login_error(code: str, message: str) -> JSONResponse:
    resp = JSONResponse(
        status_code=400,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(exclude_none=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a signed session token."""
    if not body.username or not body.password:
        return _login_error("missing_credentials", "Username and password are required.")

    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.username, body.password)
    if user is None:
        logger.info("Failed login for username=%r", body.username[:50])
        return _login_error("invalid_credentials", "Invalid credentials.")

    tokens: TokenService = get_token_service(request)
    token = tokens.issue(Claims(user_id=user.id, username=user.username, role_id=user.role_id))
    resp = JSONResponse(status_code=200, content=LoginResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/me", response_model=MeResponse)
async def me(claims: Claims = Depends(require_claims)) -> MeResponse:
    """Return identity information carried by the caller's token."""
    return MeResponse(user_id=claims.user_id, username=claims.username, role_id=claims.role_id)
