"""
api/routes/users.py -- User account and role routes.

Routes:
  GET    /api/users        -- one page of users with role_name: {data, total}
  POST   /api/users        -- create user (password hashed with bcrypt), 201
  PUT    /api/users/{id}   -- replace username/role; password only if given
  DELETE /api/users/{id}   -- delete user, 204 empty body, 404 if absent
  GET    /api/roles        -- all roles: {data}

Every route requires a valid bearer token. The token's role_id is carried
but not checked: any authenticated caller may manage users.

Listing query params: page, pageSize, sortBy, order. Only id and username
are sortable.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.dependencies import list_query
from api.models import ErrorDetail, RoleOut, RolesResponse, UserCreate, UserOut, UserPage, UserUpdate
from auth.dependencies import require_claims
from auth.models import User
from auth.store import USER_SORT_COLUMNS, UserStore
from auth.tokens import hash_password
from core.collection import QuerySpec

router = APIRouter(dependencies=[Depends(require_claims)])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=ErrorDetail(code="not_found", message="User not found.").model_dump(exclude_none=True),
    )


def _require_role(store: UserStore, role_id: int) -> None:
    """Reject unknown role ids up front; otherwise the FK violation would surface as a store error."""
    if store.get_role(role_id) is None:
        raise HTTPException(
            status_code=400,
            detail=ErrorDetail(code="invalid_role", message=f"Unknown role id {role_id}.").model_dump(),
        )


@router.get("/users", response_model=UserPage)
def list_users(
    request: Request,
    spec: QuerySpec = Depends(list_query(USER_SORT_COLUMNS)),
) -> UserPage:
    """Return one page of users plus the total count across all pages."""
    store: UserStore = request.app.state.user_store
    page = store.list_users(spec)
    return UserPage(data=[UserOut.from_user(u) for u in page.rows], total=page.total)


@router.post("/users", response_model=UserOut, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserOut:
    store: UserStore = request.app.state.user_store
    _require_role(store, body.role_id)
    user_id = store.create_user(
        User(username=body.username, role_id=body.role_id, hashed_password=hash_password(body.password))
    )
    created = store.get_by_id(user_id)
    if created is None:
        raise _not_found()
    return UserOut.from_user(created)


@router.put("/users/{user_id}", response_model=UserOut)
def replace_user(request: Request, user_id: int, body: UserUpdate) -> UserOut:
    """Replace a user's username and role; rehash the password only when one is supplied."""
    store: UserStore = request.app.state.user_store
    _require_role(store, body.role_id)
    hashed = hash_password(body.password) if body.password else None
    if not store.replace_user(user_id, body.username, body.role_id, hashed_password=hashed):
        raise _not_found()
    updated = store.get_by_id(user_id)
    if updated is None:
        raise _not_found()
    return UserOut.from_user(updated)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(request: Request, user_id: int) -> Response:
    store: UserStore = request.app.state.user_store
    if not store.delete_user(user_id):
        raise _not_found()
    return Response(status_code=204)


@router.get("/roles", response_model=RolesResponse)
def list_roles(request: Request) -> RolesResponse:
    store: UserStore = request.app.state.user_store
    return RolesResponse(data=[RoleOut.from_role(r) for r in store.list_roles()])
