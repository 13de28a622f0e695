"""
api/routes/contacts.py -- Address-book CRUD routes.

Routes:
  GET    /api/contacts        -- one page of contacts: {data, total}
  POST   /api/contacts        -- create contact, 201
  PUT    /api/contacts/{id}   -- replace contact, 404 if absent
  DELETE /api/contacts/{id}   -- delete contact, 204 empty body, 404 if absent

Listing query params: page, pageSize, sortBy, order. Sortable columns are
the keys of CONTACT_SORT_COLUMNS.

Handlers are plain `def` so FastAPI runs them in its thread pool; the store
is synchronous and must not block the event loop.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.dependencies import list_query
from api.models import ContactIn, ContactOut, ContactPage, ErrorDetail
from auth.dependencies import require_claims
from contacts.store import CONTACT_SORT_COLUMNS, ContactStore
from core.collection import QuerySpec

# Router-level dependency: every contacts route requires a valid bearer token.
router = APIRouter(dependencies=[Depends(require_claims)])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=ErrorDetail(code="not_found", message="Contact not found.").model_dump(exclude_none=True),
    )


@router.get("/contacts", response_model=ContactPage)
def list_contacts(
    request: Request,
    spec: QuerySpec = Depends(list_query(CONTACT_SORT_COLUMNS)),
) -> ContactPage:
    """Return one page of contacts plus the total count across all pages."""
    store: ContactStore = request.app.state.contacts
    page = store.list_contacts(spec)
    return ContactPage(data=[ContactOut.from_contact(c) for c in page.rows], total=page.total)


@router.post("/contacts", response_model=ContactOut, status_code=201)
def create_contact(request: Request, body: ContactIn) -> ContactOut:
    store: ContactStore = request.app.state.contacts
    contact_id = store.create_contact(body.to_contact())
    created = store.get_contact(contact_id)
    if created is None:
        raise _not_found()
    return ContactOut.from_contact(created)


@router.put("/contacts/{contact_id}", response_model=ContactOut)
def replace_contact(request: Request, contact_id: int, body: ContactIn) -> ContactOut:
    """Replace every field of an existing contact."""
    store: ContactStore = request.app.state.contacts
    if not store.replace_contact(contact_id, body.to_contact()):
        raise _not_found()
    updated = store.get_contact(contact_id)
    if updated is None:
        raise _not_found()
    return ContactOut.from_contact(updated)


@router.delete("/contacts/{contact_id}", status_code=204)
def delete_contact(request: Request, contact_id: int) -> Response:
    store: ContactStore = request.app.state.contacts
    if not store.delete_contact(contact_id):
        raise _not_found()
    return Response(status_code=204)
