"""
api/dependencies.py -- FastAPI Depends() helpers shared by the resource routers.

list_query(sort_columns) builds the dependency that turns a listing request's
query string into a validated QuerySpec. It reads request.query_params
directly instead of declaring typed Query() parameters: FastAPI would answer
pageSize=abc with a 422, while listings must fall back to defaults for bad
pagination input and only reject an unknown sortBy.

Because the dependency runs before the handler body, an invalid sortBy is
rejected before any store method (and any pooled connection) is touched.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from fastapi import HTTPException, Request
from sqlalchemy.sql import ColumnElement

from core.collection import InvalidSortError, QuerySpec, parse_query_spec
from core.config import get_settings


def list_query(sort_columns: Mapping[str, ColumnElement]) -> Callable[[Request], QuerySpec]:
    """Return a dependency that parses page/pageSize/sortBy/order for one resource.

    Usage:
        @router.get("/contacts")
        def list_contacts(spec: QuerySpec = Depends(list_query(CONTACT_SORT_COLUMNS))): ...
    """

    def _dep(request: Request) -> QuerySpec:
        settings = get_settings()
        try:
            return parse_query_spec(
                request.query_params,
                sort_columns,
                default_page_size=settings.default_page_size,
                max_page_size=settings.max_page_size,
            )
        except InvalidSortError as exc:
            raise HTTPException(
                status_code=400,
                detail={
                    "code": "invalid_sort",
                    "message": "Invalid sort column.",
                    "detail": f"Allowed values: {', '.join(exc.allowed)}",
                },
            ) from exc

    return _dep
