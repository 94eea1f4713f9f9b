"""
Ownership Scoping Helpers

Every business table carries user_id. Every read and write goes through
owned_query(), which takes the caller's id as a required argument so the
owner filter cannot be forgotten or supplied from client input.

SECURITY INVARIANTS:
1. Routes pass g.user_id (set by decorators.require_auth)
2. Service functions take user_id explicitly; they never read it from payloads
3. A row owned by someone else is indistinguishable from a missing row

USAGE:
    from ordertrack.services.ownership_service import owned_query, get_owned

    orders = owned_query(PurchaseOrder, user_id).all()
    order = get_owned(PurchaseOrder, user_id, order_id)   # None if not owned
"""

from ..extensions import db
from ..validation import MAX_SQL_INTEGER
from .concurrency import lock_for_update


class OwnershipError(Exception):
    """Raised when no caller identity is available."""
    pass


def owned_query(model, user_id: int):
    """Query over model restricted to rows owned by user_id."""
    if user_id is None:
        raise OwnershipError("user_id is required for owned queries")
    return db.session.query(model).filter(model.user_id == user_id)


def get_owned(model, user_id: int, row_id, *, for_update: bool = False):
    """
    Fetch one owned row by primary key, or None.

    Rows that exist but belong to another user also return None so callers
    report a plain not-found. So do ids the database cannot hold (e.g. an
    oversized <int:...> path segment).
    """
    query = owned_query(model, user_id)
    if isinstance(row_id, int) and not 0 < row_id <= MAX_SQL_INTEGER:
        return None
    query = query.filter(model.id == row_id)
    if for_update:
        query = lock_for_update(query)
    return query.first()
