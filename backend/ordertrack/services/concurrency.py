# Overview: Row locking and race-free counter updates for the fulfillment workflow.

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def conditional_increment(model, *, row_id: int, counter_attr: str, delta: int, ceiling_attr: str, scope=()) -> bool:
    """
    Add delta to a counter column in one statement, only if the result stays
    within ceiling_attr.

    The check and the write happen in the same UPDATE, so two concurrent
    requests cannot both read the same headroom and overshoot it.
    Returns True when exactly one row was updated.
    """
    counter = getattr(model, counter_attr)
    ceiling = getattr(model, ceiling_attr)

    stmt = (
        update(model)
        .where(model.id == row_id, counter + delta <= ceiling, *scope)
        .values({counter_attr: counter + delta})
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    return result.rowcount == 1
