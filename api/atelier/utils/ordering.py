"""Position helpers for user-ordered collections (portfolios, mood boards)."""

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session


def next_order(db: Session, order_column, *criteria) -> int:
    """
    Position for a new item appended to the end of a collection.

    Returns max(order) + 1 over the rows matching `criteria`, or 1 for an
    empty collection. Not guarded by a transaction: two concurrent appends
    may receive the same position.
    """
    current = db.query(func.max(order_column)).filter(*criteria).scalar()
    return 1 if current is None else current + 1
