# manuorder/orders/numbering.py

from datetime import datetime

from sqlalchemy import update, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import OrderSequence

ORDER_NUMBER_PREFIX = "ORD"


def format_order_number(year: int, sequence: int) -> str:
    """ORD-<year>-<sequence>, zero padded to four digits and wider when needed."""
    return f"{ORDER_NUMBER_PREFIX}-{year}-{sequence:04d}"


def next_sequence_value(db: Session, year: int) -> int:
    """
    Atomically bump the counter for ``year`` inside the caller's transaction.

    The UPDATE takes the row (or database) write lock, so concurrent creators
    queue behind it and each reads back its own value. The first order of a
    year inserts the row; if another creator wins that insert the savepoint is
    rolled back and the increment is retried.
    """
    result = db.execute(
        update(OrderSequence)
        .where(OrderSequence.year == year)
        .values(last_value=OrderSequence.last_value + 1)
    )
    if result.rowcount == 0:
        try:
            with db.begin_nested():
                db.add(OrderSequence(year=year, last_value=1))
            return 1
        except IntegrityError:
            db.execute(
                update(OrderSequence)
                .where(OrderSequence.year == year)
                .values(last_value=OrderSequence.last_value + 1)
            )

    return db.execute(select(OrderSequence.last_value).where(OrderSequence.year == year)).scalar_one()


def allocate_order_number(db: Session, now: datetime) -> str:
    year = now.year
    return format_order_number(year, next_sequence_value(db, year))
