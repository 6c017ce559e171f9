import logging
from typing import Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import StoreError
from ..models_db import Room

log = logging.getLogger("behavior-api")

PG_UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code == PG_UNIQUE_VIOLATION
    # sqlite has no SQLSTATE, only the message
    return "UNIQUE constraint failed" in str(orig)


def find_room(db: Session, school_id: str, name: str) -> Optional[Room]:
    q = (
        select(Room)
        .where(Room.school_id == school_id, func.lower(Room.name) == func.lower(name))
        .order_by(Room.inserted_at.desc())
        .limit(1)
    )
    return db.execute(q).scalars().first()


def ensure_room(db: Session, name: str, school_id: str, created_by: str = None) -> Tuple[Room, str]:
    """
    Return the room for (school_id, name), creating it if needed.

    The outcome is "existed", "created" or "conflict". "conflict" means a
    concurrent caller inserted the same room between our lookup and our
    insert; the unique index rejected our row and we return theirs.
    """
    existing = find_room(db, school_id, name)
    if existing is not None:
        return existing, "existed"

    room = Room(name=name, school_id=school_id, created_by=created_by)
    db.add(room)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if not is_unique_violation(e):
            log.error(f"room insert failed: {e}")
            raise StoreError(str(e.orig))
        winner = find_room(db, school_id, name)
        if winner is None:
            raise StoreError("room conflict reported but no room found")
        log.info(f"room insert lost race for school={school_id} name={name!r}")
        return winner, "conflict"
    except SQLAlchemyError as e:
        db.rollback()
        log.error(f"room insert failed: {e}")
        raise StoreError(str(e))

    db.refresh(room)
    return room, "created"
