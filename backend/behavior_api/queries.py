"""
Read helpers that turn ORM rows into the typed records the risk and CSV
code consumes. Anything coming out of the database is validated here once.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models_db import BehaviorLog, Student, SchoolClass
from .schemas import BehaviorLogRow, StudentRef, ClassRef
from .utils.range_utils import parse_iso


def _student_ref(s: Optional[Student]) -> Optional[StudentRef]:
    if s is None:
        return None
    return StudentRef(id=s.id, first_name=s.first_name, last_name=s.last_name,
                      code=s.code, class_id=s.class_id)


def _class_ref(c: Optional[SchoolClass]) -> Optional[ClassRef]:
    if c is None:
        return None
    return ClassRef(id=c.id, name=c.name, room=c.room)


def fetch_behavior_rows(db: Session, from_iso: Optional[str] = None, *,
                        severity: Optional[str] = None, category: Optional[str] = None,
                        student_id: Optional[str] = None, class_id: Optional[str] = None,
                        ascending: bool = False) -> List[BehaviorLogRow]:
    q = (
        select(BehaviorLog, Student, SchoolClass)
        .select_from(BehaviorLog)
        .outerjoin(Student, Student.id == BehaviorLog.student_id)
        .outerjoin(SchoolClass, SchoolClass.id == BehaviorLog.class_id)
    )
    if from_iso:
        q = q.where(BehaviorLog.created_at >= parse_iso(from_iso))
    if severity:
        q = q.where(BehaviorLog.severity == severity)
    if category:
        q = q.where(BehaviorLog.category == category)
    if student_id:
        q = q.where(BehaviorLog.student_id == student_id)
    if class_id:
        q = q.where(BehaviorLog.class_id == class_id)
    order = BehaviorLog.created_at.asc() if ascending else BehaviorLog.created_at.desc()
    q = q.order_by(order, BehaviorLog.id)

    rows = []
    for log, student, cls in db.execute(q).all():
        rows.append(BehaviorLogRow(
            id=log.id, created_at=log.created_at, student_id=log.student_id,
            class_id=log.class_id, room=log.room, category=log.category,
            severity=log.severity, summary=log.summary,
            student=_student_ref(student), school_class=_class_ref(cls),
        ))
    return rows


def get_class_ref(db: Session, class_id: str) -> Optional[ClassRef]:
    return _class_ref(db.get(SchoolClass, class_id))
