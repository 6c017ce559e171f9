import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select, delete

from ..deps import RequestContext, get_context, require_admin
from ..errors import ValidationError, NotFoundError
from ..models_db import Student, School
from ..schemas import CleanupRequest
from ..utils.csv_utils import students_export_csv
from ..utils.range_utils import parse_iso
from .exports import csv_response

log = logging.getLogger("behavior-api")
router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])

EXPORT_LIMIT_DEFAULT = 10000
EXPORT_LIMIT_MAX = 50000
ORDER_COLUMNS = {"created_at": Student.created_at, "full_name": Student.full_name, "id": Student.id}
# deletes are only allowed against seeded fixture rows
CLEANUP_MARKER = "Seeded"


def parse_limit(value: Optional[str], default: int = EXPORT_LIMIT_DEFAULT, maximum: int = EXPORT_LIMIT_MAX) -> int:
    try:
        n = float(value) if value not in (None, "") else default
    except ValueError:
        return default
    if n != n or n <= 0 or n == float("inf"):
        return default
    return min(int(n), maximum)


def parse_order(value: Optional[str]):
    raw = (value or "").strip() or "created_at.desc"
    col, _, direction = raw.partition(".")
    column = ORDER_COLUMNS.get(col, Student.created_at)
    return column.asc() if direction == "asc" else column.desc()


@router.get("/admin-check")
def admin_check():
    return {"ok": True}


@router.get("/admin/users")
def admin_users():
    return {"ok": True}


@router.get("/admin/students/export")
def export_students(pattern: Optional[str] = None, created_from: Optional[str] = None,
                    created_to: Optional[str] = None, school: Optional[str] = None,
                    school_id: Optional[str] = None, limit: Optional[str] = None,
                    order: Optional[str] = None, ctx: RequestContext = Depends(get_context)):
    sid = (school_id or "").strip()
    short = (school or "").strip()
    if not sid and short:
        sch = ctx.db.execute(select(School).where(School.short_code == short).limit(1)).scalars().first()
        if sch is None:
            raise NotFoundError(f"school {short} not found")
        sid = sch.id

    q = select(Student).order_by(parse_order(order))
    pattern = (pattern or "").strip()
    if pattern:
        q = q.where(Student.full_name.ilike(pattern))
    try:
        if created_from:
            q = q.where(Student.created_at >= parse_iso(created_from))
        if created_to:
            q = q.where(Student.created_at <= parse_iso(created_to))
    except ValueError:
        raise ValidationError("created_from/created_to must be ISO-8601 timestamps")
    if sid:
        q = q.where(Student.school_id == sid)
    q = q.limit(parse_limit(limit))

    rows = ctx.db.execute(q).scalars().all()
    return csv_response(students_export_csv(rows), "students.csv")


@router.post("/admin/students/cleanup")
def cleanup_students(payload: CleanupRequest, ctx: RequestContext = Depends(get_context)):
    pattern = (payload.pattern or "").strip()
    confirm = (payload.confirm or "").strip()
    if not pattern:
        raise ValidationError("pattern required")
    if CLEANUP_MARKER not in pattern:
        raise ValidationError(f'Refuse broad delete; include "{CLEANUP_MARKER}" in pattern')
    if not payload.dryRun and confirm != pattern:
        raise ValidationError("confirm must exactly match pattern when deleting")

    matches = ctx.db.execute(
        select(Student.id, Student.full_name).where(Student.full_name.ilike(pattern))
    ).all()
    sample = [{"id": r.id, "full_name": r.full_name} for r in matches]

    if payload.dryRun:
        return {"ok": True, "dryRun": True, "matches": len(sample[:100]), "sample": sample[:100]}

    ctx.db.execute(delete(Student).where(Student.id.in_([r["id"] for r in sample])))
    ctx.db.commit()
    log.warning(f"admin cleanup deleted {len(sample)} students matching {pattern!r}")
    return {"ok": True, "deleted": len(sample), "sample": sample[:5]}
