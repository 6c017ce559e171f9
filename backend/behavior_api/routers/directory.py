import logging

from fastapi import APIRouter, Depends, UploadFile, File
from fastapi.responses import JSONResponse
from pandas.errors import EmptyDataError, ParserError
from sqlalchemy import select

from ..deps import RequestContext, get_context
from ..errors import ValidationError, PermissionDeniedError
from ..models_db import School, SchoolClass, Student, Profile, BehaviorLog, AttendanceLog, PositiveLog
from ..schemas import StudentCreate, LogCreate
from ..utils.csv_utils import read_csv_upload
from ..utils.range_utils import to_iso

log = logging.getLogger("behavior-api")
router = APIRouter(tags=["directory"])

IMPORT_COLUMNS = ["id", "first_name", "last_name", "code", "class_id", "photo_url"]

ATTENDANCE_STATUSES = {"present", "absent", "late", "excused"}
# canonical severities plus the aliases the quick-log form still sends
SEVERITY_ALIASES = {"low": "low", "medium": "medium", "high": "high",
                    "moderate": "medium", "severe": "high"}


def student_json(s: Student) -> dict:
    return {"id": s.id, "full_name": s.full_name, "first_name": s.first_name,
            "last_name": s.last_name, "code": s.code, "school_id": s.school_id,
            "class_id": s.class_id, "created_at": to_iso(s.created_at)}


@router.get("/schools")
def list_schools(ctx: RequestContext = Depends(get_context)):
    rows = ctx.db.execute(select(School).order_by(School.created_at.desc())).scalars().all()
    return {"data": [{"id": r.id, "name": r.name, "short_code": r.short_code,
                      "created_at": to_iso(r.created_at)} for r in rows]}


@router.get("/classes")
def list_classes(ctx: RequestContext = Depends(get_context)):
    rows = ctx.db.execute(select(SchoolClass)).scalars().all()
    return {"data": [{"id": r.id, "school_id": r.school_id, "name": r.name, "room": r.room,
                      "created_at": to_iso(r.created_at)} for r in rows]}


@router.get("/students")
def list_students(ctx: RequestContext = Depends(get_context)):
    q = select(Student).order_by(Student.created_at.desc()).limit(50)
    return {"data": [student_json(s) for s in ctx.db.execute(q).scalars().all()]}


@router.post("/students", status_code=201)
def create_student(payload: StudentCreate, ctx: RequestContext = Depends(get_context)):
    full_name = (payload.full_name or "").strip()
    if not full_name:
        raise ValidationError("full_name is required")

    # the caller's own profile decides the school
    prof = ctx.db.get(Profile, ctx.user_id) if ctx.user_id else None
    if prof is None or not prof.school_id:
        raise PermissionDeniedError("No profile/school found for current user")

    s = Student(full_name=full_name, school_id=prof.school_id)
    ctx.db.add(s); ctx.db.commit(); ctx.db.refresh(s)
    return JSONResponse({"data": student_json(s)}, status_code=201)


@router.post("/student-import")
async def student_import(file: UploadFile = File(None), ctx: RequestContext = Depends(get_context)):
    if file is None:
        return JSONResponse({"ok": False, "import": "missing_file", "count": 0}, status_code=400)

    content = await file.read()
    try:
        df = read_csv_upload(content)
    except (EmptyDataError, ParserError) as e:
        log.warning(f"student import unreadable: {e}")
        return JSONResponse({"ok": False, "import": "empty", "count": 0}, status_code=400)
    if df.empty:
        return JSONResponse({"ok": False, "import": "empty", "count": 0}, status_code=400)

    cols = [c for c in IMPORT_COLUMNS if c in df.columns]
    records = []
    for _, row in df.iterrows():
        rec = {c: row[c] for c in cols if row[c]}
        if not any(rec.get(k) for k in ("first_name", "last_name", "code", "id")):
            continue
        records.append(rec)

    if not records:
        return JSONResponse({"ok": False, "import": "no_valid_rows", "count": 0}, status_code=400)

    for rec in records:
        existing = ctx.db.get(Student, rec["id"]) if rec.get("id") else None
        if existing is None:
            existing = Student()
            ctx.db.add(existing)
        for k, v in rec.items():
            setattr(existing, k, v)
        existing.full_name = " ".join(p for p in (existing.first_name, existing.last_name) if p) or existing.full_name
    ctx.db.commit()

    log.info(f"imported {len(records)} students")
    return {"ok": True, "import": "success", "count": len(records)}


@router.post("/logs/{log_type}")
def create_log(log_type: str, payload: LogCreate, ctx: RequestContext = Depends(get_context)):
    if not payload.student_id:
        raise ValidationError("student_id required")

    student = ctx.db.get(Student, payload.student_id)
    if student is None or not student.school_id:
        raise ValidationError("student not found or missing school_id")

    if log_type != payload.type:
        raise ValidationError("invalid type/body")

    base = {"student_id": student.id, "school_id": student.school_id}
    severity = (payload.severity or "").strip().lower()
    if log_type == "attendance" and payload.status in ATTENDANCE_STATUSES:
        row = AttendanceLog(**base, status=payload.status, note=payload.note)
    elif log_type == "behavior" and severity in SEVERITY_ALIASES and payload.incident:
        row = BehaviorLog(
            **base,
            class_id=student.class_id,
            severity=SEVERITY_ALIASES[severity],
            incident=payload.incident,
            outcome=payload.outcome,
            category=payload.category,
            room=payload.room,
            summary=payload.summary or payload.incident,
        )
    elif log_type == "positive":
        row = PositiveLog(**base, stars=payload.stars or 0, code=payload.code, note=payload.note)
    else:
        raise ValidationError("invalid type/body")

    ctx.db.add(row); ctx.db.commit(); ctx.db.refresh(row)
    data = {c.name: getattr(row, c.name) for c in row.__table__.columns}
    data["created_at"] = to_iso(data.get("created_at"))
    return {"ok": True, "data": [data]}


@router.get("/me")
def me(ctx: RequestContext = Depends(get_context)):
    prof = ctx.db.get(Profile, ctx.user_id) if ctx.user_id else None
    return {"ok": True, "role": prof.role if prof else None}
