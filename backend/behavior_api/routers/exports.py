import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..deps import get_db
from ..queries import fetch_behavior_rows, get_class_ref
from ..utils.csv_utils import (
    logs_export_csv, risk_export_csv, student_report_csv, class_report_csv
)
from ..utils.range_utils import resolve_range, ALL_TIME_RANGES, DAY_RANGES, STANDARD_RANGES

log = logging.getLogger("behavior-api")
router = APIRouter(tags=["exports"])

SEVERITIES = {"high", "medium", "low"}
CATEGORIES = {"disruption", "work", "respect", "safety", "other"}


def _pick(value: Optional[str], allowed) -> Optional[str]:
    v = (value or "").lower()
    return v if v in allowed else None


def csv_response(body: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/logs-export")
def logs_export(range: Optional[str] = None, severity: Optional[str] = None,
                category: Optional[str] = None, student_id: Optional[str] = None,
                class_id: Optional[str] = None, db: Session = Depends(get_db)):
    rng = resolve_range(range, STANDARD_RANGES, default=get_settings().DEFAULT_RANGE)
    sev = _pick(severity, SEVERITIES)
    cat = _pick(category, CATEGORIES)
    student_id = student_id or None
    class_id = class_id or None
    try:
        rows = fetch_behavior_rows(db, rng.from_iso, severity=sev, category=cat,
                                   student_id=student_id, class_id=class_id)
    except SQLAlchemyError as e:
        log.error(f"Error exporting behavior logs: {e}")
        return PlainTextResponse("Error exporting logs", status_code=500)

    filename = f"behavior-logs-{rng.key}"
    if sev:
        filename += f"-severity-{sev}"
    if cat:
        filename += f"-category-{cat}"
    if student_id:
        filename += f"-student-{student_id}"
    if class_id:
        filename += f"-class-{class_id}"
    return csv_response(logs_export_csv(rows, rng), filename + ".csv")


@router.get("/risk-export")
def risk_export(range: Optional[str] = None, db: Session = Depends(get_db)):
    rng = resolve_range(range, DAY_RANGES, default=get_settings().DEFAULT_RANGE)
    try:
        rows = fetch_behavior_rows(db, rng.from_iso)
    except SQLAlchemyError as e:
        log.error(f"Error exporting risk logs: {e}")
        return PlainTextResponse("Failed to export risk logs", status_code=500)
    return csv_response(risk_export_csv(rows, rng), f"risk_logs_{rng.key}.csv")


@router.get("/student-report-export")
def student_report_export(student_id: Optional[str] = None, range: Optional[str] = None,
                          db: Session = Depends(get_db)):
    if not student_id:
        return PlainTextResponse("Missing student_id", status_code=400)
    rng = resolve_range(range, ALL_TIME_RANGES, default=get_settings().DEFAULT_RANGE)
    try:
        rows = fetch_behavior_rows(db, rng.from_iso, student_id=student_id, ascending=True)
    except SQLAlchemyError as e:
        log.error(f"Error exporting student report logs: {e}")
        return PlainTextResponse("Failed to export logs", status_code=500)
    return csv_response(student_report_csv(rows, rng),
                        f"student-risk-report-{student_id}-{rng.key}.csv")


@router.get("/class-report-export")
def class_report_export(class_id: Optional[str] = None, range: Optional[str] = None,
                        db: Session = Depends(get_db)):
    if not class_id:
        return PlainTextResponse("Missing class_id", status_code=400)
    rng = resolve_range(range, STANDARD_RANGES, default=get_settings().DEFAULT_RANGE)
    try:
        rows = fetch_behavior_rows(db, rng.from_iso, class_id=class_id, ascending=True)
        requested = get_class_ref(db, class_id)
    except SQLAlchemyError as e:
        log.error(f"Error loading class report logs: {e}")
        return PlainTextResponse("Error loading logs", status_code=500)

    # logs without a joined class report under the requested class
    rows = [r if r.school_class else r.model_copy(update={"school_class": requested}) for r in rows]
    return csv_response(class_report_csv(rows, class_id, rng),
                        f"class-risk-report-{class_id}-{rng.key}.csv")
