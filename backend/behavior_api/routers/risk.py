import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..deps import get_db
from ..queries import fetch_behavior_rows
from ..schemas import RiskScanResponse, RiskDashboardResponse
from ..utils.range_utils import resolve_range, to_iso, ALL_TIME_RANGES, DAY_RANGES
from ..utils.risk_utils import aggregate_risk, empty_risk_report, student_bands

log = logging.getLogger("behavior-api")
router = APIRouter(tags=["risk"])


@router.get("/risk-scan", response_model=RiskScanResponse)
def risk_scan(range: Optional[str] = None, student_id: Optional[str] = None,
              db: Session = Depends(get_db)):
    rng = resolve_range(range, DAY_RANGES, default=get_settings().DEFAULT_RANGE)
    try:
        rows = fetch_behavior_rows(db, rng.from_iso, student_id=student_id or None)
    except SQLAlchemyError as e:
        # page still renders; the zeroed body is the signal
        log.error(f"Error loading risk scan data: {e}")
        return RiskScanResponse(**empty_risk_report().summary.model_dump(), rangeLabel=rng.label)

    report = aggregate_risk(rows)
    last = rows[0].created_at if rows else None   # newest first
    return RiskScanResponse(**report.summary.model_dump(), rangeLabel=rng.label, lastLogAt=to_iso(last))


@router.get("/risk", response_model=RiskDashboardResponse)
def risk_dashboard(range: Optional[str] = None, db: Session = Depends(get_db)):
    rng = resolve_range(range, ALL_TIME_RANGES, default=get_settings().DEFAULT_RANGE)
    error = None
    try:
        report = aggregate_risk(fetch_behavior_rows(db, rng.from_iso))
    except SQLAlchemyError as e:
        log.error(f"Error loading behavior logs for risk dashboard: {e}")
        report, error = empty_risk_report(), "Could not load behavior logs"

    return RiskDashboardResponse(
        **report.model_dump(),
        range=rng,
        student_bands=student_bands(report.by_student),
        error=error,
    )
