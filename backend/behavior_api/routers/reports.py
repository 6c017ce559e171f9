from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import select

from ..deps import RequestContext, require_bearer
from ..errors import NotFoundError
from ..models_db import Report
from ..schemas import ReportUrlRequest, ReportUrlResponse
from ..utils.range_utils import to_iso
from ..utils.report_utils import signed_report_url

router = APIRouter(tags=["reports"])


@router.post("/get-report-url", response_model=ReportUrlResponse)
def get_report_url(payload: ReportUrlRequest, ctx: RequestContext = Depends(require_bearer)):
    q = select(Report.file_path).where(Report.student_id == payload.student_id)
    if payload.week_start:
        q = q.where(Report.week_start == payload.week_start)
    q = q.order_by(Report.week_start.desc()).limit(1)
    path = ctx.db.execute(q).scalars().first()
    if not path:
        raise NotFoundError("No report path found")

    s = ctx.settings
    url, expires = signed_report_url(s.REPORT_URL_BASE, path, s.REPORT_SIGNING_SECRET, s.REPORT_URL_TTL)
    return ReportUrlResponse(url=url, path=path,
                             expires_at=to_iso(datetime.fromtimestamp(expires, tz=timezone.utc)))
