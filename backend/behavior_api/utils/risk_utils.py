from typing import Dict, Iterable, List, Optional

from ..schemas import (
    BehaviorLogRow, StudentRef, ClassRef, RiskBucket, RiskSummary, RiskReport
)

# fixed weighting, not configurable
SEVERITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}

UNKNOWN_ROOM = "Unknown room"
UNKNOWN_STUDENT = "Unknown student"
UNKNOWN_CLASS = "Unknown class"

# log-count thresholds for the dashboard's student bands
STUDENT_BAND_THRESHOLDS = (("high", 6), ("medium", 3), ("low", 1))


def normalize_severity(value: Optional[str]) -> str:
    v = (value or "").strip().lower()
    return v if v in SEVERITY_WEIGHTS else "low"


def student_name(s: Optional[StudentRef]) -> str:
    if s is None:
        return ""
    return " ".join(p for p in (s.first_name, s.last_name) if p).strip()


def student_display_name(s: Optional[StudentRef]) -> str:
    """'First Last (CODE)', falling back to the bare code, then 'Unknown student'."""
    if s is None:
        return UNKNOWN_STUDENT
    name = student_name(s)
    if not name:
        return s.code or UNKNOWN_STUDENT
    return f"{name} ({s.code})" if s.code else name


def class_display_name(c: Optional[ClassRef]) -> str:
    if c is None or not c.name:
        return UNKNOWN_CLASS
    return c.name


def resolve_room(row: BehaviorLogRow) -> str:
    if row.school_class is not None and row.school_class.room:
        return row.school_class.room
    if row.room:
        return row.room
    return UNKNOWN_ROOM


def _bump(buckets: Dict[str, RiskBucket], key: str, display_name: str, severity: str):
    b = buckets.get(key)
    if b is None:
        b = buckets[key] = RiskBucket(key=key, display_name=display_name)
    b.total_logs += 1
    setattr(b, severity, getattr(b, severity) + 1)
    b.risk_score += SEVERITY_WEIGHTS[severity]


def _ranked(buckets: Dict[str, RiskBucket]) -> List[RiskBucket]:
    # sorted() is stable, so equal scores keep first-seen order
    return sorted(buckets.values(), key=lambda b: (-b.risk_score, -b.total_logs))


def aggregate_risk(rows: Iterable[BehaviorLogRow]) -> RiskReport:
    """
    Fold behavior logs into per-student, per-class and per-room risk buckets.

    One pass over ``rows``. Rows without a student_id (or class_id) only skip
    that grouping; every row lands in exactly one room bucket.
    """
    by_student: Dict[str, RiskBucket] = {}
    by_class: Dict[str, RiskBucket] = {}
    by_room: Dict[str, RiskBucket] = {}
    summary = RiskSummary()

    for row in rows:
        sev = normalize_severity(row.severity)
        summary.totalLogs += 1
        if sev == "high":
            summary.highCount += 1
        elif sev == "medium":
            summary.mediumCount += 1
        else:
            summary.lowCount += 1

        if row.student_id:
            _bump(by_student, row.student_id, student_display_name(row.student), sev)
        if row.class_id:
            _bump(by_class, row.class_id, class_display_name(row.school_class), sev)
        room = resolve_room(row)
        _bump(by_room, room, room, sev)

    summary.studentCount = len(by_student)
    summary.classCount = len(by_class)
    summary.roomCount = len(by_room)

    return RiskReport(
        summary=summary,
        by_student=_ranked(by_student),
        by_class=_ranked(by_class),
        by_room=_ranked(by_room),
    )


def empty_risk_report() -> RiskReport:
    return RiskReport(summary=RiskSummary(), by_student=[], by_class=[], by_room=[])


def student_bands(by_student: Iterable[RiskBucket]) -> Dict[str, int]:
    bands = {name: 0 for name, _ in STUDENT_BAND_THRESHOLDS}
    for b in by_student:
        for name, threshold in STUDENT_BAND_THRESHOLDS:
            if b.total_logs >= threshold:
                bands[name] += 1
                break
    return bands
