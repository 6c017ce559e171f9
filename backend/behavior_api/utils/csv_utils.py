"""
CSV exports.

Every export uses one quoting policy: all fields, header included, are
wrapped in double quotes with embedded quotes doubled. Output is a header
line, one line per row in input order, and a single trailing newline.
"""
import csv
import io
from typing import Iterable, List, Sequence

import pandas as pd

from ..schemas import BehaviorLogRow, RangeInfo
from .range_utils import to_iso
from .risk_utils import student_name, student_display_name, class_display_name

STUDENT_REPORT_HEADER = [
    "log_id", "student_name", "student_code", "class_name", "room",
    "severity", "category", "summary", "created_at", "range_label",
]

CLASS_REPORT_HEADER = [
    "log_id", "class_id", "class_name", "room", "student_id", "student_name",
    "student_code", "severity", "category", "summary", "created_at",
    "range_key", "range_label",
]

LOGS_EXPORT_HEADER = [
    "Date/Time", "Student", "Class", "Room", "Severity", "Category",
    "Summary", "Student ID", "Class ID", "Log ID", "Range",
]

RISK_EXPORT_HEADER = [
    "Date", "Student name", "Student code", "Class", "Room", "Severity",
    "Summary", "Log ID", "Range label",
]

STUDENTS_EXPORT_HEADER = ["id", "school_id", "full_name", "created_at"]


def _cell(value) -> str:
    if value is None:
        return ""
    return str(value)


def build_csv(header: Sequence[str], rows: Iterable[Sequence]) -> str:
    df = pd.DataFrame([[_cell(v) for v in r] for r in rows], columns=list(header), dtype=object)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def _room(row: BehaviorLogRow) -> str:
    if row.school_class is not None and row.school_class.room:
        return row.school_class.room
    return row.room or ""


def student_report_csv(rows: List[BehaviorLogRow], rng: RangeInfo) -> str:
    out = []
    for r in rows:
        s = r.student
        out.append([
            r.id,
            student_name(s),
            (s.code if s else None) or "",
            (r.school_class.name if r.school_class else None) or "",
            _room(r),
            r.severity or "Unspecified",
            r.category or "Uncategorized",
            r.summary or "",
            to_iso(r.created_at) or "",
            rng.label,
        ])
    return build_csv(STUDENT_REPORT_HEADER, out)


def class_report_csv(rows: List[BehaviorLogRow], class_id: str, rng: RangeInfo) -> str:
    out = []
    for r in rows:
        s = r.student
        out.append([
            r.id,
            r.class_id or class_id,
            (r.school_class.name if r.school_class else None) or "",
            _room(r),
            r.student_id or "",
            student_name(s),
            (s.code if s else None) or "",
            r.severity or "",
            r.category or "",
            r.summary or "",
            to_iso(r.created_at) or "",
            rng.key,
            rng.label,
        ])
    return build_csv(CLASS_REPORT_HEADER, out)


def logs_export_csv(rows: List[BehaviorLogRow], rng: RangeInfo) -> str:
    out = []
    for r in rows:
        out.append([
            to_iso(r.created_at) or "",
            student_display_name(r.student),
            class_display_name(r.school_class),
            _room(r),
            r.severity or "",
            r.category or "",
            r.summary or "",
            r.student_id or "",
            r.class_id or "",
            r.id,
            rng.label,
        ])
    return build_csv(LOGS_EXPORT_HEADER, out)


def risk_export_csv(rows: List[BehaviorLogRow], rng: RangeInfo) -> str:
    out = []
    for r in rows:
        s = r.student
        out.append([
            to_iso(r.created_at) or "",
            student_name(s),
            (s.code if s else None) or "",
            (r.school_class.name if r.school_class else None) or "",
            r.room or "",
            r.severity or "",
            r.summary or "",
            r.id,
            rng.label,
        ])
    return build_csv(RISK_EXPORT_HEADER, out)


def students_export_csv(students) -> str:
    return build_csv(
        STUDENTS_EXPORT_HEADER,
        ([s.id, s.school_id, s.full_name, to_iso(s.created_at)] for s in students),
    )


def read_csv_upload(content: bytes) -> pd.DataFrame:
    """Parse an uploaded CSV keeping every cell as a stripped string ('' for blanks)."""
    df = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False, skipinitialspace=True)
    df.columns = [str(c).strip() for c in df.columns]
    return df.apply(lambda col: col.str.strip())
