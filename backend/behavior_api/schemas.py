from datetime import datetime, date
from pydantic import BaseModel, Field
from typing import List, Dict, Optional

# ---------------- rows handed to the aggregator / CSV builders ----------------

class StudentRef(BaseModel):
    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    code: Optional[str] = None
    class_id: Optional[str] = None

class ClassRef(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    room: Optional[str] = None

class BehaviorLogRow(BaseModel):
    id: str
    created_at: Optional[datetime] = None
    student_id: Optional[str] = None
    class_id: Optional[str] = None
    room: Optional[str] = None
    category: Optional[str] = None
    severity: Optional[str] = None
    summary: Optional[str] = None
    # joined lookups, filled in by the caller
    student: Optional[StudentRef] = None
    school_class: Optional[ClassRef] = None

class RangeInfo(BaseModel):
    key: str
    from_iso: Optional[str]       # None means no lower bound
    label: str

# ---------------- risk ----------------

class RiskBucket(BaseModel):
    key: str
    display_name: str
    total_logs: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    risk_score: int = 0

class RiskSummary(BaseModel):
    totalLogs: int = 0
    highCount: int = 0
    mediumCount: int = 0
    lowCount: int = 0
    studentCount: int = 0
    classCount: int = 0
    roomCount: int = 0

class RiskReport(BaseModel):
    summary: RiskSummary
    by_student: List[RiskBucket]
    by_class: List[RiskBucket]
    by_room: List[RiskBucket]

class RiskScanResponse(RiskSummary):
    rangeLabel: str
    lastLogAt: Optional[str] = None

class RiskDashboardResponse(RiskReport):
    range: RangeInfo
    student_bands: Dict[str, int]    # {"high": n, "medium": n, "low": n}
    error: Optional[str] = None

# ---------------- rooms / messages ----------------

class RoomCreate(BaseModel):
    name: str = Field(min_length=1)
    school_id: str = Field(min_length=1)

class RoomOut(BaseModel):
    id: str
    name: str
    school_id: str
    meeting_url: Optional[str] = None
    created_by: Optional[str] = None
    inserted_at: Optional[str] = None

class MessageCreate(BaseModel):
    content: Optional[str] = None

class MessageOut(BaseModel):
    id: str
    user_id: Optional[str]
    content: Optional[str]
    inserted_at: Optional[str]

# ---------------- directory ----------------

class StudentCreate(BaseModel):
    full_name: Optional[str] = None

class LogCreate(BaseModel):
    student_id: Optional[str] = None
    type: Optional[str] = None
    # attendance
    status: Optional[str] = None
    note: Optional[str] = None
    # behavior
    severity: Optional[str] = None
    incident: Optional[str] = None
    outcome: Optional[str] = None
    category: Optional[str] = None
    summary: Optional[str] = None
    room: Optional[str] = None
    # positive
    stars: Optional[int] = None
    code: Optional[str] = None

# ---------------- admin / reports ----------------

class CleanupRequest(BaseModel):
    pattern: Optional[str] = ""
    dryRun: bool = False
    confirm: Optional[str] = ""

class ReportUrlRequest(BaseModel):
    student_id: str
    week_start: Optional[date] = None

class ReportUrlResponse(BaseModel):
    ok: bool = True
    url: str
    path: str
    expires_at: str
