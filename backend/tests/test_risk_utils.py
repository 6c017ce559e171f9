from behavior_api.schemas import BehaviorLogRow, StudentRef, ClassRef, RiskSummary
from behavior_api.utils.risk_utils import (
    aggregate_risk, empty_risk_report, normalize_severity, student_bands, student_display_name,
    SEVERITY_WEIGHTS, UNKNOWN_ROOM,
)


def row(i, severity=None, student_id=None, class_id=None, room=None, school_class=None, student=None):
    return BehaviorLogRow(id=f"log-{i}", severity=severity, student_id=student_id, class_id=class_id,
                          room=room, school_class=school_class, student=student)


def test_three_logs_for_one_student():
    rows = [row(1, "high", "S1"), row(2, "high", "S1"), row(3, "low", "S1")]
    report = aggregate_risk(rows)
    assert len(report.by_student) == 1
    b = report.by_student[0]
    assert (b.key, b.total_logs, b.high, b.medium, b.low, b.risk_score) == ("S1", 3, 2, 0, 1, 7)


def test_empty_input_is_all_zero():
    report = aggregate_risk([])
    assert report.summary == RiskSummary(totalLogs=0, highCount=0, mediumCount=0, lowCount=0,
                                         studentCount=0, classCount=0, roomCount=0)
    assert report.by_student == [] and report.by_class == [] and report.by_room == []
    assert report == empty_risk_report()


def test_unknown_and_missing_severity_count_as_low():
    assert normalize_severity(None) == "low"
    assert normalize_severity("severe") == "low"
    assert normalize_severity(" HIGH ") == "high"
    report = aggregate_risk([row(1, "critical", "S1"), row(2, None, "S1")])
    assert report.summary.lowCount == 2
    assert report.by_student[0].risk_score == 2


def test_room_precedence_class_room_then_row_room_then_unknown():
    cls = ClassRef(id="C1", name="7B", room="B12")
    rows = [
        row(1, "high", class_id="C1", room="Gym", school_class=cls),
        row(2, "medium", room="Gym"),
        row(3, "low"),
    ]
    report = aggregate_risk(rows)
    rooms = {b.key: b for b in report.by_room}
    assert set(rooms) == {"B12", "Gym", UNKNOWN_ROOM}
    assert rooms["B12"].high == 1
    assert rooms["Gym"].medium == 1
    assert report.summary.roomCount == 3
    # rows without student/class ids only skip those groupings
    assert report.summary.studentCount == 0
    assert report.summary.classCount == 1


def test_sorting_by_score_then_volume_then_first_seen():
    rows = [
        row(1, "low", "A"), row(2, "low", "A"), row(3, "low", "A"),   # score 3, 3 logs
        row(4, "high", "B"),                                          # score 3, 1 log
        row(5, "medium", "C"), row(6, "medium", "C"),                 # score 4
        row(7, "high", "D"),                                          # score 3, 1 log, after B
    ]
    keys = [b.key for b in aggregate_risk(rows).by_student]
    assert keys == ["C", "A", "B", "D"]


def test_summary_counts_and_invariants():
    rows = [row(1, "high", "S1", "C1"), row(2, "medium", "S2", "C1"), row(3, "low", "S1", None, "Lab"),
            row(4, "bogus", None, "C2")]
    report = aggregate_risk(rows)
    s = report.summary
    assert s.totalLogs == 4
    assert s.highCount + s.mediumCount + s.lowCount == s.totalLogs
    assert (s.studentCount, s.classCount, s.roomCount) == (2, 2, 2)
    max_weight = max(SEVERITY_WEIGHTS[normalize_severity(r.severity)] for r in rows)
    assert sum(b.risk_score for b in report.by_student) >= max_weight


def test_aggregation_is_repeatable():
    rows = [row(1, "high", "S1", "C1"), row(2, "low", "S2", "C1")]
    first = aggregate_risk(rows)
    second = aggregate_risk(rows)
    assert first == second
    assert first.by_student[0] is not second.by_student[0]


def test_display_names():
    s = StudentRef(first_name="Ada", last_name="Lovelace", code="AL1")
    assert student_display_name(s) == "Ada Lovelace (AL1)"
    assert student_display_name(StudentRef(code="X9")) == "X9"
    assert student_display_name(StudentRef(first_name="Alan")) == "Alan"
    assert student_display_name(None) == "Unknown student"
    report = aggregate_risk([row(1, "high", "S1", "C1", student=s, school_class=ClassRef(name=None))])
    assert report.by_student[0].display_name == "Ada Lovelace (AL1)"
    assert report.by_class[0].display_name == "Unknown class"


def test_student_bands():
    rows = [row(i, "low", "busy") for i in range(6)] + [row(10 + i, "low", "mid") for i in range(3)] + [row(20, "low", "calm")]
    bands = student_bands(aggregate_risk(rows).by_student)
    assert bands == {"high": 1, "medium": 1, "low": 1}
