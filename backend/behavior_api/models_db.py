import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Index, func
from .database import Base

def _uuid():
    return str(uuid.uuid4())

def _now():
    return datetime.now(timezone.utc)

class School(Base):
    __tablename__ = "schools"
    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    short_code = Column(String, index=True)
    created_at = Column(DateTime(timezone=True), default=_now)

class SchoolClass(Base):
    __tablename__ = "classes"
    id = Column(String, primary_key=True, default=_uuid)
    school_id = Column(String, ForeignKey("schools.id"), index=True)
    name = Column(String)
    room = Column(String)          # physical room, wins over behavior_logs.room
    created_at = Column(DateTime(timezone=True), default=_now)

class Student(Base):
    __tablename__ = "students"
    id = Column(String, primary_key=True, default=_uuid)
    school_id = Column(String, ForeignKey("schools.id"), index=True)
    class_id = Column(String, ForeignKey("classes.id"), index=True)
    first_name = Column(String)
    last_name = Column(String)
    full_name = Column(String, index=True)
    code = Column(String)
    photo_url = Column(String)
    created_at = Column(DateTime(timezone=True), default=_now)

class BehaviorLog(Base):
    __tablename__ = "behavior_logs"
    id = Column(String, primary_key=True, default=_uuid)
    created_at = Column(DateTime(timezone=True), default=_now, index=True)
    school_id = Column(String, index=True)
    student_id = Column(String, ForeignKey("students.id"), index=True)
    class_id = Column(String, ForeignKey("classes.id"), index=True)
    room = Column(String)
    category = Column(String)      # disruption | work | respect | safety | other
    severity = Column(String)      # high | medium | low
    summary = Column(Text)
    incident = Column(Text)
    outcome = Column(Text)

class AttendanceLog(Base):
    __tablename__ = "attendance_logs"
    id = Column(String, primary_key=True, default=_uuid)
    student_id = Column(String, ForeignKey("students.id"), index=True)
    school_id = Column(String, index=True)
    status = Column(String)        # present | absent | late | excused
    note = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_now)

class PositiveLog(Base):
    __tablename__ = "positive_logs"
    id = Column(String, primary_key=True, default=_uuid)
    student_id = Column(String, ForeignKey("students.id"), index=True)
    school_id = Column(String, index=True)
    stars = Column(Integer, default=0)
    code = Column(String)
    note = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_now)

class Room(Base):
    __tablename__ = "rooms"
    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    school_id = Column(String, nullable=False, index=True)
    meeting_url = Column(String)
    created_by = Column(String)
    inserted_at = Column(DateTime(timezone=True), default=_now)

# one room per (school, case-insensitive name); the upsert relies on this
Index("uq_rooms_school_lower_name", Room.school_id, func.lower(Room.name), unique=True)

class Message(Base):
    __tablename__ = "messages"
    id = Column(String, primary_key=True, default=_uuid)
    room_id = Column(String, ForeignKey("rooms.id"), index=True)
    user_id = Column(String)
    content = Column(Text)
    inserted_at = Column(DateTime(timezone=True), default=_now)

class Profile(Base):
    __tablename__ = "profiles"
    user_id = Column(String, primary_key=True)
    school_id = Column(String, ForeignKey("schools.id"))
    role = Column(String)          # admin | teacher | staff

class Report(Base):
    __tablename__ = "reports"
    id = Column(String, primary_key=True, default=_uuid)
    student_id = Column(String, ForeignKey("students.id"), index=True)
    week_start = Column(Date)
    file_path = Column(String)
