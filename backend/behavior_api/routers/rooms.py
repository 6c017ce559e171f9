import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy import select, func

from ..deps import RequestContext, get_context, require_bearer
from ..errors import ValidationError, NotFoundError
from ..models_db import Room, Message
from ..schemas import RoomCreate, RoomOut, MessageCreate, MessageOut
from ..utils.range_utils import to_iso
from ..utils.room_utils import ensure_room

log = logging.getLogger("behavior-api")
router = APIRouter(prefix="/rooms", tags=["rooms"])

MAX_MESSAGE_LEN = 4000


def room_out(r: Room) -> RoomOut:
    return RoomOut(id=r.id, name=r.name, school_id=r.school_id, meeting_url=r.meeting_url,
                   created_by=r.created_by, inserted_at=to_iso(r.inserted_at))


@router.get("")
def list_rooms(school_id: Optional[str] = None, name: Optional[str] = None,
               ctx: RequestContext = Depends(get_context)):
    q = select(Room).order_by(Room.inserted_at.desc())
    if school_id:
        q = q.where(Room.school_id == school_id)
    if name:
        q = q.where(func.lower(Room.name) == func.lower(name))
    rows = ctx.db.execute(q).scalars().all()
    return {"data": [room_out(r) for r in rows]}


@router.post("")
def create_room(payload: RoomCreate, ctx: RequestContext = Depends(get_context)):
    room, outcome = ensure_room(ctx.db, payload.name, payload.school_id, created_by=ctx.user_id or None)
    log.info(f"room {room.id} {outcome} for school={room.school_id}")
    return {"data": room_out(room), "meta": {outcome: True}}


@router.get("/{room_id}/messages")
def list_messages(room_id: str, limit: int = Query(10, ge=1),
                  ctx: RequestContext = Depends(require_bearer)):
    q = (
        select(Message)
        .where(Message.room_id == room_id)
        .order_by(Message.inserted_at.desc())
        .limit(min(limit, 100))
    )
    rows = ctx.db.execute(q).scalars().all()
    return {"data": [MessageOut(id=m.id, user_id=m.user_id, content=m.content,
                                inserted_at=to_iso(m.inserted_at)) for m in rows]}


@router.post("/{room_id}/messages", status_code=201)
def post_message(room_id: str, payload: MessageCreate,
                 ctx: RequestContext = Depends(require_bearer)):
    content = (payload.content or "").strip()
    if not content:
        raise ValidationError("content required")
    if ctx.db.get(Room, room_id) is None:
        raise NotFoundError("room not found")

    m = Message(room_id=room_id, user_id=ctx.user_id, content=payload.content[:MAX_MESSAGE_LEN])
    ctx.db.add(m); ctx.db.commit(); ctx.db.refresh(m)
    return JSONResponse({"ok": True, "id": m.id, "inserted_at": to_iso(m.inserted_at)}, status_code=201)
