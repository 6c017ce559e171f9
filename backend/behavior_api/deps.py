import base64
import hmac
import json
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .database import get_sessionmaker
from .errors import AppError, AuthError

# --------------- DB Session dependency ---------------
def get_db():
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()

# --------------- per-request context ---------------
@dataclass
class RequestContext:
    """What a handler needs to talk to the store on behalf of one caller."""
    db: Session
    settings: Settings
    authorization: str = ""

    @property
    def user_id(self) -> str:
        return token_subject(self.authorization)


def get_context(authorization: Optional[str] = Header(None),
                db: Session = Depends(get_db)) -> RequestContext:
    return RequestContext(db=db, settings=get_settings(), authorization=authorization or "")


def require_bearer(ctx: RequestContext = Depends(get_context)) -> RequestContext:
    if not ctx.authorization.lower().startswith("bearer "):
        raise AuthError("Missing Bearer token")
    return ctx


def _bearer_token(header: str) -> str:
    return header[7:] if header[:7].lower() == "bearer " else header


def require_admin(authorization: Optional[str] = Header(None)) -> None:
    expected = get_settings().ADMIN_BEARER_TOKEN.strip()
    if not expected:
        raise AppError("ADMIN_BEARER_TOKEN not set")
    token = _bearer_token(authorization or "").strip()
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError("Unauthorized")


def token_subject(authorization: str) -> str:
    """
    Best-effort read of the ``sub`` claim from a bearer JWT.

    The signature is NOT checked; the value only labels rows (message author,
    profile lookup). Returns "" when the header carries no readable JWT.
    """
    try:
        payload = _bearer_token(authorization or "").split(".")[1]
        payload += "=" * (-len(payload) % 4)
        claims = json.loads(base64.urlsafe_b64decode(payload))
    except (ValueError, IndexError):
        return ""
    if not isinstance(claims, dict):
        return ""
    return str(claims.get("sub") or "")
