"""Request-scoped dependencies shared by the route modules."""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .session import resolve_session_id
from ..data.database import get_db
from ..data.storage import Storage


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return Storage(db)


def get_session_id(request: Request) -> str:
    session_id = getattr(request.state, "session_id", None)
    return session_id or resolve_session_id(request.headers)


def is_degraded(request: Request) -> bool:
    return bool(getattr(request.state, "degrade_mode", False))
