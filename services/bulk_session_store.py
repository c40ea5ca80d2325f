"""
Temporary storage for bulk order sessions.

Keeps sessions in memory with TTL expiration. Single-server only.
Expired and deleted sessions are closed so any validation still in
flight for them is discarded when it returns.
"""
from datetime import datetime, timedelta
from typing import Optional
import structlog

from config import settings
from exceptions import BulkSessionNotFoundError
from services.bulk_order_service import BulkOrderSession

logger = structlog.get_logger(__name__)

_sessions: dict[str, tuple[datetime, BulkOrderSession]] = {}


def _ttl() -> timedelta:
    return timedelta(minutes=settings.bulk_session_ttl_minutes)


def store_session(session: BulkOrderSession) -> str:
    """Store a session, return its id."""
    _cleanup_expired()
    _sessions[session.id] = (datetime.now() + _ttl(), session)
    return session.id


def retrieve_session(session_id: str) -> Optional[BulkOrderSession]:
    """Session by id, refreshing its TTL. None if expired/not found."""
    entry = _sessions.get(session_id)
    if entry is None:
        return None
    expires_at, session = entry
    if datetime.now() > expires_at:
        _expire(session_id)
        return None
    _sessions[session_id] = (datetime.now() + _ttl(), session)
    return session


def require_session(session_id: str) -> BulkOrderSession:
    """Like retrieve_session but raises BulkSessionNotFoundError."""
    session = retrieve_session(session_id)
    if session is None:
        raise BulkSessionNotFoundError(session_id)
    return session


def delete_session(session_id: str) -> bool:
    """Close and remove a session. Returns False if it was not stored."""
    entry = _sessions.pop(session_id, None)
    if entry is None:
        return False
    entry[1].close()
    return True


def clear_sessions() -> None:
    """Close and drop every session."""
    for session_id in list(_sessions):
        delete_session(session_id)


def _expire(session_id: str) -> None:
    if delete_session(session_id):
        logger.info("bulk_session_expired", session_id=session_id)


def _cleanup_expired() -> None:
    """Remove all expired entries."""
    now = datetime.now()
    expired = [k for k, (exp, _) in _sessions.items() if now > exp]
    for k in expired:
        _expire(k)


def session_count() -> int:
    """Live (unexpired) sessions, for the health endpoint."""
    _cleanup_expired()
    return len(_sessions)
