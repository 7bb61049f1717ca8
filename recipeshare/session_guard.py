"""
Session guard: turns an inbound request into an authenticated Identity.

The client holds a signed token naming a server-side session row; the row
decides whether the session is live. The resolved Identity is passed to
handlers explicitly through dependencies and `request.state`.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from recipeshare import config
from recipeshare.database import SessionLocal, Session as DBSession, User, get_db
from recipeshare.errors import AuthenticationRequired
from recipeshare.logger import get_logger
from recipeshare.token_utils import InvalidSessionToken, decode_session_token
from recipeshare.utils_time import ensure_aware, get_now

logger = get_logger("session")


@dataclass(frozen=True)
class Identity:
    user_id: str
    username: str
    session_id: str


def extract_token(request: Request) -> Optional[str]:
    """Bearer header first (machine clients), then the session cookie."""
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(config.SESSION_COOKIE_NAME) or None


def wants_json(request: Request) -> bool:
    """Content negotiation for auth failures: structured error vs. login redirect."""
    if request.headers.get("x-requested-with", "").lower() == "xmlhttprequest":
        return True
    return "application/json" in request.headers.get("accept", "")


def resolve_identity(db: Session, token: Optional[str]) -> Optional[Identity]:
    """Return the Identity behind `token`, or None if it does not name a live session."""
    if not token:
        return None
    try:
        payload = decode_session_token(token)
    except InvalidSessionToken as e:
        logger.debug(f"Rejected session token: {e}")
        return None

    db_session = db.query(DBSession).filter(DBSession.session_id == payload["sid"]).first()
    if not db_session or not db_session.is_active:
        return None
    if db_session.user_id != payload["sub"]:
        logger.warning(f"Session {db_session.session_id} does not belong to token subject")
        return None
    if ensure_aware(db_session.expires_at) <= get_now():
        return None

    user = db.query(User).filter(User.id == db_session.user_id).first()
    if not user:
        return None
    return Identity(user_id=user.id, username=user.username, session_id=db_session.session_id)


def authenticate(request: Request, db: Session) -> Optional[Identity]:
    return resolve_identity(db, extract_token(request))


def _return_path(request: Request) -> str:
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return path


def _safe_authenticate(request: Request, db: Session) -> Optional[Identity]:
    try:
        return authenticate(request, db)
    except Exception as e:
        logger.warning(f"Error attaching user to request {request.method} {request.url.path}: {e}")
        return None


def current_identity(request: Request, db: Session) -> Optional[Identity]:
    """
    The request's Identity. Once the middleware has resolved the request its
    answer is final, including a failed resolution (anonymous).
    """
    if getattr(request.state, "identity_resolved", False):
        return request.state.identity
    return _safe_authenticate(request, db)


def require_user(request: Request, db: Session = Depends(get_db)) -> Identity:
    """Dependency for endpoints that need a signed-in user."""
    identity = current_identity(request, db)
    if identity is None:
        raise AuthenticationRequired(return_to=_return_path(request), wants_json=wants_json(request))
    return identity


def optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[Identity]:
    """Dependency for endpoints that personalise their answer when a user is signed in."""
    return current_identity(request, db)


def require_anonymous(request: Request, db: Session = Depends(get_db)) -> None:
    """Dependency for login/registration views: signed-in users are sent home."""
    if current_identity(request, db) is not None:
        raise HTTPException(status_code=303, detail="Already logged in", headers={"Location": "/"})


def _attach(request: Request) -> Optional[Identity]:
    db = SessionLocal()
    try:
        return _safe_authenticate(request, db)
    finally:
        db.close()


async def attach_identity(request: Request, call_next):
    """Middleware: best-effort identity resolution for every request; never fails it."""
    identity = None
    if extract_token(request):
        try:
            identity = await run_in_threadpool(_attach, request)
        except Exception as e:
            logger.warning(f"Error attaching user to request {request.method} {request.url.path}: {e}")
    request.state.identity = identity
    request.state.identity_resolved = True
    return await call_next(request)
