from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recipeshare import config
from recipeshare.database import User, Session as DBSession
from recipeshare.errors import AuthenticationRequired, Conflict, NotFound, ValidationFailure
from recipeshare.logger import get_logger
from recipeshare.schemas.auth import ChangePasswordRequest, LoginRequest, ProfileUpdate, RegisterRequest
from recipeshare.security import hash_password
from recipeshare.token_utils import create_session_token
from recipeshare.utils_time import get_now

logger = get_logger("auth")


def safe_redirect(return_to: Optional[str]) -> str:
    """Only same-site absolute paths are honoured as post-login destinations."""
    if return_to and return_to.startswith("/") and not return_to.startswith("//"):
        return return_to
    return "/"


class AuthService:
    """Service for registration, login sessions and the signed-in user's account."""

    def __init__(self, db: Session):
        self.db = db

    def register_user(self, request: RegisterRequest) -> User:
        existing_user = self.db.query(User).filter(
            or_(User.email == request.email, User.username == request.username)
        ).first()
        if existing_user:
            field = "email" if existing_user.email == request.email else "username"
            raise Conflict(f"A user with this {field} already exists")

        db_user = User(
            username=request.username,
            email=request.email,
            password_hash=hash_password(request.password),
            first_name=request.first_name,
            last_name=request.last_name,
        )
        self.db.add(db_user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("A user with this email or username already exists")
        self.db.refresh(db_user)
        logger.info(f"Registered user {db_user.username} ({db_user.id})")
        return db_user

    def login_user(self, request: LoginRequest) -> User:
        db_user = self.db.query(User).filter(User.email == request.email).first()
        if not db_user or not db_user.verify_password(request.password):
            logger.info(f"Failed login for {request.email}")
            raise AuthenticationRequired("Invalid email or password")
        return db_user

    def start_session(self, user: User, request_ctx=None) -> Tuple[str, DBSession]:
        """Record a server-side session and return the signed token that names it."""
        ip_address = None
        user_agent = None
        if request_ctx is not None:
            user_agent = request_ctx.headers.get("user-agent")
            ip_address = request_ctx.headers.get("x-forwarded-for")
            if not ip_address and getattr(request_ctx, "client", None):
                ip_address = request_ctx.client.host

        now = get_now()
        db_session = DBSession(
            user_id=user.id,
            created_at=now,
            expires_at=now + timedelta(hours=config.SESSION_TTL_HOURS),
            is_active=True,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(db_session)
        self.db.commit()
        self.db.refresh(db_session)
        token = create_session_token(db_session.session_id, user.id, db_session.expires_at)
        logger.debug(f"Session {db_session.session_id} started for user {user.id}")
        return token, db_session

    def end_session(self, session_id: str) -> None:
        db_session = self.db.query(DBSession).filter(DBSession.session_id == session_id).first()
        if db_session and db_session.is_active:
            db_session.is_active = False
            self.db.commit()
            logger.debug(f"Session {session_id} ended")

    def get_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return user

    def update_profile(self, user_id: str, update: ProfileUpdate) -> User:
        # Read-modify-write without a version check: concurrent updates are last-write-wins
        user = self.get_user(user_id)
        for field, value in update.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user_id: str, request: ChangePasswordRequest) -> None:
        user = self.get_user(user_id)
        if not user.verify_password(request.current_password):
            raise AuthenticationRequired("Current password is incorrect")
        if request.current_password == request.new_password:
            raise ValidationFailure("New password must be different from the current password")
        user.password_hash = hash_password(request.new_password)
        self.db.commit()
        logger.info(f"Password changed for user {user_id}")
