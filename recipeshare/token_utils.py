import jwt
from datetime import datetime
from typing import Dict, Any

from recipeshare import config

ALGORITHM = "HS256"


class InvalidSessionToken(Exception):
    """Raised when a session token cannot be trusted."""


def create_session_token(session_id: str, user_id: str, expires_at: datetime) -> str:
    """Sign a token naming the server-side session row; the row stays authoritative."""
    to_encode = {"sid": session_id, "sub": user_id, "exp": expires_at}
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise InvalidSessionToken("Token expired")
    except jwt.InvalidTokenError:
        raise InvalidSessionToken("Invalid token")
    if not payload.get("sid") or not payload.get("sub"):
        raise InvalidSessionToken("Token is missing session information")
    return payload
