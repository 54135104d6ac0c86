"""Session issuance and lookup.

Sessions live in the Sessions table; the cookie only carries an opaque
32-symbol id. Validity is decided by the database row, never by the token.
"""

import logging
import secrets

from starlette.concurrency import run_in_threadpool

from api.request import parse_cookie_header
from auth.config import AppConfig
from auth.database import AuthDatabase
from auth.types import Session, SessionData
from utils.timezone import hours_from_now

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"
SESSION_ID_LENGTH = 32
# URL-safe alphabet, 6 bits of entropy per symbol
SESSION_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-"


def generate_session_id() -> str:
    return "".join(secrets.choice(SESSION_ID_ALPHABET) for _ in range(SESSION_ID_LENGTH))


def session_cookie(session_id: str) -> str:
    """Set-Cookie value for a session id."""
    return f"{SESSION_COOKIE}={session_id}; Secure; HttpOnly; SameSite=Strict"


class SessionManager:
    """Session lifecycle backed by the relational store."""

    def __init__(self, auth_db: AuthDatabase, config: AppConfig):
        self._auth_db = auth_db
        self._config = config

    async def resolve(self, cookie_header: str | None) -> SessionData | None:
        """Resolve the Cookie header to a live session.

        A missing cookie or unknown id is not an error: it returns None and
        the caller starts a login.

        Raises:
            UnparseableCookie: If the header is not valid cookie syntax.
            DuplicateCookies: If one name carries two different values.
        """
        cookies = parse_cookie_header(cookie_header)
        session_id = cookies.get(SESSION_COOKIE)
        if session_id is None:
            return None
        return await run_in_threadpool(self._auth_db.get_session, session_id)

    async def create_session(self, user_id: int) -> Session:
        """Issue a new session for user_id."""
        session = Session(
            session_id=generate_session_id(),
            user_id=user_id,
            valid_until=hours_from_now(self._config.session_lifetime_hours),
        )
        await run_in_threadpool(self._auth_db.create_session, session)
        logger.info(f"Session created for user {user_id}")
        return session
