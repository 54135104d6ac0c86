"""Database operations for authentication.

Tables: LoginProcesses, Sessions, Users. Every write is a single statement,
so concurrent requests and the sweeper need no coordination beyond the
database's own.
"""

from datetime import datetime

from clients.postgres_client import PostgresClient
from auth.types import Session, SessionData, User
from utils.timezone import now_utc


class AuthDatabase:
    """Database operations for authentication."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    # Login processes

    def create_login_process(self, state_token: str, nonce: str) -> None:
        """Record a started login."""
        self._db.execute(
            """INSERT INTO LoginProcesses (state_token, nonce, created_at)
               VALUES (%s, %s, %s)""",
            (state_token, nonce, now_utc()),
        )

    def consume_login_process(self, state_token: str) -> str | None:
        """Delete the login process for state_token and return its nonce.

        Delete-on-read: a state token can complete at most one login, even
        when two callbacks race.
        """
        row = self._db.execute_single(
            """DELETE FROM LoginProcesses
               WHERE state_token = %s
               RETURNING nonce""",
            (state_token,),
        )
        return row["nonce"] if row else None

    def delete_expired_login_processes(self, created_before: datetime) -> int:
        """Delete logins started before the cutoff. Returns count deleted."""
        rows = self._db.execute(
            """DELETE FROM LoginProcesses
               WHERE created_at < %s
               RETURNING state_token""",
            (created_before,),
        )
        return len(rows)

    # Users

    def get_user_by_email(self, email: str) -> User | None:
        row = self._db.execute_single(
            "SELECT id, email FROM Users WHERE email = %s",
            (email,),
        )
        if row is None:
            return None
        return User(id=row["id"], email=row["email"])

    # Sessions

    def create_session(self, session: Session) -> None:
        self._db.execute(
            """INSERT INTO Sessions (session_id, user_id, valid_until)
               VALUES (%s, %s, %s)""",
            (session.session_id, session.user_id, session.valid_until),
        )

    def get_session(self, session_id: str) -> SessionData | None:
        """Find a live session and its user in one query."""
        row = self._db.execute_single(
            """SELECT session_id, user_id, email
               FROM Sessions
               JOIN Users ON Users.id = Sessions.user_id
               WHERE session_id = %s AND valid_until > %s""",
            (session_id, now_utc()),
        )
        if row is None:
            return None
        return SessionData(
            session_id=row["session_id"],
            user_id=row["user_id"],
            email=row["email"],
        )

    def delete_expired_sessions(self) -> int:
        """Delete sessions past valid_until. Returns count deleted."""
        rows = self._db.execute(
            """DELETE FROM Sessions
               WHERE valid_until < %s
               RETURNING session_id""",
            (now_utc(),),
        )
        return len(rows)
