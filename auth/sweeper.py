"""Periodic deletion of expired sessions and abandoned logins.

Runs as its own task next to request handling. It shares nothing with
requests except the database, where each delete is a single statement.
"""

import asyncio
import logging

from starlette.concurrency import run_in_threadpool

from api import errors
from auth.config import AppConfig
from auth.database import AuthDatabase
from utils.timezone import minutes_ago

logger = logging.getLogger(__name__)


class Sweeper:
    """Deletes expired rows every sweep_interval_seconds."""

    def __init__(self, auth_db: AuthDatabase, config: AppConfig):
        self._auth_db = auth_db
        self._config = config

    def sweep_once(self) -> tuple[int, int]:
        """Run one sweep.

        Returns:
            Tuple of (sessions_deleted, login_processes_deleted)
        """
        sessions = self._auth_db.delete_expired_sessions()
        logins = self._auth_db.delete_expired_login_processes(
            minutes_ago(self._config.login_process_ttl_minutes)
        )
        logger.info(f"Swept {sessions} expired sessions and {logins} stale login processes")
        return sessions, logins

    async def run(self) -> None:
        """Sweep forever. A failed sweep is logged and retried next interval."""
        while True:
            try:
                await run_in_threadpool(self.sweep_once)
            except errors.InternalError as e:
                logger.error(f"Sweep failed: {e!r}")
            await asyncio.sleep(self._config.sweep_interval_seconds)
