"""Application context: built once at startup, shared read-only by requests."""

from dataclasses import dataclass

from api.pages import Pages
from auth.config import AppConfig
from auth.database import AuthDatabase
from auth.service import LoginService
from auth.session import SessionManager


@dataclass(frozen=True)
class AppContext:
    """Everything a request handler may use.

    The database pool inside auth_db is the only mutable part and does its
    own locking.
    """

    config: AppConfig
    auth_db: AuthDatabase
    session_manager: SessionManager
    login_service: LoginService
    pages: Pages
