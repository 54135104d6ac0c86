"""Authentication: OIDC login, sessions and their persistence."""

from auth.types import (
    User,
    LoginProcess,
    Session,
    SessionData,
    PostLoginQuery,
)
from auth.config import AppConfig, load_config, setup_logging
from auth.database import AuthDatabase
from auth.session import SessionManager, session_cookie
from auth.service import LoginService
from auth.sweeper import Sweeper
