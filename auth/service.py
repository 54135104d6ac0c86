"""Authentication service - orchestrates the OIDC login flow.

States:
    Anonymous -> LoginStarted        start_login()
    CallbackReceived -> SessionIssued  finish_login()

finish_login walks CallbackReceived, TokenExchanged, ClaimsVerified and
UserResolved in order; each step either advances or raises an Error.
"""

import logging

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import Response

from api import errors
from api.base import add_header, html
from api.pages import Pages
from api.request import parse_query
from auth.database import AuthDatabase
from auth.session import SessionManager, session_cookie
from auth.types import PostLoginQuery
from clients.oidc_client import OIDCClient

logger = logging.getLogger(__name__)


class LoginService:
    """OIDC authorization code login backed by the relational store.

    Handles:
    - Starting a login (state + nonce persisted, client-side redirect page)
    - Completing a login (state consumed, code exchanged, claims verified)
    - Issuing the session cookie
    """

    def __init__(
        self,
        oidc_client: OIDCClient,
        auth_db: AuthDatabase,
        session_manager: SessionManager,
        pages: Pages,
    ):
        self._oidc = oidc_client
        self._auth_db = auth_db
        self._session_manager = session_manager
        self._pages = pages

    async def start_login(self) -> Response:
        """Begin a login for an anonymous user.

        The page navigates client-side to the provider. It must never be
        cached: the URL embeds a single-use state.
        """
        auth_request = self._oidc.authorization_url()

        await run_in_threadpool(
            self._auth_db.create_login_process,
            auth_request.state,
            auth_request.nonce,
        )
        logger.debug("Login process started")

        page = self._pages.render("login_redirect.html", url=auth_request.url)
        return add_header(html(page), "Cache-Control", "no-store")

    async def finish_login(self, request: Request) -> Response:
        """Complete a login from the provider's redirect back.

        Flow:
        1. Parse code and state from the query
        2. Consume the login process for state (single use)
        3. Exchange code for tokens
        4. Verify the ID token against the stored nonce
        5. Resolve the user by email
        6. Issue a session and set the cookie

        Raises:
            InvalidUrlEncoding: Query lacks code/state or is malformed.
            UnknownOIDCProcess: No pending login for state.
            OIDCGaveNoToken: Token reply without id_token.
            OIDCGaveNoEmail: Verified claims without email.
            UserNotFound: No user registered for the email.
            OIDCRequestError, TamperedOIDCLogin, DatabaseFault: internal.
        """
        query = parse_query(request, PostLoginQuery)

        nonce = await run_in_threadpool(self._auth_db.consume_login_process, query.state)
        if nonce is None:
            raise errors.UnknownOIDCProcess()

        # State matched, so this callback is not a forged cross-site request
        token_response = await run_in_threadpool(self._oidc.exchange_code, query.code)

        id_token = token_response.get("id_token")
        if not id_token:
            raise errors.OIDCGaveNoToken()

        claims = await run_in_threadpool(self._oidc.verify_id_token, id_token, nonce)

        email = claims.get("email")
        if not email or not isinstance(email, str):
            raise errors.OIDCGaveNoEmail()

        user = await run_in_threadpool(self._auth_db.get_user_by_email, email)
        if user is None:
            raise errors.UserNotFound(email)

        session = await self._session_manager.create_session(user.id)

        # history.back() returns the user to the page that triggered the login
        response = html(self._pages.render("post_login.html"))
        add_header(response, "Set-Cookie", session_cookie(session.session_id))
        return add_header(response, "Cache-Control", "no-store")
