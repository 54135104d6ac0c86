"""
ASGI application.

One catch-all route hands every request to the hand-written router in
api.routes; whatever comes back, response or Error, goes through the single
conversion in api.errors.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from api import errors, routes
from api.context import AppContext
from api.pages import Pages
from auth.config import AppConfig, load_config, setup_logging
from auth.database import AuthDatabase
from auth.service import LoginService
from auth.session import SessionManager
from auth.sweeper import Sweeper
from clients.oidc_client import OIDCClient, ProviderMetadata
from clients.postgres_client import PostgresClient

logger = logging.getLogger(__name__)


def build_context(config: AppConfig) -> AppContext:
    """Construct the process-lifetime context. Fails fast on any error."""
    postgres = PostgresClient(config.database_url)
    auth_db = AuthDatabase(postgres)

    metadata = ProviderMetadata.discover(
        config.oidc_issuer_url,
        timeout=config.http_timeout_seconds,
    )
    oidc_client = OIDCClient(
        metadata=metadata,
        client_id=config.oidc_client_id,
        client_secret=config.oidc_client_secret,
        redirect_uri=config.oidc_redirect_uri,
        scopes=config.oidc_scopes,
        timeout=config.http_timeout_seconds,
    )

    pages = Pages()
    session_manager = SessionManager(auth_db, config)
    login_service = LoginService(oidc_client, auth_db, session_manager, pages)

    return AppContext(
        config=config,
        auth_db=auth_db,
        session_manager=session_manager,
        login_service=login_service,
        pages=pages,
    )


class Dispatcher:
    """ASGI endpoint feeding every request through the router."""

    def __init__(self, context: AppContext):
        self._context = context

    async def handle(self, request: Request) -> Response:
        try:
            outcome = await routes.route(self._context, request)
        except errors.Error as e:
            outcome = e
        return errors.into_response(outcome)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = await self.handle(Request(scope, receive))
        await response(scope, receive, send)


async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
    logger.exception("Unhandled exception")
    return errors.InternalServerError().into_response()


def create_app(context: AppContext, run_sweeper: bool = True) -> Starlette:
    """Create the application around an already built context."""

    @asynccontextmanager
    async def lifespan(app: Starlette):
        sweeper_task = None
        if run_sweeper:
            sweeper = Sweeper(context.auth_db, context.config)
            sweeper_task = asyncio.create_task(sweeper.run())
        logger.info("Application startup complete")

        yield

        if sweeper_task is not None:
            sweeper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper_task
        PostgresClient.close_all_pools()
        logger.info("Application shutdown complete")

    # Route methods default to GET for functions; an ASGI class takes all
    app = Starlette(
        routes=[Route("/{path:path}", Dispatcher(context))],
        exception_handlers={Exception: unhandled_error_handler},
        lifespan=lifespan,
    )
    app.state.context = context
    return app


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    config = load_config()
    setup_logging(config.log_level)
    context = build_context(config)

    uvicorn.run(
        create_app(context),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
