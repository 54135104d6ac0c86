"""The authenticated area. Every path below /secure needs a session."""

import logging

from starlette.requests import Request
from starlette.responses import Response

from api import errors
from api.base import html
from api.context import AppContext
from api.request import get_header
from api.routing import PathSegments, verify_method_path_end

logger = logging.getLogger(__name__)


async def route(context: AppContext, request: Request, segments: PathSegments) -> Response:
    """Authenticate, then route within the area.

    Without a live session the login flow starts instead, whatever the
    path or method.
    """
    session = await context.session_manager.resolve(get_header(request, "Cookie"))
    if session is None:
        return await context.login_service.start_login()

    logger.debug(f"Authenticated request from user {session.user_id}")

    segment = segments.next()
    if segment in (None, ""):
        verify_method_path_end(segments, request, "GET")
        return html(context.pages.render("secure/index.html", email=session.email))

    raise errors.path_not_found(request)
