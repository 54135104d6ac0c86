"""Root of the route tree."""

from starlette.requests import Request
from starlette.responses import Response

from api import errors, secure
from api.base import html
from api.context import AppContext
from api.routing import PathSegments, verify_method_path_end


async def route(context: AppContext, request: Request) -> Response:
    """Route a request to its handler.

    Raises:
        Error: Any routing, client or internal failure.
    """
    segments = PathSegments(errors.request_path(request))
    segment = segments.next()

    if segment in (None, "", "index.html"):
        verify_method_path_end(segments, request, "GET")
        return html(context.pages.render("index.html"))

    if segment == "post-login":
        verify_method_path_end(segments, request, "GET")
        return await context.login_service.finish_login(request)

    if segment == "secure":
        return await secure.route(context, request, segments)

    raise errors.path_not_found(request)
