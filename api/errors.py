"""Error taxonomy and the single conversion from any outcome to an HTTP response.

Two tiers:
- ClientError: caused by the caller, serialized verbatim, never logged.
- InternalError: collaborator or infrastructure fault. Logged with full
  detail, answered with a generic 500 so nothing internal leaks.

Both derive from Error, the only exception type allowed to cross component
boundaries. Foreign failures are converted where they happen through the
mapping functions at the bottom of this module.

Wire format is externally tagged: {"VariantName": data}, data being null
for variants without a payload.
"""

import abc
import json
import logging
from typing import Any

from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


class Error(Exception, metaclass=abc.ABCMeta):
    """Base for every failure propagated between components."""

    @abc.abstractmethod
    def into_response(self) -> Response:
        """The HTTP response this failure is answered with."""


# =============================================================================
# CLIENT ERRORS
# =============================================================================


class ClientError(Error):
    """Caller-caused failure. Safe to disclose."""

    status_code = 400

    def __init__(self, data: Any = None):
        self.data = data
        super().__init__(self.variant, data)

    @property
    def variant(self) -> str:
        return type(self).__name__

    def to_json(self) -> str:
        return json.dumps({self.variant: self.data}, separators=(",", ":"))

    def into_response(self) -> Response:
        return Response(
            content=self.to_json(),
            status_code=self.status_code,
            headers={"Content-Type": JSON_CONTENT_TYPE},
        )

    def __repr__(self) -> str:
        return f"{self.variant}({self.data!r})"


class InternalServerError(ClientError):
    """The fixed body every InternalError is answered with."""

    status_code = 500

    @property
    def variant(self) -> str:
        return "InternalError"


# Routing
class PathNotFound(ClientError):
    status_code = 404


class MethodNotFound(ClientError):
    status_code = 405


class Unauthorized(ClientError):
    status_code = 401


class Forbidden(ClientError):
    status_code = 403


# Parsing
class PathDataBeforeRoot(ClientError):
    pass


class UnreadableHeader(ClientError):
    pass


class UnparseableCookie(ClientError):
    pass


class DuplicateCookies(ClientError):
    def __init__(self, name: str, value: str, old_value: str):
        super().__init__({"name": name, "value": value, "old_value": old_value})


class InvalidContentLength(ClientError):
    pass


class InvalidContentType(ClientError):
    pass


class InvalidJson(ClientError):
    pass


class InvalidUrlEncoding(ClientError):
    pass


class InvalidIndexPath(ClientError):
    pass


# Login
class UnknownOIDCProcess(ClientError):
    """Callback state matches no pending login (consumed, expired or forged)."""


class OIDCGaveNoToken(ClientError):
    """Token endpoint replied without an id_token."""


class OIDCGaveNoEmail(ClientError):
    """Verified claims carry no email."""


class UserNotFound(ClientError):
    """No account for this email. User should ask an admin to register them."""


# =============================================================================
# INTERNAL ERRORS
# =============================================================================


class InternalError(Error):
    """Fault in a collaborator. Details go to the log, never to the client."""

    def __init__(self, source: BaseException | str):
        self.source = source
        super().__init__(source)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.source!r})"

    def into_response(self) -> Response:
        logger.error(repr(self))
        return InternalServerError().into_response()


class ConnectionFault(InternalError):
    """Transport failure talking to the client."""


class InvalidHeader(InternalError):
    """A header value we built is not transmittable."""


class DatabaseFault(InternalError):
    pass


class OIDCRequestError(InternalError):
    """Token exchange with the identity provider failed."""


class TamperedOIDCLogin(InternalError):
    """ID token failed signature, audience, issuer, expiry or nonce checks."""


class RenderingError(InternalError):
    pass


# =============================================================================
# CONVERSION
# =============================================================================


def into_response(outcome: Response | Error) -> Response:
    """Convert a handler outcome, success or failure, into a response."""
    if isinstance(outcome, Error):
        return outcome.into_response()
    return outcome


# =============================================================================
# CONSTRUCTORS
# =============================================================================


def path_data_before_root(data: str) -> ClientError:
    return PathDataBeforeRoot(data)


def request_path(request: Request) -> str:
    """The path exactly as sent, percent-escapes intact.

    Routing and PathNotFound use this rather than request.url.path, which is
    rebuilt from the decoded path and is cut short by an escaped ? or #.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1")
    return request.scope["path"]


def path_not_found(request: Request) -> ClientError:
    return PathNotFound(request_path(request))


def method_not_found(request: Request) -> ClientError:
    return MethodNotFound(request.method)


def unreadable_header(error: Exception, header: str) -> ClientError:
    return UnreadableHeader(f"Error reading header {header}: {error}")


def unparseable_cookie(cookie_data: str) -> ClientError:
    return UnparseableCookie(cookie_data)


def duplicate_cookies(name: str, value: str, old_value: str) -> ClientError:
    return DuplicateCookies(name, value, old_value)


def content_length_missing() -> ClientError:
    return InvalidContentLength("No content length given")


def content_length_not_int(error: Exception) -> ClientError:
    return InvalidContentLength(f"Invalid unsigned int: {error}")


def content_length_too_large(parsed: int, max_len: int) -> ClientError:
    return InvalidContentLength(
        f"Too large. Maximum allowed is {max_len}, received {parsed}"
    )


def content_length_mismatch(given: int, promised: int) -> ClientError:
    at_least = " at least" if given > promised else ""
    return InvalidContentLength(
        f"Mismatch. Header is {promised}, received{at_least} {given}"
    )


def invalid_content_type(received: str, expected: str) -> ClientError:
    return InvalidContentType(f"Expected {expected}, received {received}")


# One mapping per foreign failure source.


def invalid_json(error: Exception) -> ClientError:
    return InvalidJson(str(error))


def invalid_url_encoding(error: Exception) -> ClientError:
    return InvalidUrlEncoding(str(error))


def invalid_index_path(error: Exception) -> ClientError:
    return InvalidIndexPath(str(error))


def connection_fault(error: BaseException) -> InternalError:
    return ConnectionFault(error)


def invalid_header(error: BaseException | str) -> InternalError:
    return InvalidHeader(error)


def database_fault(error: BaseException) -> InternalError:
    return DatabaseFault(error)


def token_exchange_fault(error: BaseException | str) -> InternalError:
    return OIDCRequestError(error)


def tampered_login(error: BaseException | str) -> InternalError:
    return TamperedOIDCLogin(error)


def rendering_fault(error: BaseException) -> InternalError:
    return RenderingError(error)
