"""HTTP interface: routing, request parsing and response construction."""

from api.errors import (
    Error,
    ClientError,
    InternalError,
    into_response,
)
