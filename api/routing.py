"""Routing helpers: path segment iteration and leaf verification."""

from starlette.requests import Request

from api import errors


class PathSegments:
    """The not-yet-routed segments of a request path, consumed left to right.

    Construction validates the path shape: a path must start with '/', so
    the first segment must be empty.

    Raises:
        PathDataBeforeRoot: If anything precedes the first '/'.
    """

    def __init__(self, path: str):
        segments = path.split("/")
        if segments[0] != "":
            raise errors.path_data_before_root(segments[0])
        self._segments = segments[1:]
        self._position = 0

    def next(self) -> str | None:
        """Pop the next segment, or None when the path is exhausted."""
        if self._position >= len(self._segments):
            return None
        segment = self._segments[self._position]
        self._position += 1
        return segment

    def remaining(self) -> list[str]:
        return self._segments[self._position:]

    def is_empty(self) -> bool:
        return self._position >= len(self._segments)


def verify_path_end(segments: PathSegments, request: Request) -> None:
    """Raise PathNotFound if any path is left."""
    if not segments.is_empty():
        raise errors.path_not_found(request)


def verify_method(request: Request, expected_method: str) -> None:
    """Raise MethodNotFound if the method isn't the one given."""
    if request.method != expected_method:
        raise errors.method_not_found(request)


def verify_method_path_end(
    segments: PathSegments,
    request: Request,
    expected_method: str,
) -> None:
    """Leaf check. Path exhaustion is checked before the method."""
    verify_path_end(segments, request)
    verify_method(request, expected_method)


def parse_index(segment: str) -> int:
    """Parse a numeric path segment, e.g. the id in /items/<id>.

    Raises:
        InvalidIndexPath: If the segment is not an unsigned integer.
    """
    try:
        if not (segment.isascii() and segment.isdigit()):
            raise ValueError(f"invalid digit found in string {segment!r}")
        return int(segment)
    except ValueError as e:
        raise errors.invalid_index_path(e) from e
