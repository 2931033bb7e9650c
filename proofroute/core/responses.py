"""Response builder handed to error arms and transformers.

A builder is opened at a status code, collects headers, and is closed by
one of the body methods, which return a Starlette response.
"""

from typing import Any, Protocol, Self, runtime_checkable

from fastapi.responses import JSONResponse, Response

from proofroute.core.constants import DEFAULT_ERROR_MEDIA_TYPE
from proofroute.core.status import StatusTag, resolve_status

Header = tuple[str, str]


class ResponseBuilder:
    """Mutable response under construction at a fixed status code."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        self.media_type: str | None = None
        self._headers: list[Header] = []

    @property
    def headers(self) -> list[Header]:
        """Headers collected so far, in insertion order."""
        return list(self._headers)

    def insert_header(self, header: Header) -> Self:
        """Set a header, replacing any existing values with the same name."""
        name, value = header
        self._headers = [h for h in self._headers if h[0].lower() != name.lower()]
        self._headers.append((name, value))
        return self

    def append_header(self, header: Header) -> Self:
        """Add a header value, keeping existing values with the same name."""
        self._headers.append(header)
        return self

    def content_type(self, media_type: str) -> Self:
        """Set the media type used by body()."""
        self.media_type = media_type
        return self

    def body(self, content: str | bytes) -> Response:
        """Close the builder with a raw body."""
        response = Response(
            content=content,
            status_code=self.status_code,
            media_type=self.media_type or DEFAULT_ERROR_MEDIA_TYPE,
        )
        return self._apply_headers(response)

    def json(self, content: Any) -> JSONResponse:
        """Close the builder with a JSON body."""
        response = JSONResponse(content=content, status_code=self.status_code)
        return self._apply_headers(response)

    def finish(self) -> Response:
        """Close the builder with an empty body."""
        response = Response(status_code=self.status_code, media_type=self.media_type)
        return self._apply_headers(response)

    def _apply_headers[R: Response](self, response: R) -> R:
        # Builder headers win over the ones the response class sets itself
        for name in {name.lower() for name, _ in self._headers}:
            if name in response.headers:
                del response.headers[name]
        for name, value in self._headers:
            response.headers.append(name, value)
        return response


def response_builder_at(status: StatusTag) -> ResponseBuilder:
    """Open a response builder at the given status."""
    return ResponseBuilder(int(resolve_status(status)))


@runtime_checkable
class IntoResponse(Protocol):
    """Anything that knows how to turn itself into a response."""

    def into_response(self) -> Response: ...


def render_error(error: IntoResponse) -> Response:
    """Map an error value to its response through its own mapping."""
    return error.into_response()
