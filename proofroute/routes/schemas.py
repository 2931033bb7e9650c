"""Route schema types.

A RouteSchema is the immutable description of one handler: where it is
mounted, which parameters it extracts in which order, and which domain
error type its result may carry.
"""

import enum
from dataclasses import dataclass
from typing import Any

from proofroute.core.constants import ALLOWED_METHODS
from proofroute.core.exceptions import InvalidMethodError
from proofroute.core.responses import IntoResponse


class HttpMethod(enum.StrEnum):
    """HTTP methods a route may be declared with."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @classmethod
    def parse(cls, token: Any) -> "HttpMethod":
        """Parse a method token in any letter case.

        Raises:
            InvalidMethodError: If the token is not one of the allowed methods
        """
        if isinstance(token, HttpMethod):
            return token
        if not isinstance(token, str) or token.lower() not in ALLOWED_METHODS:
            raise InvalidMethodError(
                f"The method {token!r} is not a valid HTTP method, "
                f"expected one of {', '.join(ALLOWED_METHODS)}"
            )
        return cls(token.upper())


class ParameterKind(enum.Enum):
    """How an extracted value is passed to the handler."""

    POSITIONAL = "positional"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class Parameter:
    """One handler parameter, extracted from the request in order."""

    binding_name: str
    type_descriptor: Any
    override: IntoResponse | None = None
    kind: ParameterKind = ParameterKind.POSITIONAL


@dataclass(frozen=True)
class ResultShape:
    """Declared outcome of a handler: a response or a domain error."""

    error_type: type[BaseException] | None = None


@dataclass(frozen=True)
class RouteSchema:
    """Validated description of one route handler."""

    method: HttpMethod
    path: str
    parameters: tuple[Parameter, ...]
    result: ResultShape
    handler_name: str

    @property
    def route_name(self) -> str:
        """Human-readable route identifier used in logs."""
        return f"{self.method} {self.path}"
