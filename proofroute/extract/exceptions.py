"""Extraction errors.

Raised by the built-in extractors when a request cannot produce a
parameter value. ExtractionError is itself an error enum, so every
failure already knows its own response.
"""

from pydantic import ValidationError

from proofroute.errors.decorators import http_error, variant
from proofroute.errors.enum import HttpError


@http_error
class ExtractionError(HttpError):
    """Failures of the built-in extractors."""

    JsonPayload = variant("Json deserialize error: {0}", arity=1, status="BadRequest")
    JsonContentType = variant(
        "Content type error: expected application/json, got {0}",
        arity=1,
        status="UnsupportedMediaType",
    )
    QueryPayload = variant("Query deserialize error: {0}", arity=1, status="BadRequest")
    PathPayload = variant(
        "Can not parse path parameters: {0}", arity=1, status="NotFound"
    )
    TextPayload = variant("Can not decode body: {0}", arity=1, status="BadRequest")


def describe_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic validation errors into one readable line."""
    messages = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return "; ".join(messages)
