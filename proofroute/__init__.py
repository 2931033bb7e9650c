"""Error enums and route wrappers for FastAPI services.

Error enums compile into error-to-response mappings; route handlers
compile into ordered, short-circuiting extraction-and-dispatch endpoints.
"""

from proofroute.core.exceptions import GenerationError, ProofRouteError, SchemaError
from proofroute.core.responses import (
    IntoResponse,
    ResponseBuilder,
    render_error,
    response_builder_at,
)
from proofroute.errors.decorators import http_error, variant
from proofroute.errors.enum import HttpError
from proofroute.extract.exceptions import ExtractionError
from proofroute.extract.extractors import Json, Path, Query, Text
from proofroute.routes.parser import HttpResult, Or
from proofroute.routes.router import ProofRouter, proof_route, register_routes

__all__ = [
    "ExtractionError",
    "GenerationError",
    "HttpError",
    "HttpResult",
    "IntoResponse",
    "Json",
    "Or",
    "Path",
    "ProofRouteError",
    "ProofRouter",
    "Query",
    "ResponseBuilder",
    "SchemaError",
    "Text",
    "http_error",
    "proof_route",
    "register_routes",
    "render_error",
    "response_builder_at",
    "variant",
]
