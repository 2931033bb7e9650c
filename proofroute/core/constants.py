"""
Package-wide constants for error rendering and route compilation.

This module provides a single source of truth for the defaults the
compilers fall back to and the closed set of HTTP methods a route may use.
"""

from http import HTTPStatus

# Status used by every error variant that carries no status tag
DEFAULT_ERROR_STATUS = HTTPStatus.INTERNAL_SERVER_ERROR

# Media type of the default (transformer-less) error body
DEFAULT_ERROR_MEDIA_TYPE = "text/plain"

# HTTP method tokens accepted by route declarations
ALLOWED_METHODS = ("get", "put", "post", "delete", "patch", "options", "trace")

# Attribute names set on compiled classes and endpoints
ERROR_SCHEMA_ATTR = "__error_schema__"
ERROR_RENDER_ATTR = "__error_render__"
COMPILED_ROUTE_ATTR = "__proof_route__"
