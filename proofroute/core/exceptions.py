"""Package-wide exception hierarchy.

Every failure the decorators can raise while a module is imported derives
from ProofRouteError. SchemaError covers invalid declarations written by a
user; GenerationError covers defects in the compilers themselves.
"""


class ProofRouteError(Exception):
    """Base exception for all build-time failures.

    All custom exceptions inherit from this class and define their own
    error_type slug so callers and logs can tell them apart.
    """

    error_type: str = "proofroute_error"

    def __init__(self, message: str = "Route compilation failed"):
        self.message = message
        super().__init__(message)


# Schema validation errors
class SchemaError(ProofRouteError):
    """Base class for invalid error or route declarations."""

    error_type = "schema_error"

    def __init__(self, message: str = "Invalid declaration"):
        super().__init__(message)


class DuplicateTransformerError(SchemaError):
    """Raised when an error enum is annotated more than once."""

    error_type = "duplicate_transformer"

    def __init__(
        self,
        message: str = (
            "The `http_error` decorator is exclusive, "
            "only one can exist at the same time"
        ),
    ):
        super().__init__(message)


class InvalidTransformerError(SchemaError):
    """Raised when a transformer cannot be resolved or called."""

    error_type = "invalid_transformer"

    def __init__(self, message: str = "Invalid transformer"):
        super().__init__(message)


class UnknownStatusCodeError(SchemaError):
    """Raised when a status tag does not name a known HTTP status."""

    error_type = "unknown_status_code"

    def __init__(self, message: str = "Unknown HTTP status code"):
        super().__init__(message)


class InvalidVariantError(SchemaError):
    """Raised when an error variant declaration is malformed."""

    error_type = "invalid_variant"

    def __init__(self, message: str = "Invalid error variant"):
        super().__init__(message)


class InvalidMethodError(SchemaError):
    """Raised when a route uses a token outside the allowed HTTP methods."""

    error_type = "invalid_method"

    def __init__(self, message: str = "The method is not a valid HTTP method"):
        super().__init__(message)


class InvalidPathError(SchemaError):
    """Raised when a route path is missing, repeated or not a string literal."""

    error_type = "invalid_path"

    def __init__(self, message: str = "Expected exactly one string path argument"):
        super().__init__(message)


class InvalidParameterError(SchemaError):
    """Raised when a handler parameter cannot be compiled."""

    error_type = "invalid_parameter"

    def __init__(self, message: str = "Invalid handler parameter"):
        super().__init__(message)


class UnsupportedParameterError(InvalidParameterError):
    """Raised when no extractor exists for a parameter type."""

    error_type = "unsupported_parameter"

    def __init__(self, message: str = "No extractor for parameter type"):
        super().__init__(message)


class InvalidResultError(SchemaError):
    """Raised when a handler's error type offers no response mapping."""

    error_type = "invalid_result"

    def __init__(self, message: str = "Error type cannot be rendered as a response"):
        super().__init__(message)


class InvalidHandlerError(SchemaError):
    """Raised when the decorated object is not a usable handler."""

    error_type = "invalid_handler"

    def __init__(self, message: str = "Route handler must be callable"):
        super().__init__(message)


# Internal defects
class GenerationError(ProofRouteError):
    """Raised when a compiler breaks one of its own invariants."""

    error_type = "generation_error"

    def __init__(self, message: str = "Code generation invariant violated"):
        super().__init__(message)


class UnknownVariantShapeError(GenerationError):
    """Raised when the matcher meets a variant shape it does not handle."""

    error_type = "unknown_variant_shape"

    def __init__(self, message: str = "Unrecognized variant shape"):
        super().__init__(message)
