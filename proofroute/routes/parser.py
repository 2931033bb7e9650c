"""Declaration front end for route handlers.

Parses the method and path given to a route decorator and the handler's
signature into a RouteSchema. Per-parameter overrides are written as
``Or(error)`` inside ``Annotated``; the domain error type comes from the
``HttpResult[E]`` return annotation or an explicit ``errors=`` argument.
"""

import inspect
import types
import typing
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin

from fastapi.responses import Response

from proofroute.core.exceptions import (
    InvalidHandlerError,
    InvalidParameterError,
    InvalidPathError,
    InvalidResultError,
)
from proofroute.core.responses import IntoResponse
from proofroute.errors.decorators import is_compiled_error
from proofroute.errors.enum import HttpError
from proofroute.routes.schemas import (
    HttpMethod,
    Parameter,
    ParameterKind,
    ResultShape,
    RouteSchema,
)

type HttpResult[E] = Response | E


@dataclass(frozen=True)
class Or:
    """Override marker: respond with ``error`` if the parameter fails to extract."""

    error: Any


def parse_route_args(method: Any, args: Sequence[Any]) -> tuple[HttpMethod, str]:
    """Validate the method token and the path argument list.

    Raises:
        InvalidMethodError: If the method is not an allowed HTTP method
        InvalidPathError: If there is not exactly one string path argument
    """
    http_method = HttpMethod.parse(method)
    if not args:
        raise InvalidPathError("Expected at least one argument")
    if len(args) > 1:
        raise InvalidPathError("Expected only one argument")
    path = args[0]
    if not isinstance(path, str):
        raise InvalidPathError(
            f"Expected a string literal argument, got {type(path).__name__}"
        )
    return http_method, path


def _check_mapping(error_type: Any, origin: str) -> type[BaseException]:
    if not (isinstance(error_type, type) and issubclass(error_type, BaseException)):
        raise InvalidResultError(f"{origin}: {error_type!r} is not an exception type")
    if issubclass(error_type, HttpError):
        if not is_compiled_error(error_type):
            raise InvalidResultError(
                f"{origin}: {error_type.__name__} was never compiled, "
                "decorate it with @http_error"
            )
    elif not callable(getattr(error_type, "into_response", None)):
        raise InvalidResultError(
            f"{origin}: {error_type.__name__} does not define into_response()"
        )
    return error_type


def _error_type_from_annotation(annotation: Any, origin: str) -> Any:
    if annotation is inspect.Signature.empty or annotation is None:
        return None
    if get_origin(annotation) is HttpResult:
        return get_args(annotation)[0]
    if get_origin(annotation) in (Union, types.UnionType):
        errors = [
            arg
            for arg in get_args(annotation)
            if isinstance(arg, type) and issubclass(arg, BaseException)
        ]
        if len(errors) > 1:
            raise InvalidResultError(
                f"{origin}: a handler declares a single error type, found "
                f"{', '.join(e.__name__ for e in errors)}"
            )
        return errors[0] if errors else None
    return None


def _parse_result(
    hints: dict[str, Any], errors: type[BaseException] | None, origin: str
) -> ResultShape:
    error_type = errors
    if error_type is None:
        error_type = _error_type_from_annotation(hints.get("return"), origin)
    if error_type is None:
        return ResultShape()
    return ResultShape(error_type=_check_mapping(error_type, origin))


def _parse_override(metadata: Sequence[Any], origin: str) -> IntoResponse | None:
    overrides = [m for m in metadata if isinstance(m, Or)]
    if not overrides:
        return None
    if len(overrides) > 1:
        raise InvalidParameterError(f"{origin}: only one Or(...) per parameter")
    error = overrides[0].error
    if isinstance(error, type) or not isinstance(error, IntoResponse):
        raise InvalidParameterError(
            f"{origin}: Or(...) needs an error value with into_response(), "
            f"got {error!r}"
        )
    return error


def _parse_parameter(
    param: inspect.Parameter, hints: dict[str, Any], origin: str
) -> Parameter:
    where = f"{origin}({param.name})"
    if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
        raise InvalidParameterError(f"{where}: variadic parameters cannot be extracted")
    if param.name not in hints:
        raise InvalidParameterError(f"{where}: parameter needs a type annotation")

    descriptor = hints[param.name]
    override = None
    if get_origin(descriptor) is Annotated:
        override = _parse_override(descriptor.__metadata__, where)
        descriptor = descriptor.__origin__

    kind = (
        ParameterKind.KEYWORD
        if param.kind is inspect.Parameter.KEYWORD_ONLY
        else ParameterKind.POSITIONAL
    )
    return Parameter(
        binding_name=param.name,
        type_descriptor=descriptor,
        override=override,
        kind=kind,
    )


def parse_route_schema(
    method: Any,
    args: Sequence[Any],
    handler: Callable[..., Any],
    *,
    errors: type[BaseException] | None = None,
    name: str | None = None,
) -> RouteSchema:
    """Parse a route declaration into a validated schema.

    Args:
        method: HTTP method token
        args: Arguments given after the method; exactly one path string
        handler: Business handler whose signature declares the parameters
        errors: Domain error type, overriding the return annotation
        name: Route name, defaults to the handler's name

    Returns:
        The immutable RouteSchema for the handler

    Raises:
        SchemaError: If any part of the declaration is invalid
    """
    http_method, path = parse_route_args(method, args)

    if not callable(handler) or isinstance(handler, type):
        raise InvalidHandlerError(f"Route handler must be a function, got {handler!r}")
    origin = getattr(handler, "__qualname__", type(handler).__qualname__)
    # Callable instances declare their parameters on __call__
    annotated = handler if inspect.isroutine(handler) else type(handler).__call__

    try:
        signature = inspect.signature(handler)
        hints = typing.get_type_hints(annotated, include_extras=True)
    except (NameError, TypeError, ValueError) as e:
        raise InvalidHandlerError(f"{origin}: cannot read signature: {e}") from e

    parameters = tuple(
        _parse_parameter(param, hints, origin)
        for param in signature.parameters.values()
    )
    return RouteSchema(
        method=http_method,
        path=path,
        parameters=parameters,
        result=_parse_result(hints, errors, origin),
        handler_name=name or getattr(handler, "__name__", type(handler).__name__),
    )
