"""Route wrapper compiler.

Turns a RouteSchema and its business handler into a dispatch unit: an
async endpoint taking only the request. The endpoint extracts parameters
in declaration order, stops at the first failure, calls the handler with
the bound values, and maps any declared domain error to a response.

    Extract[0] -> ... -> Extract[n-1] -> Invoke -> MapResult -> Respond

Any failed Extract[i] goes straight to Respond.
"""

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import Request
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from proofroute.core.constants import COMPILED_ROUTE_ATTR
from proofroute.core.responses import IntoResponse, render_error
from proofroute.core.settings import get_settings
from proofroute.extract.extractors import Extractor, resolve_extractor
from proofroute.routes.schemas import Parameter, ParameterKind, RouteSchema

logger = logging.getLogger("proofroute.dispatch")
compile_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionStep:
    """One stage of the extraction pipeline."""

    parameter: Parameter
    extract: Extractor


@dataclass(frozen=True)
class CompiledRoute:
    """Everything a dispatch unit was generated from."""

    schema: RouteSchema
    handler: Callable[..., Any]
    internal_name: str
    steps: tuple[ExtractionStep, ...]


def _describe_error(error: BaseException) -> str:
    variant = getattr(error, "variant", None)
    name = getattr(variant, "name", None)
    return f"{type(error).__name__}.{name}" if name else type(error).__name__


def _log_failure(
    route: CompiledRoute,
    request: Request,
    response: Response,
    error: BaseException,
    parameter: Parameter | None = None,
) -> None:
    status_code = getattr(response, "status_code", None)
    extra = {
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "error_type": _describe_error(error),
        "route": route.schema.route_name,
    }
    if parameter is not None:
        extra["parameter"] = parameter.binding_name

    if status_code is None or status_code >= 500:
        log = logger.error
    else:
        log = logger.info

    if parameter is not None:
        log(
            "%s rejected parameter %s: %s -> %s",
            route.schema.route_name,
            parameter.binding_name,
            _describe_error(error),
            status_code,
            extra=extra,
        )
    else:
        log(
            "%s failed: %s -> %s",
            route.schema.route_name,
            _describe_error(error),
            status_code,
            extra=extra,
        )


def _build_steps(schema: RouteSchema) -> tuple[ExtractionStep, ...]:
    return tuple(
        ExtractionStep(parameter=p, extract=resolve_extractor(p.type_descriptor))
        for p in schema.parameters
    )


def compile_route(schema: RouteSchema, handler: Callable[..., Any]) -> Callable[..., Any]:
    """Compile a route schema and its handler into a dispatch unit.

    Args:
        schema: Validated route schema
        handler: Business handler, sync or async

    Returns:
        Async endpoint ``(request) -> response`` ready for registration

    Raises:
        UnsupportedParameterError: If a parameter type has no extractor
    """
    settings = get_settings()
    steps = _build_steps(schema)
    route = CompiledRoute(
        schema=schema,
        handler=handler,
        internal_name=f"{settings.handler_prefix}{schema.handler_name}",
        steps=steps,
    )
    error_types: tuple[type[BaseException], ...] = (
        (schema.result.error_type,) if schema.result.error_type is not None else ()
    )
    is_async = inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(type(handler), "__call__", None)
    )
    log_failures = settings.log_dispatch_errors

    def reject(
        request: Request, step: ExtractionStep, error: IntoResponse
    ) -> Response:
        # The override replaces the extraction failure entirely
        if step.parameter.override is not None:
            response = render_error(step.parameter.override)
        else:
            response = render_error(error)
        if log_failures:
            _log_failure(route, request, response, error, step.parameter)
        return response

    def fail(request: Request, error: Any) -> Response:
        response = render_error(error)
        if log_failures:
            _log_failure(route, request, response, error)
        return response

    async def endpoint(request: Request) -> Response:
        positional: list[Any] = []
        keywords: dict[str, Any] = {}

        for step in steps:
            try:
                value = await step.extract(request)
            except Exception as e:
                if not isinstance(e, IntoResponse):
                    raise
                return reject(request, step, e)
            if step.parameter.kind is ParameterKind.KEYWORD:
                keywords[step.parameter.binding_name] = value
            else:
                positional.append(value)

        try:
            if is_async:
                result = await handler(*positional, **keywords)
            else:
                result = await run_in_threadpool(handler, *positional, **keywords)
            # Sync wrappers may still hand back a coroutine
            if inspect.isawaitable(result):
                result = await result
        except error_types as e:
            return fail(request, e)

        if error_types and isinstance(result, error_types):
            return fail(request, result)
        return result

    endpoint.__name__ = schema.handler_name
    endpoint.__qualname__ = getattr(handler, "__qualname__", schema.handler_name)
    endpoint.__module__ = getattr(handler, "__module__", __name__)
    endpoint.__doc__ = getattr(handler, "__doc__", None)
    setattr(endpoint, COMPILED_ROUTE_ATTR, route)
    setattr(endpoint, route.internal_name, handler)

    compile_logger.debug(
        "Compiled route %s -> %s (%d parameters)",
        schema.route_name,
        route.internal_name,
        len(steps),
        extra={"route": schema.route_name},
    )
    return endpoint
