"""Extraction capability.

resolve_extractor() turns a parameter's type descriptor into an async
callable taking the request and returning the parameter value. Failures
are raised as exceptions that carry their own into_response() mapping,
ExtractionError for the built-in extractors.

Built-in descriptors:
    Request      the raw request, never fails
    bytes        the raw request body
    Text         the body decoded as UTF-8
    Json[T]      the body validated as T
    Query[T]     the query string validated as T; repeated keys keep only
                 their last value unless T is a model whose field for
                 that key is a list, set or tuple
    Path[T]      the path parameters validated as T

Any class with a ``from_request(request)`` classmethod, sync or async, is
an extractor too.
"""

import dataclasses
import inspect
import types
from collections.abc import Awaitable, Callable
from typing import Any, Union, get_args, get_origin, is_typeddict

from fastapi import Request
from pydantic import BaseModel, PydanticUserError, TypeAdapter, ValidationError
from starlette.requests import HTTPConnection

from proofroute.core.exceptions import UnsupportedParameterError
from proofroute.extract.exceptions import ExtractionError, describe_validation_error

Extractor = Callable[[Request], Awaitable[Any]]


class Json[T]:
    """Request body deserialized from JSON."""

    def __init__(self, value: T):
        self.value = value

    def __repr__(self) -> str:
        return f"Json({self.value!r})"


class Query[T]:
    """Query string deserialized into T."""

    def __init__(self, value: T):
        self.value = value

    def __repr__(self) -> str:
        return f"Query({self.value!r})"


class Path[T]:
    """Path parameters deserialized into T."""

    def __init__(self, value: T):
        self.value = value

    def __repr__(self) -> str:
        return f"Path({self.value!r})"


class Text:
    """Request body decoded as UTF-8 text."""

    def __init__(self, value: str):
        self.value = value

    def __repr__(self) -> str:
        return f"Text({self.value!r})"


def _is_json_media_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _is_mapping_type(tp: Any) -> bool:
    if get_origin(tp) is dict or tp is dict:
        return True
    if not isinstance(tp, type):
        return False
    return issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp) or is_typeddict(tp)


def _adapter_for(descriptor: Any, target: Any) -> TypeAdapter:
    try:
        return TypeAdapter(target)
    except PydanticUserError as e:
        raise UnsupportedParameterError(
            f"Cannot build a validator for {descriptor!r}: {e}"
        ) from e


async def _extract_request(request: Request) -> Request:
    return request


async def _extract_bytes(request: Request) -> bytes:
    return await request.body()


async def _extract_text(request: Request) -> Text:
    body = await request.body()
    try:
        return Text(body.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ExtractionError.TextPayload(str(e)) from e


def _json_extractor(adapter: TypeAdapter) -> Extractor:
    async def extract(request: Request) -> Json:
        content_type = request.headers.get("content-type")
        if content_type is not None and not _is_json_media_type(content_type):
            raise ExtractionError.JsonContentType(content_type)
        body = await request.body()
        try:
            return Json(adapter.validate_json(body))
        except ValidationError as e:
            raise ExtractionError.JsonPayload(describe_validation_error(e)) from e

    return extract


def _is_sequence_annotation(annotation: Any) -> bool:
    origin = get_origin(annotation) or annotation
    if origin in (list, set, frozenset, tuple):
        return True
    if origin in (Union, types.UnionType):
        return any(_is_sequence_annotation(arg) for arg in get_args(annotation))
    return False


def _sequence_keys(target: Any) -> frozenset[str]:
    """Query keys of a model that collect every repeated value."""
    if not (isinstance(target, type) and issubclass(target, BaseModel)):
        return frozenset()
    return frozenset(
        field.alias or name
        for name, field in target.model_fields.items()
        if _is_sequence_annotation(field.annotation)
    )


def _query_extractor(adapter: TypeAdapter, sequence_keys: frozenset[str]) -> Extractor:
    async def extract(request: Request) -> Query:
        params = request.query_params
        data = {
            key: params.getlist(key) if key in sequence_keys else params[key]
            for key in params.keys()
        }
        try:
            return Query(adapter.validate_python(data))
        except ValidationError as e:
            raise ExtractionError.QueryPayload(describe_validation_error(e)) from e

    return extract


def _path_extractor(adapter: TypeAdapter, *, mapping: bool) -> Extractor:
    async def extract(request: Request) -> Path:
        params = dict(request.path_params)
        if mapping:
            data: Any = params
        elif len(params) == 1:
            data = next(iter(params.values()))
        else:
            raise ExtractionError.PathPayload(
                f"expected exactly one path parameter, found {len(params)}"
            )
        try:
            return Path(adapter.validate_python(data))
        except ValidationError as e:
            raise ExtractionError.PathPayload(describe_validation_error(e)) from e

    return extract


def _from_request_extractor(cls: type) -> Extractor:
    from_request = cls.from_request

    async def extract(request: Request) -> Any:
        value = from_request(request)
        if inspect.isawaitable(value):
            value = await value
        return value

    return extract


def resolve_extractor(descriptor: Any) -> Extractor:
    """Resolve a type descriptor to its extractor.

    Args:
        descriptor: Parameter annotation with any Annotated metadata removed

    Returns:
        Async callable producing the parameter value from a request

    Raises:
        UnsupportedParameterError: If no extractor handles the descriptor
    """
    origin = get_origin(descriptor)
    args = get_args(descriptor)

    if isinstance(descriptor, type) and issubclass(descriptor, HTTPConnection):
        return _extract_request
    if descriptor is bytes:
        return _extract_bytes
    if descriptor is Text:
        return _extract_text

    if descriptor in (Json, Query, Path) or origin in (Json, Query, Path):
        wrapper = origin or descriptor
        target = args[0] if args else Any
        adapter = _adapter_for(descriptor, target)
        if wrapper is Json:
            return _json_extractor(adapter)
        if wrapper is Query:
            return _query_extractor(adapter, _sequence_keys(target))
        return _path_extractor(adapter, mapping=target is Any or _is_mapping_type(target))

    cls = origin if isinstance(origin, type) else descriptor
    if isinstance(cls, type) and callable(getattr(cls, "from_request", None)):
        return _from_request_extractor(cls)

    raise UnsupportedParameterError(f"No extractor for parameter type {descriptor!r}")


async def attempt_extract(descriptor: Any, request: Request) -> Any:
    """Extract one value of the described type from a request.

    Resolves the extractor on every call; compiled routes resolve once and
    keep the extractor instead.
    """
    return await resolve_extractor(descriptor)(request)
