"""Tests for proofroute/routes/parser.py - route declaration front end."""

from typing import Annotated

import pytest
from fastapi.responses import Response
from starlette.requests import Request

from proofroute.core.exceptions import (
    InvalidHandlerError,
    InvalidMethodError,
    InvalidParameterError,
    InvalidPathError,
    InvalidResultError,
    SchemaError,
)
from proofroute.errors.decorators import http_error, variant
from proofroute.errors.enum import HttpError
from proofroute.extract.extractors import Json, Text
from proofroute.routes.parser import HttpResult, Or, parse_route_args, parse_route_schema
from proofroute.routes.schemas import HttpMethod, ParameterKind


@http_error
class AccountError(HttpError):
    Invalid = variant("invalid account", status="BadRequest")
    Locked = variant("locked")


@http_error
class BillingError(HttpError):
    Declined = variant("declined", status=402)


class Plain(HttpError):
    Test = variant("test")


class CustomFailure(Exception):
    def into_response(self) -> Response:
        return Response("custom", status_code=409)


class TestRouteArgs:
    """Method and path validation."""

    @pytest.mark.parametrize("method", ["get", "GET", "Post", HttpMethod.TRACE])
    def test_methods_any_case(self, method):
        """Test that method tokens are case-insensitive."""
        http_method, path = parse_route_args(method, ["/"])

        assert http_method is HttpMethod.parse(method)
        assert path == "/"

    @pytest.mark.parametrize("method", ["head", "connect", "fetch", "", 3, None])
    def test_unknown_method(self, method):
        """Test that methods outside the allowed set are rejected."""
        with pytest.raises(InvalidMethodError, match="not a valid HTTP method"):
            parse_route_args(method, ["/"])

    def test_missing_path(self):
        """Test that a path is required."""
        with pytest.raises(InvalidPathError, match="at least one argument"):
            parse_route_args("get", [])

    def test_extra_path(self):
        """Test that exactly one path is allowed."""
        with pytest.raises(InvalidPathError, match="only one argument"):
            parse_route_args("get", ["/a", "/b"])

    def test_non_string_path(self):
        """Test that the path must be a string."""
        with pytest.raises(InvalidPathError, match="string literal"):
            parse_route_args("get", [42])

    def test_empty_path_allowed(self):
        """Test that the path content is not inspected."""
        assert parse_route_args("post", [""]) == (HttpMethod.POST, "")


class TestParameters:
    """Handler parameter parsing."""

    def test_order_kind_and_overrides(self):
        """Test that parameters keep order, binding kind and override values."""

        async def handler(
            request: Request,
            body: Annotated[Json[dict], Or(AccountError.Invalid)],
            *,
            note: Text,
        ) -> HttpResult[AccountError]:
            return Response()

        schema = parse_route_schema("post", ["/accounts"], handler)

        assert [p.binding_name for p in schema.parameters] == ["request", "body", "note"]
        assert schema.parameters[0].type_descriptor is Request
        assert schema.parameters[0].override is None
        assert schema.parameters[1].type_descriptor == Json[dict]
        assert schema.parameters[1].override == AccountError.Invalid
        assert schema.parameters[2].kind is ParameterKind.KEYWORD
        assert schema.parameters[0].kind is ParameterKind.POSITIONAL
        assert schema.handler_name == "handler"
        assert schema.route_name == "POST /accounts"

    def test_annotated_without_override(self):
        """Test that unrelated Annotated metadata is ignored."""

        def handler(body: Annotated[Text, "docs"]) -> Response:
            return Response()

        schema = parse_route_schema("get", ["/"], handler)

        assert schema.parameters[0].type_descriptor is Text
        assert schema.parameters[0].override is None

    def test_custom_override_value(self):
        """Test that any value with into_response() is a valid override."""

        def handler(body: Annotated[Text, Or(CustomFailure())]) -> Response:
            return Response()

        schema = parse_route_schema("get", ["/"], handler)

        assert isinstance(schema.parameters[0].override, CustomFailure)

    def test_two_overrides_rejected(self):
        """Test that a parameter takes at most one override."""

        def handler(
            body: Annotated[Text, Or(AccountError.Invalid), Or(AccountError.Locked)],
        ) -> Response:
            return Response()

        with pytest.raises(InvalidParameterError, match="only one Or"):
            parse_route_schema("get", ["/"], handler)

    @pytest.mark.parametrize("override", [AccountError, "invalid", 400])
    def test_override_must_be_error_value(self, override):
        """Test that overrides must be values that render themselves."""

        def handler(body: Annotated[Text, Or(override)]) -> Response:
            return Response()

        with pytest.raises(InvalidParameterError, match="into_response"):
            parse_route_schema("get", ["/"], handler)

    def test_unannotated_parameter(self):
        """Test that every parameter needs a type."""

        def handler(body) -> Response:
            return Response()

        with pytest.raises(InvalidParameterError, match="type annotation"):
            parse_route_schema("get", ["/"], handler)

    @pytest.mark.parametrize("variadic", ["args", "kwargs"])
    def test_variadic_parameter(self, variadic):
        """Test that *args and **kwargs cannot be extracted."""

        def positional(*args: Text) -> Response:
            return Response()

        def keyword(**kwargs: Text) -> Response:
            return Response()

        handler = positional if variadic == "args" else keyword

        with pytest.raises(InvalidParameterError, match="variadic"):
            parse_route_schema("get", ["/"], handler)

    def test_unresolvable_annotation(self):
        """Test that unresolvable string annotations are a handler error."""

        def handler(body: "Missing") -> Response:  # noqa: F821
            return Response()

        with pytest.raises(InvalidHandlerError, match="cannot read signature"):
            parse_route_schema("get", ["/"], handler)

    def test_class_handler_rejected(self):
        """Test that handlers must be functions."""
        with pytest.raises(InvalidHandlerError):
            parse_route_schema("get", ["/"], AccountError)


class TestResult:
    """Result type parsing."""

    def test_http_result_alias(self):
        """Test that HttpResult[E] declares the domain error type."""

        async def handler() -> HttpResult[AccountError]:
            return Response()

        schema = parse_route_schema("get", ["/"], handler)

        assert schema.result.error_type is AccountError

    def test_union_annotation(self):
        """Test that a plain union with one exception type works too."""

        async def handler() -> Response | BillingError:
            return Response()

        schema = parse_route_schema("get", ["/"], handler)

        assert schema.result.error_type is BillingError

    def test_union_with_two_errors_rejected(self):
        """Test that a handler declares a single error type."""

        async def handler() -> Response | AccountError | BillingError:
            return Response()

        with pytest.raises(InvalidResultError, match="single error type"):
            parse_route_schema("get", ["/"], handler)

    def test_errors_argument_wins(self):
        """Test that errors= overrides the return annotation."""

        async def handler() -> HttpResult[AccountError]:
            return Response()

        schema = parse_route_schema("get", ["/"], handler, errors=BillingError)

        assert schema.result.error_type is BillingError

    @pytest.mark.parametrize("annotation", [Response, dict, None])
    def test_no_error_type(self, annotation):
        """Test that plain return types declare no domain error."""

        async def handler():
            return Response()

        handler.__annotations__["return"] = annotation

        schema = parse_route_schema("get", ["/"], handler)

        assert schema.result.error_type is None

    def test_custom_exception_with_into_response(self):
        """Test that non-enum exceptions with into_response are accepted."""

        async def handler() -> HttpResult[CustomFailure]:
            return Response()

        schema = parse_route_schema("get", ["/"], handler)

        assert schema.result.error_type is CustomFailure

    @pytest.mark.parametrize("errors", [Plain, ValueError, str])
    def test_error_type_without_mapping(self, errors):
        """Test that error types must know their response."""

        async def handler():
            return Response()

        with pytest.raises(InvalidResultError):
            parse_route_schema("get", ["/"], handler, errors=errors)

    def test_name_argument(self):
        """Test that name= replaces the handler name."""

        async def handler():
            return Response()

        schema = parse_route_schema("get", ["/"], handler, name="read_items")

        assert schema.handler_name == "read_items"

    def test_all_failures_are_schema_errors(self):
        """Test that parser failures share the SchemaError base."""
        with pytest.raises(SchemaError):
            parse_route_args("connect", ["/"])
