"""Route decorators and registration.

proof_route() compiles a handler into a dispatch unit; register_routes()
hands dispatch units to a FastAPI app/router or a plain Starlette app.
ProofRouter does both in one step, the way APIRouter decorators do.

    router = ProofRouter(prefix="/users")

    @router.post("")
    async def create_user(
        user: Annotated[Json[User], Or(UserError.InvalidUser)],
    ) -> HttpResult[UserError]:
        ...

    app.include_router(router.router)
"""

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter

from proofroute.core.constants import COMPILED_ROUTE_ATTR
from proofroute.core.exceptions import InvalidHandlerError
from proofroute.routes.compiler import CompiledRoute, compile_route
from proofroute.routes.parser import parse_route_args, parse_route_schema

Endpoint = Callable[..., Any]


def proof_route(
    method: Any,
    *args: Any,
    errors: type[BaseException] | None = None,
    name: str | None = None,
) -> Callable[[Callable[..., Any]], Endpoint]:
    """Compile the decorated handler into a dispatch unit.

    Args:
        method: One of get, put, post, delete, patch, options, trace
        *args: Exactly one path string
        errors: Domain error type, if not given by an ``HttpResult[E]`` annotation
        name: Route name, defaults to the handler's name

    Raises:
        SchemaError: If the declaration is invalid; method and path are
            checked before the handler is seen
    """
    parse_route_args(method, args)

    def decorate(handler: Callable[..., Any]) -> Endpoint:
        schema = parse_route_schema(method, args, handler, errors=errors, name=name)
        return compile_route(schema, handler)

    return decorate


def compiled_route(endpoint: Any) -> CompiledRoute:
    """Return the compilation record of a dispatch unit.

    Raises:
        InvalidHandlerError: If the endpoint was not produced by proof_route
    """
    route = getattr(endpoint, COMPILED_ROUTE_ATTR, None)
    if not isinstance(route, CompiledRoute):
        raise InvalidHandlerError(f"{endpoint!r} is not a compiled proof route")
    return route


def register_routes(target: Any, *endpoints: Endpoint) -> None:
    """Register dispatch units on a FastAPI app/router or a Starlette app."""
    for endpoint in endpoints:
        schema = compiled_route(endpoint).schema
        methods = [str(schema.method)]
        if hasattr(target, "add_api_route"):
            target.add_api_route(
                schema.path,
                endpoint,
                methods=methods,
                name=schema.handler_name,
                response_model=None,
            )
        elif hasattr(target, "add_route"):
            target.add_route(
                schema.path, endpoint, methods=methods, name=schema.handler_name
            )
        else:
            raise TypeError(f"Cannot register routes on {target!r}")


class ProofRouter:
    """APIRouter whose decorators compile handlers into dispatch units."""

    def __init__(self, prefix: str = "", tags: list[str] | None = None, **kwargs: Any):
        self.router = APIRouter(prefix=prefix, tags=tags, **kwargs)

    def route(
        self,
        method: Any,
        *args: Any,
        errors: type[BaseException] | None = None,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Endpoint]:
        compile_handler = proof_route(method, *args, errors=errors, name=name)

        def decorate(handler: Callable[..., Any]) -> Endpoint:
            endpoint = compile_handler(handler)
            register_routes(self.router, endpoint)
            return endpoint

        return decorate

    def get(self, *args: Any, **kwargs: Any):
        return self.route("get", *args, **kwargs)

    def put(self, *args: Any, **kwargs: Any):
        return self.route("put", *args, **kwargs)

    def post(self, *args: Any, **kwargs: Any):
        return self.route("post", *args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any):
        return self.route("delete", *args, **kwargs)

    def patch(self, *args: Any, **kwargs: Any):
        return self.route("patch", *args, **kwargs)

    def options(self, *args: Any, **kwargs: Any):
        return self.route("options", *args, **kwargs)

    def trace(self, *args: Any, **kwargs: Any):
        return self.route("trace", *args, **kwargs)
