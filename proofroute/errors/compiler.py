"""Error-response compiler.

Turns an ErrorSchema into a total render function: one arm per variant,
each arm producing the response for any instance of that variant.
"""

import logging
from collections.abc import Callable
from http import HTTPStatus
from typing import Any

from fastapi.responses import Response

from proofroute.core.exceptions import GenerationError, UnknownVariantShapeError
from proofroute.core.responses import response_builder_at
from proofroute.errors.schemas import (
    ErrorRenderer,
    ErrorSchema,
    ErrorVariant,
    NamedShape,
    Transformer,
    TupleShape,
    UnitShape,
)

logger = logging.getLogger(__name__)

Arm = Callable[[Any], Response]


def _default_arm(status: HTTPStatus) -> Arm:
    def arm(error: Any) -> Response:
        return response_builder_at(status).body(str(error))

    return arm


def _transformer_arm(status: HTTPStatus, transformer: Transformer) -> Arm:
    def arm(error: Any) -> Response:
        return transformer(response_builder_at(status), str(error))

    return arm


def _compile_arm(schema: ErrorSchema, variant: ErrorVariant) -> Arm:
    """Build the arm for one variant.

    Payload values never influence dispatch; they only reach the display
    string through str(error).
    """
    match variant.shape:
        case UnitShape() | TupleShape() | NamedShape():
            status = schema.status_for(variant)
        case _:
            raise UnknownVariantShapeError(
                f"{schema.name}.{variant.name} has unrecognized shape "
                f"{variant.shape!r}"
            )

    if schema.transformer is not None:
        return _transformer_arm(status, schema.transformer)
    return _default_arm(status)


def _check_exhaustive(schema: ErrorSchema, arms: dict[str, Arm]) -> None:
    missing = [v.name for v in schema.variants if v.name not in arms]
    if missing or len(arms) != len(schema.variants):
        raise GenerationError(
            f"{schema.name} arms do not cover its variants: missing {missing}"
        )


def compile_error_schema(schema: ErrorSchema) -> ErrorRenderer:
    """Compile an error schema into its render function.

    Args:
        schema: Validated error schema

    Returns:
        Function mapping any instance of the schema's enum to a response

    Raises:
        GenerationError: If an arm cannot be built for every variant
    """
    arms = {variant.name: _compile_arm(schema, variant) for variant in schema.variants}
    _check_exhaustive(schema, arms)

    def render(error: Any) -> Response:
        variant = getattr(error, "variant", None)
        arm = arms.get(variant.name) if isinstance(variant, ErrorVariant) else None
        if arm is None or schema.variant_named(variant.name) is not variant:
            raise GenerationError(
                f"{error!r} is not a variant of {schema.name}"
            )
        return arm(error)

    render.__name__ = f"render_{schema.name}"
    render.__qualname__ = render.__name__

    logger.debug(
        "Compiled error schema %s (%d variants, transformer=%s)",
        schema.name,
        len(schema.variants),
        getattr(schema.transformer, "__name__", None),
        extra={"schema": schema.name},
    )
    return render
