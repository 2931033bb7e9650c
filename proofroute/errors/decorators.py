"""Declaration front end for error enums.

variant() declares one case in a class body; http_error parses the class
body into an ErrorSchema, compiles it and replaces each declaration with
its accessor. Every validation failure raises a SchemaError while the
declaring module is imported.
"""

import inspect
import keyword
import logging
import string
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, overload

from proofroute.core.constants import ERROR_RENDER_ATTR, ERROR_SCHEMA_ATTR
from proofroute.core.exceptions import (
    DuplicateTransformerError,
    InvalidTransformerError,
    InvalidVariantError,
)
from proofroute.core.status import StatusTag, resolve_status
from proofroute.errors.compiler import compile_error_schema
from proofroute.errors.enum import HttpError, UnitVariant, VariantConstructor
from proofroute.errors.schemas import (
    ErrorRenderer,
    ErrorSchema,
    ErrorVariant,
    MessageSupplier,
    NamedShape,
    Transformer,
    TupleShape,
    UnitShape,
    VariantShape,
)

logger = logging.getLogger(__name__)

# Attribute names an instance already uses; variants may not shadow them
_RESERVED_NAMES = frozenset(dir(HttpError)) | {"variant", "fields"}


@dataclass(frozen=True)
class VariantDeclaration:
    """Unvalidated variant as written in a class body."""

    message: Any
    status: StatusTag | None = None
    arity: int | None = None
    fields: Sequence[str] | None = None
    source: Any = None


def variant(
    message: MessageSupplier,
    *,
    status: StatusTag | None = None,
    arity: int | None = None,
    fields: Sequence[str] | None = None,
    source: type[BaseException] | None = None,
) -> Any:
    """Declare one variant of an error enum.

    Args:
        message: Display template (``str.format`` over the payload) or a
            callable receiving the error instance
        status: Status tag; variants without one render as 500
        arity: Number of positional payload values (tuple variant)
        fields: Names of the payload fields (named variant)
        source: Exception type wrapped by a one-value tuple variant

    Returns:
        A declaration replaced by an accessor once the enum is compiled
    """
    return VariantDeclaration(
        message=message, status=status, arity=arity, fields=fields, source=source
    )


def _check_name(owner: str, name: str) -> None:
    if name.startswith("_") or name in _RESERVED_NAMES:
        raise InvalidVariantError(
            f"{owner}.{name}: variant names must be public and not shadow "
            "HttpError attributes"
        )


def _parse_shape(owner: str, name: str, decl: VariantDeclaration) -> VariantShape:
    arity = decl.arity
    if decl.source is not None:
        if not (isinstance(decl.source, type) and issubclass(decl.source, BaseException)):
            raise InvalidVariantError(
                f"{owner}.{name}: source must be an exception type"
            )
        if decl.fields is not None or arity not in (None, 1):
            raise InvalidVariantError(
                f"{owner}.{name}: a source variant wraps exactly one value"
            )
        arity = 1

    if arity is not None and decl.fields is not None:
        raise InvalidVariantError(
            f"{owner}.{name}: arity and fields are mutually exclusive"
        )

    if arity is not None:
        if isinstance(arity, bool) or not isinstance(arity, int) or arity < 1:
            raise InvalidVariantError(
                f"{owner}.{name}: arity must be a positive integer"
            )
        return TupleShape(arity)

    if decl.fields is not None:
        if isinstance(decl.fields, str):
            raise InvalidVariantError(
                f"{owner}.{name}: fields must be a sequence of names, not a string"
            )
        names = tuple(decl.fields)
        if not names:
            raise InvalidVariantError(f"{owner}.{name}: fields must not be empty")
        for field in names:
            if (
                not isinstance(field, str)
                or not field.isidentifier()
                or keyword.iskeyword(field)
            ):
                raise InvalidVariantError(
                    f"{owner}.{name}: {field!r} is not a valid field name"
                )
        if len(set(names)) != len(names):
            raise InvalidVariantError(f"{owner}.{name}: duplicate field names")
        return NamedShape(names)

    return UnitShape()


def _check_template(owner: str, name: str, template: str, shape: VariantShape) -> None:
    """Check every placeholder of a display template against the payload."""
    auto_index = 0
    try:
        parsed = list(string.Formatter().parse(template))
    except ValueError as e:
        raise InvalidVariantError(f"{owner}.{name}: bad message template: {e}") from e

    for _, field_name, _, _ in parsed:
        if field_name is None:
            continue
        head = field_name.split(".", 1)[0].split("[", 1)[0]
        if head == "":
            head = str(auto_index)
            auto_index += 1

        match shape:
            case TupleShape(arity=arity) if head.isdigit():
                ok = int(head) < arity
            case NamedShape(fields=names):
                ok = head in names
            case _:
                ok = False
        if not ok:
            raise InvalidVariantError(
                f"{owner}.{name}: message references {{{field_name}}} "
                "which the variant does not carry"
            )


def _parse_variant(owner: str, name: str, decl: VariantDeclaration) -> ErrorVariant:
    _check_name(owner, name)
    shape = _parse_shape(owner, name, decl)

    if isinstance(decl.message, str):
        _check_template(owner, name, decl.message, shape)
    elif not callable(decl.message):
        raise InvalidVariantError(
            f"{owner}.{name}: message must be a string template or a callable"
        )

    status = None if decl.status is None else resolve_status(decl.status)
    return ErrorVariant(
        name=name,
        shape=shape,
        message=decl.message,
        status_code=status,
        source=decl.source,
    )


def _resolve_transformer(
    cls: type, transformer: Transformer | str | None
) -> Transformer | None:
    if transformer is None:
        return None

    if isinstance(transformer, str):
        module = sys.modules.get(cls.__module__)
        resolved = getattr(module, transformer, None) if module else None
        if resolved is None:
            raise InvalidTransformerError(
                f"{cls.__name__}: transformer {transformer!r} not found in "
                f"module {cls.__module__}"
            )
        transformer = resolved

    if not callable(transformer):
        raise InvalidTransformerError(
            f"{cls.__name__}: transformer must be callable"
        )

    try:
        signature = inspect.signature(transformer)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures are taken on trust
        return transformer
    try:
        signature.bind(object(), "")
    except TypeError as e:
        raise InvalidTransformerError(
            f"{cls.__name__}: transformer must accept (builder, message): {e}"
        ) from e
    return transformer


def parse_error_schema(
    cls: type, transformer: Transformer | str | None = None
) -> ErrorSchema:
    """Parse an error enum class body into a validated schema.

    Args:
        cls: HttpError subclass holding variant() declarations
        transformer: Optional transformer callable or its name in cls's module

    Returns:
        The immutable ErrorSchema for cls

    Raises:
        DuplicateTransformerError: If cls was already compiled
        InvalidTransformerError: If the transformer cannot be used
        UnknownStatusCodeError: If a status tag is unknown
        InvalidVariantError: If a declaration is malformed
    """
    if not (isinstance(cls, type) and issubclass(cls, HttpError)):
        raise InvalidVariantError(
            f"http_error can only decorate HttpError subclasses, got {cls!r}"
        )
    if ERROR_SCHEMA_ATTR in vars(cls):
        raise DuplicateTransformerError(
            f"{cls.__name__}: the `http_error` decorator is exclusive, "
            "only one can exist at the same time"
        )

    variants = tuple(
        _parse_variant(cls.__name__, name, value)
        for name, value in vars(cls).items()
        if isinstance(value, VariantDeclaration)
    )
    if not variants:
        raise InvalidVariantError(f"{cls.__name__} declares no variants")

    return ErrorSchema(
        name=cls.__name__,
        variants=variants,
        transformer=_resolve_transformer(cls, transformer),
    )


def _install(cls: type[HttpError], schema: ErrorSchema, render: ErrorRenderer) -> None:
    setattr(cls, ERROR_SCHEMA_ATTR, schema)
    setattr(cls, ERROR_RENDER_ATTR, render)
    for v in schema.variants:
        match v.shape:
            case UnitShape():
                setattr(cls, v.name, UnitVariant(v))
            case TupleShape() | NamedShape():
                setattr(cls, v.name, VariantConstructor(cls, v))


@overload
def http_error[E: HttpError](cls: type[E], /) -> type[E]: ...


@overload
def http_error[E: HttpError](
    *, transformer: Transformer | str | None = None
) -> Callable[[type[E]], type[E]]: ...


def http_error(cls=None, /, *, transformer=None):
    """Compile an error enum into its response mapping.

    Usable bare (``@http_error``) or with a transformer
    (``@http_error(transformer=fn)``). The transformer receives a response
    builder opened at the variant's status and the display string, and its
    return value becomes the response as-is.
    """

    def decorate(target):
        schema = parse_error_schema(target, transformer)
        render = compile_error_schema(schema)
        _install(target, schema, render)
        logger.debug(
            "Registered error enum %s.%s",
            target.__module__,
            target.__qualname__,
            extra={"schema": schema.name},
        )
        return target

    if cls is None:
        return decorate
    return decorate(cls)


def is_compiled_error(cls: Any) -> bool:
    """Tell whether cls is an HttpError subclass compiled by http_error."""
    return (
        isinstance(cls, type)
        and issubclass(cls, HttpError)
        and ERROR_SCHEMA_ATTR in vars(cls)
    )
