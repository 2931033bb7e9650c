"""Error schema types.

An ErrorSchema is the immutable description of one error enum: its
variants in declaration order and the optional transformer that replaces
the default rendering. Schemas are built by the http_error decorator and
consumed by the error compiler.
"""

from collections.abc import Callable
from dataclasses import dataclass
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from fastapi.responses import Response

from proofroute.core.constants import DEFAULT_ERROR_STATUS

if TYPE_CHECKING:
    from proofroute.core.responses import ResponseBuilder

Transformer = Callable[["ResponseBuilder", str], Any]
MessageSupplier = str | Callable[[Any], str]


# Variant shapes form a closed tagged union
@dataclass(frozen=True)
class UnitShape:
    """Variant without payload."""


@dataclass(frozen=True)
class TupleShape:
    """Variant with a fixed number of positional payload values."""

    arity: int


@dataclass(frozen=True)
class NamedShape:
    """Variant with named payload fields."""

    fields: tuple[str, ...]


VariantShape = UnitShape | TupleShape | NamedShape


@dataclass(frozen=True)
class ErrorVariant:
    """One case of an error enum."""

    name: str
    shape: VariantShape
    message: MessageSupplier
    status_code: HTTPStatus | None = None
    source: type[BaseException] | None = None

    def display(self, args: tuple[Any, ...], fields: dict[str, Any], error: Any) -> str:
        """Render the display string for a payload of this variant."""
        if callable(self.message):
            return str(self.message(error))
        return self.message.format(*args, **fields)


@dataclass(frozen=True)
class ErrorSchema:
    """Validated description of one error enum."""

    name: str
    variants: tuple[ErrorVariant, ...]
    transformer: Transformer | None = None

    def status_for(self, variant: ErrorVariant) -> HTTPStatus:
        """Status the variant renders with, falling back to the default."""
        if variant.status_code is None:
            return DEFAULT_ERROR_STATUS
        return variant.status_code

    def variant_named(self, name: str) -> ErrorVariant:
        """Look up a variant by name."""
        for variant in self.variants:
            if variant.name == name:
                return variant
        raise KeyError(name)


ErrorRenderer = Callable[[Any], Response]
