"""Error enums.

An error enum is an HttpError subclass decorated with http_error. Its
instances are ordinary exceptions carrying the variant they belong to and
the variant's payload, so handlers can raise them and routes can catch
them by class.

    @http_error
    class SomeError(HttpError):
        InvalidBody = variant("Couldn't parse http body.", status="BadRequest")
        Database = variant("A database error occurred: {0}", arity=1)

    raise SomeError.InvalidBody
    raise SomeError.Database(exc) from exc
"""

from typing import Any, ClassVar, Self

from fastapi.responses import Response

from proofroute.core.constants import ERROR_RENDER_ATTR, ERROR_SCHEMA_ATTR
from proofroute.core.exceptions import GenerationError, InvalidVariantError
from proofroute.errors.schemas import (
    ErrorRenderer,
    ErrorSchema,
    ErrorVariant,
    NamedShape,
    TupleShape,
    UnitShape,
)


class HttpError(Exception):
    """Base class for error enums."""

    __error_schema__: ClassVar[ErrorSchema]
    __error_render__: ClassVar[ErrorRenderer]

    def __init__(
        self,
        variant: ErrorVariant,
        args: tuple[Any, ...] = (),
        fields: dict[str, Any] | None = None,
    ):
        super().__init__(*args)
        self.variant = variant
        self.fields = dict(fields or {})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for base in cls.__mro__[1:]:
            if ERROR_SCHEMA_ATTR in vars(base):
                raise InvalidVariantError(
                    f"{base.__name__} is a compiled error enum and cannot be extended"
                )

    def __str__(self) -> str:
        return self.variant.display(self.args, self.fields, self)

    def __repr__(self) -> str:
        prefix = f"{type(self).__name__}.{self.variant.name}"
        match self.variant.shape:
            case UnitShape():
                return prefix
            case TupleShape():
                return f"{prefix}({', '.join(repr(a) for a in self.args)})"
            case NamedShape():
                body = ", ".join(f"{k}={v!r}" for k, v in self.fields.items())
                return f"{prefix}({body})"
        return prefix

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HttpError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.variant is other.variant
            and self.args == other.args
            and self.fields == other.fields
        )

    def __hash__(self) -> int:
        return hash((type(self), self.variant.name))

    def __reduce__(self) -> tuple[Any, ...]:
        return (
            _rebuild,
            (type(self), self.variant.name, tuple(self.args), self.fields),
        )

    @property
    def name(self) -> str:
        """Name of the variant this error belongs to."""
        return self.variant.name

    def into_response(self) -> Response:
        """Render this error through its enum's compiled mapping."""
        render = getattr(type(self), ERROR_RENDER_ATTR, None)
        if render is None:
            raise GenerationError(
                f"{type(self).__name__} was never compiled, decorate it with @http_error"
            )
        return render(self)

    @classmethod
    def from_source(cls, exc: BaseException) -> Self:
        """Wrap a foreign exception in the first variant declared for its type.

        Raises:
            LookupError: If no variant of this enum wraps the exception's type
        """
        schema: ErrorSchema | None = vars(cls).get(ERROR_SCHEMA_ATTR)
        if schema is not None:
            for variant in schema.variants:
                if variant.source is not None and isinstance(exc, variant.source):
                    return cls(variant, (exc,))
        raise LookupError(
            f"{cls.__name__} has no variant wrapping {type(exc).__name__}"
        )


def _rebuild(
    enum: type[HttpError], name: str, args: tuple[Any, ...], fields: dict[str, Any]
) -> HttpError:
    """Recreate a pickled or copied error against the enum's live variants."""
    schema: ErrorSchema = getattr(enum, ERROR_SCHEMA_ATTR)
    return enum(schema.variant_named(name), args, fields)


class UnitVariant:
    """Class attribute standing for a unit variant.

    Every access builds a fresh instance so raised errors never share a
    traceback.
    """

    def __init__(self, variant: ErrorVariant):
        self.variant = variant

    def __get__(self, instance: Any, owner: type[HttpError]) -> HttpError:
        return owner(self.variant)


class VariantConstructor:
    """Class attribute building instances of a tuple or named variant."""

    def __init__(self, enum: type[HttpError], variant: ErrorVariant):
        self.enum = enum
        self.variant = variant
        self.__name__ = variant.name
        self.__qualname__ = f"{enum.__qualname__}.{variant.name}"

    def __call__(self, *args: Any, **fields: Any) -> HttpError:
        match self.variant.shape:
            case TupleShape(arity=arity):
                if fields or len(args) != arity:
                    raise TypeError(
                        f"{self.__qualname__} takes exactly {arity} positional "
                        f"value(s), got {len(args)} positional and {len(fields)} named"
                    )
                return self.enum(self.variant, args)
            case NamedShape(fields=names):
                if args or set(fields) != set(names):
                    raise TypeError(
                        f"{self.__qualname__} takes exactly the fields "
                        f"{', '.join(names)}"
                    )
                ordered = {name: fields[name] for name in names}
                return self.enum(self.variant, (), ordered)
        raise GenerationError(f"{self.__qualname__} is not a constructible variant")

    def matches(self, error: object) -> bool:
        """Tell whether an error is an instance of this variant."""
        return isinstance(error, self.enum) and error.variant is self.variant

    def __repr__(self) -> str:
        return f"<variant constructor {self.__qualname__}>"
