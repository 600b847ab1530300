"""Form errors: what went wrong, where, and with which value.

Parsing never stops at the first problem. Every container collects the
:class:`Error` records of its children into an :class:`Errors` collection,
which is raised once, from ``finalize()``, when the form as a whole cannot be
produced. Names and values are attached lazily as errors travel outward, so
the final error names the full path of the offending field.
"""

from __future__ import annotations

import errno as _errno
from http import HTTPStatus
from typing import TYPE_CHECKING, ClassVar

from .exceptions import FormError
from .name import Name, NameBuf

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterable, Iterator
    from typing import Any

    from .name import NameLike


class Entity:
    """The form entity an error refers to.

    The fixed entities are class attributes (``Entity.FORM``,
    ``Entity.FIELD``, ...); positional indices of a key are created with
    :meth:`index`.
    """

    __slots__ = ("_kind", "_position")

    FORM: ClassVar[Entity]
    FIELD: ClassVar[Entity]
    VALUE_FIELD: ClassVar[Entity]
    DATA_FIELD: ClassVar[Entity]
    NAME: ClassVar[Entity]
    VALUE: ClassVar[Entity]
    KEY: ClassVar[Entity]
    INDICES: ClassVar[Entity]

    def __init__(self, kind: str, position: int | None = None) -> None:
        self._kind = kind
        self._position = position

    @classmethod
    def index(cls, position: int) -> Entity:
        """The index at ``position`` of a key."""
        return cls("index", position)

    @property
    def position(self) -> int | None:
        return self._position

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Entity):
            return self._kind == other._kind and self._position == other._position
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._kind, self._position))

    def __str__(self) -> str:
        if self._position is not None:
            return f"index {self._position}"
        return self._kind

    def __repr__(self) -> str:
        if self._position is not None:
            return f"Entity.index({self._position})"
        return "Entity.%s" % self._kind.upper().replace(" ", "_")


Entity.FORM = Entity("form")
Entity.FIELD = Entity("field")
Entity.VALUE_FIELD = Entity("value field")
Entity.DATA_FIELD = Entity("data field")
Entity.NAME = Entity("name")
Entity.VALUE = Entity("value")
Entity.KEY = Entity("key")
Entity.INDICES = Entity("indices")


class ErrorKind:
    """Base class for the kinds of form errors.

    Each kind has a default entity, used when the error site does not name a
    more specific one.
    """

    __slots__ = ()

    default_entity: ClassVar[Entity] = Entity.VALUE

    def _fields(self) -> tuple[Any, ...]:
        return ()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorKind):
            return type(self) is type(other) and self._fields() == other._fields()
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return "{}({})".format(self.__class__.__name__, ", ".join(repr(f) for f in self._fields()))


class InvalidLength(ErrorKind):
    """The value's length is outside of ``[min, max]``; ``min`` of ``None``
    and ``max`` of ``None`` means "unexpected or incomplete" data.
    """

    __slots__ = ("min", "max")

    def __init__(self, min: int | None = None, max: int | None = None) -> None:
        self.min = min
        self.max = max

    def _fields(self) -> tuple[Any, ...]:
        return (self.min, self.max)

    def __str__(self) -> str:
        if self.min is None and self.max is None:
            return "unexpected or incomplete"
        if self.min is None:
            return f"length cannot exceed {self.max}"
        if self.max is None:
            if self.min == 1:
                return "value cannot be empty"
            return f"length must be at least {self.min}"
        return f"length must be between {self.min} and {self.max}"


class InvalidChoice(ErrorKind):
    """The value was not one of ``choices``."""

    __slots__ = ("choices",)

    def __init__(self, choices: Iterable[str]) -> None:
        self.choices = tuple(choices)

    def _fields(self) -> tuple[Any, ...]:
        return (self.choices,)

    def __str__(self) -> str:
        if not self.choices:
            return "invalid choice"
        if len(self.choices) == 1:
            return f"expected {self.choices[0]}"
        return "expected one of " + ", ".join(f"`{c}`" for c in self.choices)


class OutOfRange(ErrorKind):
    """The value was outside of the inclusive range ``[start, end]``."""

    __slots__ = ("start", "end")

    def __init__(self, start: int | None = None, end: int | None = None) -> None:
        self.start = start
        self.end = end

    def _fields(self) -> tuple[Any, ...]:
        return (self.start, self.end)

    def __str__(self) -> str:
        if self.start is None and self.end is None:
            return "out of range"
        if self.start is None:
            return f"value cannot exceed {self.end}"
        if self.end is None:
            return f"value must be at least {self.start}"
        return f"value must be between {self.start} and {self.end}"


class Validation(ErrorKind):
    """A custom validation routine failed with ``msg``."""

    __slots__ = ("msg",)

    def __init__(self, msg: str) -> None:
        self.msg = msg

    def _fields(self) -> tuple[Any, ...]:
        return (self.msg,)

    def __str__(self) -> str:
        return self.msg


class Duplicate(ErrorKind):
    """A field was submitted more than once."""

    __slots__ = ()
    default_entity = Entity.FIELD

    def __str__(self) -> str:
        return "duplicate"


class Missing(ErrorKind):
    """A required field was never submitted."""

    __slots__ = ()
    default_entity = Entity.FIELD

    def __str__(self) -> str:
        return "missing"


class Unexpected(ErrorKind):
    """A field was submitted that nothing consumed."""

    __slots__ = ()
    default_entity = Entity.FIELD

    def __str__(self) -> str:
        return "unexpected"


class Unknown(ErrorKind):
    __slots__ = ()
    default_entity = Entity.FIELD

    def __str__(self) -> str:
        return "unknown internal error"


class Custom(ErrorKind):
    """Wraps an arbitrary exception. All custom kinds compare equal."""

    __slots__ = ("error",)

    def __init__(self, error: BaseException) -> None:
        self.error = error

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorKind):
            return isinstance(other, Custom)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error!r})"

    def __str__(self) -> str:
        return str(self.error)


class _Decode(ErrorKind):
    """A wrapped decoding failure, e.g. ``int()`` raising ``ValueError``."""

    __slots__ = ("error",)

    prefix: ClassVar[str] = ""

    def __init__(self, error: BaseException) -> None:
        self.error = error

    def _fields(self) -> tuple[Any, ...]:
        return (type(self.error), self.error.args)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error!r})"

    def __str__(self) -> str:
        return f"{self.prefix}: {self.error}"


class Utf8(_Decode):
    __slots__ = ()
    prefix = "invalid UTF-8"


class Int(_Decode):
    __slots__ = ()
    prefix = "invalid integer"


class Bool(_Decode):
    __slots__ = ()
    prefix = "invalid boolean"


class Float(_Decode):
    __slots__ = ()
    prefix = "invalid float"


class Addr(_Decode):
    __slots__ = ()
    prefix = "invalid address"


class Io(_Decode):
    __slots__ = ()
    prefix = "i/o error"
    default_entity = Entity.FORM

    def _fields(self) -> tuple[Any, ...]:
        code = getattr(self.error, "errno", None)
        return (_errno.errorcode.get(code, code),) if code is not None else (type(self.error),)


class Multipart(_Decode):
    __slots__ = ()
    prefix = "invalid multipart"
    default_entity = Entity.FORM


class Error:
    """A single form error.

    ``name`` and ``value`` start out unset and are filled in at most once, by
    :meth:`set_name` and :meth:`set_value`, as the error moves up through the
    parsers of a form.
    """

    __slots__ = ("name", "value", "kind", "entity")

    def __init__(
        self,
        kind: ErrorKind,
        *,
        name: NameLike | tuple[Name | None, str] | None = None,
        value: str | None = None,
        entity: Entity | None = None,
    ) -> None:
        self.kind = kind
        self.entity = entity if entity is not None else kind.default_entity
        self.name: NameBuf | None = NameBuf.from_any(name) if name is not None else None
        self.value = value

    @classmethod
    def custom(cls, error: BaseException) -> Error:
        return cls(Custom(error))

    @classmethod
    def validation(cls, msg: str) -> Error:
        return cls(Validation(msg))

    def with_entity(self, entity: Entity) -> Error:
        self.set_entity(entity)
        return self

    def set_entity(self, entity: Entity) -> None:
        self.entity = entity

    def with_name(self, name: NameLike | tuple[Name | None, str]) -> Error:
        self.set_name(name)
        return self

    def set_name(self, name: NameLike | tuple[Name | None, str]) -> None:
        if self.name is None:
            self.name = NameBuf.from_any(name)

    def with_value(self, value: str) -> Error:
        self.set_value(value)
        return self

    def set_value(self, value: str) -> None:
        if self.value is None:
            self.value = value

    def is_for_exactly(self, name: NameLike) -> bool:
        """Returns ``True`` if this error is named exactly ``name``."""
        return self.name is not None and self.name == name

    def is_for(self, name: NameLike) -> bool:
        """Returns ``True`` if this error's name is ``name`` or one of its
        prefixes. An error for ``a`` is for ``a.b``; one for ``a.b`` is not
        for ``a``.
        """
        if self.name is None:
            return False

        other = NameBuf.from_any(name)
        if self.name.is_empty() != other.is_empty():
            return False

        ours = tuple(self.name.keys())
        theirs = tuple(other.keys())
        return theirs[: len(ours)] == ours

    def status(self) -> HTTPStatus:
        """The HTTP status best describing this error."""
        if isinstance(self.kind, InvalidLength) and self.kind.min is None:
            return HTTPStatus.REQUEST_ENTITY_TOO_LARGE
        if isinstance(self.kind, Unknown):
            return HTTPStatus.INTERNAL_SERVER_ERROR
        if self.entity == Entity.FORM:
            return HTTPStatus.BAD_REQUEST
        return HTTPStatus.UNPROCESSABLE_ENTITY

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Error):
            return (
                self.name == other.name
                and self.value == other.value
                and self.kind == other.kind
                and self.entity == other.entity
            )
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return str(self.kind)

    def __repr__(self) -> str:
        return "{}(name={!r}, value={!r}, kind={!r}, entity={!r})".format(
            self.__class__.__name__,
            None if self.name is None else str(self.name),
            self.value,
            self.kind,
            self.entity,
        )


class Errors(FormError):
    """An ordered collection of :class:`Error`, raised when parsing fails.

    ``Errors`` behaves like a list of errors: it can be iterated, indexed,
    appended to and extended with other errors.
    """

    def __init__(self, errors: Iterable[Error] | Error | ErrorKind = ()) -> None:
        super().__init__()
        if isinstance(errors, ErrorKind):
            errors = Error(errors)
        if isinstance(errors, Error):
            errors = (errors,)
        self._errors: list[Error] = list(errors)

    def append(self, error: Error | ErrorKind) -> None:
        if isinstance(error, ErrorKind):
            error = Error(error)
        self._errors.append(error)

    push = append

    def extend(self, errors: Iterable[Error]) -> None:
        self._errors.extend(errors)

    def is_empty(self) -> bool:
        return not self._errors

    def with_name(self, name: NameLike | tuple[Name | None, str]) -> Errors:
        self.set_name(name)
        return self

    def set_name(self, name: NameLike | tuple[Name | None, str]) -> None:
        """Names every error that does not have a name yet."""
        buf = NameBuf.from_any(name)
        for error in self._errors:
            error.set_name(buf)

    def with_value(self, value: str) -> Errors:
        self.set_value(value)
        return self

    def set_value(self, value: str) -> None:
        for error in self._errors:
            error.set_value(value)

    def status(self) -> HTTPStatus:
        """The most severe status of all errors, or 500 when empty."""
        if not self._errors:
            return HTTPStatus.INTERNAL_SERVER_ERROR
        return max(error.status() for error in self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[Error]:
        return iter(self._errors)

    def __getitem__(self, index: int) -> Error:
        return self._errors[index]

    def __str__(self) -> str:
        return "\n".join([f"{len(self._errors)} errors:"] + [str(e) for e in self._errors])

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._errors!r})"
