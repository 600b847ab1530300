"""The push-parsing protocol and the built-in single-value parsers.

A :class:`FromForm` never sees a whole form. A driver asks it for a fresh
context with :meth:`FromForm.init`, hands it every field with
:meth:`FromForm.push_value` or :meth:`FromForm.push_data`, and finally asks
for the value with :meth:`FromForm.finalize`, which raises
:class:`~pushform.error.Errors` when no value can be produced.
"""

from __future__ import annotations

import datetime
import enum
import ipaddress
import logging
import re
from enum import IntEnum
from typing import TYPE_CHECKING

from .error import (
    Addr,
    Bool,
    Custom,
    Duplicate,
    Error,
    Errors,
    Float,
    Int,
    InvalidChoice,
    InvalidLength,
    Missing,
    Unexpected,
    Utf8,
)

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

    from .field import DataField, ValueField
    from .name import NameView


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


#: Returned by :meth:`FromForm.default` when a form has no default value.
MISSING: Any = _Missing()


class Options(IntEnum):
    """Parsing options, passed unchanged to every nested context.

    In strict mode, fields that no parser consumes are errors and leaf values
    may only be submitted once. In lenient mode both are ignored.
    """

    LENIENT = 0
    STRICT = 1

    @property
    def strict(self) -> bool:
        return self is Options.STRICT


class FromForm:
    """Base class for everything that can be parsed from form fields."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def init(self, opts: Options) -> Any:
        raise NotImplementedError()

    def push_value(self, ctxt: Any, field: ValueField) -> None:
        raise NotImplementedError()

    async def push_data(self, ctxt: Any, field: DataField) -> None:
        raise NotImplementedError()

    def push_error(self, ctxt: Any, error: Error) -> None:
        """Records an error that happened outside of this parser, e.g. while
        decoding the request body. Ignored unless overridden.
        """
        self.logger.debug("Dropping pushed error: %r", error)

    def finalize(self, ctxt: Any) -> Any:
        raise NotImplementedError()

    def default(self, opts: Options = Options.LENIENT) -> Any:
        """Returns the value for a form in which no field was pushed at all,
        or :data:`MISSING`.
        """
        try:
            return self.finalize(self.init(opts))
        except Errors:
            return MISSING

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class FieldContext:
    __slots__ = ("opts", "field_name", "field_value", "value", "errors", "pushes")

    def __init__(self, opts: Options) -> None:
        self.opts = opts
        self.field_name: NameView | None = None
        self.field_value: str | None = None
        self.value: Any = MISSING
        self.errors: Errors | None = None
        self.pushes = 0


class FromFormField(FromForm):
    """A :class:`FromForm` for values parsed from a single field.

    Subclasses implement :meth:`from_value` and/or :meth:`from_data`; either
    one not implemented rejects its kind of field as unexpected. Only the
    first submitted field is parsed. Strict forms reject any further ones as
    duplicates; lenient forms ignore them.
    """

    def from_value(self, field: ValueField) -> Any:
        raise Errors(field.unexpected())

    async def from_data(self, field: DataField) -> Any:
        raise Errors(field.unexpected())

    def default_value(self) -> Any:
        """The value used by lenient forms when the field is missing."""
        return MISSING

    def init(self, opts: Options) -> FieldContext:
        return FieldContext(opts)

    def _should_push(self, ctxt: FieldContext) -> bool:
        ctxt.pushes += 1
        return ctxt.value is MISSING and ctxt.errors is None

    def _record(self, ctxt: FieldContext, errors: Errors) -> None:
        if not ctxt.opts.strict and len(errors) and isinstance(errors[-1].kind, Unexpected):
            self.logger.debug("Ignoring unexpected field %s", ctxt.field_name)
            return
        ctxt.errors = errors

    def push_value(self, ctxt: FieldContext, field: ValueField) -> None:
        if not self._should_push(ctxt):
            return

        ctxt.field_name = field.name
        ctxt.field_value = field.value
        try:
            ctxt.value = self.from_value(field)
        except Errors as e:
            self._record(ctxt, e)

    async def push_data(self, ctxt: FieldContext, field: DataField) -> None:
        if not self._should_push(ctxt):
            return

        ctxt.field_name = field.name
        try:
            ctxt.value = await self.from_data(field)
        except Errors as e:
            self._record(ctxt, e)

    def finalize(self, ctxt: FieldContext) -> Any:
        if ctxt.value is not MISSING:
            if not ctxt.opts.strict or ctxt.pushes <= 1:
                return ctxt.value
            errors = Errors(Duplicate())
        elif ctxt.errors is not None:
            errors = ctxt.errors
        else:
            if not ctxt.opts.strict:
                default = self.default_value()
                if default is not MISSING:
                    return default
            errors = Errors(Missing())

        if ctxt.field_name is not None and not ctxt.field_name.as_name().is_empty():
            errors.set_name(ctxt.field_name)
        if ctxt.field_value is not None:
            errors.set_value(ctxt.field_value)
        raise errors


async def _read_limited(field: DataField, limit: int | None) -> bytes:
    data = await field.data.read(-1 if limit is None else limit + 1)
    if limit is not None and len(data) > limit:
        raise Errors(InvalidLength(None, limit))
    return data


class StrField(FromFormField):
    """A string. Data fields are read up to ``limit`` bytes and must be UTF-8."""

    def __init__(self, limit: int | None = 8 * 1024) -> None:
        super().__init__()
        self.limit = limit

    def from_value(self, field: ValueField) -> str:
        return field.value

    async def from_data(self, field: DataField) -> str:
        data = await _read_limited(field, self.limit)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise Errors(Utf8(e))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(limit={self.limit!r})"


class BytesField(FromFormField):
    def __init__(self, limit: int | None = 8 * 1024) -> None:
        super().__init__()
        self.limit = limit

    def from_value(self, field: ValueField) -> bytes:
        return field.value.encode("utf-8")

    async def from_data(self, field: DataField) -> bytes:
        return await _read_limited(field, self.limit)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(limit={self.limit!r})"


_INT_RE = re.compile(r"[+-]?[0-9]+\Z")


class IntField(FromFormField):
    """An integer, optionally restricted to a fixed width.

    ``IntField(signed=False, bits=8)`` accepts ``0`` through ``255``. Only
    ASCII digits with an optional sign are accepted; whitespace and
    underscores are not.
    """

    def __init__(self, signed: bool = True, bits: int | None = None) -> None:
        super().__init__()
        self.signed = signed
        self.bits = bits
        if bits is None:
            self.min = None if signed else 0
            self.max = None
        elif signed:
            self.min = -(1 << (bits - 1))
            self.max = (1 << (bits - 1)) - 1
        else:
            self.min = 0
            self.max = (1 << bits) - 1

    def from_value(self, field: ValueField) -> int:
        value = field.value
        if not value:
            raise Errors(Int(ValueError("cannot parse integer from empty string")))
        if not _INT_RE.match(value):
            raise Errors(Int(ValueError("invalid digit found in string")))

        try:
            number = int(value)
        except ValueError as e:
            raise Errors(Int(e))
        if self.max is not None and number > self.max:
            raise Errors(Int(ValueError("number too large to fit in target type")))
        if self.min is not None and number < self.min:
            if number < 0 and self.min == 0:
                raise Errors(Int(ValueError("invalid digit found in string")))
            raise Errors(Int(ValueError("number too small to fit in target type")))
        return number

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(signed={self.signed!r}, bits={self.bits!r})"


class FloatField(FromFormField):
    def from_value(self, field: ValueField) -> float:
        value = field.value
        if value != value.strip() or "_" in value:
            raise Errors(Float(ValueError("invalid float literal")))
        try:
            return float(value)
        except ValueError:
            raise Errors(Float(ValueError("invalid float literal")))


class BoolField(FromFormField):
    """A boolean: ``on``, ``yes``, ``true`` and the empty string are true,
    ``off``, ``no`` and ``false`` are false, in any case. Missing booleans
    are false in lenient forms.
    """

    _TRUE = frozenset(("", "on", "yes", "true"))
    _FALSE = frozenset(("off", "no", "false"))

    def from_value(self, field: ValueField) -> bool:
        value = field.value.lower()
        if value in self._FALSE:
            return False
        if value in self._TRUE:
            return True
        raise Errors(Bool(ValueError("provided string was not `true` or `false`")))

    def default_value(self) -> bool:
        return False


class AddrField(FromFormField):
    """An IP address; ``version`` of 4 or 6 restricts the accepted family."""

    def __init__(self, version: int | None = None) -> None:
        super().__init__()
        self.version = version

    def from_value(self, field: ValueField) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
        try:
            if self.version == 4:
                return ipaddress.IPv4Address(field.value)
            if self.version == 6:
                return ipaddress.IPv6Address(field.value)
            return ipaddress.ip_address(field.value)
        except ValueError as e:
            raise Errors(Addr(e))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(version={self.version!r})"


class DateField(FromFormField):
    """A ``YYYY-MM-DD`` date."""

    def from_value(self, field: ValueField) -> datetime.date:
        try:
            return datetime.date.fromisoformat(field.value)
        except ValueError as e:
            raise Errors(Custom(e))


class TimeField(FromFormField):
    """A ``HH:MM`` or ``HH:MM:SS`` time."""

    def from_value(self, field: ValueField) -> datetime.time:
        try:
            return datetime.time.fromisoformat(field.value)
        except ValueError as e:
            raise Errors(Custom(e))


class DateTimeField(FromFormField):
    """A ``YYYY-MM-DDTHH:MM[:SS]`` datetime, as sent by ``datetime-local``
    inputs.
    """

    def from_value(self, field: ValueField) -> datetime.datetime:
        try:
            return datetime.datetime.fromisoformat(field.value)
        except ValueError as e:
            raise Errors(Custom(e))


class ChoiceField(FromFormField):
    """A member of an :class:`enum.Enum`, matched case-insensitively by
    member value or member name.
    """

    def __init__(self, enum_cls: type[enum.Enum]) -> None:
        super().__init__()
        self.enum_cls = enum_cls
        self.choices = tuple(str(m.value) for m in enum_cls)
        self._lookup: dict[str, enum.Enum] = {}
        for member in enum_cls:
            self._lookup.setdefault(str(member.value).lower(), member)
        for member in enum_cls:
            self._lookup.setdefault(member.name.lower(), member)

    def from_value(self, field: ValueField) -> enum.Enum:
        try:
            return self._lookup[field.value.lower()]
        except KeyError:
            raise Errors(InvalidChoice(self.choices))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.enum_cls.__name__})"
