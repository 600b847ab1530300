"""Forms that report what was submitted instead of failing.

A :class:`ContextualForm` always finalizes successfully, to a
:class:`Contextual` holding the parsed value, if any, and a :class:`Context`
recording every submitted value and every error by field name. This is what
an HTML form handler needs to re-render a form with the user's input and the
errors next to the offending fields.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Generic, TypeVar

from .error import Errors
from .from_form import FromForm
from .name import Name, NameBuf

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterator
    from typing import Any

    from .error import Error
    from .field import DataField, ValueField
    from .from_form import Options
    from .name import NameLike

T = TypeVar("T")


class Context:
    """Submitted values and errors, looked up by field name."""

    def __init__(self) -> None:
        self._errors: dict[NameBuf, list[Error]] = {}
        self._values: dict[Name, list[str]] = {}
        self._data_fields: dict[Name, None] = {}
        self._form_errors: list[Error] = []
        self._status = HTTPStatus.OK

    def value(self, name: NameLike) -> str | None:
        """The first value submitted for ``name``, if any."""
        values = self._values.get(_as_name(name))
        return values[0] if values else None

    def values(self, name: NameLike) -> list[str]:
        return list(self._values.get(_as_name(name), ()))

    def data_fields(self) -> list[Name]:
        """The names of all submitted data fields, in submission order."""
        return list(self._data_fields)

    def has_error(self, name: NameLike) -> bool:
        return next(self.errors(name), None) is not None

    def errors(self, name: NameLike) -> Iterator[Error]:
        """Iterates over the errors recorded for ``name`` or for any of its
        prefixes, so that an error for ``dog`` is also an error for
        ``dog.barks``.
        """
        for prefix in _as_name(name).prefixes():
            yield from self._errors.get(NameBuf(prefix), ())

    def all_errors(self) -> Iterator[Error]:
        """Iterates over all field errors, then all form errors."""
        for errors in self._errors.values():
            yield from errors
        yield from self._form_errors

    def status(self) -> HTTPStatus:
        """The most severe status of all recorded errors; 200 without any."""
        return self._status

    def push_error(self, error: Error) -> None:
        self._status = max(self._status, error.status())
        if error.name is None:
            self._form_errors.append(error)
        else:
            self._errors.setdefault(error.name, []).append(error)

    def push_errors(self, errors: Errors) -> None:
        for error in errors:
            self.push_error(error)

    def __repr__(self) -> str:
        return "{}(values={!r}, errors={!r}, status={!r})".format(
            self.__class__.__name__,
            {str(k): v for k, v in self._values.items()},
            list(self.all_errors()),
            self._status,
        )


def _as_name(name: NameLike) -> Name:
    if isinstance(name, Name):
        return name
    return Name(str(name))


class Contextual(Generic[T]):
    """The outcome of a :class:`ContextualForm`: the parsed ``value``, or
    ``None`` if parsing failed, and the :class:`Context` of the form.
    """

    __slots__ = ("value", "context")

    def __init__(self, value: T | None, context: Context) -> None:
        self.value = value
        self.context = context

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(value={self.value!r}, context={self.context!r})"


class ContextualForm(FromForm):
    """Parses ``item`` into a :class:`Contextual`. Never fails."""

    def __init__(self, item: FromForm) -> None:
        super().__init__()
        self.item = item

    def init(self, opts: Options) -> tuple[Any, Context]:
        return self.item.init(opts), Context()

    def push_value(self, ctxt: tuple[Any, Context], field: ValueField) -> None:
        inner, context = ctxt
        context._values.setdefault(field.name.source(), []).append(field.value)
        self.item.push_value(inner, field)

    async def push_data(self, ctxt: tuple[Any, Context], field: DataField) -> None:
        inner, context = ctxt
        context._data_fields[field.name.source()] = None
        await self.item.push_data(inner, field)

    def push_error(self, ctxt: tuple[Any, Context], error: Error) -> None:
        ctxt[1].push_error(error)

    def finalize(self, ctxt: tuple[Any, Context]) -> Contextual[Any]:
        inner, context = ctxt
        try:
            value = self.item.finalize(inner)
        except Errors as e:
            context.push_errors(e)
            value = None
        return Contextual(value, context)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.item!r})"
