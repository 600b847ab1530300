from __future__ import annotations

import inspect
from io import BytesIO
from typing import TYPE_CHECKING

from .error import Entity, Error, Missing, Unexpected
from .name import Name, NameView

if TYPE_CHECKING:  # pragma: no cover
    from typing import Protocol

    class SupportsRead(Protocol):
        def read(self, __n: int = -1) -> bytes: ...


def _view(name: NameView | Name | str) -> NameView:
    if isinstance(name, NameView):
        return name
    return NameView(name)


class ValueField:
    """A form field with a string value, i.e. one ``name=value`` pair of an
    urlencoded form or a multipart part without a file name.

    The field's ``name`` is a :class:`NameView` positioned at the key the
    receiving parser should look at; parsers pass :meth:`shift`-ed copies on
    to their children.
    """

    __slots__ = ("name", "value")

    def __init__(self, name: NameView | Name | str, value: str) -> None:
        self.name = _view(name)
        self.value = value

    @classmethod
    def parse(cls, field: str) -> ValueField:
        """Parses a raw ``name=value`` string. Nothing is percent-decoded.

        The name ends at the first ``=``; without one the value is empty::

            >>> f = ValueField.parse("a.b=c=d")
            >>> str(f.name.source()), f.value
            ('a.b', 'c=d')
        """
        name, _, value = field.partition("=")
        return cls(name, value)

    @classmethod
    def from_value(cls, value: str) -> ValueField:
        """Creates a nameless field holding ``value``."""
        return cls(NameView(""), value)

    def shift(self) -> ValueField:
        """Returns a copy of this field with its name shifted by one key."""
        view = self.name.copy()
        view.shift()
        return ValueField(view, self.value)

    def unexpected(self) -> Error:
        return Error(
            Unexpected(),
            name=self.name.source(),
            value=self.value,
            entity=Entity.VALUE_FIELD,
        )

    def missing(self) -> Error:
        return Error(
            Missing(),
            name=self.name.source(),
            value=self.value,
            entity=Entity.VALUE_FIELD,
        )

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValueField):
            return self.name == other.name and self.value == other.value
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if len(self.value) > 97:
            v = repr(self.value[:97])[:-1] + "...'"
        else:
            v = repr(self.value)
        return f"{self.__class__.__name__}(name={str(self.name.source())!r}, value={v})"


class Data:
    """An asynchronous source of bytes for a :class:`DataField`.

    Wraps ``bytes`` or any object with a ``read(size)`` method, whether that
    method is a plain function or a coroutine function.
    """

    def __init__(self, source: bytes | bytearray | SupportsRead) -> None:
        if isinstance(source, (bytes, bytearray)):
            source = BytesIO(bytes(source))
        self._source = source

    async def read(self, size: int = -1) -> bytes:
        """Reads at most ``size`` bytes, or everything left when ``size`` is
        negative. Returns ``b""`` when the source is exhausted.
        """
        data = self._source.read(size)
        if inspect.isawaitable(data):
            data = await data
        return bytes(data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._source!r})"


class DataField:
    """A form field backed by a stream of bytes, usually a file upload."""

    __slots__ = ("name", "data", "file_name", "content_type")

    def __init__(
        self,
        name: NameView | Name | str,
        data: Data | bytes | SupportsRead,
        file_name: str | None = None,
        content_type: str | None = None,
    ) -> None:
        self.name = _view(name)
        self.data = data if isinstance(data, Data) else Data(data)
        self.file_name = file_name
        self.content_type = content_type

    def shift(self) -> DataField:
        view = self.name.copy()
        view.shift()
        return DataField(view, self.data, self.file_name, self.content_type)

    def unexpected(self) -> Error:
        return Error(Unexpected(), name=self.name.source(), entity=Entity.DATA_FIELD)

    def __repr__(self) -> str:
        return "{}(name={!r}, file_name={!r}, content_type={!r})".format(
            self.__class__.__name__,
            str(self.name.source()),
            self.file_name,
            self.content_type,
        )
