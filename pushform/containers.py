"""Parsers composed of other parsers: sequences, maps, pairs and wrappers.

Containers never stop at the first error. Each collects the errors of its
children and raises them all together from ``finalize()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .error import Entity, Error, Errors, InvalidChoice, Missing
from .field import ValueField
from .from_form import FromForm, Options

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

    from .field import DataField
    from .name import Key, NameView


class VecContext:
    __slots__ = ("opts", "last_key", "current", "items", "errors")

    def __init__(self, opts: Options) -> None:
        self.opts = opts
        self.last_key: Key | None = None
        self.current: Any = None
        self.items: list[Any] = []
        self.errors = Errors()


class Vec(FromForm):
    """Parses a ``list`` of ``item``.

    Fields are grouped into items by the current key of their names. A new
    item starts whenever the key differs from that of the previous field, or
    when either key is empty, so ``a=1&a=2`` and ``a[]=1&a[]=2`` are two items
    each, while ``a[0].x=1&a[0].y=2`` is one. Grouping only looks at the
    previous field: ``a[0].x=1&a[1].x=2&a[0].y=3`` is three items.
    """

    def __init__(self, item: FromForm) -> None:
        super().__init__()
        self.item = item

    def init(self, opts: Options) -> VecContext:
        return VecContext(opts)

    def _flush(self, ctxt: VecContext) -> None:
        if ctxt.current is None:
            return

        current, ctxt.current = ctxt.current, None
        try:
            ctxt.items.append(self.item.finalize(current))
        except Errors as e:
            ctxt.errors.extend(e)

    def _context(self, ctxt: VecContext, name: NameView) -> Any:
        key = name.key()
        if ctxt.current is None or ctxt.last_key is None or key is None or ctxt.last_key != key:
            self._flush(ctxt)
            self.logger.debug("Starting item %d at %s", len(ctxt.items) + len(ctxt.errors), name)
            ctxt.current = self.item.init(ctxt.opts)

        ctxt.last_key = key
        return ctxt.current

    def push_value(self, ctxt: VecContext, field: ValueField) -> None:
        self.item.push_value(self._context(ctxt, field.name), field.shift())

    async def push_data(self, ctxt: VecContext, field: DataField) -> None:
        await self.item.push_data(self._context(ctxt, field.name), field.shift())

    def finalize(self, ctxt: VecContext) -> list[Any]:
        self._flush(ctxt)
        if ctxt.errors:
            raise ctxt.errors
        return ctxt.items

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.item!r})"


class MapContext:
    __slots__ = ("opts", "table", "entries", "metadata", "errors")

    def __init__(self, opts: Options) -> None:
        self.opts = opts
        # index string -> position in `entries`
        self.table: dict[str, int] = {}
        self.entries: list[tuple[Any, Any]] = []
        self.metadata: list[NameView] = []
        self.errors = Errors()


class Map(FromForm):
    """Parses a ``dict`` from ``key`` and ``value`` parsers.

    A key with a single index names the entry directly: ``m[a]=1`` maps the
    string ``a`` to ``1``. A key with two indices sets the key and the value
    of an entry separately: ``m[k:0]=a&m[v:0]=1`` is the same map. Entries
    keep the order in which they were first seen.
    """

    def __init__(self, key: FromForm, value: FromForm) -> None:
        super().__init__()
        self.key = key
        self.value = value

    def init(self, opts: Options) -> MapContext:
        return MapContext(opts)

    def _entry(self, ctxt: MapContext, index: str, name: NameView) -> tuple[tuple[Any, Any], bool]:
        position = ctxt.table.get(index)
        if position is not None:
            return ctxt.entries[position], False

        ctxt.table[index] = len(ctxt.entries)
        entry = (self.key.init(ctxt.opts), self.value.init(ctxt.opts))
        ctxt.entries.append(entry)
        ctxt.metadata.append(name.copy())
        return entry, True

    def _route(self, ctxt: MapContext, name: NameView) -> tuple[FromForm, Any] | None:
        key = name.key()
        indices = key.indices() if key is not None else []

        if len(indices) == 1:
            (index,) = indices
            (key_ctxt, value_ctxt), created = self._entry(ctxt, index, name)
            if created:
                self.key.push_value(key_ctxt, ValueField.from_value(index))
            return self.value, value_ctxt

        if len(indices) == 2:
            kind, index = indices
            kind = kind.lower()
            if kind.startswith("k"):
                return self.key, self._entry(ctxt, index, name)[0][0]
            if kind.startswith("v"):
                return self.value, self._entry(ctxt, index, name)[0][1]

            self.logger.debug("Bad map index kind %r in %s", kind, name)
            ctxt.errors.append(Error(InvalidChoice(("k", "v")), name=name, entity=Entity.index(0)))
            return None

        ctxt.errors.append(Error(Missing(), name=name, entity=Entity.KEY))
        return None

    def push_value(self, ctxt: MapContext, field: ValueField) -> None:
        target = self._route(ctxt, field.name)
        if target is not None:
            form, inner = target
            form.push_value(inner, field.shift())

    async def push_data(self, ctxt: MapContext, field: DataField) -> None:
        target = self._route(ctxt, field.name)
        if target is not None:
            form, inner = target
            await form.push_data(inner, field.shift())

    def finalize(self, ctxt: MapContext) -> dict[Any, Any]:
        errors = ctxt.errors
        result: dict[Any, Any] = {}
        for (key_ctxt, value_ctxt), entry_name in zip(ctxt.entries, ctxt.metadata):
            ok = True
            try:
                key = self.key.finalize(key_ctxt)
            except Errors as e:
                errors.extend(e.with_name(entry_name))
                ok = False
            try:
                value = self.value.finalize(value_ctxt)
            except Errors as e:
                errors.extend(e.with_name(entry_name))
                ok = False
            if ok:
                result[key] = value

        if errors:
            raise errors
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.key!r}, {self.value!r})"


class Optional(FromForm):
    """Parses ``item`` or ``None``; never fails."""

    def __init__(self, item: FromForm) -> None:
        super().__init__()
        self.item = item

    def init(self, opts: Options) -> Any:
        return self.item.init(opts)

    def push_value(self, ctxt: Any, field: ValueField) -> None:
        self.item.push_value(ctxt, field)

    async def push_data(self, ctxt: Any, field: DataField) -> None:
        await self.item.push_data(ctxt, field)

    def finalize(self, ctxt: Any) -> Any:
        try:
            return self.item.finalize(ctxt)
        except Errors as e:
            self.logger.debug("Discarding %d errors of optional %r", len(e), self.item)
            return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.item!r})"


class Result(FromForm):
    """Parses ``item``, or returns the :class:`Errors` that prevented it."""

    def __init__(self, item: FromForm) -> None:
        super().__init__()
        self.item = item

    def init(self, opts: Options) -> Any:
        return self.item.init(opts)

    def push_value(self, ctxt: Any, field: ValueField) -> None:
        self.item.push_value(ctxt, field)

    async def push_data(self, ctxt: Any, field: DataField) -> None:
        await self.item.push_data(ctxt, field)

    def finalize(self, ctxt: Any) -> Any:
        try:
            return self.item.finalize(ctxt)
        except Errors as e:
            return e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.item!r})"


class PairContext:
    __slots__ = ("left", "right", "errors")

    def __init__(self, left: Any, right: Any) -> None:
        self.left = left
        self.right = right
        self.errors = Errors()


class Pair(FromForm):
    """Parses a 2-tuple from the keys ``0`` and ``1``: ``p.0=a&p.1=b``."""

    def __init__(self, left: FromForm, right: FromForm) -> None:
        super().__init__()
        self.left = left
        self.right = right

    def init(self, opts: Options) -> PairContext:
        return PairContext(self.left.init(opts), self.right.init(opts))

    def _route(self, ctxt: PairContext, name: NameView) -> tuple[FromForm, Any] | None:
        key = name.key()
        if key == "0":
            return self.left, ctxt.left
        if key == "1":
            return self.right, ctxt.right

        ctxt.errors.append(Error(InvalidChoice(("0", "1")), name=name, entity=Entity.index(0)))
        return None

    def push_value(self, ctxt: PairContext, field: ValueField) -> None:
        target = self._route(ctxt, field.name)
        if target is not None:
            form, inner = target
            form.push_value(inner, field.shift())

    async def push_data(self, ctxt: PairContext, field: DataField) -> None:
        target = self._route(ctxt, field.name)
        if target is not None:
            form, inner = target
            await form.push_data(inner, field.shift())

    def finalize(self, ctxt: PairContext) -> tuple[Any, Any]:
        errors = ctxt.errors
        values = []
        for form, inner in ((self.left, ctxt.left), (self.right, ctxt.right)):
            try:
                values.append(form.finalize(inner))
            except Errors as e:
                errors.extend(e)

        if errors:
            raise errors
        return values[0], values[1]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.left!r}, {self.right!r})"


class _Forced(FromForm):
    opts: Options

    def __init__(self, item: FromForm) -> None:
        super().__init__()
        self.item = item

    def init(self, opts: Options) -> Any:
        return self.item.init(self.opts)

    def push_value(self, ctxt: Any, field: ValueField) -> None:
        self.item.push_value(ctxt, field)

    async def push_data(self, ctxt: Any, field: DataField) -> None:
        await self.item.push_data(ctxt, field)

    def push_error(self, ctxt: Any, error: Error) -> None:
        self.item.push_error(ctxt, error)

    def finalize(self, ctxt: Any) -> Any:
        return self.item.finalize(ctxt)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.item!r})"


class Strict(_Forced):
    """Parses ``item`` in strict mode, whatever the enclosing options."""

    opts = Options.STRICT


class Lenient(_Forced):
    """Parses ``item`` in lenient mode, whatever the enclosing options."""

    opts = Options.LENIENT
