"""Parsing dataclasses from forms.

Every field of a dataclass is parsed by the form resolved from its type
annotation. A field's form name defaults to its attribute name and can be
changed, or given aliases, with :func:`field`::

    @dataclass
    class Dog:
        barks: bool
        trained: bool = field(name="is_trained", validate=eq(True))
"""

from __future__ import annotations

import dataclasses
import typing
from typing import TYPE_CHECKING

from .error import Error, Errors, Missing
from .exceptions import ResolveError
from .from_form import MISSING, FromForm, Options

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Iterable
    from typing import Any

    from .field import DataField, ValueField
    from .name import Name

    Validator = Callable[[Any], None]

_METADATA_KEY = "pushform"


class FieldInfo:
    __slots__ = ("names", "validators", "form")

    def __init__(self, names: tuple[str, ...], validators: tuple[Validator, ...], form: FromForm | None) -> None:
        self.names = names
        self.validators = validators
        self.form = form


def field(
    *,
    name: str | None = None,
    names: Iterable[str] = (),
    validate: Validator | Iterable[Validator] = (),
    form: FromForm | None = None,
    **kwargs: Any,
) -> Any:
    """A :func:`dataclasses.field` with form options.

    ``name`` renames the field in the form; ``names`` accepts several names,
    the first of which is used in errors. ``validate`` is a validator, or a
    list of them, run on the parsed value. ``form`` overrides the form
    resolved from the annotation. Other keyword arguments, such as
    ``default`` and ``default_factory``, are passed to
    :func:`dataclasses.field`.
    """
    all_names = ((name,) if name is not None else ()) + tuple(names)
    validators = (validate,) if callable(validate) else tuple(validate)
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[_METADATA_KEY] = FieldInfo(all_names, validators, form)
    return dataclasses.field(metadata=metadata, **kwargs)


class StructField:
    """A dataclass field resolved to its form."""

    __slots__ = ("attr", "names", "form", "validators", "_field")

    def __init__(self, dc_field: dataclasses.Field[Any], hint: Any) -> None:
        from .resolve import form_for

        info = dc_field.metadata.get(_METADATA_KEY)
        self.attr = dc_field.name
        self.names: tuple[str, ...] = (dc_field.name,)
        self.validators: tuple[Validator, ...] = ()
        form = None
        if info is not None:
            self.names = info.names or self.names
            self.validators = info.validators
            form = info.form
        self.form = form if form is not None else form_for(hint)
        self._field = dc_field

    @property
    def name(self) -> str:
        return self.names[0]

    def default(self, opts: Options) -> Any:
        if self._field.default is not dataclasses.MISSING:
            return self._field.default
        if self._field.default_factory is not dataclasses.MISSING:
            return self._field.default_factory()
        return self.form.default(opts)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.attr!r}, names={self.names!r}, form={self.form!r})"


class StructContext:
    __slots__ = ("opts", "parent", "contexts", "errors")

    def __init__(self, opts: Options) -> None:
        self.opts = opts
        self.parent: Name | None = None
        self.contexts: dict[str, Any] = {}
        self.errors = Errors()


class Struct(FromForm):
    """Parses instances of the dataclass ``cls``.

    Fields are routed by the current key of their names. Keys that match no
    field are ignored in lenient forms and are ``Unexpected`` errors in
    strict ones, except for a top-level ``_method``, which is always ignored. A field
    that receives nothing takes its dataclass default, if any, or the default
    of its form.
    """

    def __init__(self, cls: type) -> None:
        super().__init__()
        if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
            raise ResolveError(f"{cls!r} is not a dataclass")
        self.cls = cls
        self._fields: list[StructField] | None = None
        self._routes: dict[str, StructField] = {}

    @property
    def fields(self) -> list[StructField]:
        return self._resolve()

    def _resolve(self) -> list[StructField]:
        # Resolved on first use so that dataclasses can refer to themselves.
        if self._fields is None:
            hints = typing.get_type_hints(self.cls, include_extras=True)
            fields = [StructField(f, hints[f.name]) for f in dataclasses.fields(self.cls) if f.init]
            for sf in fields:
                for name in sf.names:
                    self._routes.setdefault(name, sf)
            self._fields = fields
        return self._fields

    def init(self, opts: Options) -> StructContext:
        return StructContext(opts)

    def _route(self, ctxt: StructContext, field: ValueField | DataField) -> tuple[FromForm, Any] | None:
        ctxt.parent = field.name.parent()
        key = field.name.key_lossy()
        self._resolve()
        sf = self._routes.get(key)
        if sf is None:
            if not ctxt.opts.strict or (key == "_method" and ctxt.parent is None):
                self.logger.debug("Ignoring field %r for %s", str(field.name.source()), self.cls.__name__)
            else:
                ctxt.errors.append(field.unexpected())
            return None

        inner = ctxt.contexts.get(sf.attr)
        if inner is None:
            inner = ctxt.contexts[sf.attr] = sf.form.init(ctxt.opts)
        return sf.form, inner

    def push_value(self, ctxt: StructContext, field: ValueField) -> None:
        target = self._route(ctxt, field)
        if target is not None:
            form, inner = target
            form.push_value(inner, field.shift())

    async def push_data(self, ctxt: StructContext, field: DataField) -> None:
        target = self._route(ctxt, field)
        if target is not None:
            form, inner = target
            await form.push_data(inner, field.shift())

    def push_error(self, ctxt: StructContext, error: Error) -> None:
        ctxt.errors.append(error)

    def finalize(self, ctxt: StructContext) -> Any:
        errors = ctxt.errors
        values: dict[str, Any] = {}
        for sf in self.fields:
            name = (ctxt.parent, sf.name)
            inner = ctxt.contexts.get(sf.attr)
            if inner is None:
                value = sf.default(ctxt.opts)
                if value is MISSING:
                    errors.append(Error(Missing(), name=name))
                else:
                    values[sf.attr] = value
                continue

            try:
                value = sf.form.finalize(inner)
            except Errors as e:
                errors.extend(e.with_name(name))
                continue

            for validator in sf.validators:
                try:
                    validator(value)
                except Errors as e:
                    errors.extend(e.with_name(name))

            values[sf.attr] = value

        if errors:
            raise errors
        return self.cls(**values)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.cls.__name__})"
