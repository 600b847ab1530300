"""Maps Python type annotations to the forms that parse them."""

from __future__ import annotations

import collections.abc
import dataclasses
import datetime
import enum
import ipaddress
import types
import typing
from typing import TYPE_CHECKING

from python_multipart.multipart import File

from .containers import Map, Optional, Pair, Result, Vec
from .context import Contextual, ContextualForm
from .error import Errors
from .exceptions import ResolveError
from .from_form import (
    AddrField,
    BoolField,
    BytesField,
    ChoiceField,
    DateField,
    DateTimeField,
    FloatField,
    FromForm,
    IntField,
    StrField,
    TimeField,
)
from .struct import Struct
from .upload import UploadField

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable
    from typing import Any

_SCALARS: dict[Any, Callable[[], FromForm]] = {
    str: StrField,
    bytes: BytesField,
    int: IntField,
    float: FloatField,
    bool: BoolField,
    datetime.date: DateField,
    datetime.time: TimeField,
    datetime.datetime: DateTimeField,
    ipaddress.IPv4Address: lambda: AddrField(4),
    ipaddress.IPv6Address: lambda: AddrField(6),
    File: UploadField,
}

_SEQUENCES = (list, collections.abc.Sequence, collections.abc.MutableSequence)
_MAPPINGS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)

_cache: dict[Any, FromForm] = {}


def form_for(tp: Any) -> FromForm:
    """Returns the form for the annotation ``tp``.

    ``tp`` may be a scalar type, an :class:`enum.Enum`, a dataclass,
    ``list[T]``, ``dict[K, V]``, ``tuple[A, B]``, ``T | None``,
    ``T | Errors``, ``Contextual[T]``, ``Annotated[T, form]`` or a
    :class:`FromForm` instance, which is returned as is.

    :raises ResolveError: when there is no form for ``tp``.
    """
    if isinstance(tp, FromForm):
        return tp

    try:
        return _cache[tp]
    except KeyError:
        pass
    except TypeError:
        # Unhashable annotation metadata.
        return _resolve(tp)

    form = _resolve(tp)
    _cache[tp] = form
    return form


def _resolve(tp: Any) -> FromForm:
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Annotated:
        for meta in args[1:]:
            if isinstance(meta, FromForm):
                return meta
        return form_for(args[0])

    if tp in _SCALARS:
        return _SCALARS[tp]()

    if isinstance(tp, type) and issubclass(tp, enum.Enum):
        return ChoiceField(tp)

    if origin in _SEQUENCES and len(args) == 1:
        return Vec(form_for(args[0]))

    if origin in _MAPPINGS and len(args) == 2:
        return Map(form_for(args[0]), form_for(args[1]))

    if origin is tuple and len(args) == 2 and args[1] is not Ellipsis:
        return Pair(form_for(args[0]), form_for(args[1]))

    if origin is typing.Union or origin is types.UnionType:
        others = [a for a in args if a is not type(None)]
        if len(others) == 1 and len(others) < len(args):
            return Optional(form_for(others[0]))
        if len(others) == 2 and Errors in others:
            others.remove(Errors)
            return Result(form_for(others[0]))
        raise ResolveError(f"No form for union {tp!r}")

    if origin is Contextual and len(args) == 1:
        return ContextualForm(form_for(args[0]))

    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return Struct(tp)

    raise ResolveError(f"No form for type {tp!r}")
