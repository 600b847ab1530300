"""Types for handling field names, name keys and key indices.

A form field name is composed of *keys*, delimited by ``.`` or ``[]``. Keys,
in turn, are composed of *indices*, delimited by ``:``. For a single field in
``$name=$value`` format::

          food.bart[bar:foo].blam[0_0][1000]=some-value
    name  |--------------------------------|
    key   |--| |--| |-----|  |--| |-|  |--|
    index |--| |--| |-| |-|  |--| |-|  |--|

Names compare by their keys only, so ``a.b``, ``a[b]`` and ``a.[b]`` are
different strings for the same name.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterator
    from typing import TypeAlias

    NameLike: TypeAlias = Union["Name", "NameView", "NameBuf", str]

# Stop characters while scanning a bracketed key, and the characters that
# start a new key anywhere else.
_BRACKET_STOPS = re.compile(r"[\].]")
_KEY_STARTS = re.compile(r"[.\[]")


class Key(str):
    """A single key of a field name, composed of ``:`` delimited indices.

    A ``Key`` is a plain string with one extra method::

        >>> Key("foo:bar::baz").indices()
        ['foo', 'bar', '', 'baz']
    """

    __slots__ = ()

    def indices(self) -> list[str]:
        """Returns the indices of this key, including empty indices."""
        return self.split(":")

    def as_str(self) -> str:
        return str(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str.__repr__(self)})"


class Name:
    """A field name composed of keys.

    ``Name`` wraps the raw field name string. Equality and hashing are
    defined over :meth:`keys`, so the delimiter style is insignificant::

        >>> Name("a.b") == Name("a[b]")
        True
        >>> [str(k) for k in Name("apple.b[foo:bar]zoo.[barb].bat").keys()]
        ['apple', 'b', 'foo:bar', 'zoo', '', 'barb', 'bat']
    """

    __slots__ = ("_string",)

    def __init__(self, string: str | Name = "") -> None:
        if isinstance(string, Name):
            string = string._string
        self._string = str(string)

    def keys(self) -> Iterator[Key]:
        """Iterates over the keys of this name, including empty keys."""
        view = NameView(self)
        while not view.is_terminal():
            yield view.key_lossy()
            end = view.end
            view.shift()
            # An `=` ends tokenization before the end of the string.
            if view.end == end:
                break

    def prefixes(self) -> Iterator[Name]:
        """Iterates over overlapping prefixes of this name, each succeeding
        prefix containing one more key than the previous one::

            >>> [str(p) for p in Name("a.b.[foo]").prefixes()]
            ['a', 'a.b', 'a.b.', 'a.b.[foo]']
        """
        view = NameView(self)
        while not view.is_terminal():
            yield view.as_name()
            end = view.end
            view.shift()
            if view.end == end:
                break

    def as_str(self) -> str:
        return self._string

    def is_empty(self) -> bool:
        return not self._string

    def __len__(self) -> int:
        return len(self._string)

    def __getitem__(self, index: slice) -> Name:
        return Name(self._string[index])

    def __str__(self) -> str:
        return self._string

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._string!r})"

    def __eq__(self, other: object) -> bool:
        keys = _key_tuple(other)
        if keys is None:
            return NotImplemented
        return tuple(self.keys()) == keys

    def __hash__(self) -> int:
        return hash(tuple(self.keys()))


class NameView:
    """A sliding-prefix view into a :class:`Name`.

    The view spans the *current key*. :meth:`shift` moves it one key to the
    right; :meth:`as_name` is the name up to and including the current key
    and :meth:`parent` the name before it::

        >>> view = NameView("a.b[c:d]")
        >>> str(view.key()), str(view.as_name()), view.parent()
        ('a', 'a', None)
        >>> view.shift()
        >>> str(view.key()), str(view.as_name()), str(view.parent())
        ('b', 'a.b', 'a')
        >>> view.shift()
        >>> str(view.key()), str(view.as_name()), str(view.parent())
        ('c:d', 'a.b[c:d]', 'a.b')
        >>> view.shift()
        >>> view.key() is None, view.key_lossy() == ""
        (True, True)

    Equality and hashing operate on :meth:`as_name`, i.e. on keys only.
    """

    __slots__ = ("_name", "_start", "_end")

    def __init__(self, name: Name | str) -> None:
        self._name = name if isinstance(name, Name) else Name(name)
        self._start = 0
        self._end = 0
        self.shift()

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    def shift(self) -> None:
        """Shifts the current key once to the right.

        Shifting a terminal view is a no-op.
        """
        rest = self._name.as_str()[self._end :]
        if not rest or rest[0] == "=":
            shift = 0
        elif rest[0] == "[":
            m = _BRACKET_STOPS.search(rest, 1)
            if m is None:
                shift = len(rest)
            elif m.group() == "]":
                shift = m.start() + 1
            else:
                # Unterminated bracket: the key runs up to the dot.
                shift = m.start()
        elif rest[0] == ".":
            m = _KEY_STARTS.search(rest, 1)
            shift = len(rest) if m is None else m.start()
        else:
            m = _KEY_STARTS.search(rest)
            shift = len(rest) if m is None else m.start()

        assert self._end + shift <= len(self._name)
        self._start, self._end = self._end, self._end + shift

    def key(self) -> Key | None:
        """Returns the current key if it is non-empty."""
        key = self.key_lossy()
        if not key:
            return None
        return key

    def key_lossy(self) -> Key:
        """Returns the current key, even if it is empty."""
        view = self._name.as_str()[self._start : self._end]
        if view.startswith("."):
            view = view[1:]
        elif view.startswith("[") and view.endswith("]"):
            view = view[1:-1]
        return Key(view)

    def as_name(self) -> Name:
        """Returns the name *up to and including* the current key."""
        return self._name[: self._end]

    def parent(self) -> Name | None:
        """Returns the name *prior to* the current key, if any."""
        if self._start > 0:
            return self._name[: self._start]
        return None

    def source(self) -> Name:
        """Returns the full underlying name."""
        return self._name

    def is_terminal(self) -> bool:
        return self._start == len(self._name)

    def copy(self) -> NameView:
        view = NameView.__new__(NameView)
        view._name = self._name
        view._start = self._start
        view._end = self._end
        return view

    def __str__(self) -> str:
        return str(self.as_name())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self.as_name())!r})"

    def __eq__(self, other: object) -> bool:
        keys = _key_tuple(other)
        if keys is None:
            return NotImplemented
        return tuple(self.as_name().keys()) == keys

    def __hash__(self) -> int:
        return hash(self.as_name())


class NameBuf:
    """A name made of a borrowed prefix and a suffix string.

    Errors use a ``NameBuf`` to name the field they belong to; the prefix is
    usually the parent name of a struct and the suffix the struct field's
    name. It displays as ``prefix.suffix``::

        >>> str(NameBuf(Name("dogs[fido]"), "barks"))
        'dogs[fido].barks'
    """

    __slots__ = ("_left", "_right")

    def __init__(self, prefix: Name | NameView | str | None = None, suffix: str = "") -> None:
        if prefix is None:
            prefix = Name()
        elif isinstance(prefix, NameView):
            prefix = prefix.as_name()
        elif isinstance(prefix, str):
            prefix = Name(prefix)
        self._left = prefix
        self._right = suffix

    @classmethod
    def from_any(cls, name: NameLike | tuple[Name | None, str]) -> NameBuf:
        if isinstance(name, NameBuf):
            return name
        if isinstance(name, tuple):
            prefix, suffix = name
            return cls(prefix, suffix)
        return cls(name)

    @property
    def prefix(self) -> Name:
        return self._left

    @property
    def suffix(self) -> str:
        return self._right

    def keys(self) -> Iterator[Key]:
        yield from self._left.keys()
        yield from Name(self._right).keys()

    def is_empty(self) -> bool:
        return self._left.is_empty() and not self._right

    def __str__(self) -> str:
        left, right = str(self._left), self._right
        if left and right:
            return f"{left}.{right}"
        return left or right

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        keys = _key_tuple(other)
        if keys is None:
            return NotImplemented
        return tuple(self.keys()) == keys

    def __hash__(self) -> int:
        return hash(tuple(self.keys()))


def _key_tuple(value: object) -> tuple[Key, ...] | None:
    if isinstance(value, NameView):
        value = value.as_name()
    elif isinstance(value, str):
        value = Name(value)

    if isinstance(value, (Name, NameBuf)):
        return tuple(value.keys())
    return None
