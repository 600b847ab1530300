"""Validators for :func:`pushform.struct.field`.

Each function here returns a validator: a callable taking the parsed value
and raising :class:`~pushform.error.Errors` if the value is invalid::

    @dataclass
    class Person:
        name: str = field(validate=length(min=1))
        age: int = field(validate=[in_range(0, 130), msg("too old", neq(130))])
"""

from __future__ import annotations

import mimetypes
from typing import TYPE_CHECKING

from .error import Errors, InvalidChoice, InvalidLength, OutOfRange, Validation

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Iterable
    from typing import Any

    Validator = Callable[[Any], None]


def eq(expected: Any) -> Validator:
    """The value must be equal to ``expected``."""

    def check(value: Any) -> None:
        if value != expected:
            raise Errors(Validation("value does not match expected value"))

    return check


def neq(invalid: Any) -> Validator:
    """The value must not be equal to ``invalid``."""

    def check(value: Any) -> None:
        if value == invalid:
            raise Errors(Validation("value is equal to an invalid value"))

    return check


def _len(value: Any) -> int:
    if value is None:
        return 0
    size = getattr(value, "size", None)
    if isinstance(size, int):
        return size
    return len(value)


def length(min: int | None = None, max: int | None = None) -> Validator:
    """The value's length must be within ``[min, max]``, both inclusive.

    Uploaded files are measured in bytes; ``None`` has length zero.
    """

    def check(value: Any) -> None:
        n = _len(value)
        if (min is not None and n < min) or (max is not None and n > max):
            raise Errors(InvalidLength(min, max))

    return check


def contains(item: Any) -> Validator:
    def check(value: Any) -> None:
        if item not in value:
            raise Errors(Validation("value does not contain expected item"))

    return check


def verbose_contains(item: Any) -> Validator:
    """Like :func:`contains`, naming the missing item in the error."""

    def check(value: Any) -> None:
        if item not in value:
            raise Errors(Validation(f"value must contain {item!r}"))

    return check


def omits(item: Any) -> Validator:
    def check(value: Any) -> None:
        if item in value:
            raise Errors(Validation("value contains a disallowed item"))

    return check


def verbose_omits(item: Any) -> Validator:
    """Like :func:`omits`, naming the disallowed item in the error."""

    def check(value: Any) -> None:
        if item in value:
            raise Errors(Validation(f"value cannot contain {item!r}"))

    return check


def in_range(start: int | None = None, end: int | None = None) -> Validator:
    """The value must be within ``[start, end]``, both inclusive."""

    def check(value: Any) -> None:
        if (start is not None and value < start) or (end is not None and value > end):
            raise Errors(OutOfRange(start, end))

    return check


def one_of(items: Iterable[Any]) -> Validator:
    """The value must be one of ``items``."""
    items = tuple(items)

    def check(value: Any) -> None:
        if value not in items:
            raise Errors(InvalidChoice(str(i) for i in items))

    return check


def _content_type(file: Any) -> str | None:
    content_type = getattr(file, "content_type", None)
    if isinstance(content_type, bytes):
        content_type = content_type.decode("latin-1")
    if content_type:
        return content_type.split(";", 1)[0].strip().lower()

    file_name = getattr(file, "file_name", None)
    if isinstance(file_name, bytes):
        file_name = file_name.decode("utf-8", "replace")
    if file_name:
        return mimetypes.guess_type(file_name)[0]
    return None


def ext(content_type: str) -> Validator:
    """The uploaded file must have the media type ``content_type``, as sent
    by the client or, failing that, as guessed from its file name.
    """
    expected = content_type.lower()

    def check(file: Any) -> None:
        actual = _content_type(file)
        if actual == expected:
            return
        if actual is not None:
            raise Errors(Validation(f"invalid file type: {actual}, must be {expected}"))
        raise Errors(Validation(f"file type must be {expected}"))

    return check


def msg(message: str, validator: Validator) -> Validator:
    """Replaces the errors of ``validator`` with a single error ``message``."""

    def check(value: Any) -> None:
        try:
            validator(value)
        except Errors:
            raise Errors(Validation(message)) from None

    return check
