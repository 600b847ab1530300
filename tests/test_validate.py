from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING

import pytest

from pushform.error import Errors, InvalidChoice, InvalidLength, OutOfRange, Validation
from pushform.validate import (
    contains,
    eq,
    ext,
    in_range,
    length,
    msg,
    neq,
    omits,
    one_of,
    verbose_contains,
    verbose_omits,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any


def error_of(validator: Callable[[Any], None], value: Any) -> Any:
    with pytest.raises(Errors) as exc_info:
        validator(value)
    assert len(exc_info.value) == 1
    return exc_info.value[0].kind


def test_eq() -> None:
    eq(5)(5)
    assert error_of(eq(5), 4) == Validation("value does not match expected value")


def test_neq() -> None:
    neq("admin")("bob")
    assert error_of(neq("admin"), "admin") == Validation("value is equal to an invalid value")


def test_length() -> None:
    length(1)("a")
    length(max=3)("abc")
    length(2, 3)([1, 2])
    length(max=0)(None)
    assert error_of(length(1), "") == InvalidLength(1, None)
    assert error_of(length(2, 3), "abcd") == InvalidLength(2, 3)
    assert str(error_of(length(1), "")) == "value cannot be empty"


def test_length_of_file() -> None:
    upload = SimpleNamespace(size=2048)
    length(max=4096)(upload)
    assert error_of(length(max=1024), upload) == InvalidLength(None, 1024)


def test_contains() -> None:
    contains("a")("cat")
    contains(3)([1, 2, 3])
    assert error_of(contains("z"), "cat") == Validation("value does not contain expected item")
    assert error_of(verbose_contains("z"), "cat") == Validation("value must contain 'z'")


def test_omits() -> None:
    omits(" ")("word")
    assert error_of(omits(" "), "two words") == Validation("value contains a disallowed item")
    assert error_of(verbose_omits(" "), "two words") == Validation("value cannot contain ' '")


def test_in_range() -> None:
    in_range(1, 5)(1)
    in_range(1, 5)(5)
    in_range(start=0)(10**9)
    assert error_of(in_range(1, 5), 6) == OutOfRange(1, 5)
    assert error_of(in_range(end=0), 1) == OutOfRange(None, 0)
    assert str(error_of(in_range(1, 5), 0)) == "value must be between 1 and 5"


def test_one_of() -> None:
    one_of(["red", "green"])("red")
    kind = error_of(one_of(["red", "green"]), "blue")
    assert kind == InvalidChoice(["red", "green"])
    assert str(kind) == "expected one of `red`, `green`"


@pytest.mark.parametrize(
    "file",
    [
        SimpleNamespace(content_type="image/png", file_name=None),
        SimpleNamespace(content_type=b"IMAGE/PNG; charset=binary", file_name=None),
        SimpleNamespace(content_type=None, file_name=b"photo.png"),
    ],
)
def test_ext(file: Any) -> None:
    ext("image/png")(file)


def test_ext_mismatch() -> None:
    file = SimpleNamespace(content_type=None, file_name="notes.txt")
    assert error_of(ext("image/png"), file) == Validation("invalid file type: text/plain, must be image/png")

    file = SimpleNamespace(content_type=None, file_name=None)
    assert error_of(ext("image/png"), file) == Validation("file type must be image/png")


def test_msg() -> None:
    msg("too short", length(3))("abcd")
    assert error_of(msg("too short", length(3)), "ab") == Validation("too short")
