from __future__ import annotations

import asyncio
import unittest
from io import BytesIO

from pushform.error import Entity, Missing, Unexpected
from pushform.field import Data, DataField, ValueField
from pushform.name import NameView


class AsyncReader:
    def __init__(self, data: bytes) -> None:
        self._io = BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._io.read(size)


class TestValueField(unittest.TestCase):
    def test_parse(self) -> None:
        f = ValueField.parse("a.b=c")
        self.assertEqual(str(f.name.source()), "a.b")
        self.assertEqual(f.value, "c")

    def test_parse_splits_on_first_equals(self) -> None:
        f = ValueField.parse("a=b=c")
        self.assertEqual(str(f.name.source()), "a")
        self.assertEqual(f.value, "b=c")

    def test_parse_without_value(self) -> None:
        f = ValueField.parse("flag")
        self.assertEqual(str(f.name.source()), "flag")
        self.assertEqual(f.value, "")

    def test_parse_does_not_decode(self) -> None:
        f = ValueField.parse("a%5B0%5D=x+y")
        self.assertEqual(str(f.name.source()), "a%5B0%5D")
        self.assertEqual(f.value, "x+y")

    def test_from_value(self) -> None:
        f = ValueField.from_value("hi")
        self.assertTrue(f.name.is_terminal())
        self.assertEqual(f.value, "hi")

    def test_shift_copies(self) -> None:
        f = ValueField.parse("a.b=1")
        shifted = f.shift()
        self.assertEqual(f.name.key(), "a")
        self.assertEqual(shifted.name.key(), "b")
        self.assertEqual(shifted.value, "1")

    def test_unexpected(self) -> None:
        error = ValueField.parse("a.b=1").shift().unexpected()
        self.assertEqual(error.kind, Unexpected())
        self.assertEqual(error.name, "a.b")
        self.assertEqual(error.value, "1")
        self.assertEqual(error.entity, Entity.VALUE_FIELD)

    def test_missing(self) -> None:
        error = ValueField.parse("a=1").missing()
        self.assertEqual(error.kind, Missing())
        self.assertEqual(error.entity, Entity.VALUE_FIELD)

    def test_eq(self) -> None:
        self.assertEqual(ValueField.parse("a.b=1"), ValueField(NameView("a.b"), "1"))
        self.assertNotEqual(ValueField.parse("a=1"), ValueField.parse("a=2"))

    def test_repr_truncates(self) -> None:
        f = ValueField.parse("a=" + "x" * 200)
        self.assertIn("...'", repr(f))


class TestData(unittest.TestCase):
    def test_bytes(self) -> None:
        data = Data(b"hello world")
        self.assertEqual(asyncio.run(data.read(5)), b"hello")
        self.assertEqual(asyncio.run(data.read()), b" world")
        self.assertEqual(asyncio.run(data.read()), b"")

    def test_file_object(self) -> None:
        data = Data(BytesIO(b"abc"))
        self.assertEqual(asyncio.run(data.read()), b"abc")

    def test_async_reader(self) -> None:
        data = Data(AsyncReader(b"abcdef"))
        self.assertEqual(asyncio.run(data.read(4)), b"abcd")
        self.assertEqual(asyncio.run(data.read(4)), b"ef")


class TestDataField(unittest.TestCase):
    def test_wraps_data(self) -> None:
        f = DataField("upload", b"123", file_name="a.txt", content_type="text/plain")
        self.assertIsInstance(f.data, Data)
        self.assertEqual(f.file_name, "a.txt")
        self.assertEqual(f.content_type, "text/plain")

    def test_shift_keeps_data(self) -> None:
        f = DataField("a[b]", b"123")
        shifted = f.shift()
        self.assertIs(shifted.data, f.data)
        self.assertEqual(shifted.name.key(), "b")

    def test_unexpected(self) -> None:
        error = DataField("a", b"").unexpected()
        self.assertEqual(error.kind, Unexpected())
        self.assertEqual(error.entity, Entity.DATA_FIELD)
        self.assertIsNone(error.value)
