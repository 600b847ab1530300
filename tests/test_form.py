from __future__ import annotations

import asyncio
import dataclasses
import unittest
from dataclasses import dataclass
from dataclasses import field as dc_field
from typing import TYPE_CHECKING, Optional

from pushform.error import Error, Errors, Validation
from pushform.exceptions import FormError, ResolveError
from pushform.field import DataField, ValueField
from pushform.form import FormParser, create_form_parser, parse_form, parse_form_encoded, parse_form_fields, values
from pushform.from_form import IntField, Options, StrField
from pushform.resolve import form_for
from pushform.struct import Struct, field
from pushform.validate import length

from .compat import load_cases, parametrize, parametrize_class

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from typing import Any


@dataclass
class Todo:
    complete: bool
    description: str


@dataclass
class Account:
    username: str = field(validate=length(min=3))
    emails: list[str] = dc_field(default_factory=list)
    roles: dict[str, bool] = dc_field(default_factory=dict)


@dataclass
class Upload:
    title: str
    body: bytes


TYPES: dict[str, Any] = {
    "todo": Todo,
    "account": Account,
    "ints": list[int],
    "strings": dict[str, str],
    "pair": tuple[int, str],
    "maybe_int": Optional[int],
}

value_cases = load_cases("values.yaml")
error_cases = load_cases("errors.yaml")


def plain(value: Any) -> Any:
    """Converts a parsed value to the YAML representation of its cases."""
    if dataclasses.is_dataclass(value):
        return {f.name: plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [plain(v) for v in value]
    if isinstance(value, dict):
        return {k: plain(v) for k, v in value.items()}
    return value


def parse_case(case: dict[str, Any]) -> Any:
    parse = parse_form_encoded if case.get("encoded") else parse_form
    return parse(TYPES[case["type"]], case["input"], strict=case.get("strict", False))


@parametrize_class
class TestCases(unittest.TestCase):
    @parametrize("case", value_cases)
    def test_values(self, case: dict[str, Any]) -> None:
        self.assertEqual(plain(parse_case(case)), case["result"])

    @parametrize("case", error_cases)
    def test_errors(self, case: dict[str, Any]) -> None:
        with self.assertRaises(Errors) as cm:
            parse_case(case)

        errors = list(cm.exception)
        expected = case["errors"]
        self.assertEqual([type(e.kind).__name__ for e in errors], [e["kind"] for e in expected])
        for error, want in zip(errors, expected):
            if "name" in want:
                self.assertEqual(error.name, want["name"])
            if "value" in want:
                self.assertEqual(error.value, want["value"])
        if "status" in case:
            self.assertEqual(cm.exception.status(), case["status"])


class TestValues(unittest.TestCase):
    def test_splits_on_ampersand(self) -> None:
        fields = list(values("a=1&b&&c=x=y&"))
        self.assertEqual([str(f.name.source()) for f in fields], ["a", "b", "c"])
        self.assertEqual([f.value for f in fields], ["1", "", "x=y"])

    def test_empty(self) -> None:
        self.assertEqual(list(values("")), [])
        self.assertEqual(list(values("&&&")), [])

    def test_no_decoding(self) -> None:
        self.assertEqual(next(values("a%20b=c+d")).value, "c+d")


class TestFormParser(unittest.TestCase):
    def test_options(self) -> None:
        self.assertEqual(FormParser(IntField()).opts, Options.LENIENT)
        self.assertEqual(FormParser(IntField(), strict=True).opts, Options.STRICT)
        self.assertTrue(Options.STRICT.strict)
        self.assertFalse(Options.LENIENT.strict)

    def test_finalize_once(self) -> None:
        parser = create_form_parser(int)
        parser.push_value(ValueField.from_value("5"))
        self.assertEqual(parser.finalize(), 5)
        with self.assertRaises(FormError):
            parser.finalize()

    def test_finalize_once_after_errors(self) -> None:
        parser = create_form_parser(int)
        with self.assertRaises(Errors):
            parser.finalize()
        with self.assertRaises(FormError) as cm:
            parser.finalize()
        self.assertNotIsInstance(cm.exception, Errors)

    def test_accepts_forms(self) -> None:
        form = StrField()
        self.assertIs(create_form_parser(form).form, form)
        self.assertIsInstance(create_form_parser(Todo).form, Struct)

    def test_unsupported_type(self) -> None:
        with self.assertRaises(ResolveError):
            create_form_parser(set[int])
        with self.assertRaises(TypeError):
            create_form_parser(object)

    def test_push_rejects_other_objects(self) -> None:
        parser = create_form_parser(Todo)
        with self.assertRaises(TypeError):
            asyncio.run(parser.push("complete=on"))  # type: ignore[arg-type]

    def test_form_for_is_cached(self) -> None:
        self.assertIs(form_for(list[int]), form_for(list[int]))
        self.assertIs(form_for(Todo), form_for(Todo))


class TestParseFormFields(unittest.TestCase):
    def test_sync_fields(self) -> None:
        fields = [ValueField("complete", "yes"), ValueField("description", "x")]
        self.assertEqual(asyncio.run(parse_form_fields(Todo, fields)), Todo(True, "x"))

    def test_async_fields(self) -> None:
        async def fields() -> AsyncIterator[Any]:
            yield ValueField("title", "hello")
            yield DataField("body", b"\x00\x01")

        self.assertEqual(asyncio.run(parse_form_fields(Upload, fields())), Upload("hello", b"\x00\x01"))

    def test_data_field_as_string(self) -> None:
        fields = [DataField("title", "héllo".encode()), ValueField("body", "abc")]
        self.assertEqual(asyncio.run(parse_form_fields(Upload, fields)), Upload("héllo", b"abc"))

    def test_errors_are_pushed(self) -> None:
        fields = [ValueField("complete", "yes"), Error(Validation("bad body")), ValueField("description", "x")]
        with self.assertRaises(Errors) as cm:
            asyncio.run(parse_form_fields(Todo, fields))
        self.assertEqual([e.kind for e in cm.exception], [Validation("bad body")])

    def test_strict(self) -> None:
        fields = [ValueField("complete", "yes"), ValueField("description", "x"), ValueField("x", "1")]
        self.assertEqual(asyncio.run(parse_form_fields(Todo, fields)), Todo(True, "x"))
        with self.assertRaises(Errors):
            asyncio.run(parse_form_fields(Todo, fields, strict=True))
