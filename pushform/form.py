"""Drivers that push fields into a form and collect its value.

The simplest entry points parse a query string::

    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Todo:
    ...     complete: bool
    ...     description: str
    >>> parse_form_encoded(Todo, "complete=on&description=Buy+milk")
    Todo(complete=True, description='Buy milk')

:func:`parse_body` parses an urlencoded or multipart request body with
``python_multipart``, pushing each field as soon as it is complete.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import unquote_plus

from python_multipart import create_form_parser as create_body_parser
from python_multipart.exceptions import FormParserError

from .context import ContextualForm
from .error import Entity, Error, Errors, InvalidLength, Multipart, Utf8
from .exceptions import FormError
from .field import Data, DataField, ValueField
from .from_form import Options
from .resolve import form_for

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
    from typing import Any, Protocol, TypedDict, Union

    from python_multipart.multipart import Field, File

    from .from_form import FromForm

    class SupportsRead(Protocol):
        def read(self, __n: int) -> Any: ...

    class BodyConfig(TypedDict, total=False):
        MAX_BODY_SIZE: float
        MAX_MEMORY_FILE_SIZE: int
        UPLOAD_DIR: str | bytes | None
        CHUNK_SIZE: int

    Pushable = Union[ValueField, DataField, Error]

#: Configuration of :func:`parse_body`. Everything but ``CHUNK_SIZE`` is also
#: passed on to ``python_multipart``.
DEFAULT_CONFIG: BodyConfig = {
    "MAX_BODY_SIZE": float("inf"),
    "MAX_MEMORY_FILE_SIZE": 1 * 1024 * 1024,
    "UPLOAD_DIR": None,
    "CHUNK_SIZE": 1024 * 1024,
}

_URLENCODED = ("application/x-www-form-urlencoded", "application/x-url-encoded")


def values(string: str) -> Iterator[ValueField]:
    """Splits a raw query string into fields, skipping empty ones::

        >>> [f.value for f in values("a=1&&b=2&")]
        ['1', '2']
    """
    for part in string.split("&"):
        if part:
            yield ValueField.parse(part)


class FormParser:
    """Pushes fields into one context of ``form`` and finalizes it.

    :param form: The form to parse.
    :param strict: Whether to parse in strict mode.
    """

    def __init__(self, form: FromForm, strict: bool = False) -> None:
        self.logger = logging.getLogger(__name__)
        self.form = form
        self.opts = Options.STRICT if strict else Options.LENIENT
        self.context = form.init(self.opts)
        self._finalized = False

    def push_value(self, field: ValueField) -> None:
        self.logger.debug("Pushing value field %r", field)
        self.form.push_value(self.context, field)

    async def push_data(self, field: DataField) -> None:
        self.logger.debug("Pushing data field %r", field)
        await self.form.push_data(self.context, field)

    def push_error(self, error: Error) -> None:
        self.logger.debug("Pushing error %r", error)
        self.form.push_error(self.context, error)

    async def push(self, field: Pushable) -> None:
        if isinstance(field, ValueField):
            self.push_value(field)
        elif isinstance(field, DataField):
            await self.push_data(field)
        elif isinstance(field, Error):
            self.push_error(field)
        else:
            raise TypeError(f"Cannot push {field!r} into a form")

    def finalize(self) -> Any:
        """Returns the parsed value.

        :raises Errors: when the form could not be parsed.
        :raises FormError: when called more than once.
        """
        if self._finalized:
            raise FormError("Form parser has already been finalized")
        self._finalized = True
        return self.form.finalize(self.context)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(form={self.form!r}, opts={self.opts!r})"


def create_form_parser(tp: Any, strict: bool = False) -> FormParser:
    """Creates a :class:`FormParser` for the type or form ``tp``."""
    return FormParser(form_for(tp), strict=strict)


def parse_form(tp: Any, string: str, strict: bool = False) -> Any:
    """Parses the raw, not percent-decoded, query ``string`` as ``tp``."""
    parser = create_form_parser(tp, strict)
    for field in values(string):
        parser.push_value(field)
    return parser.finalize()


def parse_form_encoded(tp: Any, string: str, strict: bool = False) -> Any:
    """Parses the urlencoded ``string`` as ``tp``, decoding names and values."""
    parser = create_form_parser(tp, strict)
    for field in values(string):
        name = unquote_plus(str(field.name.source()))
        parser.push_value(ValueField(name, unquote_plus(field.value)))
    return parser.finalize()


async def parse_form_fields(
    tp: Any, fields: Iterable[Pushable] | AsyncIterable[Pushable], strict: bool = False
) -> Any:
    """Parses ``tp`` from ready-made fields, in order. ``fields`` may also
    contain :class:`Error` objects, which are pushed as errors.
    """
    parser = create_form_parser(tp, strict)
    if hasattr(fields, "__aiter__"):
        async for field in fields:  # type: ignore[union-attr]
            await parser.push(field)
    else:
        for field in fields:  # type: ignore[union-attr]
            await parser.push(field)
    return parser.finalize()


async def _chunks(stream: Any, chunk_size: int) -> AsyncIterator[bytes]:
    if isinstance(stream, (bytes, bytearray)):
        yield bytes(stream)
    elif hasattr(stream, "__aiter__"):
        async for chunk in stream:
            yield chunk
    elif hasattr(stream, "read"):
        while True:
            chunk = stream.read(chunk_size)
            if hasattr(chunk, "__await__"):
                chunk = await chunk
            if not chunk:
                break
            yield chunk
    else:
        for chunk in stream:
            yield chunk


async def parse_body(
    tp: Any,
    headers: dict[str, Any],
    stream: bytes | SupportsRead | Iterable[bytes] | AsyncIterable[bytes],
    strict: bool = False,
    config: dict[str, Any] | None = None,
) -> Any:
    """Parses a request body as ``tp``.

    ``headers`` must contain the ``Content-Type`` of the body. ``stream`` is
    the body: ``bytes``, a (sync or async) file-like object, or a (sync or
    async) iterable of chunks. Malformed or oversized bodies are reported as
    form errors along with the errors of the form itself, whatever the form.
    A :class:`~pushform.context.ContextualForm` records them in its context
    instead.

    :raises Errors: when the body or the form could not be parsed.
    """
    logger = logging.getLogger(__name__)
    body_config: BodyConfig = DEFAULT_CONFIG.copy()
    body_config.update(config or {})  # type: ignore[typeddict-item]

    parser = create_form_parser(tp, strict)
    contextual = isinstance(parser.form, ContextualForm)
    body_errors = Errors()
    pending: list[tuple[Pushable, File | None]] = []
    content_type = headers.get("Content-Type")
    if isinstance(content_type, bytes):
        content_type = content_type.decode("latin-1")
    urlencoded = (content_type or "").split(";", 1)[0].strip().lower() in _URLENCODED

    def fail(error: Error) -> None:
        if contextual:
            parser.push_error(error)
        else:
            body_errors.append(error)

    def finish() -> Any:
        if not body_errors:
            return parser.finalize()
        try:
            parser.finalize()
        except Errors as e:
            body_errors.extend(e)
        raise body_errors

    def on_field(field: Field) -> None:
        raw_name = field.field_name or b""
        raw_value = field.value or b""
        if urlencoded:
            name = unquote_plus(raw_name.decode("latin-1"))
            pending.append((ValueField(name, unquote_plus(raw_value.decode("latin-1"))), None))
            return

        name = raw_name.decode("utf-8", "replace")
        try:
            value = raw_value.decode("utf-8")
        except UnicodeDecodeError as e:
            pending.append((Error(Utf8(e), name=name), None))
        else:
            pending.append((ValueField(name, value), None))

    def on_file(file: File) -> None:
        name = (file.field_name or b"").decode("utf-8", "replace")
        file_name = file.file_name.decode("utf-8", "replace") if file.file_name else None
        content_type = getattr(file, "content_type", None)
        if isinstance(content_type, bytes):
            content_type = content_type.decode("latin-1")
        file.file_object.seek(0)
        pending.append((DataField(name, Data(file.file_object), file_name, content_type), file))

    async def drain() -> None:
        while pending:
            field, file = pending.pop(0)
            if isinstance(field, Error):
                fail(field)
                continue
            try:
                await parser.push(field)
            finally:
                if file is not None:
                    file.close()

    try:
        body_parser = create_body_parser(headers, on_field, on_file, config=dict(body_config))
    except ValueError as e:
        logger.warning("Cannot parse body: %s", e)
        fail(Error(Multipart(e)))
        return finish()

    max_size = body_config["MAX_BODY_SIZE"]
    received = 0
    try:
        async for chunk in _chunks(stream, body_config["CHUNK_SIZE"]):
            received += len(chunk)
            if received > max_size:
                logger.warning("Body exceeds %r bytes", max_size)
                fail(Error(InvalidLength(None, int(max_size)), entity=Entity.FORM))
                break
            body_parser.write(chunk)
            await drain()
        else:
            body_parser.finalize()
            await drain()
    except FormParserError as e:
        logger.warning("Malformed body: %s", e)
        await drain()
        fail(Error(Multipart(e)))
    finally:
        body_parser.close()

    return finish()
