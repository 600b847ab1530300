from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import pytest
from python_multipart.multipart import File

from pushform.error import Errors, InvalidLength, Io
from pushform.field import DataField, ValueField
from pushform.form import parse_form_fields
from pushform.from_form import Options
from pushform.resolve import form_for
from pushform.struct import field
from pushform.upload import UploadField


def upload(form: UploadField, field: DataField | ValueField) -> File:
    ctxt = form.init(Options.LENIENT)
    if isinstance(field, DataField):
        asyncio.run(form.push_data(ctxt, field))
    else:
        form.push_value(ctxt, field)
    return form.finalize(ctxt)


def test_resolves_file_annotation() -> None:
    assert isinstance(form_for(File), UploadField)


def test_upload_in_memory() -> None:
    file = upload(UploadField(), DataField("doc", b"hello world", "hello.txt"))
    assert file.in_memory
    assert file.size == 11
    assert file.file_name == b"hello.txt"
    assert file.field_name == b"doc"
    assert file.file_object.read() == b"hello world"
    file.close()


def test_upload_from_value() -> None:
    file = upload(UploadField(), ValueField("doc", "plain text"))
    assert file.file_name is None
    assert file.file_object.read() == b"plain text"
    file.close()


def test_upload_in_chunks() -> None:
    form = UploadField({"CHUNK_SIZE": 3})
    file = upload(form, DataField("doc", b"0123456789", "digits.txt"))
    assert file.size == 10
    assert file.file_object.read() == b"0123456789"
    file.close()


def test_upload_spills_to_disk(tmp_path: Path) -> None:
    form = UploadField(
        {
            "UPLOAD_DIR": bytes(tmp_path),
            "UPLOAD_KEEP_FILENAME": True,
            "UPLOAD_KEEP_EXTENSIONS": True,
            "MAX_MEMORY_FILE_SIZE": 10,
            "CHUNK_SIZE": 4,
        }
    )
    file = upload(form, DataField("doc", b"123456789012", "foo.txt"))
    assert not file.in_memory
    assert file.file_object.read() == b"123456789012"
    file.close()
    assert (tmp_path / "foo.txt").read_bytes() == b"123456789012"


def test_upload_too_large() -> None:
    form = UploadField({"MAX_FILE_SIZE": 8, "CHUNK_SIZE": 4})
    ctxt = form.init(Options.LENIENT)
    asyncio.run(form.push_data(ctxt, DataField("doc", b"123456789", "big.bin")))
    with pytest.raises(Errors) as exc_info:
        form.finalize(ctxt)
    error = exc_info.value[0]
    assert error.kind == InvalidLength(None, 8)
    assert error.name == "doc"
    assert error.status() == 413


def test_upload_exactly_at_limit() -> None:
    file = upload(UploadField({"MAX_FILE_SIZE": 8}), DataField("doc", b"12345678", "ok.bin"))
    assert file.size == 8
    file.close()


def test_upload_io_error(tmp_path: Path) -> None:
    form = UploadField(
        {
            "UPLOAD_DIR": bytes(tmp_path / "missing"),
            "UPLOAD_KEEP_FILENAME": True,
            "MAX_MEMORY_FILE_SIZE": 2,
        }
    )
    ctxt = form.init(Options.LENIENT)
    asyncio.run(form.push_data(ctxt, DataField("doc", b"12345", "foo.txt")))
    with pytest.raises(Errors) as exc_info:
        form.finalize(ctxt)
    assert isinstance(exc_info.value[0].kind, Io)
    assert exc_info.value.status() == 400


def test_upload_missing() -> None:
    form = UploadField()
    with pytest.raises(Errors):
        form.finalize(form.init(Options.LENIENT))


@dataclass
class Attachment:
    title: str
    file: File = field(form=UploadField({"MAX_FILE_SIZE": 4}))


def test_upload_in_struct() -> None:
    fields = [ValueField("title", "t"), DataField("file", b"abcd", "a.txt")]
    result = asyncio.run(parse_form_fields(Attachment, fields))
    assert result.title == "t"
    assert result.file.file_object.read() == b"abcd"
    result.file.close()

    fields = [ValueField("title", "t"), DataField("file", b"abcde", "a.txt")]
    with pytest.raises(Errors) as exc_info:
        asyncio.run(parse_form_fields(Attachment, fields))
    assert [str(e.name) for e in exc_info.value] == ["file"]
