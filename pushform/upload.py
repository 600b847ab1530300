from __future__ import annotations

from typing import TYPE_CHECKING

from python_multipart.exceptions import FileError
from python_multipart.multipart import File

from .error import Errors, InvalidLength, Io
from .from_form import FromFormField

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any, TypedDict

    from .field import DataField, ValueField

    class UploadConfig(TypedDict, total=False):
        UPLOAD_DIR: str | bytes | None
        UPLOAD_KEEP_FILENAME: bool
        UPLOAD_KEEP_EXTENSIONS: bool
        MAX_MEMORY_FILE_SIZE: int
        MAX_FILE_SIZE: int | None
        CHUNK_SIZE: int


class UploadField(FromFormField):
    """A file upload, parsed into a :class:`python_multipart.multipart.File`.

    The file is kept in memory until it grows past ``MAX_MEMORY_FILE_SIZE``
    bytes and is then moved to a temporary file on disk. Files larger than
    ``MAX_FILE_SIZE`` bytes are rejected. The returned file is positioned at
    its start; closing it is up to the caller.
    """

    DEFAULT_CONFIG: UploadConfig = {
        "UPLOAD_DIR": None,
        "UPLOAD_KEEP_FILENAME": False,
        "UPLOAD_KEEP_EXTENSIONS": False,
        "MAX_MEMORY_FILE_SIZE": 1 * 1024 * 1024,
        "MAX_FILE_SIZE": None,
        "CHUNK_SIZE": 64 * 1024,
    }

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.config: UploadConfig = self.DEFAULT_CONFIG.copy()
        self.config.update(config or {})  # type: ignore[typeddict-item]

    def _open(self, field: ValueField | DataField, file_name: str | None) -> File:
        return File(
            file_name.encode("utf-8") if file_name is not None else None,
            str(field.name.source()).encode("utf-8"),
            config=self.config,  # type: ignore[arg-type]
        )

    def _write(self, file: File, data: bytes) -> None:
        limit = self.config.get("MAX_FILE_SIZE")
        if limit is not None and file.size + len(data) > limit:
            self.logger.warning("Upload exceeds %d bytes, rejecting", limit)
            file.close()
            raise Errors(InvalidLength(None, limit))

        try:
            file.write(data)
        except FileError as e:
            file.close()
            raise Errors(Io(e))

    def _finish(self, file: File) -> File:
        file.finalize()
        file.file_object.seek(0)
        return file

    def from_value(self, field: ValueField) -> File:
        file = self._open(field, None)
        self._write(file, field.value.encode("utf-8"))
        return self._finish(file)

    async def from_data(self, field: DataField) -> File:
        file = self._open(field, field.file_name)
        chunk_size = self.config["CHUNK_SIZE"]
        while True:
            chunk = await field.data.read(chunk_size)
            if not chunk:
                break
            self._write(file, chunk)

        self.logger.debug("Read upload %r: %d bytes, in memory: %r", file.file_name, file.size, file.in_memory)
        return self._finish(file)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.config!r})"
