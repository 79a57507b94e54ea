import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from intake.files.exceptions import FileReadError
from intake.files.formats import base_name, file_extension, mime_type_for

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class FileSubmission:
    """One user-selected byte stream plus its declared metadata.

    Bytes come either from ``content`` (in-memory upload) or ``path`` (a file
    already spooled to disk). ``size`` and ``mime_type`` are what the client
    declared; the scanner checks them, it does not trust them.
    """

    name: str
    size: int
    mime_type: str = ""
    content: bytes | None = field(default=None, repr=False)
    path: Path | None = None
    file_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_bytes(
        cls,
        name: str,
        content: bytes,
        mime_type: str | None = None,
        file_id: str | None = None,
    ) -> "FileSubmission":
        extension = file_extension(name)
        return cls(
            name=name,
            size=len(content),
            mime_type=mime_type if mime_type is not None else mime_type_for(extension),
            content=content,
            file_id=file_id or uuid.uuid4().hex,
        )

    @classmethod
    def from_path(cls, path: Path, mime_type: str | None = None) -> "FileSubmission":
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return cls(
            name=path.name,
            size=path.stat().st_size,
            mime_type=mime_type if mime_type is not None else mime_type_for(file_extension(path.name)),
            path=path,
        )

    @property
    def extension(self) -> str:
        return file_extension(self.name)

    @property
    def base_name(self) -> str:
        return base_name(self.name)

    def read_prefix(self, limit: int) -> bytes:
        """Read at most ``limit`` bytes from the start of the stream.

        Raises:
            FileReadError: if no byte source is attached or it cannot be read.
        """
        if self.content is not None:
            return self.content[:limit]
        if self.path is None:
            raise FileReadError(f"No content attached to '{self.name}'")
        try:
            with self.path.open("rb") as handle:
                return handle.read(limit)
        except OSError as exc:
            raise FileReadError(f"Cannot read '{self.name}': {exc}") from exc

    def iter_chunks(self, chunk_size: int = _CHUNK_SIZE) -> Iterator[bytes]:
        if self.content is not None:
            for offset in range(0, len(self.content), chunk_size):
                yield self.content[offset : offset + chunk_size]
            return
        if self.path is None:
            raise FileReadError(f"No content attached to '{self.name}'")
        try:
            with self.path.open("rb") as handle:
                while chunk := handle.read(chunk_size):
                    yield chunk
        except OSError as exc:
            raise FileReadError(f"Cannot read '{self.name}': {exc}") from exc

    def read_all(self) -> bytes:
        if self.content is not None:
            return self.content
        return b"".join(self.iter_chunks())
