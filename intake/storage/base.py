import random
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass

from intake.files.formats import base_name, file_extension, sanitize_filename

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class StoredObject:
    path: str
    url: str
    size: int


class BlobStore(ABC):
    """Contract for the storage handoff of accepted files."""

    @abstractmethod
    def put(self, path: str, data: bytes) -> StoredObject:
        """Store ``data`` under ``path``.

        Raises:
            StorageError: on any transport or filesystem failure.
        """

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Remove the object; return False if it did not exist."""


def unique_object_name(
    original_name: str, timestamp_ms: int, rng: random.Random | None = None
) -> str:
    """``{base}_{timestamp}_{random6}.{ext}``, keeping the extension of the original."""
    rng = rng or random.Random()
    suffix = "".join(rng.choices(_RANDOM_ALPHABET, k=6))
    safe = sanitize_filename(original_name) or "file"
    extension = file_extension(safe)
    stem = base_name(safe)
    if not extension:
        return f"{stem}_{timestamp_ms}_{suffix}"
    return f"{stem}_{timestamp_ms}_{suffix}.{extension}"


def object_path(actor_id: str, object_name: str) -> str:
    """Objects are grouped per actor: ``{actor_id}/{object_name}``."""
    return f"{sanitize_filename(actor_id) or 'anonymous'}/{object_name}"
