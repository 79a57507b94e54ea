from pathlib import Path

from intake.config.settings import Settings
from intake.storage.base import BlobStore
from intake.storage.local_store import LocalBlobStore
from intake.storage.memory_store import InMemoryBlobStore


class BlobStoreFactory:
    BACKENDS: tuple[str, ...] = ("local", "memory")

    @classmethod
    def create(cls, settings: Settings) -> BlobStore:
        name = settings.storage_backend.lower()
        if name == "local":
            return LocalBlobStore(
                root=Path(settings.storage_root),
                public_base_url=settings.storage_public_base_url,
            )
        if name == "memory":
            return InMemoryBlobStore()
        raise ValueError(
            f"Unknown storage backend '{name}'. Choose from: {list(cls.BACKENDS)}"
        )
