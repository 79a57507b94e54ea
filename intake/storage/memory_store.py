import threading

from intake.storage.base import BlobStore, StoredObject


class InMemoryBlobStore(BlobStore):
    """Keeps objects in a dict; used for tests and the default dev setup."""

    def __init__(self, base_url: str = "memory://") -> None:
        self._base_url = base_url
        self._objects: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, path: str, data: bytes) -> StoredObject:
        with self._lock:
            self._objects[path] = bytes(data)
        return StoredObject(path=path, url=f"{self._base_url}{path}", size=len(data))

    def delete(self, path: str) -> bool:
        with self._lock:
            return self._objects.pop(path, None) is not None

    def get(self, path: str) -> bytes | None:
        with self._lock:
            return self._objects.get(path)

    def paths(self) -> list[str]:
        with self._lock:
            return sorted(self._objects)
