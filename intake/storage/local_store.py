from pathlib import Path

from intake.logging.logger import Log
from intake.storage.base import BlobStore, StoredObject
from intake.storage.exceptions import StorageError


class LocalBlobStore(BlobStore):
    """Writes objects below a root directory on the local filesystem."""

    FILES_ROOT = Path("/app/files")

    def __init__(self, root: Path | None = None, public_base_url: str = "") -> None:
        self._root = root if root is not None else self.FILES_ROOT
        self._public_base_url = public_base_url.rstrip("/")

    @property
    def root(self) -> Path:
        return self._root

    def put(self, path: str, data: bytes) -> StoredObject:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Could not write {path}: {exc}") from exc
        Log.debug(f"Stored {len(data)} bytes", path=str(target))
        return StoredObject(path=path, url=self._url_for(path, target), size=len(data))

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Could not delete {path}: {exc}") from exc
        return True

    def _resolve(self, path: str) -> Path:
        root = self._root.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root):
            raise StorageError(f"Path escapes storage root: {path}")
        return target

    def _url_for(self, path: str, target: Path) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{path}"
        return target.as_uri()
