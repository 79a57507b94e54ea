import random
from pathlib import Path

import pytest

from intake.config.settings import Settings
from intake.storage.base import object_path, unique_object_name
from intake.storage.exceptions import StorageError
from intake.storage.factory import BlobStoreFactory
from intake.storage.local_store import LocalBlobStore
from intake.storage.memory_store import InMemoryBlobStore


class TestUniqueObjectName:
    def test_format(self) -> None:
        name = unique_object_name("report.pdf", 1_700_000_000_000, random.Random(1))
        stem, timestamp, rest = name.split("_")
        assert stem == "report"
        assert timestamp == "1700000000000"
        suffix, extension = rest.split(".")
        assert len(suffix) == 6
        assert extension == "pdf"

    def test_names_differ_for_same_input(self) -> None:
        rng = random.Random(7)
        first = unique_object_name("a.txt", 1, rng)
        second = unique_object_name("a.txt", 1, rng)
        assert first != second

    def test_without_extension(self) -> None:
        name = unique_object_name("README", 5, random.Random(2))
        assert name.startswith("README_5_")
        assert "." not in name

    def test_object_path_groups_by_actor(self) -> None:
        assert object_path("user-1", "a.txt") == "user-1/a.txt"


class TestLocalBlobStore:
    def test_put_writes_file(self, tmp_path: Path) -> None:
        store = LocalBlobStore(root=tmp_path)
        stored = store.put("actor/a.txt", b"hello")
        assert (tmp_path / "actor" / "a.txt").read_bytes() == b"hello"
        assert stored.size == 5
        assert stored.url.startswith("file://")

    def test_public_url(self, tmp_path: Path) -> None:
        store = LocalBlobStore(root=tmp_path, public_base_url="https://files.example.com/")
        stored = store.put("actor/a.txt", b"x")
        assert stored.url == "https://files.example.com/actor/a.txt"

    def test_path_escape_rejected(self, tmp_path: Path) -> None:
        store = LocalBlobStore(root=tmp_path / "root")
        with pytest.raises(StorageError, match="escapes"):
            store.put("../outside.txt", b"x")

    def test_delete(self, tmp_path: Path) -> None:
        store = LocalBlobStore(root=tmp_path)
        store.put("a.txt", b"x")
        assert store.delete("a.txt") is True
        assert store.delete("a.txt") is False

    def test_write_failure_raises_storage_error(self, tmp_path: Path) -> None:
        (tmp_path / "blocker").write_bytes(b"")
        store = LocalBlobStore(root=tmp_path)
        with pytest.raises(StorageError, match="Could not write"):
            store.put("blocker/a.txt", b"x")


class TestInMemoryBlobStore:
    def test_put_get_delete(self) -> None:
        store = InMemoryBlobStore()
        stored = store.put("a/b.txt", b"data")
        assert stored.url == "memory://a/b.txt"
        assert store.get("a/b.txt") == b"data"
        assert store.paths() == ["a/b.txt"]
        assert store.delete("a/b.txt") is True
        assert store.get("a/b.txt") is None


class TestBlobStoreFactory:
    def test_memory(self) -> None:
        settings = Settings(storage_backend="memory")
        assert isinstance(BlobStoreFactory.create(settings), InMemoryBlobStore)

    def test_local(self, tmp_path: Path) -> None:
        settings = Settings(storage_backend="LOCAL", storage_root=str(tmp_path))
        store = BlobStoreFactory.create(settings)
        assert isinstance(store, LocalBlobStore)
        assert store.root == tmp_path

    def test_unknown(self) -> None:
        settings = Settings(storage_backend="s3")
        with pytest.raises(ValueError, match="Unknown storage backend"):
            BlobStoreFactory.create(settings)
