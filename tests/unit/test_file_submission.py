from pathlib import Path

import pytest

from intake.files.exceptions import FileReadError
from intake.files.models import FileSubmission


class TestFromBytes:
    def test_size_and_mime_are_derived(self) -> None:
        submission = FileSubmission.from_bytes("notes.txt", b"hello")
        assert submission.size == 5
        assert submission.mime_type == "text/plain"
        assert submission.extension == "txt"
        assert submission.base_name == "notes"

    def test_declared_mime_is_kept(self) -> None:
        submission = FileSubmission.from_bytes("notes.txt", b"hi", mime_type="image/png")
        assert submission.mime_type == "image/png"

    def test_read_prefix_is_bounded(self) -> None:
        submission = FileSubmission.from_bytes("a.txt", b"x" * 100)
        assert submission.read_prefix(10) == b"x" * 10

    def test_iter_chunks_covers_content(self) -> None:
        submission = FileSubmission.from_bytes("a.bin", b"abcdefg")
        assert list(submission.iter_chunks(chunk_size=3)) == [b"abc", b"def", b"g"]

    def test_file_ids_are_unique(self) -> None:
        a = FileSubmission.from_bytes("a.txt", b"")
        b = FileSubmission.from_bytes("a.txt", b"")
        assert a.file_id != b.file_id


class TestFromPath:
    def test_reads_from_disk(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.txt"
        path.write_bytes(b"on disk")
        submission = FileSubmission.from_path(path)
        assert submission.size == 7
        assert submission.read_prefix(2) == b"on"
        assert submission.read_all() == b"on disk"

    def test_missing_path_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            FileSubmission.from_path(tmp_path / "missing.txt")

    def test_deleted_file_raises_read_error(self, tmp_path: Path) -> None:
        path = tmp_path / "gone.txt"
        path.write_bytes(b"data")
        submission = FileSubmission.from_path(path)
        path.unlink()
        with pytest.raises(FileReadError):
            submission.read_prefix(10)


class TestWithoutSource:
    def test_read_prefix_raises(self) -> None:
        submission = FileSubmission(name="empty.txt", size=10)
        with pytest.raises(FileReadError):
            submission.read_prefix(5)

    def test_iter_chunks_raises(self) -> None:
        submission = FileSubmission(name="empty.txt", size=10)
        with pytest.raises(FileReadError):
            list(submission.iter_chunks())
