import pytest

from intake.files.formats import (
    base_name,
    categorize,
    expected_mime_type,
    extension_count,
    file_extension,
    format_file_size,
    is_allow_listed,
    mime_type_for,
    sanitize_filename,
)


class TestFileExtension:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("report.PDF", "pdf"),
            ("archive.tar.gz", "gz"),
            ("README", ""),
            (".env", "env"),
        ],
    )
    def test_extension(self, name: str, expected: str) -> None:
        assert file_extension(name) == expected

    def test_base_name_strips_last_extension(self) -> None:
        assert base_name("report.final.docx") == "report.final"

    def test_base_name_without_extension(self) -> None:
        assert base_name("README") == "README"

    def test_extension_count(self) -> None:
        assert extension_count("invoice.pdf.exe.zip") == 3


class TestCategories:
    def test_known_category(self) -> None:
        assert categorize("docx") == "documents"
        assert categorize("flac") == "audio"

    def test_unknown_category(self) -> None:
        assert categorize("xyz") == "unknown"
        assert not is_allow_listed("xyz")

    def test_mime_type_default(self) -> None:
        assert mime_type_for("xyz") == "application/octet-stream"

    def test_expected_mime_only_for_checked_extensions(self) -> None:
        assert expected_mime_type("pdf") == "application/pdf"
        assert expected_mime_type("flac") is None


class TestHelpers:
    def test_sanitize_filename(self) -> None:
        assert sanitize_filename('..a<b>:c?.txt') == "a_b__c_.txt"

    @pytest.mark.parametrize(
        ("size", "expected"),
        [(0, "0 Bytes"), (1536, "1.5 KB"), (50 * 1024 * 1024, "50 MB")],
    )
    def test_format_file_size(self, size: int, expected: str) -> None:
        assert format_file_size(size) == expected
