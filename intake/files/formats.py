"""Static file-format tables shared by the validator, scanner and converter."""

import re

MAX_FILENAME_LENGTH = 255

DANGEROUS_EXTENSIONS: frozenset[str] = frozenset(
    {
        "exe", "bat", "cmd", "com", "scr", "pif", "vbs", "js", "jar", "app",
        "deb", "pkg", "dmg", "sh", "run", "msi", "gadget", "iso", "dll", "sys",
        "ps1",
    }
)

ALLOWED_TYPES: dict[str, tuple[str, ...]] = {
    "documents": ("pdf", "doc", "docx", "txt", "rtf", "odt", "html"),
    "images": ("jpg", "jpeg", "png", "gif", "webp", "svg", "bmp"),
    "videos": ("mp4", "avi", "mov", "wmv", "flv", "webm", "mkv"),
    "audio": ("mp3", "wav", "ogg", "aac", "m4a", "flac"),
    "presentations": ("ppt", "pptx", "odp"),
    "spreadsheets": ("xls", "xlsx", "ods", "csv"),
}

ARCHIVE_EXTENSIONS: frozenset[str] = frozenset({"zip", "rar", "7z", "tar", "gz"})

TEXT_LIKE_EXTENSIONS: frozenset[str] = frozenset(
    {"txt", "csv", "xml", "html", "htm", "css", "js", "svg"}
)

MIME_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "odt": "application/vnd.oasis.opendocument.text",
    "rtf": "application/rtf",
    "txt": "text/plain",
    "html": "text/html",
    "csv": "text/csv",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "wmv": "video/x-ms-wmv",
    "mkv": "video/x-matroska",
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "wav": "audio/wav",
    "aac": "audio/aac",
    "flac": "audio/flac",
}

# Extensions whose declared MIME type is checked against MIME_TYPES by the scanner.
MIME_CHECKED_EXTENSIONS: frozenset[str] = frozenset(
    {"pdf", "doc", "docx", "txt", "jpg", "jpeg", "png", "gif", "mp4", "mp3"}
)

_UNSAFE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def file_extension(filename: str) -> str:
    """Return the lowercase extension after the last dot, or "" if there is none."""
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def base_name(filename: str) -> str:
    """Return the filename without its last extension."""
    stem, dot, _ext = filename.rpartition(".")
    return stem if dot and stem else filename


def extension_count(filename: str) -> int:
    return len(filename.split(".")) - 1


def categorize(extension: str) -> str:
    for category, extensions in ALLOWED_TYPES.items():
        if extension in extensions:
            return category
    return "unknown"


def is_allow_listed(extension: str) -> bool:
    return categorize(extension) != "unknown"


def mime_type_for(extension: str) -> str:
    return MIME_TYPES.get(extension, "application/octet-stream")


def expected_mime_type(extension: str) -> str | None:
    if extension not in MIME_CHECKED_EXTENSIONS:
        return None
    return MIME_TYPES[extension]


def sanitize_filename(filename: str) -> str:
    cleaned = _UNSAFE_NAME_CHARS.sub("_", filename).lstrip(".")
    return cleaned[:MAX_FILENAME_LENGTH]


def format_file_size(size_bytes: int) -> str:
    """Human-readable size, e.g. ``format_file_size(1536) == "1.5 KB"``."""
    if size_bytes <= 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB", "TB")
    value = float(size_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"
