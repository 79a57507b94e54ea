"""Which format pairs can be converted, and the static facts about each pair."""

from intake.files.formats import base_name

CAPABILITY_MATRIX: dict[str, tuple[str, ...]] = {
    # documents
    "docx": ("pdf", "txt", "html"),
    "doc": ("pdf", "txt", "html"),
    "odt": ("pdf", "docx", "txt"),
    "rtf": ("pdf", "docx", "txt"),
    "txt": ("pdf", "html", "docx"),
    "pdf": ("txt", "html"),
    # images
    "png": ("jpg", "webp", "gif"),
    "jpg": ("png", "webp", "gif"),
    "jpeg": ("png", "webp", "gif"),
    "gif": ("png", "jpg", "webp"),
    "bmp": ("png", "jpg", "webp"),
    "svg": ("png", "jpg", "pdf"),
    # video
    "avi": ("mp4", "webm", "mov"),
    "mov": ("mp4", "webm", "avi"),
    "wmv": ("mp4", "webm", "avi"),
    "mkv": ("mp4", "webm", "avi"),
    # audio
    "wav": ("mp3", "ogg", "aac"),
    "flac": ("mp3", "ogg", "wav"),
    "aac": ("mp3", "ogg", "wav"),
    "ogg": ("mp3", "wav", "aac"),
}

CONVERSION_TYPES: dict[str, frozenset[str]] = {
    "document": frozenset({"docx", "doc", "odt", "rtf", "txt", "pdf"}),
    "image": frozenset({"png", "jpg", "jpeg", "gif", "bmp", "svg"}),
    "video": frozenset({"avi", "mov", "wmv", "mkv"}),
    "audio": frozenset({"wav", "flac", "aac", "ogg"}),
}

SIZE_MULTIPLIERS: dict[str, float] = {
    "pdf": 0.8,
    "jpg": 0.6,
    "jpeg": 0.6,
    "png": 1.2,
    "txt": 0.1,
}
DEFAULT_SIZE_MULTIPLIER = 0.9

# First matching rule wins; a rule only applies when its target is convertible.
RECOMMENDATION_RULES: tuple[tuple[frozenset[str], str], ...] = (
    (frozenset({"docx", "doc", "pptx", "ppt", "xlsx", "xls"}), "pdf"),
    (frozenset({"png", "bmp"}), "jpg"),
    (frozenset({"gif", "tiff", "bmp"}), "png"),
)


def _normalize(extension: str) -> str:
    return extension.lower().lstrip(".")


def can_convert(source_format: str, target_format: str) -> bool:
    return _normalize(target_format) in CAPABILITY_MATRIX.get(_normalize(source_format), ())


def supported_targets(source_format: str) -> tuple[str, ...]:
    return CAPABILITY_MATRIX.get(_normalize(source_format), ())


def conversion_type(source_format: str) -> str | None:
    source = _normalize(source_format)
    for name, formats in CONVERSION_TYPES.items():
        if source in formats:
            return name
    return None


def recommended_format(source_format: str) -> str | None:
    source = _normalize(source_format)
    for sources, target in RECOMMENDATION_RULES:
        if source in sources and can_convert(source, target):
            return target
    return None


def converted_file_name(original_name: str, target_format: str) -> str:
    return f"{base_name(original_name)}_converted.{_normalize(target_format)}"


def estimate_output_size(size: int, target_format: str) -> int:
    multiplier = SIZE_MULTIPLIERS.get(_normalize(target_format), DEFAULT_SIZE_MULTIPLIER)
    return round(size * multiplier)
