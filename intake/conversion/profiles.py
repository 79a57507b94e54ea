from intake.conversion.exceptions import ConversionError

QUALITY_LEVELS: tuple[str, ...] = ("high", "medium", "low")

QUALITY_PROFILES: dict[str, dict[str, dict[str, object]]] = {
    "document": {
        "high": {"dpi": 300, "compression": "minimal"},
        "medium": {"dpi": 150, "compression": "balanced"},
        "low": {"dpi": 72, "compression": "maximum"},
    },
    "image": {
        "high": {"quality": 95, "max_width": None, "max_height": None},
        "medium": {"quality": 80, "max_width": 1920, "max_height": 1080},
        "low": {"quality": 60, "max_width": 1280, "max_height": 720},
    },
    "video": {
        "high": {"bitrate": "2M", "resolution": "1080p", "fps": 30},
        "medium": {"bitrate": "1M", "resolution": "720p", "fps": 30},
        "low": {"bitrate": "500k", "resolution": "480p", "fps": 24},
    },
    "audio": {
        "high": {"bitrate": "320k", "sample_rate": 48000},
        "medium": {"bitrate": "192k", "sample_rate": 44100},
        "low": {"bitrate": "128k", "sample_rate": 44100},
    },
}


def resolve_profile(conversion_type: str, quality: str) -> dict[str, object]:
    """Return a copy of the parameters for ``quality`` within ``conversion_type``."""
    levels = QUALITY_PROFILES.get(conversion_type)
    if levels is None:
        raise ConversionError(f"No quality profiles for conversion type '{conversion_type}'")
    profile = levels.get(quality.lower())
    if profile is None:
        raise ConversionError(
            f"Unknown quality '{quality}'. Choose from: {list(QUALITY_LEVELS)}"
        )
    return dict(profile)
