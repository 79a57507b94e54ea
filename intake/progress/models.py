from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ProgressEvent:
    file_id: str
    stage: str
    percentage: int
    state: str
    eta_ms: int | None = None
    message: str = ""
    timestamp: float | None = None

    def to_payload(self) -> dict[str, object]:
        return asdict(self)
