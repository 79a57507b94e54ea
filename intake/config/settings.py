from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "intake"
    db_username: str = "intake"
    db_password: str = "secret"

    record_store: str = "memory"

    storage_backend: str = "local"
    storage_root: str = "/app/files"
    storage_public_base_url: str = ""

    max_file_size_mb: int = 50
    rate_limit_per_hour: int = 20
    rate_limit_window_seconds: int = 3600

    scan_backend: str = "signature"
    scan_prefix_bytes: int = 5120
    security_event_capacity: int = 1000
    quarantine_threshold: int = 70
    simulated_detection_rate: float = 0.01

    conversion_backend: str = "simulated"
    pdf_engine: str = "pdfplumber"
    simulation_seed: int | None = None

    scan_workers: int = 4
    upload_policy: str = "sequential"
    upload_workers: int = 2
    batch_workers: int = 4
    session_retention: int = 256
    conversion_history_size: int = 1000

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024
