import uvicorn

from intake.api.app import create_app
from intake.config.settings import Settings
from intake.database.connection import apply_schema, close_pool, init_pool
from intake.logging.logger import Log
from intake.pipeline.service import build_service


def main() -> None:
    """Entry point: settings -> logging -> pool -> service -> HTTP server."""
    settings = Settings()
    Log.configure(settings.log_level)
    uses_postgres = settings.record_store.lower() == "postgres"
    if uses_postgres:
        init_pool(settings)
        apply_schema()

    try:
        service = build_service(settings)
        Log.info(
            f"Starting intake API on {settings.api_host}:{settings.api_port}",
            env=settings.app_env,
            record_store=settings.record_store,
            storage=settings.storage_backend,
        )
        uvicorn.run(create_app(service=service), host=settings.api_host, port=settings.api_port)
    finally:
        if uses_postgres:
            close_pool()


if __name__ == "__main__":
    main()
