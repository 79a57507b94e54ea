from intake.clock import Clock
from intake.config.settings import Settings
from intake.records.base import RecordStore
from intake.records.memory_store import InMemoryRecordStore
from intake.records.postgres_store import PostgresRecordStore


class RecordStoreFactory:
    BACKENDS: tuple[str, ...] = ("memory", "postgres")

    @classmethod
    def create(cls, settings: Settings, clock: Clock | None = None) -> RecordStore:
        name = settings.record_store.lower()
        if name == "memory":
            return InMemoryRecordStore(clock=clock)
        if name == "postgres":
            return PostgresRecordStore()
        raise ValueError(
            f"Unknown record store '{name}'. Choose from: {list(cls.BACKENDS)}"
        )
