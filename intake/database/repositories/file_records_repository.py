from psycopg.rows import dict_row

from intake.database.connection import get_connection
from intake.records.models import FileRecord


class FileRecordsRepository:
    """Database operations for the file_records table."""

    def insert(self, record: FileRecord) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO file_records
                (file_id, session_id, actor_id, name, size, mime_type, status)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (file_id) DO NOTHING
                """,
                (
                    record.file_id,
                    record.session_id,
                    record.actor_id,
                    record.name,
                    record.size,
                    record.mime_type,
                    record.status,
                ),
            )
            conn.commit()

    def update_status(
        self,
        file_id: str,
        status: str,
        reason: str | None = None,
        storage_path: str | None = None,
        storage_url: str | None = None,
        sha256: str | None = None,
        risk_score: int | None = None,
    ) -> int:
        """Update status and any provided columns. Returns the affected row count."""
        with get_connection() as conn:
            cur = conn.execute(
                """
                UPDATE file_records
                SET status = %s,
                    reason = COALESCE(%s, reason),
                    storage_path = COALESCE(%s, storage_path),
                    storage_url = COALESCE(%s, storage_url),
                    sha256 = COALESCE(%s, sha256),
                    risk_score = COALESCE(%s, risk_score),
                    updated_at = NOW()
                WHERE file_id = %s
                """,
                (status, reason, storage_path, storage_url, sha256, risk_score, file_id),
            )
            conn.commit()
            return cur.rowcount

    def find_by_id(self, file_id: str) -> FileRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT file_id, session_id, actor_id, name, size, mime_type, status,
                           sha256, risk_score, reason, storage_path, storage_url,
                           EXTRACT(EPOCH FROM created_at)::float8 AS created_at,
                           EXTRACT(EPOCH FROM updated_at)::float8 AS updated_at
                    FROM file_records
                    WHERE file_id = %s
                    """,
                    (file_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return FileRecord(**row)
