from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from intake.database.connection import get_connection
from intake.sessions.models import SessionSummary


class UploadSessionsRepository:
    """Database operations for the upload_sessions table."""

    def upsert(self, summary: SessionSummary) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO upload_sessions
                (session_id, actor_id, total_files, successful_uploads, failed_uploads,
                 started_at, closed_at, duration_ms, aborted_reason, outcomes)
                VALUES (%s, %s, %s, %s, %s, to_timestamp(%s), to_timestamp(%s), %s, %s, %s)
                ON CONFLICT (session_id) DO UPDATE
                SET successful_uploads = EXCLUDED.successful_uploads,
                    failed_uploads = EXCLUDED.failed_uploads,
                    closed_at = EXCLUDED.closed_at,
                    duration_ms = EXCLUDED.duration_ms,
                    aborted_reason = EXCLUDED.aborted_reason,
                    outcomes = EXCLUDED.outcomes,
                    updated_at = NOW()
                """,
                (
                    summary.session_id,
                    summary.actor_id,
                    summary.total_files,
                    summary.successful_uploads,
                    summary.failed_uploads,
                    summary.started_at,
                    summary.closed_at,
                    summary.duration_ms,
                    summary.aborted_reason,
                    Jsonb([o.to_payload() for o in summary.outcomes]),
                ),
            )
            conn.commit()

    def find_by_id(self, session_id: str) -> dict[str, Any] | None:
        """Raw row for inspection; outcomes are returned as decoded JSON."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT session_id, actor_id, total_files, successful_uploads,
                           failed_uploads, duration_ms, aborted_reason, outcomes,
                           closed_at IS NOT NULL AS is_closed
                    FROM upload_sessions
                    WHERE session_id = %s
                    """,
                    (session_id,),
                )
                return cur.fetchone()
