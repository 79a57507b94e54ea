from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from intake.database.connection import get_connection
from intake.records.models import Notification, UsageTotals


class UsageRepository:
    """Per-actor usage counters and the notification outbox."""

    def increment(self, actor_id: str, uploads: int, bytes_stored: int) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO actor_usage (actor_id, uploads, bytes_stored)
                VALUES (%s, %s, %s)
                ON CONFLICT (actor_id) DO UPDATE
                SET uploads = actor_usage.uploads + EXCLUDED.uploads,
                    bytes_stored = actor_usage.bytes_stored + EXCLUDED.bytes_stored,
                    updated_at = NOW()
                """,
                (actor_id, uploads, bytes_stored),
            )
            conn.commit()

    def find_usage(self, actor_id: str) -> UsageTotals:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT actor_id, uploads, bytes_stored FROM actor_usage WHERE actor_id = %s",
                    (actor_id,),
                )
                row = cur.fetchone()
        if row is None:
            return UsageTotals(actor_id=actor_id)
        return UsageTotals(**row)

    def add_notification(self, notification: Notification) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO notifications (actor_id, kind, message, payload)
                VALUES (%s, %s, %s, %s)
                """,
                (
                    notification.actor_id,
                    notification.kind,
                    notification.message,
                    Jsonb(notification.payload),
                ),
            )
            conn.commit()

    def notifications_for(self, actor_id: str) -> list[Notification]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT actor_id, kind, message, payload,
                           EXTRACT(EPOCH FROM created_at)::float8 AS created_at
                    FROM notifications
                    WHERE actor_id = %s
                    ORDER BY id
                    """,
                    (actor_id,),
                )
                rows = cur.fetchall()
        return [Notification(**row) for row in rows]
