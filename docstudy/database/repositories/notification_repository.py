from psycopg.types.json import Jsonb

from docstudy.database.connection import get_connection
from docstudy.notifications.base import Notification


class NotificationRepository:
    """Database operations for the notifications table."""

    def insert(self, notification: Notification) -> int:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO notifications (user_id, type, title, message, action_url, data)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        notification.user_id,
                        notification.type.value,
                        notification.title,
                        notification.message,
                        notification.action_url,
                        Jsonb(notification.data),
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        assert row is not None
        return int(row[0])
