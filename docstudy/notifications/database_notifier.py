from docstudy.database.repositories.notification_repository import NotificationRepository
from docstudy.logging.logger import Log
from docstudy.notifications.base import BaseNotifier, Notification


class DatabaseNotifier(BaseNotifier):
    """Stores notifications in the notifications table. Delivery failures are logged only."""

    def __init__(self, repo: NotificationRepository) -> None:
        self._repo = repo

    def notify(self, notification: Notification) -> None:
        try:
            notification_id = self._repo.insert(notification)
        except Exception as exc:
            Log.warning(
                f"Failed to send {notification.type.value} notification "
                f"to user {notification.user_id}: {exc}"
            )
            return
        Log.info(
            f"Sent {notification.type.value} notification {notification_id} "
            f"to user {notification.user_id}"
        )
