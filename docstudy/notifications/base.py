from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    DOCUMENT_READY = "DOCUMENT_READY"
    DOCUMENT_ERROR = "DOCUMENT_ERROR"


@dataclass(frozen=True)
class Notification:
    user_id: str
    type: NotificationType
    title: str
    message: str
    action_url: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


def study_link(document_id: str) -> str:
    return f"/learning/documents/{document_id}/study"


def document_ready(user_id: str, document_id: str, filename: str, term_count: int) -> Notification:
    return Notification(
        user_id=user_id,
        type=NotificationType.DOCUMENT_READY,
        title="Your study material is ready",
        message=f"{term_count} flashcards and a quiz were created from {filename}.",
        action_url=study_link(document_id),
        data={"document_id": document_id, "term_count": term_count},
    )


def document_error(user_id: str, document_id: str, filename: str, reason: str) -> Notification:
    return Notification(
        user_id=user_id,
        type=NotificationType.DOCUMENT_ERROR,
        title="We couldn't process your document",
        message=f"Processing {filename} failed. Please try uploading it again.",
        data={"document_id": document_id, "reason": reason},
    )


class BaseNotifier(ABC):
    """Contract for notification sinks."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        """Deliver a notification. Must never raise."""
