import logging

from ..exceptions import NotFoundError
from ..models import Notification, UserAccount
from .base import BaseNotifier
from .types import NotificationMessage

logger = logging.getLogger(__name__)


class InAppNotifier(BaseNotifier):
    """Persist a Notification row, then queue channel delivery on Celery."""

    def send(self, message: NotificationMessage) -> None:
        from homevisit.tasks import deliver_notification

        if not UserAccount.objects.filter(id=message.user_id).exists():
            raise NotFoundError(
                message=f"Notification recipient {message.user_id} not found",
                code='RECIPIENT_NOT_FOUND',
            )

        notification = Notification.objects.create(
            user_id=message.user_id,
            type=message.type,
            title=message.title,
            body=message.body,
            channel=message.channel,
            metadata=message.metadata,
        )
        deliver_notification.delay(str(notification.id))
        logger.debug("notification %s queued for user %s", notification.id, message.user_id)


class LogNotifier(BaseNotifier):
    """Writes the message to the log and nothing else. For local runs."""

    def send(self, message: NotificationMessage) -> None:
        logger.info(
            "[notify] user=%s type=%s title=%r channel=%s",
            message.user_id, message.type, message.title, message.channel,
        )
