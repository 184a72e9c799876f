import logging
from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


def _hand_off(notification):
    """
    Push one notification out on its channel.

    IN_APP is already visible once the row exists. The other channels have no
    provider wired up yet, so the hand-off is logged. Provider calls belong
    here, inside the retried block of deliver_notification.
    """
    logger.info(
        "Handing off notification %s to channel %s for user %s",
        notification.id, notification.channel, notification.user_id,
    )


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=10,   # doubled per retry: 10s, 20s, 40s
    acks_late=True,
    reject_on_worker_lost=True,
)
def deliver_notification(self, notification_id: str):
    """
    Hand a persisted Notification to its channel and stamp sent_at.

    A failed hand-off is retried with backoff and sent_at stays empty until one
    succeeds.
    """
    from homevisit.models import Notification

    logger.info("[deliver_notification] notification_id=%s (attempt %d/%d)",
                notification_id, self.request.retries + 1, self.max_retries + 1)

    try:
        notification = Notification.objects.get(id=notification_id)
    except Notification.DoesNotExist:
        logger.error("Notification %s does not exist, skipping", notification_id)
        return

    if notification.sent_at is not None:
        logger.info("Notification %s already sent at %s", notification_id, notification.sent_at)
        return

    try:
        _hand_off(notification)
        notification.sent_at = timezone.now()
        notification.save(update_fields=['sent_at'])

    except Exception as exc:
        logger.warning("Notification %s delivery failed (attempt %d): %s",
                       notification_id, self.request.retries + 1, exc)

        if self.request.retries < self.max_retries:
            countdown = self.default_retry_delay * (2 ** self.request.retries)
            raise self.retry(exc=exc, countdown=countdown)

        logger.error("Notification %s gave up after %d retries", notification_id, self.max_retries)
        raise
