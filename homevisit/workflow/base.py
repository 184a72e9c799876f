import logging

from ..models import UserAccount

logger = logging.getLogger(__name__)


class BaseWorkflow:
    """
    Holds the collaborators every workflow shares.

    The notifier is passed in explicitly; views build it with get_notifier().
    """

    machine = None

    def __init__(self, notifier):
        self.notifier = notifier

    def _notify(self, message):
        """
        Fire-and-forget. Called after the unit of work has committed; a
        notifier failure is logged and never reaches the caller.
        """
        try:
            self.notifier.send(message)
        except Exception as exc:
            logger.warning(
                "Failed to send %s notification to user %s: %s",
                message.type, message.user_id, exc,
            )

    @staticmethod
    def _load_actor(actor_id):
        return UserAccount.objects.filter(id=actor_id).first()
