from .factory import get_notifier
from .types import NotificationMessage

__all__ = ['get_notifier', 'NotificationMessage']
