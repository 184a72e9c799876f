"""
BaseNotifier: abstract base of every notification sink.

Adding a sink:
1. subclass BaseNotifier in services.py
2. implement send()
3. register it in factory._build_registry

Workflows only know this interface.
"""

from abc import ABC, abstractmethod

from .types import NotificationMessage


class BaseNotifier(ABC):

    @abstractmethod
    def send(self, message: NotificationMessage) -> None:
        """
        Deliver or enqueue one message.

        May raise; callers treat every exception as a non-fatal delivery
        failure and log it.
        """
