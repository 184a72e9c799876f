"""
get_notifier(): pick the notification sink from settings.NOTIFIER_BACKEND.

Switching sinks is an environment change (NOTIFIER_BACKEND=log), no code
changes in the workflows.
"""

from django.conf import settings

from .base import BaseNotifier


def _build_registry() -> dict[str, type[BaseNotifier]]:
    # imported lazily so models are loaded before services.py is
    from .services import InAppNotifier, LogNotifier

    return {
        "in_app": InAppNotifier,
        "log":    LogNotifier,
    }


def get_notifier() -> BaseNotifier:
    """
    Raises:
        ValueError: NOTIFIER_BACKEND is not a registered sink
    """
    backend = getattr(settings, "NOTIFIER_BACKEND", "in_app")
    registry = _build_registry()
    notifier_cls = registry.get(backend)

    if notifier_cls is None:
        raise ValueError(
            f"Unknown NOTIFIER_BACKEND: {backend!r}. "
            f"Known backends: {list(registry.keys())}"
        )

    return notifier_cls()
