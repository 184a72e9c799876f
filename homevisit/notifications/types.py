from dataclasses import dataclass, field


@dataclass
class NotificationMessage:
    """What a workflow hands to a notifier. Keyed by recipient user id."""
    user_id: str
    type: str
    title: str
    body: str
    channel: str = 'IN_APP'
    metadata: dict = field(default_factory=dict)
