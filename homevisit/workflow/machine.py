"""
Declarative status machine.

A StateMachine is a table of Transitions. It only answers "may `action` run
from `current`, and where does it lead"; loading, locking and saving are the
workflow's job.
"""
from dataclasses import dataclass
from typing import Optional

from ..exceptions import InvalidStateError, ValidationError


@dataclass(frozen=True)
class Transition:
    action: str
    sources: frozenset
    target: str
    timestamp_field: Optional[str] = None
    # used in the error message: "Cannot <verb> order with status X"
    verb: str = ''

    def __post_init__(self):
        # plain strings, so lookups by the raw DB value always match
        object.__setattr__(self, 'sources', frozenset(str(s) for s in self.sources))
        object.__setattr__(self, 'target', str(self.target))


class StateMachine:

    def __init__(self, noun, transitions, terminal):
        self.noun = noun
        self.terminal = frozenset(str(s) for s in terminal)
        self._by_action = {t.action: t for t in transitions}

    @property
    def actions(self):
        return list(self._by_action)

    def transition_for(self, action) -> Transition:
        try:
            return self._by_action[action]
        except KeyError:
            raise ValidationError(
                message=f"Unknown {self.noun} action: {action}",
                code='UNKNOWN_ACTION',
                detail={'action': action, 'allowed': self.actions},
            ) from None

    def check(self, current, action) -> Transition:
        """Return the transition for `action`, or raise InvalidStateError naming `current`."""
        transition = self.transition_for(action)
        current = str(current)
        if current not in transition.sources:
            raise InvalidStateError(
                message=f"Cannot {transition.verb or action} {self.noun} with status {current}",
                current_status=current,
            )
        return transition

    def allowed_actions(self, current):
        return [t.action for t in self._by_action.values() if str(current) in t.sources]


def cancel_edge(statuses, terminal, target, timestamp_field='cancelled_at'):
    """The absorbing cancel edge: every non-terminal status may cancel."""
    return Transition(
        action='cancel',
        sources=frozenset(str(s) for s in statuses if str(s) not in {str(t) for t in terminal}),
        target=target,
        timestamp_field=timestamp_field,
        verb='cancel',
    )
