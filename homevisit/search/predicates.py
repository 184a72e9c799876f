"""
Predicate builder.

Each predicate names a model field path and a value and turns itself into a
django Q object. Values always travel as query parameters, never as SQL text.
A predicate whose value is None contributes no clause, so callers can build
the full list from optional query params without branching.
"""
import json
from dataclasses import dataclass
from typing import Any

from django.db.models import Q


@dataclass(frozen=True)
class Predicate:
    field: str
    value: Any

    @property
    def active(self) -> bool:
        return self.value is not None

    def to_q(self) -> Q:
        raise NotImplementedError


class Equals(Predicate):
    def to_q(self):
        return Q(**{self.field: self.value})


class AtLeast(Predicate):
    def to_q(self):
        return Q(**{f'{self.field}__gte': self.value})


class AtMost(Predicate):
    def to_q(self):
        return Q(**{f'{self.field}__lte': self.value})


class IContains(Predicate):
    def to_q(self):
        return Q(**{f'{self.field}__icontains': self.value})


class ListContains(Predicate):
    """
    Case-insensitive membership in a JSON list of strings.

    Matches the JSON-encoded element (quotes included) so "card" does not
    match "cardiology".
    """

    def to_q(self):
        return Q(**{f'{self.field}__icontains': json.dumps(self.value)})


@dataclass(frozen=True)
class Between:
    field: str
    low: Any = None
    high: Any = None

    @property
    def active(self) -> bool:
        return self.low is not None or self.high is not None

    def to_q(self):
        q = Q()
        if self.low is not None:
            q &= Q(**{f'{self.field}__gte': self.low})
        if self.high is not None:
            q &= Q(**{f'{self.field}__lte': self.high})
        return q


def combine(predicates) -> Q:
    """AND of every active predicate. Empty Q when none are active."""
    q = Q()
    for predicate in predicates:
        if predicate.active:
            q &= predicate.to_q()
    return q
