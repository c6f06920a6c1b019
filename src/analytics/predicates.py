"""Store-agnostic filter predicates.

A predicate renders itself to a Django ``Q`` for the ORM store and evaluates
itself against a plain mapping for the in-memory store, so both stores select
exactly the same records.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from functools import reduce
from typing import Any, Mapping

from django.core.exceptions import FieldDoesNotExist
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Predicate:
    def to_q(self, model: type[models.Model] | None = None) -> Q:
        raise NotImplementedError

    def matches(self, record: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "And":
        return And.of(self, other)


@dataclass(frozen=True)
class Eq(Predicate):
    field: str
    value: Any

    def to_q(self, model=None) -> Q:
        return Q(**{self.field: self.value})

    def matches(self, record) -> bool:
        return record.get(self.field) == self.value


@dataclass(frozen=True)
class In(Predicate):
    field: str
    values: tuple

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))

    def to_q(self, model=None) -> Q:
        return Q(**{f"{self.field}__in": list(self.values)})

    def matches(self, record) -> bool:
        return record.get(self.field) in self.values


@dataclass(frozen=True)
class IsNull(Predicate):
    field: str
    is_null: bool = True

    def to_q(self, model=None) -> Q:
        return Q(**{f"{self.field}__isnull": self.is_null})

    def matches(self, record) -> bool:
        return (record.get(self.field) is None) is self.is_null


def _is_plain_date(value) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)


def _calendar_date(value: datetime) -> date:
    if timezone.is_aware(value):
        return timezone.localtime(value).date()
    return value.date()


def _is_datetime_field(model, field_name: str) -> bool:
    if model is None or "__" in field_name:
        return False
    try:
        field = model._meta.get_field(field_name)
    except FieldDoesNotExist:
        return False
    return isinstance(field, models.DateTimeField)


@dataclass(frozen=True)
class Range(Predicate):
    """``start <= field <= end`` (or ``< end`` when ``end_inclusive`` is off).

    Either bound may be omitted. Plain ``date`` bounds applied to a datetime
    field compare against the field's calendar date in the active time zone.
    """

    field: str
    start: date | datetime | None = None
    end: date | datetime | None = None
    end_inclusive: bool = True

    def _on_date(self) -> bool:
        return _is_plain_date(self.start) or _is_plain_date(self.end)

    def to_q(self, model=None) -> Q:
        lookup = self.field
        if self._on_date() and _is_datetime_field(model, self.field):
            lookup = f"{self.field}__date"
        q = Q()
        if self.start is not None:
            q &= Q(**{f"{lookup}__gte": self.start})
        if self.end is not None:
            suffix = "lte" if self.end_inclusive else "lt"
            q &= Q(**{f"{lookup}__{suffix}": self.end})
        return q

    def matches(self, record) -> bool:
        value = record.get(self.field)
        if value is None:
            return False
        if isinstance(value, datetime) and self._on_date():
            value = _calendar_date(value)
        if self.start is not None and value < self.start:
            return False
        if self.end is not None:
            if self.end_inclusive:
                return value <= self.end
            return value < self.end
        return True


@dataclass(frozen=True)
class And(Predicate):
    parts: tuple = ()

    @classmethod
    def of(cls, *predicates: Predicate | None) -> "And":
        parts: list[Predicate] = []
        for predicate in predicates:
            if predicate is None:
                continue
            if isinstance(predicate, And):
                parts.extend(predicate.parts)
            else:
                parts.append(predicate)
        return cls(tuple(parts))

    def to_q(self, model=None) -> Q:
        return reduce(lambda acc, part: acc & part.to_q(model), self.parts, Q())

    def matches(self, record) -> bool:
        return all(part.matches(record) for part in self.parts)
