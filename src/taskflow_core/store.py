"""Data store interface and the in-memory implementation.

The data access layer talks to persistence only through ``DataStore``:
insert, get, query, patch and remove on named collections of flat records.
Records are plain dicts; the store assigns the ``id`` unless the record
already carries one.
"""
import copy
import logging
import operator
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Iterable, NamedTuple, Optional, Sequence
from uuid import uuid4

from .errors import NotFoundError, StoreError

logger = logging.getLogger("taskflow-core.store")

PROJECTS = "projects"
TASKS = "tasks"
ISSUES = "issues"
ACTIVITIES = "activities"
USERS = "users"

COLLECTIONS = (PROJECTS, TASKS, ISSUES, ACTIVITIES, USERS)


class Filter(NamedTuple):
    """A single ``field op value`` query condition."""

    field: str
    op: str
    value: Any


class OrderBy(NamedTuple):
    """Sort key for a query."""

    field: str
    descending: bool = True


def as_utc(value):
    """Convert datetimes to aware UTC; naive datetimes are taken to be UTC already."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (list, tuple)):
        return type(value)(as_utc(v) for v in value)
    return value


def _compare(op_func):
    def check(actual, expected) -> bool:
        if actual is None or expected is None:
            return False
        return op_func(actual, expected)
    return check


def _array_contains(actual, expected) -> bool:
    return isinstance(actual, (list, tuple)) and expected in actual


def _in(actual, expected) -> bool:
    return actual in (expected or ())


FILTER_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": _compare(operator.lt),
    "<=": _compare(operator.le),
    ">": _compare(operator.gt),
    ">=": _compare(operator.ge),
    "in": _in,
    "array-contains": _array_contains,
}


def as_filters(filters: Iterable[Sequence]) -> list[Filter]:
    """Normalize ``(field, op, value)`` tuples into Filters, rejecting unknown operators."""
    result = []
    for item in filters:
        condition = item if isinstance(item, Filter) else Filter(*item)
        if condition.op not in FILTER_OPERATORS:
            raise StoreError(f"Unsupported filter operator: {condition.op!r}")
        result.append(condition._replace(value=as_utc(condition.value)))
    return result


def matches(record: dict, filters: Iterable[Filter]) -> bool:
    """Check whether a record satisfies every filter."""
    for condition in filters:
        check = FILTER_OPERATORS[condition.op]
        actual = as_utc(record.get(condition.field))
        try:
            matched = check(actual, condition.value)
        except TypeError as e:
            raise StoreError(
                f"Cannot compare {condition.field}={actual!r} with {condition.value!r}: {e}"
            ) from e
        if not matched:
            return False
    return True


def sort_records(records: list[dict], order_by: Optional[OrderBy]) -> list[dict]:
    """
    Sort records by one field.

    Records missing the field go last regardless of direction. Ties keep
    insertion order ascending and reverse it descending, so the most
    recently written record comes first in a descending feed.
    """
    if order_by is None:
        return records
    present = [r for r in records if r.get(order_by.field) is not None]
    missing = [r for r in records if r.get(order_by.field) is None]
    present.sort(key=lambda r: r[order_by.field], reverse=order_by.descending)
    if order_by.descending:
        # sort() is stable, so equal keys are still in insertion order here
        present = _reverse_ties(present, order_by.field)
    return present + missing


def _reverse_ties(records: list[dict], field: str) -> list[dict]:
    result: list[dict] = []
    group: list[dict] = []
    for record in records:
        if group and group[-1][field] != record[field]:
            result.extend(reversed(group))
            group = []
        group.append(record)
    result.extend(reversed(group))
    return result


class DataStore(ABC):
    """Interface the data access layer needs from a document store."""

    @abstractmethod
    def insert(self, collection: str, record: dict) -> str:
        """Insert a record and return its id."""

    @abstractmethod
    def get(self, collection: str, record_id: str) -> dict:
        """Return one record. Raises NotFoundError if the id does not resolve."""

    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Iterable[Sequence] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Return records matching every filter, sorted and capped."""

    @abstractmethod
    def patch(self, collection: str, record_id: str, partial: dict) -> None:
        """Overwrite the given fields of a record. Raises NotFoundError if absent."""

    @abstractmethod
    def remove(self, collection: str, record_id: str) -> None:
        """Delete a record. Raises NotFoundError if absent."""


def check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise StoreError(f"Unknown collection: {collection!r}")


class InMemoryStore(DataStore):
    """
    Dict-backed store for tests and local runs.

    Records are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self):
        self._collections: dict[str, dict[str, dict]] = {name: {} for name in COLLECTIONS}

    def insert(self, collection: str, record: dict) -> str:
        check_collection(collection)
        rows = self._collections[collection]
        record_id = record.get("id") or str(uuid4())
        if record_id in rows:
            raise StoreError(f"Duplicate id in {collection}: {record_id}")
        stored = {k: as_utc(v) for k, v in copy.deepcopy(record).items()}
        rows[record_id] = {**stored, "id": record_id}
        logger.debug(f"Inserted {collection}/{record_id}")
        return record_id

    def get(self, collection: str, record_id: str) -> dict:
        check_collection(collection)
        record = self._collections[collection].get(record_id)
        if record is None:
            raise NotFoundError(collection, record_id)
        return copy.deepcopy(record)

    def query(
        self,
        collection: str,
        filters: Iterable[Sequence] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        check_collection(collection)
        conditions = as_filters(filters)
        found = [r for r in self._collections[collection].values() if matches(r, conditions)]
        found = sort_records(found, order_by)
        if limit is not None:
            found = found[:limit]
        return [copy.deepcopy(r) for r in found]

    def patch(self, collection: str, record_id: str, partial: dict) -> None:
        check_collection(collection)
        record = self._collections[collection].get(record_id)
        if record is None:
            raise NotFoundError(collection, record_id)
        updates = {k: as_utc(v) for k, v in copy.deepcopy(partial).items() if k != "id"}
        record.update(updates)
        logger.debug(f"Patched {collection}/{record_id}: {sorted(updates)}")

    def remove(self, collection: str, record_id: str) -> None:
        check_collection(collection)
        if self._collections[collection].pop(record_id, None) is None:
            raise NotFoundError(collection, record_id)
        logger.debug(f"Removed {collection}/{record_id}")

    def count(self, collection: str) -> int:
        """Number of records in a collection."""
        check_collection(collection)
        return len(self._collections[collection])
