"""SQLAlchemy implementation of the data store interface.

Each store call opens its own session and commits before returning, so a
write is durable by the time the caller sees the result.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional, Sequence
from uuid import uuid4

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .errors import NotFoundError, StoreError
from .models import COLLECTION_MODELS
from .store import DataStore, Filter, OrderBy, as_filters, as_utc, check_collection, matches

logger = logging.getLogger("taskflow-core.sql_store")

# Operators evaluated in Python after loading rows (JSON list columns)
_PYTHON_SIDE_OPERATORS = {"array-contains"}


def _normalize(value):
    # Values are written as UTC (see as_utc); SQLite hands them back without tzinfo
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    if isinstance(value, list):
        return list(value)
    return value


class SqlAlchemyStore(DataStore):
    """Data store backed by the tables in ``models``."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Store operation failed: {e}")
            raise StoreError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _model(self, collection: str):
        check_collection(collection)
        return COLLECTION_MODELS[collection]

    def _column(self, model, field: str):
        column = model.__table__.columns.get(field)
        if column is None or field == "seq":
            raise StoreError(f"Unknown field for {model.__tablename__}: {field!r}")
        return getattr(model, field)

    def _to_record(self, row) -> dict:
        return {
            column.name: _normalize(getattr(row, column.name))
            for column in row.__table__.columns
            if column.name != "seq"
        }

    def _find(self, session: Session, model, record_id: str):
        return session.query(model).filter(model.id == record_id).first()

    def _condition(self, model, condition: Filter):
        column = self._column(model, condition.field)
        value = condition.value
        if condition.op == "==":
            return column.is_(None) if value is None else column == value
        if condition.op == "!=":
            if value is None:
                return column.isnot(None)
            return or_(column != value, column.is_(None))
        if condition.op == "<":
            return column < value
        if condition.op == "<=":
            return column <= value
        if condition.op == ">":
            return column > value
        if condition.op == ">=":
            return column >= value
        if condition.op == "in":
            return column.in_(list(value or ()))
        raise StoreError(f"Unsupported filter operator: {condition.op!r}")

    def insert(self, collection: str, record: dict) -> str:
        model = self._model(collection)
        record_id = record.get("id") or str(uuid4())
        values = {k: as_utc(v) for k, v in record.items() if k != "id"}
        for field in values:
            self._column(model, field)
        with self._session() as session:
            if self._find(session, model, record_id) is not None:
                raise StoreError(f"Duplicate id in {collection}: {record_id}")
            session.add(model(id=record_id, **values))
        logger.debug(f"Inserted {collection}/{record_id}")
        return record_id

    def get(self, collection: str, record_id: str) -> dict:
        model = self._model(collection)
        with self._session() as session:
            row = self._find(session, model, record_id)
            if row is None:
                raise NotFoundError(collection, record_id)
            return self._to_record(row)

    def query(
        self,
        collection: str,
        filters: Iterable[Sequence] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        model = self._model(collection)
        conditions = as_filters(filters)
        sql_side = [c for c in conditions if c.op not in _PYTHON_SIDE_OPERATORS]
        python_side = [c for c in conditions if c.op in _PYTHON_SIDE_OPERATORS]
        for condition in python_side:
            self._column(model, condition.field)

        with self._session() as session:
            query = session.query(model)
            for condition in sql_side:
                query = query.filter(self._condition(model, condition))

            if order_by is not None:
                column = self._column(model, order_by.field)
                if order_by.descending:
                    query = query.order_by(column.desc().nulls_last(), model.seq.desc())
                else:
                    query = query.order_by(column.asc().nulls_last(), model.seq.asc())
            else:
                query = query.order_by(model.seq.asc())

            if python_side:
                records = [self._to_record(row) for row in query.all()]
                records = [r for r in records if matches(r, python_side)]
                return records[:limit] if limit is not None else records

            if limit is not None:
                query = query.limit(limit)
            return [self._to_record(row) for row in query.all()]

    def patch(self, collection: str, record_id: str, partial: dict) -> None:
        model = self._model(collection)
        updates = {k: as_utc(v) for k, v in partial.items() if k != "id"}
        for field in updates:
            self._column(model, field)
        with self._session() as session:
            row = self._find(session, model, record_id)
            if row is None:
                raise NotFoundError(collection, record_id)
            for field, value in updates.items():
                setattr(row, field, value)
        logger.debug(f"Patched {collection}/{record_id}: {sorted(updates)}")

    def remove(self, collection: str, record_id: str) -> None:
        model = self._model(collection)
        with self._session() as session:
            row = self._find(session, model, record_id)
            if row is None:
                raise NotFoundError(collection, record_id)
            session.delete(row)
        logger.debug(f"Removed {collection}/{record_id}")
