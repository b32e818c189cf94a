"""
Document store - JSON documents grouped in named collections

Supports insert with generated id, get/update by id (partial merge with dotted
paths such as ``workflow.confirmed``), equality/range/"in" queries on dotted
fields, ordering, range counts and named counters. Query filters and ordering
run in SQL against the JSON column.
"""

import copy
import logging
import operator
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy import false, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .models import Document, NumberSequence
from .shared.exceptions import NotFoundError, StoreFailure, ValidationFailure

logger = logging.getLogger(__name__)

Filter = tuple[str, str, Any]

_OPERATORS = {
    "==": operator.eq,
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "in": lambda column, options: column.in_(options),
}


def json_field(path: str, sample: Any = ""):
    """
    SQL expression for a dotted path inside the document body.

    The value is extracted as text, number or boolean depending on `sample`, the
    value it will be compared with. Missing paths evaluate to NULL.
    """
    parts = tuple(path.split("."))
    element = Document.data[parts if len(parts) > 1 else parts[0]]
    if isinstance(sample, bool):
        return element.as_boolean()
    if isinstance(sample, (int, float)):
        return element.as_float()
    return element.as_string()


def _criterion(field: str, op: str, expected: Any):
    # Missing fields never match a predicate, and neither does a None comparison
    if expected is None:
        return false()
    if op == "in":
        options = list(expected)
        if not options:
            return false()
        return _OPERATORS[op](json_field(field, options[0]), options)
    return _OPERATORS[op](json_field(field, expected), expected)


def set_path(data: dict, path: str, value: Any) -> None:
    """Write a dotted path into a nested dict, creating intermediate dicts"""
    parts = path.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def validated(model: type[BaseModel], data: Union[BaseModel, dict]) -> dict:
    """Check a document against its record type before it is written"""
    if isinstance(data, model):
        return data.model_dump()
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return model.model_validate(data).model_dump()
    except ValidationError as e:
        raise ValidationFailure(f"Invalid {model.__name__} document: {e.errors()}") from e


class DocumentStore:
    """Collections of JSON documents persisted through SQLAlchemy"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_dict(row: Document) -> dict:
        return {"id": row.id, **copy.deepcopy(row.data or {})}

    @staticmethod
    def _check_filters(filters: Iterable[Filter]) -> list[Filter]:
        checked = list(filters or [])
        for field, op, _value in checked:
            if op not in _OPERATORS:
                raise ValidationFailure(f"Unsupported query operator '{op}' on {field}")
        return checked

    def insert(self, collection: str, data: dict) -> str:
        """Insert a document and return its generated id"""
        try:
            row = Document(collection=collection, data=copy.deepcopy(data))
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            return row.id
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Insert into {collection} failed: {e}")
            raise StoreFailure(f"Failed to write to {collection}") from e

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        """Get a document by id, or None"""
        try:
            row = (
                self.db.query(Document)
                .filter(Document.collection == collection, Document.id == doc_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Read from {collection} failed: {e}")
            raise StoreFailure(f"Failed to read from {collection}") from e
        return self._to_dict(row) if row else None

    def update(self, collection: str, doc_id: str, fields: dict) -> dict:
        """
        Merge `fields` into an existing document.

        Keys may be dotted paths; only the addressed nested value is replaced.
        Returns the updated document.
        """
        try:
            row = (
                self.db.query(Document)
                .filter(Document.collection == collection, Document.id == doc_id)
                .first()
            )
            if not row:
                raise NotFoundError(f"Document {doc_id} not found in {collection}")

            data = copy.deepcopy(row.data or {})
            for path, value in fields.items():
                set_path(data, path, copy.deepcopy(value))
            # Reassign so the JSON column is flagged dirty
            row.data = data
            self.db.commit()
            return {"id": row.id, **copy.deepcopy(data)}
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Update of {collection}/{doc_id} failed: {e}")
            raise StoreFailure(f"Failed to update {collection}") from e

    def query(
        self,
        collection: str,
        filters: Optional[Iterable[Filter]] = None,
        order_by: Optional[str] = None,
        direction: str = "asc",
    ) -> list[dict]:
        """Return documents matching every filter, optionally ordered by a field"""
        query = self.db.query(Document).filter(*self._criteria(collection, filters))
        if order_by:
            # Documents without the ordering field are dropped, like an indexed order-by
            column = json_field(order_by)
            query = query.filter(column.isnot(None)).order_by(
                column.desc() if direction == "desc" else column.asc()
            )
        try:
            rows = query.all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Query on {collection} failed: {e}")
            raise StoreFailure(f"Failed to query {collection}") from e
        return [self._to_dict(row) for row in rows]

    def count(self, collection: str, filters: Optional[Iterable[Filter]] = None) -> int:
        """Number of documents matching every filter"""
        criteria = self._criteria(collection, filters)
        try:
            return self.db.query(func.count(Document.id)).filter(*criteria).scalar() or 0
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Count on {collection} failed: {e}")
            raise StoreFailure(f"Failed to query {collection}") from e

    def _criteria(self, collection: str, filters: Optional[Iterable[Filter]]) -> list:
        checked = self._check_filters(filters)
        return [Document.collection == collection] + [
            _criterion(field, op, value) for field, op, value in checked
        ]

    def next_sequence(self, key: str) -> int:
        """Atomically increment and return the named counter"""
        for attempt in range(2):
            try:
                sequence = (
                    self.db.query(NumberSequence)
                    .filter(NumberSequence.key == key)
                    .with_for_update()
                    .first()
                )
                if sequence is None:
                    sequence = NumberSequence(key=key, last_value=1)
                    self.db.add(sequence)
                else:
                    sequence.last_value = sequence.last_value + 1
                self.db.commit()
                return sequence.last_value
            except IntegrityError:
                # Another writer created the row first; retry as an increment
                self.db.rollback()
                if attempt:
                    raise StoreFailure(f"Failed to reserve sequence {key}")
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Sequence {key} increment failed: {e}")
                raise StoreFailure(f"Failed to reserve sequence {key}") from e
        raise StoreFailure(f"Failed to reserve sequence {key}")
