"""
Record Stores

Backends for the persistence facade. Both satisfy the same async contract:

    insert(partition, record) -> record
    query(partition, filters) -> list[record]   (newest first)
    delete(partition, record_id) -> bool
    clear(partition) -> int

Records are plain JSON-compatible dicts carrying their own "id".
InMemoryRecordStore is the session-local store used for the anonymous
identity; SqlRecordStore is the remote store for authenticated identities.
"""

import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from foodscan.core.exceptions import PersistenceFailure
from foodscan.models.product_record import ProductRecord

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def _matches(record: Record, filters: Optional[Dict[str, Any]]) -> bool:
    if not filters:
        return True
    return all(record.get(key) == value for key, value in filters.items())


class RecordStore(ABC):
    """Async CRUD over partitioned records."""

    name = "store"

    @abstractmethod
    async def insert(self, partition: str, record: Record) -> Record:
        ...

    @abstractmethod
    async def query(self, partition: str, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        ...

    @abstractmethod
    async def delete(self, partition: str, record_id: str) -> bool:
        ...

    @abstractmethod
    async def clear(self, partition: str) -> int:
        ...


class InMemoryRecordStore(RecordStore):
    """Session-local store; lives as long as the process."""

    name = "local"

    def __init__(self):
        self._partitions: Dict[str, List[Record]] = {}

    async def insert(self, partition: str, record: Record) -> Record:
        stored = copy.deepcopy(record)
        self._partitions.setdefault(partition, []).insert(0, stored)
        return copy.deepcopy(stored)

    async def query(self, partition: str, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        return [
            copy.deepcopy(record)
            for record in self._partitions.get(partition, [])
            if _matches(record, filters)
        ]

    async def delete(self, partition: str, record_id: str) -> bool:
        records = self._partitions.get(partition, [])
        remaining = [r for r in records if r.get("id") != record_id]
        self._partitions[partition] = remaining
        return len(remaining) != len(records)

    async def clear(self, partition: str) -> int:
        removed = len(self._partitions.get(partition, []))
        self._partitions[partition] = []
        return removed


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


class SqlRecordStore(RecordStore):
    """
    Remote store backed by the product_records table.

    Filters on barcode, avoided and source run in SQL; any other filter
    key is applied to the JSON payload.
    """

    name = "remote"

    SQL_FILTER_COLUMNS = {
        "id": ProductRecord.id,
        "barcode": ProductRecord.barcode,
        "avoided": ProductRecord.avoided,
        "source": ProductRecord.source,
    }

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    async def insert(self, partition: str, record: Record) -> Record:
        if not record.get("id"):
            raise PersistenceFailure("Record has no id")

        db = self.session_factory()
        try:
            row = ProductRecord(
                id=record["id"],
                partition=partition,
                barcode=record.get("barcode"),
                avoided=bool(record.get("avoided", False)),
                source=record.get("source"),
                scan_date=_parse_datetime(record.get("scan_date")),
                data=record,
            )
            db.add(row)
            db.commit()
            logger.debug(f"[SqlRecordStore] Inserted {row.id} in partition {partition}")
            return copy.deepcopy(row.data)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceFailure(f"Insert failed: {e}") from e
        finally:
            db.close()

    async def query(self, partition: str, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        filters = dict(filters or {})
        db = self.session_factory()
        try:
            query = db.query(ProductRecord).filter(ProductRecord.partition == partition)

            for key in list(filters):
                column = self.SQL_FILTER_COLUMNS.get(key)
                if column is None:
                    continue
                value = filters.pop(key)
                query = query.filter(column.is_(None) if value is None else column == value)

            rows = query.order_by(
                ProductRecord.scan_date.desc(),
                ProductRecord.created_at.desc()
            ).all()
            return [copy.deepcopy(row.data) for row in rows if _matches(row.data, filters)]
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Query failed: {e}") from e
        finally:
            db.close()

    async def delete(self, partition: str, record_id: str) -> bool:
        db = self.session_factory()
        try:
            deleted = db.query(ProductRecord).filter(
                ProductRecord.partition == partition,
                ProductRecord.id == record_id
            ).delete(synchronize_session=False)
            db.commit()
            return deleted > 0
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceFailure(f"Delete failed: {e}") from e
        finally:
            db.close()

    async def clear(self, partition: str) -> int:
        db = self.session_factory()
        try:
            deleted = db.query(ProductRecord).filter(
                ProductRecord.partition == partition
            ).delete(synchronize_session=False)
            db.commit()
            return deleted
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceFailure(f"Clear failed: {e}") from e
        finally:
            db.close()
