"""
ThreatRadar - SQL Row Store
Serves the generic select surface from the SQLAlchemy models.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from threatradar.errors import UpstreamFetchFailure
from threatradar.models import TABLES
from threatradar.store.base import RowStore

logger = logging.getLogger(__name__)


def _row_to_dict(obj) -> dict:
    row = {}
    for col in obj.__table__.columns:
        value = getattr(obj, col.name)
        if isinstance(value, uuid.UUID):
            value = str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        row[col.name] = value
    return row


def _coerce(column, value: Any) -> Any:
    """UUID columns need UUID values for comparison on every dialect."""
    if value is None:
        return None
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if python_type is uuid.UUID and not isinstance(value, uuid.UUID):
        return uuid.UUID(str(value))
    return value


class SQLRowStore(RowStore):
    """Row store backed by an async SQLAlchemy session factory."""

    def __init__(self, sessionmaker: Optional[async_sessionmaker] = None):
        if sessionmaker is None:
            from threatradar.db.session import get_sessionmaker
            sessionmaker = get_sessionmaker()
        self.sessionmaker = sessionmaker

    @property
    def backend_name(self) -> str:
        return "sql"

    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        model = TABLES.get(table)
        if model is None:
            raise UpstreamFetchFailure(table, "unknown table")

        stmt = select(model)
        try:
            for field_name, value in (filters or {}).items():
                column = model.__table__.columns[field_name]
                stmt = stmt.where(column == _coerce(column, value))
            if order_by:
                column = model.__table__.columns[order_by]
                stmt = stmt.order_by(column.desc() if descending else column.asc())
        except KeyError as e:
            raise UpstreamFetchFailure(table, f"unknown column {e}")
        except ValueError as e:
            # Malformed UUID filter cannot match any row
            logger.debug(f"Filter on {table} cannot match: {e}")
            return []
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self.sessionmaker() as session:
                result = await session.execute(stmt)
                return [_row_to_dict(obj) for obj in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"SQL select on {table} failed: {e}")
            raise UpstreamFetchFailure(table, str(e))

    async def health_check(self) -> bool:
        try:
            async with self.sessionmaker() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception:
            return False
