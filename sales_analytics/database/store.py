"""
Sales Store

Store-access interface handed to every payload assembler. Each read opens
its own pooled connection, so independent sub-queries of one assembler can be
awaited together with asyncio.gather.
"""

from typing import Any, Dict, List, Optional, Sequence

import structlog
from sqlalchemy import delete, func, insert, select
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.sql import Executable

from sales_analytics.database.connection import check_database_health
from sales_analytics.database.models import SalesTransaction

logger = structlog.get_logger(__name__)


class SalesStore:
    """
    Query/aggregate capability over the sales fact table.

    Example:
        store = SalesStore(engine)
        rows = await store.fetch_all(select(SalesTransaction.supplier))
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    async def fetch_all(self, statement: Executable) -> List[RowMapping]:
        """Execute a read statement and return every row as a mapping."""
        async with self._engine.connect() as conn:
            result = await conn.execute(statement)
            return list(result.mappings().all())

    async def fetch_one(self, statement: Executable) -> Optional[RowMapping]:
        """Execute a read statement and return its first row, if any."""
        async with self._engine.connect() as conn:
            result = await conn.execute(statement)
            return result.mappings().first()

    async def scalar(self, statement: Executable) -> Any:
        async with self._engine.connect() as conn:
            result = await conn.execute(statement)
            return result.scalar()

    async def count_rows(self) -> int:
        total = await self.scalar(select(func.count()).select_from(SalesTransaction))
        return int(total or 0)

    async def replace_all(self, rows: Sequence[Dict[str, Any]]) -> int:
        """
        Replace the whole fact table with the given rows.

        Delete and insert run in one transaction; a failed insert leaves the
        previous upload in place.
        """
        async with self._engine.begin() as conn:
            deleted = await conn.execute(delete(SalesTransaction))
            if rows:
                await conn.execute(insert(SalesTransaction), list(rows))

        logger.info(
            "Sales transactions replaced",
            deleted=deleted.rowcount,
            inserted=len(rows),
        )
        return len(rows)

    async def health(self) -> dict:
        return await check_database_health(self._engine)
