# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
SQLite driver backed by aiosqlite.

SQLite understands ``@name`` parameters natively, so statements are passed
through untouched. The connection runs in autocommit mode.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import aiosqlite

from ..constants import DatabaseConstants, DriverName, ErrorMessages
from ..exceptions import DriverError
from .base import Driver, QueryOptions

if TYPE_CHECKING:
    from ..config import DatabaseConfig

logger = logging.getLogger(__name__)


class SQLiteDriver(Driver):
    """Driver for a single shared aiosqlite connection."""

    name = DriverName.SQLITE

    def __init__(self) -> None:
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self, config: "DatabaseConfig") -> None:
        options = config.connection_options()
        filename = options.pop(DatabaseConstants.SQLITE_FILENAME_KEY, DatabaseConstants.SQLITE_MEMORY)
        logger.debug("Opening SQLite database %s", filename)
        self._conn = await aiosqlite.connect(filename, isolation_level=None, **options)
        self._conn.row_factory = aiosqlite.Row

    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise DriverError(ErrorMessages.DRIVER_NOT_CONNECTED.format(driver=self.name))
        return self._conn

    async def query(self, sql: str, params: Dict[str, Any], options: QueryOptions) -> List[Dict[str, Any]]:
        conn = self._connection()
        async with conn.execute(sql, params or {}) as cursor:
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def insert(self, sql: str, params: Dict[str, Any], options: QueryOptions) -> Any:
        conn = self._connection()
        async with conn.execute(sql, params or {}) as cursor:
            return cursor.lastrowid

    async def close(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await conn.close()
