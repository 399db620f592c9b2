# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
PostgreSQL driver backed by asyncpg.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

import asyncpg

from ..constants import DatabaseConstants, DriverName, ErrorMessages, StatementConstants
from ..exceptions import DriverError
from .base import Driver, QueryOptions

if TYPE_CHECKING:
    from ..config import DatabaseConfig

logger = logging.getLogger(__name__)

# Quoted literals and identifiers are matched first so placeholders and keywords inside them stay put.
_QUOTED = r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\""
_PLACEHOLDER_PATTERN = re.compile(_QUOTED + r"|@(\w+)")
_RETURNING_PATTERN = re.compile(_QUOTED + rf"|\b({StatementConstants.RETURNING})\b", re.IGNORECASE)


def has_returning(sql: str) -> bool:
    """Return True if ``sql`` has a RETURNING clause outside quoted text."""
    return any(match.group(1) for match in _RETURNING_PATTERN.finditer(sql))


def to_positional(sql: str, params: Optional[Dict[str, Any]]) -> Tuple[str, List[Any]]:
    """
    Rewrite ``@name`` placeholders as ``$1, $2, ...``.

    A name used several times maps to the same position.

    Args:
        sql: Statement with named placeholders
        params: Values by name

    Returns:
        Tuple of (rewritten statement, positional arguments)

    Raises:
        KeyError: If a placeholder has no value in ``params``
    """
    params = params or {}
    positions: Dict[str, int] = {}
    args: List[Any] = []

    def replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name is None:
            return match.group(0)
        if name not in positions:
            args.append(params[name])
            positions[name] = len(args)
        return f"${positions[name]}"

    return _PLACEHOLDER_PATTERN.sub(replace, sql), args


class PostgresDriver(Driver):
    """Driver for a single shared asyncpg connection."""

    name = DriverName.POSTGRES

    def __init__(self) -> None:
        self._conn: Optional[asyncpg.Connection] = None

    async def connect(self, config: "DatabaseConfig") -> None:
        options = config.connection_options()
        dsn = options.pop(DatabaseConstants.POSTGRES_URL_KEY, None)
        self._conn = await asyncpg.connect(dsn=dsn, **options)

    def _connection(self) -> asyncpg.Connection:
        if self._conn is None:
            raise DriverError(ErrorMessages.DRIVER_NOT_CONNECTED.format(driver=self.name))
        return self._conn

    async def query(self, sql: str, params: Dict[str, Any], options: QueryOptions) -> List[Dict[str, Any]]:
        conn = self._connection()
        text, args = to_positional(sql, params)
        if options.statement:
            await conn.execute(text, *args)
            return []
        records = await conn.fetch(text, *args)
        return [dict(record) for record in records]

    async def insert(self, sql: str, params: Dict[str, Any], options: QueryOptions) -> Any:
        conn = self._connection()
        text, args = to_positional(sql, params)
        if options.id and not has_returning(text):
            text = f"{text} {StatementConstants.RETURNING} {_returning_columns(options.id)}"
        return await conn.fetchval(text, *args)

    def insert_empty(self, table: str, id_field: Union[str, List[str]]) -> Optional[str]:
        return (
            f"{StatementConstants.INSERT_INTO} {table} {StatementConstants.DEFAULT_VALUES} "
            f"{StatementConstants.RETURNING} {_returning_columns(id_field)}"
        )

    async def close(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await conn.close()


def _returning_columns(id_field: Union[str, List[str]]) -> str:
    if isinstance(id_field, list):
        return StatementConstants.FIELD_SEPARATOR.join(id_field)
    return id_field
