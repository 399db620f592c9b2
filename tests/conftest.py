# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and shared fixtures for RowAlchemy tests.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Dict, Generator, List, Optional, Tuple

import pytest
import pytest_asyncio

from rowalchemy import Database, Driver, QueryOptions

from . import create_test_db_path


class RecordingDriver(Driver):
    """
    In-memory driver that records every statement.

    Inserts return increasing ids. ``delay`` makes each call yield to the event
    loop so concurrent statements overlap; ``fail_when(sql, params)`` makes
    matching statements raise.
    """

    name = "recording"

    def __init__(
        self,
        delay: float = 0.0,
        empty_insert: Optional[str] = None,
        output_keys: Optional[Dict[str, Any]] = None,
    ):
        self.delay = delay
        self.empty_insert = empty_insert
        self.output_keys = output_keys or {}
        self.statements: List[Tuple[str, Dict[str, Any], QueryOptions]] = []
        self.rows: List[Dict[str, Any]] = []
        self.fail_when: Optional[Callable[[str, Dict[str, Any]], bool]] = None
        self.connects = 0
        self.closed = False
        self.next_id = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.id_types: List[Any] = []

    @property
    def sql(self) -> List[str]:
        return [sql for sql, _, _ in self.statements]

    async def connect(self, config) -> None:
        self.connects += 1

    async def _run(self, sql: str, params: Dict[str, Any], options: QueryOptions) -> None:
        self.statements.append((sql, dict(params), options))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.fail_when is not None and self.fail_when(sql, params):
                raise RuntimeError(f"statement failed: {sql}")
        finally:
            self.in_flight -= 1

    async def query(self, sql: str, params: Dict[str, Any], options: QueryOptions) -> List[Dict[str, Any]]:
        await self._run(sql, params, options)
        return [] if options.statement else [dict(row) for row in self.rows]

    async def insert(self, sql: str, params: Dict[str, Any], options: QueryOptions) -> Any:
        await self._run(sql, params, options)
        self.next_id += 1
        return self.next_id

    def insert_empty(self, table, id_field) -> Optional[str]:
        if self.empty_insert is None:
            return None
        return self.empty_insert.format(table=table, id=id_field)

    def output_id_keys(self, id_type) -> Dict[str, Any]:
        self.id_types.append(id_type)
        return dict(self.output_keys)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="function")
def driver() -> RecordingDriver:
    """Recording driver with a small delay so concurrent calls interleave."""
    return RecordingDriver(delay=0.001)


@pytest.fixture(scope="function")
def db(driver: RecordingDriver) -> Database:
    """Database session dispatching through the recording driver."""
    return Database({"driver": driver})


@pytest.fixture(scope="function")
def models(db: Database) -> Dict[str, Any]:
    """Company/person/order item models bound to the recording database."""
    return {
        "Company": db.model(table="companies"),
        "Person": db.model(table="people"),
        "OrderItem": db.model(table="order_items", id=["order_id", "sku"]),
    }


@pytest.fixture(scope="function")
def test_db_path() -> Generator[Path, None, None]:
    """Temporary SQLite database file."""
    db_path = create_test_db_path()
    yield db_path
    if db_path.exists():
        db_path.unlink()


@pytest_asyncio.fixture(scope="function")
async def sqlite_db(test_db_path: Path) -> AsyncGenerator[Database, None]:
    """SQLite-backed database with the companies/people/order_items schema."""
    database = Database({"driver": "sqlite", "filename": str(test_db_path)})
    try:
        await database.statement(
            "CREATE TABLE companies (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)"
        )
        await database.statement(
            "CREATE TABLE people (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, "
            "company_id INTEGER REFERENCES companies(id))"
        )
        await database.statement(
            "CREATE TABLE order_items (order_id INTEGER, sku TEXT, qty INTEGER, "
            "PRIMARY KEY (order_id, sku))"
        )
        await database.statement("CREATE TABLE markers (id INTEGER PRIMARY KEY AUTOINCREMENT)")
        yield database
    finally:
        await database.close()
