# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Database session tests: configuration, connection lifecycle and query dispatch.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from rowalchemy import (
    Database,
    DatabaseConfig,
    DriverName,
    UnconfiguredDatabase,
    UnknownDriver,
    create_driver,
    db as make_db,
)
from rowalchemy.drivers.sqlite import SQLiteDriver

from .conftest import RecordingDriver


class TestConfiguration:
    """Test configuration handling and driver selection."""

    def test_extra_keys_are_connection_options(self):
        config = DatabaseConfig.coerce({"driver": "sqlite", "filename": "app.db", "timeout": 3})
        assert config.driver == "sqlite"
        assert config.connection_options() == {"filename": "app.db", "timeout": 3}
        assert config.option("timeout") == 3
        assert config.option("missing", "x") == "x"

    def test_coerce_keeps_instances(self):
        config = DatabaseConfig(driver="pg")
        assert DatabaseConfig.coerce(config) is config

    def test_connection_options_are_copies(self):
        """Drivers may consume options without altering the configuration."""
        config = DatabaseConfig.coerce({"driver": "sqlite", "filename": "app.db"})
        config.connection_options().pop("filename")
        assert config.option("filename") == "app.db"

    def test_create_driver(self):
        assert isinstance(create_driver("sqlite"), SQLiteDriver)
        assert isinstance(create_driver(DriverName.SQLITE), SQLiteDriver)
        recording = RecordingDriver()
        assert create_driver(recording) is recording

    def test_unknown_driver(self):
        with pytest.raises(UnknownDriver, match="no such driver: `mssql'") as excinfo:
            create_driver("mssql")
        assert excinfo.value.driver == "mssql"
        assert isinstance(excinfo.value, ValueError)

    def test_connect_rejects_unknown_driver_synchronously(self):
        database = Database({"driver": "oracle"})
        with pytest.raises(UnknownDriver):
            database.connect()

    def test_connect_outside_event_loop_defers(self):
        """Without a running loop, connect stores the configuration and the first query connects."""
        driver = RecordingDriver()
        database = Database()

        assert database.connect({"driver": driver}) is None
        assert database.config.driver is driver
        assert driver.connects == 0

        asyncio.run(database.query("SELECT 1"))

        assert driver.connects == 1
        assert driver.sql == ["SELECT 1"]

    def test_unconfigured_connect(self):
        with pytest.raises(UnconfiguredDatabase):
            Database().connect()

    def test_db_factory(self):
        database = make_db({"driver": "sqlite"})
        assert isinstance(database, Database)
        assert make_db().config is None

    @pytest.mark.asyncio
    async def test_unconfigured_save(self):
        Person = Database().model(table="people")
        with pytest.raises(UnconfiguredDatabase):
            await Person(name="Bob").save()


class TestConnectionLifecycle:
    """Test the memoized connection and the setup routine."""

    @pytest.mark.asyncio
    async def test_connect_is_memoized(self, db, driver):
        first = db.connect()
        assert db.connect() is first
        await first
        await db.query("SELECT 1")
        await db.query("SELECT 2")
        assert driver.connects == 1

    @pytest.mark.asyncio
    async def test_late_configuration(self, driver):
        database = Database()
        await database.connect({"driver": driver})
        assert database.config.driver is driver
        assert driver.connects == 1

    @pytest.mark.asyncio
    async def test_concurrent_saves_connect_once(self, models, driver):
        Person = models["Person"]
        await asyncio.gather(*(Person(name=str(n)).save() for n in range(5)))
        assert driver.connects == 1
        assert len(driver.statements) == 5

    @pytest.mark.asyncio
    async def test_setup_session_runs_before_other_queries(self, driver):
        seen = []

        async def setup(database):
            seen.append(database.running_setup)
            await database.statement("SET search_path TO app")

        database = Database({"driver": driver, "setup_session": setup})
        Person = database.model(table="people")
        await asyncio.gather(Person(name="a").save(), database.query("SELECT 1"))

        assert seen == [True]
        assert driver.sql[0] == "SET search_path TO app"
        assert database.running_setup is False

    @pytest.mark.asyncio
    async def test_setup_failure_allows_retry(self, driver):
        attempts = []

        async def setup(database):
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("setup failed")

        database = Database({"driver": driver, "setup_session": setup})

        with pytest.raises(RuntimeError, match="setup failed"):
            await database.query("SELECT 1")

        await database.query("SELECT 1")
        assert driver.connects == 2
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_close_without_connect_is_noop(self, db, driver):
        await db.close()
        assert driver.closed is False

    @pytest.mark.asyncio
    async def test_close_after_connect(self, db, driver):
        await db.query("SELECT 1")
        await db.close()
        assert driver.closed is True
        assert db.driver is None

    @pytest.mark.asyncio
    async def test_async_context_manager(self, driver):
        async with Database({"driver": driver}) as database:
            await database.query("SELECT 1")
        assert driver.closed is True


class TestQueryDispatch:
    """Test raw queries, logging and result mapping."""

    @pytest.mark.asyncio
    async def test_query_returns_rows(self, db, driver):
        driver.rows = [{"id": 1, "name": "Bob"}]
        rows = await db.query("SELECT * FROM people WHERE name = @name", {"name": "Bob"})
        assert rows == [{"id": 1, "name": "Bob"}]
        assert driver.statements[0][1] == {"name": "Bob"}

    @pytest.mark.asyncio
    async def test_insert_returns_identity(self, db, driver):
        result = await db.query("INSERT INTO people (name) VALUES (@name)", {"name": "a"}, insert=True, id="id")
        assert result == 1
        assert driver.statements[0][2].insert is True

    @pytest.mark.asyncio
    async def test_model_query_hydrates_entities(self, models, driver):
        """Queried rows come back saved and clean; a mutation then UPDATEs."""
        Person = models["Person"]
        driver.rows = [{"id": 4, "name": "Bob"}]

        (bob,) = await Person.query("SELECT * FROM people WHERE id = @id", {"id": 4})
        assert bob.saved() is True
        assert bob.changed() is False

        bob.name = "Bobby"
        await bob.save()
        assert driver.sql[-1] == "UPDATE people SET name = @name WHERE id = @id"

    @pytest.mark.asyncio
    async def test_log_hook_receives_queries(self, driver):
        calls = []
        database = Database({"driver": driver, "log": lambda *args: calls.append(args)})

        await database.query("SELECT * FROM people WHERE id = @id", {"id": 1})

        sql, params, results, options = calls[0]
        assert sql == "SELECT * FROM people WHERE id = @id"
        assert params == {"id": 1}
        assert results == []
        assert options.statement is False

    @pytest.mark.asyncio
    async def test_default_query_logging(self, db, driver, caplog):
        with caplog.at_level(logging.DEBUG, logger="rowalchemy"):
            await db.query("INSERT INTO people (name) VALUES (@name)", {"name": "a"}, insert=True)

        messages = [record.getMessage() for record in caplog.records]
        assert any("INSERT INTO people" in message for message in messages)
        assert "id = 1" in messages

    @pytest.mark.asyncio
    async def test_driver_errors_are_logged_and_reraised(self, db, driver, caplog):
        driver.fail_when = lambda sql, params: True

        with caplog.at_level(logging.DEBUG, logger="rowalchemy.query"):
            with pytest.raises(RuntimeError, match="statement failed"):
                await db.query("SELECT 1")

        assert any("failed" in record.getMessage() for record in caplog.records)

    def test_repr(self, db):
        assert repr(db).startswith("<Database(driver=")
