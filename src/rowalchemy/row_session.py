# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Database session: driver selection, connection lifecycle and query dispatch.

A :class:`Database` owns one driver and one lazily established connection
shared by every entity saved through it. Models are declared against it with
:meth:`Database.model`.
"""

from __future__ import annotations

import asyncio
import logging
from contextvars import ContextVar
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, Union

from .config import DatabaseConfig
from .constants import ErrorMessages, LoggingConstants
from .drivers import Driver, QueryOptions, create_driver, driver_name
from .exceptions import DriverError, UnconfiguredDatabase
from .row_model import ModelDefinition, Row, define_model

logger = logging.getLogger(__name__)
query_logger = logging.getLogger(LoggingConstants.QUERY_LOGGER)
results_logger = logging.getLogger(LoggingConstants.RESULTS_LOGGER)

# Database whose setup routine is running in the current context, if any.
_running_setup: ContextVar[Optional["Database"]] = ContextVar("rowalchemy_running_setup", default=None)


class Database:
    """
    Session for executing statements and saving entities.

    Usage::

        db = Database({"driver": "sqlite", "filename": "app.db"})
        Person = db.model(table="people")
        bob = Person(name="Bob")
        await bob.save()
        await db.close()
    """

    def __init__(self, config: Optional[Union[DatabaseConfig, Mapping[str, Any]]] = None):
        """
        Initialize a database session.

        Args:
            config: Session configuration; may also be supplied later through
                :meth:`connect`
        """
        self.config: Optional[DatabaseConfig] = DatabaseConfig.coerce(config) if config is not None else None
        self.driver: Optional[Driver] = None
        self._connection: Optional["asyncio.Task[None]"] = None

    @property
    def log(self) -> Optional[Callable[..., Any]]:
        return self.config.log if self.config is not None else None

    @property
    def running_setup(self) -> bool:
        """True inside this session's setup routine."""
        return _running_setup.get() is self

    def model(
        self,
        table: str,
        id: Union[str, List[str]] = "id",
        foreign_key_for: Optional[Callable[[str], str]] = None,
        id_type: Any = None,
        **attrs: Any,
    ) -> Type[Row]:
        """
        Declare a model and return its entity class.

        Args:
            table: Table name
            id: Identity field, or list of fields for a compound key
            foreign_key_for: Maps a relation field to its foreign-key column
                (default ``<field>_id``)
            id_type: Passed to the driver when reading back generated ids
            **attrs: Class attributes for the generated type (helper methods,
                relation factories); never persisted

        Returns:
            A :class:`Row` subclass bound to this database
        """
        definition = ModelDefinition(table=table, id=id, foreign_key_for=foreign_key_for, id_type=id_type)
        return define_model(self, definition, attrs)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def ensure_configured(self) -> DatabaseConfig:
        if self.config is None:
            raise UnconfiguredDatabase()
        return self.config

    def connect(
        self, config: Optional[Union[DatabaseConfig, Mapping[str, Any]]] = None
    ) -> Optional["asyncio.Task[None]"]:
        """
        Connect once and return the memoized connection task.

        Repeated calls return the same task, so every caller awaits the same
        connect (and setup). The configuration is stored and the driver
        created synchronously, so an unknown driver fails right here.

        Called outside a running event loop, only the configuration is
        stored and ``None`` is returned; the connection is then established
        by the first query or save, on the loop that runs it.

        Raises:
            UnconfiguredDatabase: If no configuration was ever supplied
            UnknownDriver: If the configured driver has no adapter
        """
        if self._connection is not None:
            return self._connection

        if config is not None:
            self.config = DatabaseConfig.coerce(config)
        config = self.ensure_configured()
        self.driver = create_driver(config.driver)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; deferring connection to first use")
            return None

        self._connection = loop.create_task(self._establish(self.driver, config))
        return self._connection

    async def _establish(self, driver: Driver, config: DatabaseConfig) -> None:
        try:
            await driver.connect(config)
            if config.setup_session is not None:
                logger.debug(LoggingConstants.SETUP_SESSION, driver_name(driver))
                token = _running_setup.set(self)
                try:
                    await config.setup_session(self)
                finally:
                    _running_setup.reset(token)
        except BaseException:
            # A later call starts over instead of replaying this failure.
            if self._connection is asyncio.current_task():
                self._connection = None
            raise

    async def close(self) -> None:
        """Release driver resources; a no-op if never connected."""
        driver, self.driver = self.driver, None
        connection, self._connection = self._connection, None
        if connection is not None and not connection.done():
            connection.cancel()
        if driver is not None:
            await driver.close()

    async def __aenter__(self) -> "Database":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb  # Mark as intentionally unused
        await self.close()

    # ------------------------------------------------------------------
    # Query dispatch
    # ------------------------------------------------------------------

    async def query(
        self,
        sql: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        insert: bool = False,
        statement: bool = False,
        id: Optional[Union[str, List[str]]] = None,
    ) -> Any:
        """
        Execute a raw statement.

        Args:
            sql: Statement text with ``@name`` placeholders
            params: Named parameters
            insert: Run as an INSERT and return the generated identity
            statement: The statement returns no rows (UPDATE, DDL)
            id: Identity field(s) of the inserted model

        Returns:
            List of row dicts, or the generated identity when ``insert`` is set
        """
        options = QueryOptions(insert=insert, statement=statement, id=id)
        return await self.execute(sql, params, options)

    async def statement(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute a statement whose result rows are not needed."""
        return await self.query(sql, params, statement=True)

    async def ensure_connected(self) -> Driver:
        """
        Wait for the shared connection and return the driver.

        Inside the setup routine the connection is already usable, so the wait
        is skipped there.
        """
        if not self.running_setup:
            # Shielded: a cancelled caller must not abort the connect others share.
            await asyncio.shield(self.connect())
        driver = self.driver
        if driver is None:
            raise DriverError(ErrorMessages.DRIVER_NOT_CONNECTED.format(driver=self.config.driver if self.config else None))
        return driver

    async def execute(self, sql: str, params: Optional[Dict[str, Any]], options: QueryOptions) -> Any:
        driver = await self.ensure_connected()

        try:
            if options.insert:
                results = await driver.insert(sql, params or {}, options)
            else:
                results = await driver.query(sql, params or {}, options)
        except Exception as e:
            self.log_error(sql, params, e)
            raise

        self.log_results(sql, params, results, options)
        return results

    def log_error(self, sql: str, params: Optional[Dict[str, Any]], error: BaseException) -> None:
        query_logger.debug(LoggingConstants.QUERY_ERROR, sql, params, error)

    def log_results(self, sql: str, params: Optional[Dict[str, Any]], results: Any, options: QueryOptions) -> None:
        """Hand the query to the configured ``log`` hook, or to the package loggers."""
        if callable(self.log):
            self.log(sql, params, results, options)
            return

        if params:
            query_logger.debug(LoggingConstants.QUERY_WITH_PARAMS, sql, params)
        else:
            query_logger.debug(sql)

        if options.insert:
            results_logger.debug(LoggingConstants.INSERTED_ID, results)
        elif not options.statement and results:
            results_logger.debug(LoggingConstants.RESULTS, results)

    def __repr__(self) -> str:
        driver = self.config.driver if self.config is not None else None
        connected = self._connection is not None and self._connection.done()
        return f"<Database(driver={driver!r}, connected={connected})>"
