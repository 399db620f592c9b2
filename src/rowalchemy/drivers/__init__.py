# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Driver factory and bundled dialect adapters.
"""

from __future__ import annotations

from typing import Any, Union

from ..constants import DriverName
from ..exceptions import UnknownDriver
from .base import Driver, QueryOptions


def create_driver(driver: Union[str, DriverName, Driver]) -> Driver:
    """
    Return a driver for the configured selector.

    Args:
        driver: A :class:`DriverName` value, its string form, or an already
            constructed :class:`Driver` (custom adapters, tests)

    Returns:
        New driver instance, or ``driver`` itself when it already is one

    Raises:
        UnknownDriver: If the selector matches no adapter
    """
    if isinstance(driver, Driver):
        return driver

    try:
        name = DriverName(driver)
    except ValueError as e:
        raise UnknownDriver(driver) from e

    # Adapters are imported on demand so only the selected engine library is needed.
    if name is DriverName.SQLITE:
        from .sqlite import SQLiteDriver

        return SQLiteDriver()
    if name is DriverName.POSTGRES:
        from .postgres import PostgresDriver

        return PostgresDriver()
    raise UnknownDriver(driver)


def driver_name(driver: Any) -> str:
    return getattr(driver, "name", type(driver).__name__)


__all__ = ["Driver", "QueryOptions", "create_driver", "driver_name"]
