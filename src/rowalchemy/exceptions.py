# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Exception hierarchy for RowAlchemy.

Errors raised by the underlying database engines are not wrapped: they reach
the caller of ``save``/``query`` unchanged after being logged.
"""

from __future__ import annotations

from typing import Any, List, Union

from .constants import ErrorMessages


class RowAlchemyError(Exception):
    """Base class for all RowAlchemy errors."""


class UnconfiguredDatabase(RowAlchemyError):
    """An operation was attempted before a configuration was supplied."""

    def __init__(self, message: str = ErrorMessages.UNCONFIGURED_DATABASE):
        super().__init__(message)


class UnknownDriver(RowAlchemyError, ValueError):
    """The configured driver name has no matching adapter."""

    def __init__(self, driver: Any):
        self.driver = driver
        super().__init__(ErrorMessages.UNKNOWN_DRIVER.format(driver=driver))


class MissingIdentity(RowAlchemyError, ValueError):
    """An UPDATE was attempted on an entity whose identity is unresolved."""

    def __init__(self, id_fields: Union[str, List[str]]):
        self.id_fields = id_fields
        rendered = " and ".join(id_fields) if isinstance(id_fields, list) else id_fields
        super().__init__(ErrorMessages.MISSING_IDENTITY.format(id_fields=rendered))


class DriverError(RowAlchemyError):
    """Raised by the bundled adapters when they cannot service a call."""
