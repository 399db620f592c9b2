# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
RowAlchemy: save graphs of related entities to SQL databases without a query language.
"""

from __future__ import annotations

from .config import DatabaseConfig
from .constants import DriverName, RelationKind
from .drivers import Driver, QueryOptions, create_driver
from .exceptions import (
    DriverError,
    MissingIdentity,
    RowAlchemyError,
    UnconfiguredDatabase,
    UnknownDriver,
)
from .row_fields import Lazy, relational_fields, scalar_fields
from .row_model import ModelDefinition, Row
from .row_session import Database

__version__ = "0.1.0"


def db(config=None) -> Database:
    """Create a database session, optionally configured right away."""
    return Database(config)


__all__ = [
    "Database",
    "DatabaseConfig",
    "Driver",
    "DriverError",
    "DriverName",
    "Lazy",
    "MissingIdentity",
    "ModelDefinition",
    "QueryOptions",
    "RelationKind",
    "Row",
    "RowAlchemyError",
    "UnconfiguredDatabase",
    "UnknownDriver",
    "create_driver",
    "db",
    "relational_fields",
    "scalar_fields",
]
