# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Constants module for RowAlchemy.

This module centralizes the constants, configuration defaults, and literal strings
used throughout the RowAlchemy codebase. No magic values are allowed elsewhere.

:module: constants
:synopsis: Centralized constants and configuration for RowAlchemy
:author: RowAlchemy Contributors
"""

from __future__ import annotations

from enum import Enum, StrEnum
from typing import Final


# ============================================================================
# RELATIONSHIP KINDS
# ============================================================================

class RelationKind(Enum):
    """
    Shape of a relational field, decided by its resolved value.

    :class: RelationKind
    :synopsis: Enumeration of cascade directions
    """

    MANY_TO_ONE = "MANY_ONE"  # single related entity, saved before the owner
    ONE_TO_MANY = "ONE_MANY"  # list of related entities, saved after the owner


# ============================================================================
# DRIVERS
# ============================================================================

class DriverName(StrEnum):
    """Identifiers accepted by the driver factory."""

    SQLITE = "sqlite"
    POSTGRES = "pg"


# ============================================================================
# SQL STATEMENT CONSTANTS
# ============================================================================

class StatementConstants:
    """SQL fragments used by the statement builder."""

    # @@ STEP 1: Define statement keywords
    INSERT_INTO: Final[str] = "INSERT INTO"
    VALUES: Final[str] = "VALUES"
    DEFAULT_VALUES: Final[str] = "DEFAULT VALUES"
    UPDATE: Final[str] = "UPDATE"
    SET: Final[str] = "SET"
    WHERE: Final[str] = "WHERE"
    AND: Final[str] = "AND"
    RETURNING: Final[str] = "RETURNING"

    # @@ STEP 2: Define formatting constants
    PARAM_PREFIX: Final[str] = "@"
    FIELD_SEPARATOR: Final[str] = ", "
    ASSIGNMENT: Final[str] = " = "


# ============================================================================
# MODEL METADATA CONSTANTS
# ============================================================================

class ModelMetadataConstants:
    """Names and defaults for model definitions and entity fields."""

    DEFAULT_ID_FIELD: Final[str] = "id"
    FOREIGN_KEY_SUFFIX: Final[str] = "_id"
    RESERVED_PREFIX: Final[str] = "_"
    MODEL_DEFINITION_ATTR: Final[str] = "__row_model__"
    DATABASE_ATTR: Final[str] = "__row_database__"


# ============================================================================
# DATABASE CONSTANTS
# ============================================================================

class DatabaseConstants:
    """Defaults for database sessions and bundled drivers."""

    SQLITE_MEMORY: Final[str] = ":memory:"
    SQLITE_FILENAME_KEY: Final[str] = "filename"
    POSTGRES_URL_KEY: Final[str] = "url"


# ============================================================================
# LOGGING CONSTANTS
# ============================================================================

class LoggingConstants:
    """Logger names and message templates."""

    QUERY_LOGGER: Final[str] = "rowalchemy.query"
    RESULTS_LOGGER: Final[str] = "rowalchemy.results"

    QUERY_WITH_PARAMS: Final[str] = "%s %r"
    QUERY_ERROR: Final[str] = "%s %r failed: %r"
    INSERTED_ID: Final[str] = "id = %r"
    RESULTS: Final[str] = "%r"
    CASCADE_ERROR: Final[str] = "Additional failure while saving %s: %r"
    SETUP_SESSION: Final[str] = "Running session setup for driver %s"
    SKIP_UNCHANGED: Final[str] = "Skipping write of unchanged %s"


# ============================================================================
# ERROR MESSAGES
# ============================================================================

class ErrorMessages:
    """Error message templates."""

    # @@ STEP 1: Configuration errors
    UNCONFIGURED_DATABASE: Final[str] = (
        "rowalchemy has not been configured to a database, "
        "use db.connect(config) or Database(config)"
    )
    UNKNOWN_DRIVER: Final[str] = "no such driver: `{driver}'"

    # @@ STEP 2: Entity errors
    MISSING_IDENTITY: Final[str] = "entity must have {id_fields} to be updated"
    INVALID_ID_FIELDS: Final[str] = "Model identity must be a field name or a non-empty list of field names"

    # @@ STEP 3: Driver errors
    DRIVER_NOT_CONNECTED: Final[str] = "Driver {driver} is not connected"
