# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
INSERT/UPDATE statement generation from an entity's scalar fields.

Statements use ``@name`` placeholders; drivers translate them to their own
parameter style.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .constants import StatementConstants as SQL
from .drivers.base import QueryOptions

if TYPE_CHECKING:
    from .drivers.base import Driver
    from .row_model import Row


@dataclass(frozen=True)
class Statement:
    """SQL text, its named parameters and the dispatch options."""

    sql: str
    params: Dict[str, Any] = field(default_factory=dict)
    options: QueryOptions = field(default_factory=QueryOptions)


def _placeholder(name: str) -> str:
    return SQL.PARAM_PREFIX + name


def _assignments(names: List[str]) -> List[str]:
    return [name + SQL.ASSIGNMENT + _placeholder(name) for name in names]


def build_insert(entity: "Row", fields: List[str], driver: "Driver") -> Statement:
    """
    Build the INSERT for a new entity.

    Args:
        entity: Entity being inserted
        fields: Its scalar field names
        driver: Active driver, consulted for the empty-row and generated-id hooks

    Returns:
        Statement with one placeholder per scalar field
    """
    definition = entity.__row_model__
    values = vars(entity)

    # @@ STEP 1: Choose the statement text
    # || S.1: No columns means the driver's own zero-column form, or DEFAULT VALUES
    if fields:
        columns = SQL.FIELD_SEPARATOR.join(fields)
        placeholders = SQL.FIELD_SEPARATOR.join(_placeholder(name) for name in fields)
        sql = f"{SQL.INSERT_INTO} {definition.table} ({columns}) {SQL.VALUES} ({placeholders})"
    else:
        sql = driver.insert_empty(definition.table, definition.id) or (
            f"{SQL.INSERT_INTO} {definition.table} {SQL.DEFAULT_VALUES}"
        )

    # @@ STEP 2: Bind parameters
    # || S.2: Single-key models may need driver output parameters to read the new id
    params = {name: values[name] for name in fields}
    if not definition.compound_key:
        params.update(driver.output_id_keys(definition.id_type))

    options = QueryOptions(
        insert=not definition.compound_key,
        statement=definition.compound_key,
        id=definition.id,
    )
    return Statement(sql=sql, params=params, options=options)


def build_update(entity: "Row", fields: List[str]) -> Optional[Statement]:
    """
    Build the UPDATE for a persisted entity.

    Identity fields are matched in the WHERE clause and never assigned.
    Returns ``None`` when the entity has no other scalar field to assign.

    Raises:
        MissingIdentity: If any identity field is unset
    """
    definition = entity.__row_model__
    entity.require_identity()

    id_fields = definition.id_fields
    assigned = [name for name in fields if name not in id_fields]
    if not assigned:
        return None

    values = vars(entity)
    where = f" {SQL.AND} ".join(_assignments(id_fields))
    sql = (
        f"{SQL.UPDATE} {definition.table} {SQL.SET} "
        f"{SQL.FIELD_SEPARATOR.join(_assignments(assigned))} {SQL.WHERE} {where}"
    )
    params = {name: values[name] for name in assigned + id_fields}
    return Statement(sql=sql, params=params, options=QueryOptions(statement=True))
