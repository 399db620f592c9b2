# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Driver contract implemented once per SQL dialect.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

if TYPE_CHECKING:
    from ..config import DatabaseConfig


@dataclass(frozen=True)
class QueryOptions:
    """
    How a statement is dispatched and logged.

    Attributes:
        insert: Run through :meth:`Driver.insert` and return the generated identity
        statement: The statement returns no rows worth logging (UPDATE, DDL, compound INSERT)
        id: Identity field(s) of the model being written
    """

    insert: bool = False
    statement: bool = False
    id: Optional[Union[str, List[str]]] = None


class Driver(ABC):
    """Uniform interface the database session dispatches through."""

    name: str = "driver"

    @abstractmethod
    async def connect(self, config: "DatabaseConfig") -> None:
        """Establish connectivity using the session configuration."""

    @abstractmethod
    async def query(self, sql: str, params: Dict[str, Any], options: QueryOptions) -> List[Dict[str, Any]]:
        """Execute a statement and return its rows (empty for UPDATE/DDL)."""

    @abstractmethod
    async def insert(self, sql: str, params: Dict[str, Any], options: QueryOptions) -> Any:
        """Execute an INSERT and return the generated identity value."""

    def insert_empty(self, table: str, id_field: Union[str, List[str]]) -> Optional[str]:
        """Dialect-specific zero-column INSERT, or ``None`` for ``DEFAULT VALUES``."""
        return None

    def output_id_keys(self, id_type: Any) -> Dict[str, Any]:
        """Extra parameters needed to read back a generated identity."""
        return {}

    @abstractmethod
    async def close(self) -> None:
        """Release the connection."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__}({self.name})>"
