# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Model definitions and the entity base class.

``Database.model(...)`` generates one :class:`Row` subclass per model. Each
instance keeps its column values and relations as ordinary attributes, while
the transient save state (saved flag, fingerprint, in-flight save) lives in
slots so it never shows up as a field.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import ErrorMessages, ModelMetadataConstants
from .exceptions import MissingIdentity
from .row_fields import scalar_fields

if TYPE_CHECKING:
    import asyncio

    from .row_session import Database

logger = logging.getLogger(__name__)

RowType = TypeVar("RowType", bound="Row")


class ModelDefinition(BaseModel):
    """
    Declaration of one model: table name, identity and foreign-key naming.

    :class: ModelDefinition
    :synopsis: Validated, immutable per-model metadata
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    table: str = Field(min_length=1)
    id: Union[str, List[str]] = ModelMetadataConstants.DEFAULT_ID_FIELD
    foreign_key_for: Optional[Callable[[str], str]] = None
    id_type: Any = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: Union[str, List[str]]) -> Union[str, List[str]]:
        if isinstance(value, list):
            if not value or not all(isinstance(name, str) and name for name in value):
                raise ValueError(ErrorMessages.INVALID_ID_FIELDS)
        elif not value:
            raise ValueError(ErrorMessages.INVALID_ID_FIELDS)
        return value

    @property
    def compound_key(self) -> bool:
        return isinstance(self.id, list)

    @property
    def id_fields(self) -> List[str]:
        """Identity field names in declared order."""
        return list(self.id) if isinstance(self.id, list) else [self.id]

    def foreign_key(self, field: str) -> str:
        """Column receiving the identity of the entity held in ``field``."""
        if self.foreign_key_for is not None:
            return self.foreign_key_for(field)
        return field + ModelMetadataConstants.FOREIGN_KEY_SUFFIX


class Row:
    """
    Base class for entities.

    Implements the persistence capabilities every generated model shares:
    ``save``, ``changed``, ``identity`` and ``saved``.
    """

    __slots__ = ("__dict__", "_saved_flag", "_fingerprint", "_in_flight_save")

    __row_model__: ClassVar[ModelDefinition]
    __row_database__: ClassVar["Database"]

    def __init__(self, fields: Optional[Mapping[str, Any]] = None, /, **values: Any):
        self._saved_flag: bool = False
        self._fingerprint: Optional[str] = None
        self._in_flight_save: Optional["asyncio.Task[Any]"] = None
        if fields:
            self.__dict__.update(fields)
        self.__dict__.update(values)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls: Type[RowType],
        fields: Optional[Mapping[str, Any]] = None,
        *,
        saved: bool = False,
        modified: bool = False,
    ) -> RowType:
        """
        Build an entity, optionally flagged as already persisted.

        Args:
            fields: Initial field values
            saved: The values come from the database; later saves UPDATE
            modified: With ``saved``, leave the entity dirty so the next save
                writes it even if nothing changes in between

        Returns:
            New entity instance
        """
        row = cls(fields)
        if saved:
            row.mark_saved()
            if not modified:
                row.mark_clean()
        return row

    @classmethod
    def hydrate(cls: Type[RowType], fields: Mapping[str, Any], modified: bool = False) -> RowType:
        """Build an entity from a database row."""
        return cls.create(fields, saved=True, modified=modified)

    @classmethod
    async def query(
        cls: Type[RowType], sql: str, params: Optional[Dict[str, Any]] = None
    ) -> List[RowType]:
        """
        Run a raw query and map each returned row to a saved, clean entity.

        Args:
            sql: Statement text with ``@name`` placeholders
            params: Named parameters

        Returns:
            List of entities of this model
        """
        rows = await cls.__row_database__.query(sql, params)
        return [cls.hydrate(row) for row in rows]

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def identity(self) -> Any:
        """
        Return the primary-key value.

        Single-key models return the field value (``None`` when unset);
        compound-key models return the list of key values in declared order.
        """
        definition = self.__row_model__
        values = vars(self)
        if definition.compound_key:
            return [values.get(name) for name in definition.id_fields]
        return values.get(definition.id)

    def require_identity(self) -> Any:
        """Like :meth:`identity`, but raise :class:`MissingIdentity` if any key is unset."""
        identity = self.identity()
        parts = identity if self.__row_model__.compound_key else [identity]
        if any(part is None for part in parts):
            raise MissingIdentity(self.__row_model__.id)
        return identity

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------

    def fingerprint(self) -> str:
        """Digest of the current scalar field values."""
        values = vars(self)
        pairs = [[name, values[name]] for name in scalar_fields(self)]
        payload = json.dumps(pairs, default=str)
        return hashlib.md5(payload.encode(), usedforsecurity=False).hexdigest()

    def changed(self) -> bool:
        return self._fingerprint is None or self._fingerprint != self.fingerprint()

    def mark_clean(self) -> str:
        """Record the current scalar values as the persisted snapshot."""
        self._fingerprint = self.fingerprint()
        return self._fingerprint

    def saved(self) -> bool:
        return self._saved_flag

    def mark_saved(self) -> None:
        self._saved_flag = True

    @property
    def saving(self) -> bool:
        """True while a save of this instance is running."""
        return self._in_flight_save is not None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def save(self, force: bool = False) -> None:
        """
        Save this entity and cascade to its related entities.

        Many-to-one relations are saved first and their identities copied into
        foreign-key fields; the entity is written only if its scalar fields
        changed since the last write (or ``force`` is set); one-to-many
        relations are saved afterwards. Returns once the whole cascade has
        settled.

        Args:
            force: Write this entity even if it is unchanged
        """
        from .row_save import save_entity

        await save_entity(self, force=force)

    def __repr__(self) -> str:
        state = "saved" if self._saved_flag else "new"
        fields = ", ".join(f"{name}={vars(self)[name]!r}" for name in scalar_fields(self))
        return f"<{type(self).__name__}({fields}) {state}>"


def define_model(database: "Database", definition: ModelDefinition, attrs: Dict[str, Any]) -> Type[Row]:
    """
    Generate the entity class for a model definition.

    ``attrs`` become class attributes (helper methods, constants), not fields.
    """
    class_name = "".join(part.capitalize() for part in definition.table.replace(".", "_").split("_") if part)
    namespace: Dict[str, Any] = dict(attrs)
    namespace[ModelMetadataConstants.MODEL_DEFINITION_ATTR] = definition
    namespace[ModelMetadataConstants.DATABASE_ATTR] = database
    logger.debug("Defining model %s for table %s", class_name, definition.table)
    return type(class_name or "Row", (Row,), namespace)
