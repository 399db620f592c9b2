# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Field classification for entity instances.

An entity's own attributes are split into scalar fields, which are written as
column values, and relational fields, which hold related entities and are
cascaded by the save orchestrator instead of being stored.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import uuid
from typing import TYPE_CHECKING, Any, Callable, Generic, List, Optional, Tuple, TypeVar

from .constants import ModelMetadataConstants, RelationKind

if TYPE_CHECKING:
    from .row_model import Row

T = TypeVar("T")

# Values persisted directly as column values.
SCALAR_TYPES: Tuple[type, ...] = (
    str,
    bytes,
    int,
    float,
    bool,
    decimal.Decimal,
    uuid.UUID,
    enum.Enum,
    datetime.date,
    datetime.time,
    datetime.timedelta,
)


class Lazy(Generic[T]):
    """
    Once-computed relation cell.

    Starts unresolved, holding a zero-argument thunk. The first call to
    :meth:`resolve` evaluates the thunk and keeps the value; the thunk is
    dropped and never called again.
    """

    __slots__ = ("_thunk", "_value", "_resolved")

    def __init__(self, thunk: Callable[[], T]):
        if not callable(thunk):
            raise TypeError(f"Lazy expects a zero-argument callable, got {type(thunk).__name__}")
        self._thunk: Optional[Callable[[], T]] = thunk
        self._value: Optional[T] = None
        self._resolved = False

    @property
    def resolved(self) -> bool:
        return self._resolved

    def resolve(self) -> T:
        if not self._resolved:
            thunk = self._thunk
            self._value = thunk()  # type: ignore[misc]
            self._thunk = None
            self._resolved = True
        return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        if self._resolved:
            return f"<Lazy resolved={self._value!r}>"
        return "<Lazy unresolved>"


def is_scalar(value: Any) -> bool:
    """Return True if ``value`` is persisted as a column value."""
    return value is not None and isinstance(value, SCALAR_TYPES)


def is_reserved(name: str, id_field: Any) -> bool:
    """
    Check whether ``name`` is an internal attribute name.

    Names starting with an underscore are reserved, except the model's single
    identity field, which keeps its name whatever it looks like.
    """
    if not name.startswith(ModelMetadataConstants.RESERVED_PREFIX):
        return False
    return not (isinstance(id_field, str) and name == id_field)


def own_fields(entity: "Row") -> List[Tuple[str, Any]]:
    """Return the entity's own (name, value) pairs in insertion order."""
    return list(vars(entity).items())


def scalar_fields(entity: "Row") -> List[str]:
    """
    Return the names of the entity's scalar fields.

    :param entity: Entity instance to inspect
    :returns: Field names in attribute insertion order
    """
    return [name for name, value in own_fields(entity) if is_scalar(value)]


def relational_fields(entity: "Row") -> List[str]:
    """
    Return the names of the entity's relational fields.

    A relational field holds any non-``None`` value that is not a scalar: a
    related entity, a list of related entities, or a lazy relation.

    :param entity: Entity instance to inspect
    :returns: Field names in attribute insertion order
    """
    id_field = entity.__row_model__.id
    return [
        name
        for name, value in own_fields(entity)
        if value is not None and not is_scalar(value) and not is_reserved(name, id_field)
    ]


def resolve_relation(entity: "Row", field: str) -> Any:
    """
    Return the value of a relational field, evaluating lazy relations.

    A :class:`Lazy` cell or a bare zero-argument callable is evaluated once and
    the result replaces the field on the entity, so later reads see the value.
    """
    value = vars(entity).get(field)
    if isinstance(value, Lazy):
        value = value.resolve()
        setattr(entity, field, value)
    elif callable(value) and not _is_entity(value):
        value = value()
        setattr(entity, field, value)
    return value


def relation_kind(value: Any) -> Optional[RelationKind]:
    """
    Decide the cascade direction of a resolved relational value.

    Returns ``None`` for values that are neither an entity nor a list, which
    are left alone by the orchestrator.
    """
    if isinstance(value, (list, tuple)):
        return RelationKind.ONE_TO_MANY
    if _is_entity(value):
        return RelationKind.MANY_TO_ONE
    return None


def _is_entity(value: Any) -> bool:
    from .row_model import Row

    return isinstance(value, Row)
