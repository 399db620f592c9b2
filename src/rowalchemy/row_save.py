# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Cascading save of entity graphs.

Saving an entity runs in three phases:

1. Parents: every many-to-one relation is saved (concurrently) and its
   identity copied into the entity's foreign-key field.
2. Self: the entity is inserted or updated, but only if its scalar fields
   changed since the last write or the save is forced.
3. Children: every item of every one-to-many relation is scheduled as a
   child task.

Each instance runs at most one save at a time: a second caller attaches to
the in-flight task instead of writing again. The child tasks are not awaited
by the entity's own save (a child may need its parent's in-flight save to
finish first); the root caller collects them in a :class:`CascadeJoin` and
waits until the whole cascade has settled.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .constants import LoggingConstants, RelationKind
from .row_fields import relation_kind, relational_fields, resolve_relation, scalar_fields
from .row_model import Row
from .row_statements import build_insert, build_update

logger = logging.getLogger(__name__)

ChildTasks = Tuple["asyncio.Future[Any]", ...]

# Wait-for graph of running saves: entity id -> ids of the parents whose saves it awaits.
# Shared by every cascade so waits that cross siblings or roots are seen too.
_parent_waits: Dict[int, List[int]] = {}


def closes_wait_cycle(entity: Row, parent: Row) -> bool:
    """Return True if ``parent``'s save already waits, directly or not, on ``entity``'s."""
    target = id(entity)
    stack = [id(parent)]
    seen: Set[int] = set()
    while stack:
        current = stack.pop()
        if current == target:
            return True
        if current not in seen:
            seen.add(current)
            stack.extend(_parent_waits.get(current, ()))
    return False


class CascadeJoin:
    """
    Join set owned by one root ``save`` call.

    Remembers the save task of every entity reached during the cascade, so an
    entity reachable through several edges (or a cycle) is saved once, and
    collects the child tasks those saves schedule until none is left.
    """

    def __init__(self, root: Row):
        self.root = root
        self._visited: Dict[int, Tuple[Row, "asyncio.Future[ChildTasks]"]] = {}
        self._seen: Set["asyncio.Future[Any]"] = set()
        self._pending: Set["asyncio.Future[Any]"] = set()

    def handle_for(self, entity: Row) -> Optional["asyncio.Future[ChildTasks]"]:
        visited = self._visited.get(id(entity))
        return visited[1] if visited is not None else None

    def remember(self, entity: Row, handle: "asyncio.Future[ChildTasks]") -> None:
        self._visited[id(entity)] = (entity, handle)

    def adopt(self, tasks: Iterable["asyncio.Future[Any]"]) -> None:
        for task in tasks:
            if task not in self._seen:
                self._seen.add(task)
                self._pending.add(task)

    async def wait(self) -> None:
        """
        Wait until every adopted task, and every task they schedule, has settled.

        A failing task does not stop its siblings; once all have settled the
        first failure is raised and the others are logged.

        Raises:
            BaseException: The first failure among the cascade's tasks
        """
        errors: List[BaseException] = []
        while self._pending:
            done, self._pending = await asyncio.wait(self._pending)
            for task in done:
                if task.cancelled():
                    errors.append(asyncio.CancelledError())
                    continue
                error = task.exception()
                if error is not None:
                    errors.append(error)
                else:
                    self.adopt(task.result())
        raise_first(self.root, errors)


def raise_first(entity: Row, outcomes: Iterable[Any]) -> None:
    """Raise the first exception among ``outcomes``, logging the rest."""
    errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
    if not errors:
        return
    for extra in errors[1:]:
        logger.warning(LoggingConstants.CASCADE_ERROR, entity, extra)
    raise errors[0]


async def save_entity(entity: Row, force: bool = False) -> None:
    """
    Save ``entity`` and wait for its whole cascade.

    Args:
        entity: Entity to save
        force: Write ``entity`` even if unchanged; related entities are still
            written only when changed

    Raises:
        UnconfiguredDatabase: If the entity's database has no configuration
        MissingIdentity: If an UPDATE is needed but an identity is unset
    """
    entity.__row_database__.ensure_configured()
    join = CascadeJoin(entity)
    join.adopt(await save_once(entity, force, join))
    await join.wait()


async def save_once(entity: Row, force: bool, join: CascadeJoin) -> ChildTasks:
    """
    Run, or attach to, the save of one instance.

    Returns:
        The child tasks scheduled by that save
    """
    # @@ STEP 1: Deduplication gate
    # || S.1: Within one cascade an entity is saved once, whatever the number of edges
    # || S.2: Across cascades, attach to the save already running for this instance
    handle = join.handle_for(entity)
    if handle is None:
        handle = entity._in_flight_save
        if handle is None:
            handle = asyncio.ensure_future(_run_save(entity, force, join))
            entity._in_flight_save = handle
        join.remember(entity, handle)

    # Shielded: a cancelled caller must not abort a save other callers share.
    return await asyncio.shield(handle)


async def _run_save(entity: Row, force: bool, join: CascadeJoin) -> ChildTasks:
    try:
        scheduled: List["asyncio.Future[Any]"] = []
        scheduled.extend(await _save_parents(entity, join))

        if force or entity.changed():
            await _write(entity)
        else:
            logger.debug(LoggingConstants.SKIP_UNCHANGED, entity)

        scheduled.extend(_schedule_children(entity, join))
        return tuple(scheduled)
    finally:
        if entity._in_flight_save is asyncio.current_task():
            entity._in_flight_save = None


async def _save_parents(entity: Row, join: CascadeJoin) -> List["asyncio.Future[Any]"]:
    parents: List[Tuple[str, Row]] = []
    for field in relational_fields(entity):
        value = resolve_relation(entity, field)
        if relation_kind(value) is RelationKind.MANY_TO_ONE:
            parents.append((field, value))
    if not parents:
        return []

    outcomes = await asyncio.gather(
        *(_save_parent(entity, field, parent, join) for field, parent in parents),
        return_exceptions=True,
    )

    raise_first(entity, outcomes)
    return [task for children in outcomes for task in children]


async def _save_parent(entity: Row, field: str, parent: Row, join: CascadeJoin) -> ChildTasks:
    children: ChildTasks = ()
    if closes_wait_cycle(entity, parent):
        # The parent is itself waiting for this entity: a many-to-one cycle.
        # Its identity cannot be known before this entity is written.
        logger.debug("Not waiting on %s while it waits on %s", parent, entity)
    else:
        waits = _parent_waits.setdefault(id(entity), [])
        waits.append(id(parent))
        try:
            children = await save_once(parent, False, join)
        finally:
            waits.remove(id(parent))
            if not waits:
                del _parent_waits[id(entity)]

    if not parent.__row_model__.compound_key:
        setattr(entity, entity.__row_model__.foreign_key(field), parent.identity())
    return children


async def _write(entity: Row) -> None:
    """INSERT a new entity or UPDATE a saved one, then record it as clean."""
    database = entity.__row_database__
    driver = await database.ensure_connected()
    definition = entity.__row_model__
    fields = scalar_fields(entity)

    if not entity.saved():
        statement = build_insert(entity, fields, driver)
        inserted_id = await database.execute(statement.sql, statement.params, statement.options)
        entity.mark_saved()
        if not definition.compound_key:
            setattr(entity, definition.id, inserted_id)
    else:
        statement = build_update(entity, fields)
        if statement is not None:
            await database.execute(statement.sql, statement.params, statement.options)

    entity.mark_clean()


def _schedule_children(entity: Row, join: CascadeJoin) -> List["asyncio.Future[Any]"]:
    loop = asyncio.get_running_loop()

    tasks: List["asyncio.Future[Any]"] = []
    for field in relational_fields(entity):
        items = resolve_relation(entity, field)
        if relation_kind(items) is not RelationKind.ONE_TO_MANY:
            continue
        for item in items:
            if isinstance(item, Row):
                task = loop.create_task(save_once(item, False, join))
                task.add_done_callback(_observe)
                tasks.append(task)
    return tasks


def _observe(task: "asyncio.Future[Any]") -> None:
    # Marks the outcome as retrieved; the cascade join re-raises it.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Cascade task failed: %r", task.exception())
