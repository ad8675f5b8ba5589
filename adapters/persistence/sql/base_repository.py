import logging
from typing import Any, Callable, List, Optional, Type

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import make_transient
from sqlalchemy.orm.exc import StaleDataError

from adapters.persistence.sql.query_builder import ComposedQuery, compose_exists, compose_select
from adapters.persistence.sql.unit_of_work import SqlAlchemyUnitOfWork
from app.core.context import repository_call
from domain.exceptions import StoreOperationError, WriteConflictError
from domain.models.entity import has_key
from domain.models.order_spec import Paging
from domain.ports.repository import K, OrderBy, Repository, T

logger = logging.getLogger(__name__)


class SqlAlchemyRepository(Repository[T, K]):
    """
    Disconnected generic repository.

    Every call opens its own session from ``session_factory``, runs one
    statement (or one commit) and closes the session again. Entities
    returned by reads are detached snapshots.

    ``max_results`` / ``skip_results`` apply to the next read only and are
    reset to zero after every successful read. They are instance state, so
    one instance must not serve overlapping calls that rely on them; pass
    ``paging=`` per call instead when that matters.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession], model_cls: Type[T]):
        if not has_key(model_cls):
            raise TypeError(f"{model_cls!r} has no 'id' key field")
        self.session_factory = session_factory
        self.model_cls = model_cls
        self.max_results = 0
        self.skip_results = 0

    @property
    def entity_name(self) -> str:
        return self.model_cls.__name__

    async def add(self, entity: T) -> K:
        with repository_call(self.entity_name, "add"):
            async with self._scope() as uow:
                try:
                    if not inspect(entity).transient:
                        # Always a new row: a previously stored entity collides on its key
                        make_transient(entity)
                    uow.session.add(entity)
                    await uow.session.flush()
                    key = entity.id
                    await uow.commit()
                except SQLAlchemyError as e:
                    raise self._store_error("add", e) from e

            logger.debug(f"Added {self.entity_name} {key}")
        return key

    async def exists(self, predicate: Any) -> bool:
        with repository_call(self.entity_name, "exists"):
            stmt = compose_exists(self.model_cls, predicate)
            async with self._scope() as uow:
                found = await self._run("exists", uow.session.scalar(stmt))

        self._reset_paging()
        return bool(found)

    async def get_all(
        self,
        *includes: Any,
        projection: Any = None,
        order_by: OrderBy = None,
        paging: Optional[Paging] = None,
    ) -> List[Any]:
        return await self._select("get_all", None, includes, projection, order_by, paging)

    async def get_filtered(
        self,
        predicate: Any,
        *includes: Any,
        projection: Any = None,
        order_by: OrderBy = None,
        paging: Optional[Paging] = None,
    ) -> List[Any]:
        return await self._select("get_filtered", predicate, includes, projection, order_by, paging)

    async def get_single(self, predicate: Any, *includes: Any, projection: Any = None) -> Optional[Any]:
        with repository_call(self.entity_name, "get_single"):
            # No ordering or paging: first match in store order, or None
            query = compose_select(self.model_cls, predicate=predicate, includes=includes, projection=projection, take=1)
            items = await self._fetch("get_single", query)

        self._reset_paging()
        return items[0] if items else None

    async def update(self, *entities: T) -> None:
        await self._write("update", entities)

    async def remove(self, *entities: T) -> None:
        await self._write("remove", entities)

    async def _select(self, operation: str, predicate, includes, projection, order_by, paging) -> List[Any]:
        if paging is None:
            paging = Paging(skip=max(self.skip_results, 0), take=max(self.max_results, 0))

        with repository_call(self.entity_name, operation):
            query = compose_select(
                self.model_cls,
                predicate=predicate,
                includes=includes,
                projection=projection,
                order_by=order_by,
                skip=paging.skip,
                take=paging.take,
            )
            items = await self._fetch(operation, query)
            logger.debug(f"Fetched {len(items)} {self.entity_name} rows", extra={"rows": len(items)})

        self._reset_paging()
        return items

    async def _fetch(self, operation: str, query: ComposedQuery) -> List[Any]:
        async with self._scope() as uow:
            result = await self._run(operation, uow.session.execute(query.statement))
            if query.column_count > 1:
                items = list(result.all())
            else:
                items = list(result.scalars().all())
            # Non-tracking read: hand back detached snapshots
            uow.session.expunge_all()
        return items

    async def _write(self, operation: str, entities) -> None:
        if not entities:
            return

        with repository_call(self.entity_name, operation):
            async with self._scope() as uow:
                try:
                    for entity in entities:
                        attached = await self._attach(uow.session, entity, operation)
                        if operation == "remove":
                            await uow.session.delete(attached)
                    await uow.commit()
                except SQLAlchemyError as e:
                    raise self._store_error(operation, e) from e

            logger.debug(f"{operation} committed {len(entities)} {self.entity_name}", extra={"rows": len(entities)})

    async def _attach(self, session: AsyncSession, entity: T, operation: str) -> T:
        """
        Match a caller-held entity to its stored row inside ``session``.

        Detached entities (read earlier through a repository) and transient
        ones alike are merged by key, carrying their current attribute values
        onto the row loaded in this session. A key with no stored row is a
        write conflict: the row was removed since the entity was read, or
        never existed.
        """
        state = inspect(entity)
        if state.deleted or state.was_deleted:
            raise self._conflict(operation, entity, "entity was already deleted")

        merged = await session.merge(entity)
        if inspect(merged).pending:
            raise self._conflict(operation, entity, "no stored row")
        return merged

    def _scope(self) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self.session_factory)

    async def _run(self, operation: str, awaitable):
        try:
            return await awaitable
        except SQLAlchemyError as e:
            raise self._store_error(operation, e) from e

    def _conflict(self, operation: str, entity: T, reason: str) -> WriteConflictError:
        logger.warning(f"{operation} on {self.entity_name}: {reason} for id {entity.id!r}")
        return WriteConflictError(operation, f"{self.entity_name}(id={entity.id!r})")

    def _store_error(self, operation: str, error: SQLAlchemyError) -> StoreOperationError:
        error_cls = WriteConflictError if isinstance(error, StaleDataError) else StoreOperationError
        logger.warning(f"{operation} on {self.entity_name} failed: {error}")
        return error_cls(operation, self.entity_name, error)

    def _reset_paging(self) -> None:
        self.max_results = 0
        self.skip_results = 0
