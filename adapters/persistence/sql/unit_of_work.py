import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.ports.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    One short-lived session per repository call.

    Opens a session from the factory on enter. On exit the session is
    rolled back if an exception escaped and closed in every case. Nothing
    is committed implicitly; writers call ``commit()`` themselves.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self):
        self.session = self.session_factory()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        try:
            if exc_type:
                await self.rollback()
        finally:
            await self.close()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            # original exception still propagates from __aexit__
            logger.warning(f"Rollback failed after error: {e}")

    async def close(self):
        if self.session is not None:
            await self.session.close()
            self.session = None
