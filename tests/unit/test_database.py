import pytest
import pytest_asyncio
from sqlalchemy import text

from adapters.persistence.sql.base_repository import SqlAlchemyRepository
from app.core import database
from tests.models import Widget


@pytest_asyncio.fixture
async def fresh_database():
    await database.dispose_engine()
    yield database
    await database.dispose_engine()


@pytest.mark.asyncio
async def test_engine_and_factory_are_built_once(fresh_database):
    engine = fresh_database.get_engine()
    factory = fresh_database.get_session_factory()

    assert fresh_database.get_engine() is engine
    assert fresh_database.get_session_factory() is factory
    assert engine.url.drivername == "sqlite+aiosqlite"


@pytest.mark.asyncio
async def test_sessions_from_default_factory_keep_objects_after_commit(fresh_database):
    factory = fresh_database.get_session_factory()

    async with factory() as session:
        assert (await session.execute(text("SELECT 1"))).scalar() == 1
        assert session.sync_session.expire_on_commit is False


@pytest.mark.asyncio
async def test_build_repository_uses_default_factory(fresh_database):
    repo = fresh_database.build_repository(Widget)

    assert isinstance(repo, SqlAlchemyRepository)
    assert repo.model_cls is Widget
    assert repo.session_factory is fresh_database.get_session_factory()


@pytest.mark.asyncio
async def test_dispose_resets_engine(fresh_database):
    engine = fresh_database.get_engine()

    await fresh_database.dispose_engine()

    assert fresh_database.get_engine() is not engine
