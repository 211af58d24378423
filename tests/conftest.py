import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, insert, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import arena.models  # noqa: F401
from arena.database import Base, get_db
from arena.main import app
from arena.models.competition import Competition
from arena.models.user import User
from arena.realtime import change_feed
from arena.routers.auth import get_current_user

# In-memory database shared by every connection of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(name="engine")
async def engine_fixture():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(name="db")
async def db_fixture(engine):
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(name="client")
async def client_fixture(db: AsyncSession):
    async def get_db_override():
        yield db

    app.dependency_overrides[get_db] = get_db_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="login")
def login_fixture(db: AsyncSession):
    """Make every following request act as ``user``."""
    def _login(user: User):
        user_id = inspect(user).identity[0]

        async def current_user_override():
            # Re-select so a rollback in an earlier request does not leave it expired
            result = await db.execute(select(User).where(User.id == user_id))
            return result.scalar_one()

        app.dependency_overrides[get_current_user] = current_user_override
    return _login


@pytest.fixture(name="make_user")
def make_user_fixture(db: AsyncSession):
    async def _make_user(email: str, full_name: str = None) -> User:
        user = User(email=email, full_name=full_name or email.split("@")[0].title())
        db.add(user)
        await db.commit()
        return user
    return _make_user


@pytest.fixture(name="make_competition")
def make_competition_fixture(db: AsyncSession):
    async def _make_competition(organizer: User, title: str = "Spring Hack") -> Competition:
        competition = Competition(title=title, organizer_id=organizer.id)
        db.add(competition)
        await db.commit()
        return competition
    return _make_competition


@pytest.fixture(name="events")
def events_fixture():
    """Capture every change-feed event published during the test."""
    captured = []
    subs = [
        change_feed.subscribe(table, captured.append)
        for table in ("team_invitations", "team_join_requests", "notifications")
    ]
    yield captured
    for sub in subs:
        change_feed.unsubscribe(sub)


@pytest.fixture(name="race_insert")
def race_insert_fixture(db: AsyncSession):
    """
    Simulate a concurrent writer: right before the next flush that adds a
    ``model`` instance, insert a row with the same ``keys`` so the flush hits
    the unique constraint.
    """
    listeners = []

    def _race(model, keys, **extra):
        fired = []

        def before_flush(session, flush_context, instances):
            pending = [obj for obj in session.new if isinstance(obj, model)]
            if fired or not pending:
                return
            fired.append(True)
            values = {key: getattr(pending[0], key) for key in keys}
            session.connection().execute(insert(model).values(**values, **extra))

        event.listen(db.sync_session, "before_flush", before_flush)
        listeners.append(before_flush)
        return fired

    yield _race
    for listener in listeners:
        event.remove(db.sync_session, "before_flush", listener)
