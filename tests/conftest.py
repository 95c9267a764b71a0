
import pytest
from sqlalchemy import event

from db import Database
from tests.factories import ALL_FACTORIES


@pytest.fixture
def database():
    """Fresh in-memory SQLite database with every table created."""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def factories(database):
    """Bind the model factories to a session on the test database."""
    session = database.session()
    for f in ALL_FACTORIES:
        f._meta.sqlalchemy_session = session
    yield session
    for f in ALL_FACTORIES:
        f._meta.sqlalchemy_session = None
    session.close()


@pytest.fixture
def statements(database):
    """List that collects every SQL statement sent to the database."""
    seen = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement)

    event.listen(database.engine, "before_cursor_execute", _record)
    yield seen
    event.remove(database.engine, "before_cursor_execute", _record)
