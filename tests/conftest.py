import pytest

from sharegate.infrastructure.db.connection import build_session_factory
from sharegate.infrastructure.ledger import LedgerStore

from tests.fixtures.services import build_services, in_memory_engine, sequential_request_ids


@pytest.fixture
def engine():
    engine = in_memory_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> LedgerStore:
    return LedgerStore(build_session_factory(engine))


@pytest.fixture
def services(engine):
    with sequential_request_ids():
        yield build_services(engine)
