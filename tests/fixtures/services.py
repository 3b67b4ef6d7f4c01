# ------------------------------------------------------------------------------
# Fully wired service against an in-memory database and stubbed collaborators
# ------------------------------------------------------------------------------
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from unittest.mock import patch

import httpx
from httpx import MockTransport
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sharegate.api.core.container import Container
from sharegate.config import Settings
from sharegate.infrastructure.catalog.http_catalog import HttpCatalogClient
from sharegate.infrastructure.db.connection import build_session_factory, init_db
from sharegate.infrastructure.events.http_publisher import HttpEventPublisher
from sharegate.infrastructure.grants.http_grant_api import HttpAuthorizationApi

from tests.fixtures.catalog_stub import CatalogStub
from tests.fixtures.event_channel_stub import EventChannelStub
from tests.fixtures.grant_service_stub import GrantServiceStub

OWNER = "111111111111"
TARGET = "222222222222"
OTHER_OWNER = "333333333333"


def in_memory_engine() -> Engine:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return engine


@dataclass
class Services:
    engine: Engine
    session_factory: sessionmaker
    container: Container
    catalog: CatalogStub = field(default_factory=CatalogStub)
    grants: GrantServiceStub = field(default_factory=GrantServiceStub)
    events: EventChannelStub = field(default_factory=EventChannelStub)

    @property
    def orchestrator(self):
        return self.container.orchestrator

    @property
    def approvals(self):
        return self.container.approvals

    @property
    def ledger(self):
        return self.container.ledger

    @property
    def share_index(self):
        return self.container.share_index


def build_services(engine: Engine | None = None) -> Services:
    engine = engine or in_memory_engine()
    session_factory = build_session_factory(engine)

    catalog = CatalogStub()
    grants = GrantServiceStub()
    events = EventChannelStub()

    container = Container(
        config=Settings(),
        session_factory=session_factory,
        catalog=HttpCatalogClient(
            "http://catalog",
            client=httpx.AsyncClient(transport=MockTransport(catalog.handler)),
        ),
        authorization_api=HttpAuthorizationApi(
            "http://authz",
            client=httpx.AsyncClient(transport=MockTransport(grants.handler)),
        ),
        events=HttpEventPublisher(
            "http://events",
            client=httpx.AsyncClient(transport=MockTransport(events.handler)),
        ),
    )
    return Services(
        engine=engine,
        session_factory=session_factory,
        container=container,
        catalog=catalog,
        grants=grants,
        events=events,
    )


def sequential_request_ids(start: int = 1_700_000_000_000):
    """Patch request id minting so requests raised within one millisecond stay distinct."""
    counter = itertools.count(start)
    return patch(
        "sharegate.runtime.orchestrator.new_request_id",
        side_effect=lambda now=None: f"PENDING#{next(counter)}",
    )
