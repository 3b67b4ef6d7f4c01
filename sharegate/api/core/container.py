# --------------------------------
# DI container
# --------------------------------
from functools import lru_cache

from sqlalchemy.orm import sessionmaker

from sharegate.config import Settings, settings
from sharegate.domain.approval.repository import ApprovalLedgerRepository
from sharegate.domain.classification import CatalogClient, ClassificationOracle
from sharegate.domain.grants import AuthorizationApi, GrantServiceClient
from sharegate.domain.share_mapping import ShareMappingIndex
from sharegate.infrastructure.catalog.http_catalog import HttpCatalogClient
from sharegate.infrastructure.db.connection import SessionLocal
from sharegate.infrastructure.events.http_publisher import EventPublisher, HttpEventPublisher
from sharegate.infrastructure.grants.http_grant_api import HttpAuthorizationApi
from sharegate.infrastructure.ledger import LedgerStore
from sharegate.runtime.approvals import ApprovalProcessor
from sharegate.runtime.continuations import ContinuationRegistry
from sharegate.runtime.instances import WorkflowInstanceRepository
from sharegate.runtime.orchestrator import Orchestrator


class Container:
    """Wires the ledger, the workflow runtime and the external service adapters.

    Every collaborator can be swapped by keyword, which is how tests plug in
    stub transports and an in-memory database.
    """

    def __init__(
        self,
        *,
        config: Settings = settings,
        session_factory: sessionmaker = SessionLocal,
        catalog: CatalogClient | None = None,
        authorization_api: AuthorizationApi | None = None,
        events: EventPublisher | None = None,
    ):
        self._settings = config
        self._store = LedgerStore(session_factory)

        self._ledger = ApprovalLedgerRepository(self._store)
        self._share_index = ShareMappingIndex(self._store)
        self._instances = WorkflowInstanceRepository(self._store)
        self._registry = ContinuationRegistry(self._store)

        timeout = config.http_timeout_seconds
        self._catalog = catalog or HttpCatalogClient(config.catalog_base_url, timeout=timeout)
        self._grants = GrantServiceClient(
            authorization_api or HttpAuthorizationApi(config.grant_base_url, timeout=timeout),
            self._share_index,
        )
        self._events = events or HttpEventPublisher(config.events_base_url, timeout=timeout)

        self._orchestrator = Orchestrator(
            store=self._store,
            instances=self._instances,
            registry=self._registry,
            ledger=self._ledger,
            share_index=self._share_index,
            catalog=self._catalog,
            oracle=ClassificationOracle(
                tag_key=config.confidentiality_tag_key,
                sensitive_value=config.sensitive_tag_value,
            ),
            grants=self._grants,
            events=self._events,
        )
        self._approvals = ApprovalProcessor(
            ledger=self._ledger,
            share_index=self._share_index,
            registry=self._registry,
            instances=self._instances,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def ledger(self) -> ApprovalLedgerRepository:
        return self._ledger

    @property
    def share_index(self) -> ShareMappingIndex:
        return self._share_index

    @property
    def orchestrator(self) -> Orchestrator:
        return self._orchestrator

    @property
    def approvals(self) -> ApprovalProcessor:
        return self._approvals


@lru_cache
def get_container():
    return Container()
