"""ShareGate: cross-domain data sharing service.

Domains ask for access to resources owned by other domains. Resources
classified as sensitive wait for the owning domain's approval; everything else
is granted right away.

On start-up the service:
- creates its tables
- resumes instances whose approval was decided while the service was down
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from sharegate.api.core.container import get_container
from sharegate.api.errors import register_error_handlers
from sharegate.api.routes import register_routes
from sharegate.infrastructure.db.connection import init_db
from sharegate.observability.tracing import log_event

tags_metadata = [
    {
        "name": "Sharing Requests",
        "description": "Start and inspect cross-domain sharing workflows"
    },
    {
        "name": "Approvals",
        "description": "Pending approvals of sensitive resources, and the owner's decision"
    },
    {
        "name": "Share Mappings",
        "description": "Which resource is shared with which domain, and in what state"
    },
    {
        "name": "Domains",
        "description": "Domain ownership of the calling user"
    }
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    resumed = await get_container().orchestrator.recover()
    log_event("app.startup", trace_id=None, recovered=len(resumed))
    yield


app = FastAPI(
    title='ShareGate',
    version='1.0.0',
    description='Approval-gated sharing of catalog resources between domains',
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Register all API routes
register_routes(app)
register_error_handlers(app)
