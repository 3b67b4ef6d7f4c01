from fastapi import FastAPI

from .approvals import router as approvals_router
from .domains import router as domains_router
from .requests import router as requests_router
from .share_mappings import router as share_mappings_router


def register_routes(app: FastAPI):
    app.include_router(requests_router, prefix="/v1")
    app.include_router(approvals_router, prefix="/v1")
    app.include_router(share_mappings_router, prefix="/v1")
    app.include_router(domains_router, prefix="/v1")
