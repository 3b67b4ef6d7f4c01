# ------------------------------------------------------------------------------
# Stub authorization-grant service
# ------------------------------------------------------------------------------
from __future__ import annotations

import json

from httpx import Request, Response


class GrantServiceStub:
    """Records every grant; answers 500 once `fail` is set."""

    def __init__(self) -> None:
        self.grants: list[dict] = []
        self.fail = False

    def handler(self, request: Request) -> Response:
        assert request.method == "POST"
        assert request.url.path == "/grants"

        if self.fail:
            return Response(status_code=500, json={"error": "authorization system down"})

        payload = json.loads(request.content.decode("utf-8"))
        self.grants.append(payload)
        return Response(status_code=200, json={"ok": True})

    def resources(self) -> list[dict]:
        return [g["Resource"] for g in self.grants]
