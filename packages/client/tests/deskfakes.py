# This project was developed with assistance from AI tools.
"""Shared fakes for the deskclient tests.

The backend is replaced with an ``httpx.MockTransport`` so requests go
through the real ``httpx.AsyncClient`` plumbing.
"""

import json

import httpx
from deskclient import ApiClient, ClientSettings, DeskClient, SessionContext

BASE_URL = "http://desk.test/api/v1"


class FakeSleep:
    """Records every backoff delay instead of waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class Recorder:
    """MockTransport handler that records requests and replays canned responses.

    ``routes`` maps ``(method, path)`` to a response or a list of responses
    consumed in order (the last one repeats).
    """

    def __init__(self, routes: dict[tuple[str, str], object] | None = None):
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path.removeprefix("/api/v1"))
        planned = self.routes.get(key)
        if planned is None:
            return httpx.Response(404, json={"detail": f"no route {key}"})
        if isinstance(planned, list):
            response = planned.pop(0) if len(planned) > 1 else planned[0]
        else:
            response = planned
        if isinstance(response, Exception):
            raise response
        # fresh object per reply; a canned response may be served many times
        return httpx.Response(
            response.status_code, headers=response.headers, content=response.content
        )

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and r.url.path == f"/api/v1{path}"
        ]


def body_of(request: httpx.Request) -> dict:
    return json.loads(request.content) if request.content else {}


def make_api(handler, session: SessionContext | None = None, **settings) -> ApiClient:
    return ApiClient(
        ClientSettings(base_url=BASE_URL, **settings),
        session or SessionContext(),
        transport=httpx.MockTransport(handler),
        sleep=FakeSleep(),
        jitter=lambda: 0,
    )


def make_desk(handler, **settings) -> DeskClient:
    session = SessionContext()
    session.sign_in("token-1", "refresh-1", {"id": 2, "role": "consultant"})
    return DeskClient(make_api(handler, session, **settings))
