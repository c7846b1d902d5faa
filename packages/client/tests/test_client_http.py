# This project was developed with assistance from AI tools.
"""Tests for ApiClient: auth header, retries, single refresh, body decoding."""

import httpx
import pytest
from deskclient import (
    ApiError,
    ApiValidationError,
    AuthenticationError,
    DeskClient,
    NetworkError,
    ServerError,
    SessionContext,
)
from deskfakes import Recorder, make_api


def _signed_in() -> SessionContext:
    session = SessionContext()
    session.sign_in("old", "refresh-1", {"id": 1})
    return session


async def test_bearer_header_and_path_merge():
    handler = Recorder({("GET", "/cases/7"): httpx.Response(200, json={"id": 7})})
    api = make_api(handler, _signed_in())

    assert await api.get("/cases/7") == {"id": 7}
    request = handler.requests[0]
    assert str(request.url) == "http://desk.test/api/v1/cases/7"
    assert request.headers["Authorization"] == "Bearer old"


async def test_auth_false_sends_no_header():
    handler = Recorder({("GET", "/ds160/t/steps"): httpx.Response(200, json=[])})
    api = make_api(handler, _signed_in())

    await api.request("GET", "/ds160/t/steps", auth=False)
    assert "Authorization" not in handler.requests[0].headers


async def test_no_content_returns_none():
    handler = Recorder({("DELETE", "/cases/1"): httpx.Response(204)})
    api = make_api(handler, _signed_in())
    assert await api.delete("/cases/1") is None


class TestRetry:
    async def test_get_retries_server_errors_with_backoff(self):
        handler = Recorder({("GET", "/cases/"): httpx.Response(500, json={"detail": "boom"})})
        api = make_api(handler)

        with pytest.raises(ServerError) as exc_info:
            await api.get("/cases/")
        assert len(handler.requests) == 3
        assert api._sleep.delays == [0.5, 1.0]
        assert exc_info.value.message == "服务器错误，请稍后重试"

    async def test_get_recovers_after_one_failure(self):
        handler = Recorder(
            {
                ("GET", "/cases/"): [
                    httpx.Response(503),
                    httpx.Response(200, json={"items": []}),
                ]
            }
        )
        api = make_api(handler)
        assert await api.get("/cases/") == {"items": []}
        assert len(handler.requests) == 2

    async def test_post_is_never_retried(self):
        handler = Recorder({("POST", "/cases/"): httpx.Response(502)})
        api = make_api(handler)

        with pytest.raises(ServerError):
            await api.post("/cases/", json={})
        assert len(handler.requests) == 1
        assert api._sleep.delays == []

    async def test_retry_after_header_wins(self):
        handler = Recorder(
            {
                ("GET", "/statistics/overview"): [
                    httpx.Response(429, headers={"Retry-After": "3"}),
                    httpx.Response(200, json={}),
                ]
            }
        )
        api = make_api(handler)
        await api.get("/statistics/overview")
        assert api._sleep.delays == [3.0]

    def test_delay_is_capped(self):
        api = make_api(Recorder())
        assert api.retry_delay(1, retry_after=60) == 8.0
        assert api.retry_delay(10) == 8.0
        assert api.retry_delay(2) == 1.0

    async def test_transport_errors_retry_then_raise(self):
        handler = Recorder({("GET", "/cases/"): httpx.ConnectError("refused")})
        api = make_api(handler)

        with pytest.raises(NetworkError) as exc_info:
            await api.get("/cases/")
        assert len(handler.requests) == 3
        assert exc_info.value.status is None
        assert exc_info.value.message == "网络错误，请检查网络连接"

    async def test_max_retries_zero(self):
        handler = Recorder({("GET", "/cases/"): httpx.Response(500)})
        api = make_api(handler, max_retries=0)
        with pytest.raises(ServerError):
            await api.get("/cases/")
        assert len(handler.requests) == 1


class TestRefresh:
    async def test_single_refresh_then_replay(self):
        handler = Recorder(
            {
                ("GET", "/auth/me"): [
                    httpx.Response(401, json={"detail": "expired"}),
                    httpx.Response(200, json={"id": 1}),
                ],
                ("POST", "/auth/refresh"): httpx.Response(200, json={"access_token": "new"}),
            }
        )
        session = _signed_in()
        api = make_api(handler, session)

        assert await api.get("/auth/me") == {"id": 1}
        assert len(handler.calls("POST", "/auth/refresh")) == 1
        replay = handler.calls("GET", "/auth/me")[-1]
        assert replay.headers["Authorization"] == "Bearer new"
        assert session.access_token == "new"

    async def test_second_401_signs_out(self):
        handler = Recorder(
            {
                ("GET", "/auth/me"): httpx.Response(401, json={"detail": "nope"}),
                ("POST", "/auth/refresh"): httpx.Response(200, json={"access_token": "new"}),
            }
        )
        session = _signed_in()
        api = make_api(handler, session)

        with pytest.raises(AuthenticationError) as exc_info:
            await api.get("/auth/me")
        assert len(handler.calls("POST", "/auth/refresh")) == 1
        assert len(handler.calls("GET", "/auth/me")) == 2
        assert exc_info.value.message == "登录已过期，请重新登录"
        assert not session.is_authenticated
        assert session.refresh_token is None

    async def test_rejected_refresh_signs_out(self):
        handler = Recorder(
            {
                ("GET", "/auth/me"): httpx.Response(401),
                ("POST", "/auth/refresh"): httpx.Response(401),
            }
        )
        session = _signed_in()
        api = make_api(handler, session)

        with pytest.raises(AuthenticationError):
            await api.get("/auth/me")
        assert len(handler.calls("GET", "/auth/me")) == 1
        assert not session.is_authenticated

    async def test_no_refresh_token_signs_out_without_refresh(self):
        handler = Recorder({("GET", "/auth/me"): httpx.Response(401)})
        session = SessionContext()
        session.sign_in("old", None)
        api = make_api(handler, session)

        with pytest.raises(AuthenticationError):
            await api.get("/auth/me")
        assert handler.calls("POST", "/auth/refresh") == []
        assert not session.is_authenticated

    async def test_login_401_does_not_refresh(self):
        handler = Recorder(
            {("POST", "/auth/login"): httpx.Response(401, json={"detail": "bad credentials"})}
        )
        session = _signed_in()
        api = make_api(handler, session)

        with pytest.raises(AuthenticationError):
            await api.login("consultant1", "wrong")
        assert handler.calls("POST", "/auth/refresh") == []
        assert "Authorization" not in handler.requests[0].headers


async def test_login_stores_tokens():
    handler = Recorder(
        {
            ("POST", "/auth/login"): httpx.Response(
                200,
                json={
                    "access_token": "a1",
                    "refresh_token": "r1",
                    "token_type": "bearer",
                    "user": {"id": 2, "username": "consultant1"},
                },
            )
        }
    )
    session = SessionContext()
    api = make_api(handler, session)

    await api.login("consultant1", "secret123", remember_me=True)
    assert session.access_token == "a1"
    assert session.refresh_token == "r1"
    assert session.user["username"] == "consultant1"
    assert session.remember_me is True

    api.logout()
    assert not session.is_authenticated


async def test_validation_error_carries_field_errors():
    detail = [
        {"loc": ["body", "surname"], "msg": "Field required", "type": "missing"},
        {"loc": ["body", "companions", 1, "surname"], "msg": "Field required", "type": "missing"},
    ]
    handler = Recorder(
        {("POST", "/ds160/t/steps/basic-info"): httpx.Response(422, json={"detail": detail})}
    )
    api = make_api(handler)

    with pytest.raises(ApiValidationError) as exc_info:
        await api.request("POST", "/ds160/t/steps/basic-info", json={}, auth=False)
    assert exc_info.value.field_errors == {
        "surname": "Field required",
        "companions[1].surname": "Field required",
    }
    assert len(handler.requests) == 1


async def test_malformed_success_body_is_api_error():
    handler = Recorder({("GET", "/cases/1"): httpx.Response(200, text="<html>gateway</html>")})
    api = make_api(handler)

    with pytest.raises(ApiError) as exc_info:
        await api.get("/cases/1")
    assert exc_info.value.status == 200
    assert exc_info.value.message == "服务器响应格式错误"


async def test_refresh_without_access_token_signs_out():
    handler = Recorder(
        {
            ("GET", "/auth/me"): httpx.Response(401),
            ("POST", "/auth/refresh"): httpx.Response(200, json={"token_type": "bearer"}),
        }
    )
    session = _signed_in()
    api = make_api(handler, session)

    with pytest.raises(AuthenticationError):
        await api.get("/auth/me")
    assert len(handler.calls("POST", "/auth/refresh")) == 1
    assert not session.is_authenticated


async def test_case_resources_hit_their_paths():
    handler = Recorder(
        {
            ("GET", "/cases/statuses"): httpx.Response(200, json=[{"value": "created"}]),
            ("GET", "/cases/3/timeline"): httpx.Response(200, json=[]),
            ("GET", "/notifications/"): httpx.Response(200, json={"items": [], "total": 0}),
        }
    )
    desk = DeskClient(make_api(handler, _signed_in()))

    assert await desk.cases.statuses() == [{"value": "created"}]
    assert await desk.cases.timeline(3) == []
    assert (await desk.notifications.list())["total"] == 0
