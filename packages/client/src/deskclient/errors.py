# This project was developed with assistance from AI tools.
"""Error taxonomy for failed backend calls.

Every non-2xx response becomes an ``ApiError`` subclass chosen by status
code. ``message`` is the localized text shown to the user; ``detail`` is
whatever the backend put in the problem-details body.
"""

from typing import Any

import httpx

MESSAGES: dict[int, str] = {
    401: "登录已过期，请重新登录",
    403: "您没有权限执行此操作",
    404: "请求的资源不存在",
    429: "请求过于频繁，请稍后再试",
    500: "服务器错误，请稍后重试",
}
NETWORK_MESSAGE = "网络错误，请检查网络连接"
GENERIC_MESSAGE = "请求失败"
MALFORMED_MESSAGE = "服务器响应格式错误"


def format_path(loc: list[str | int]) -> str:
    """``["companions", 1, "surname"]`` -> ``companions[1].surname``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def flatten_detail(detail: Any) -> str:
    """Join a list-form ``detail`` into one display string."""
    if detail is None:
        return ""
    if isinstance(detail, list):
        parts = []
        for item in detail:
            if isinstance(item, dict):
                parts.append(str(item.get("msg", "")))
            else:
                parts.append(str(item))
        return ", ".join(p for p in parts if p)
    return str(detail)


class ApiError(Exception):
    """Base for every failure reaching the backend."""

    default_message = GENERIC_MESSAGE

    def __init__(self, status: int | None, detail: Any = None, message: str | None = None):
        self.status = status
        self.detail = detail
        self.message = message or flatten_detail(detail) or self.default_message
        super().__init__(self.message)


class AuthenticationError(ApiError):
    default_message = MESSAGES[401]


class PermissionDeniedError(ApiError):
    default_message = MESSAGES[403]


class NotFoundError(ApiError):
    default_message = MESSAGES[404]


class ApiValidationError(ApiError):
    """400/422. ``field_errors`` maps form field paths to messages."""

    @property
    def field_errors(self) -> dict[str, str]:
        if not isinstance(self.detail, list):
            return {}
        errors: dict[str, str] = {}
        for item in self.detail:
            if not isinstance(item, dict):
                continue
            loc = list(item.get("loc") or [])
            if loc and loc[0] in ("body", "query", "path"):
                loc = loc[1:]
            path = format_path(loc)
            if path:
                errors.setdefault(path, str(item.get("msg", "")))
        return errors


class RateLimitedError(ApiError):
    default_message = MESSAGES[429]

    def __init__(self, status, detail=None, message=None, retry_after: float | None = None):
        super().__init__(status, detail, message)
        self.retry_after = retry_after


class ServerError(ApiError):
    default_message = MESSAGES[500]


class NetworkError(ApiError):
    """No response at all (connection refused, timeout, DNS)."""

    default_message = NETWORK_MESSAGE

    def __init__(self, message: str | None = None):
        super().__init__(None, None, message or NETWORK_MESSAGE)


def parse_retry_after(response: httpx.Response) -> float | None:
    """Seconds from a numeric ``Retry-After`` header, else None."""
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


def _detail(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        return body.get("detail") or body.get("message")
    return body


def error_from_response(response: httpx.Response) -> ApiError:
    """Build the right ``ApiError`` subclass for a failed response."""
    status = response.status_code
    detail = _detail(response)
    if status == 401:
        return AuthenticationError(status, detail, MESSAGES[401])
    if status == 403:
        return PermissionDeniedError(status, detail, MESSAGES[403])
    if status == 404:
        return NotFoundError(status, detail, MESSAGES[404])
    if status in (400, 422):
        return ApiValidationError(status, detail)
    if status == 429:
        return RateLimitedError(status, detail, MESSAGES[429], parse_retry_after(response))
    if status >= 500:
        return ServerError(status, detail, MESSAGES[500])
    return ApiError(status, detail)
