# src/nodeflow/plugins/builtin/http.py
"""HTTP request operations.

Plain variants return the response body. A transport failure or a non-2xx
status raises, so the node records an error result.

``*_with_status`` variants never raise. They return the body, the status
code and a success flag; when no response was received the status is 0
and the body carries the error text.

A blank URL short-circuits without sending anything. ``timeout_ms`` of 0
or less disables the timeout.
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from nodeflow.core.logging import get_logger
from nodeflow.plugins.operation import operation

logger = get_logger(__name__)

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_CONTENT_TYPE = "application/json"


class HttpResponse(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    body: str = ""
    status_code: int = 0
    success: bool = False


def _timeout(timeout_ms: int) -> float | None:
    return timeout_ms / 1000 if timeout_ms > 0 else None


def _build_headers(headers: dict[str, str] | None, content_type: str | None) -> dict[str, str]:
    built = {key: value or "" for key, value in (headers or {}).items() if key and key.strip()}
    if content_type is not None and not any(key.lower() == "content-type" for key in built):
        built["Content-Type"] = content_type
    return built


async def _send(
    method: str,
    url: str,
    headers: dict[str, str] | None,
    timeout_ms: int,
    body: str | None = None,
    content_type: str | None = None,
) -> httpx.Response:
    request_headers = _build_headers(headers, (content_type or DEFAULT_CONTENT_TYPE) if body is not None else None)
    async with httpx.AsyncClient(timeout=_timeout(timeout_ms)) as client:
        response = await client.request(
            method,
            url,
            headers=request_headers,
            content=body.encode("utf-8") if body is not None else None,
        )
    logger.debug("HTTP request completed", method=method, url=url, status=response.status_code)
    return response


async def _body(
    method: str,
    url: str,
    headers: dict[str, str] | None,
    timeout_ms: int,
    body: str | None = None,
    content_type: str | None = None,
) -> str:
    if not url or not url.strip():
        return ""
    response = await _send(method, url, headers, timeout_ms, body, content_type)
    response.raise_for_status()
    return response.text


async def _with_status(
    method: str,
    url: str,
    headers: dict[str, str] | None,
    timeout_ms: int,
    body: str | None = None,
    content_type: str | None = None,
) -> HttpResponse:
    if not url or not url.strip():
        return HttpResponse()
    try:
        response = await _send(method, url, headers, timeout_ms, body, content_type)
    except httpx.HTTPError as exc:
        logger.warning("HTTP request failed", method=method, url=url, error=str(exc))
        return HttpResponse(body=str(exc) or type(exc).__name__)
    return HttpResponse(body=response.text, status_code=response.status_code, success=response.is_success)


# === Body only ===


@operation(category="HTTP")
async def http_get(url: str, headers: dict[str, str] | None = None, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> str:
    return await _body("GET", url, headers, timeout_ms)


@operation(category="HTTP")
async def http_post(
    url: str,
    body: str,
    headers: dict[str, str] | None = None,
    content_type: str = DEFAULT_CONTENT_TYPE,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> str:
    return await _body("POST", url, headers, timeout_ms, body or "", content_type)


@operation(category="HTTP")
async def http_put(
    url: str,
    body: str,
    headers: dict[str, str] | None = None,
    content_type: str = DEFAULT_CONTENT_TYPE,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> str:
    return await _body("PUT", url, headers, timeout_ms, body or "", content_type)


@operation(category="HTTP")
async def http_patch(
    url: str,
    body: str,
    headers: dict[str, str] | None = None,
    content_type: str = DEFAULT_CONTENT_TYPE,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> str:
    return await _body("PATCH", url, headers, timeout_ms, body or "", content_type)


@operation(category="HTTP")
async def http_delete(url: str, headers: dict[str, str] | None = None, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> str:
    return await _body("DELETE", url, headers, timeout_ms)


# === With status ===


@operation(category="HTTP")
async def http_get_with_status(
    url: str, headers: dict[str, str] | None = None, timeout_ms: int = DEFAULT_TIMEOUT_MS
) -> HttpResponse:
    return await _with_status("GET", url, headers, timeout_ms)


@operation(category="HTTP")
async def http_post_with_status(
    url: str,
    body: str,
    headers: dict[str, str] | None = None,
    content_type: str = DEFAULT_CONTENT_TYPE,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> HttpResponse:
    return await _with_status("POST", url, headers, timeout_ms, body or "", content_type)


@operation(category="HTTP")
async def http_put_with_status(
    url: str,
    body: str,
    headers: dict[str, str] | None = None,
    content_type: str = DEFAULT_CONTENT_TYPE,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> HttpResponse:
    return await _with_status("PUT", url, headers, timeout_ms, body or "", content_type)


@operation(category="HTTP")
async def http_patch_with_status(
    url: str,
    body: str,
    headers: dict[str, str] | None = None,
    content_type: str = DEFAULT_CONTENT_TYPE,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> HttpResponse:
    return await _with_status("PATCH", url, headers, timeout_ms, body or "", content_type)


@operation(category="HTTP")
async def http_delete_with_status(
    url: str, headers: dict[str, str] | None = None, timeout_ms: int = DEFAULT_TIMEOUT_MS
) -> HttpResponse:
    return await _with_status("DELETE", url, headers, timeout_ms)


@operation(category="HTTP")
async def http_head(
    url: str, headers: dict[str, str] | None = None, timeout_ms: int = DEFAULT_TIMEOUT_MS
) -> HttpResponse:
    """Status of ``url`` without a body."""
    return await _with_status("HEAD", url, headers, timeout_ms)

