"""
Metabase API HTTP client

Posts a native query to the dataset endpoint and returns the raw response.
One attempt per call: transport failures surface as TransportError, a body
that cannot be drained as ReadError.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx

from metabase_mcp.logging import get_logger, sanitize_headers
from metabase_mcp.telemetry.decorators import trace_metabase_api_call

from .config import MetabaseConfig
from .errors import ReadError, TransportError

logger = get_logger('HTTP')


@dataclass(frozen=True)
class RawResponse:
    """Status and fully read body of a Metabase response."""

    status_code: int
    reason_phrase: str
    body: bytes

    @property
    def status_line(self) -> str:
        return f"{self.status_code} {self.reason_phrase}".strip()

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@trace_metabase_api_call(operation="dataset")
async def post_dataset(
    config: MetabaseConfig,
    content: bytes,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None
) -> RawResponse:
    """
    POST a serialized query to {base_url}/api/dataset.

    Args:
        config: Startup configuration (target URL and session cookie)
        content: JSON encoded MetabaseQuery
        http_client: Shared client to send with; a new one is opened per call if None
        timeout: Overall deadline in seconds, defaults to config.timeout

    Returns:
        RawResponse with the complete body

    Raises:
        TransportError: Connection, DNS, TLS or timeout failure
        ReadError: The response body could not be read
    """
    if timeout is None:
        timeout = config.timeout

    url = config.dataset_url
    headers = config.headers()

    logger.info(f"POST {url} | data_size:{len(content)}")
    logger.debug(f"request headers | {sanitize_headers(headers)}")

    try:
        # Deadline covers connect, headers and the whole body
        response = await asyncio.wait_for(
            _send(http_client, url, content, headers, timeout),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.error(f"request timed out | url:{url} | timeout:{timeout}s")
        raise TransportError(f"request failed: POST {url}: timed out after {timeout:g}s", url=url) from None

    if response.status_code >= 400:
        logger.warning(f"response {response.status_code} | size:{len(response.body)}")
    else:
        logger.debug(f"response {response.status_code} | size:{len(response.body)}")

    return response


async def _send(
    http_client: Optional[httpx.AsyncClient],
    url: str,
    content: bytes,
    headers: dict,
    timeout: float
) -> RawResponse:
    if http_client is None:
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await _send_with(client, url, content, headers, timeout)
    return await _send_with(http_client, url, content, headers, timeout)


async def _send_with(
    client: httpx.AsyncClient,
    url: str,
    content: bytes,
    headers: dict,
    timeout: float
) -> RawResponse:
    try:
        request = client.build_request("POST", url, content=content, headers=headers, timeout=timeout)
        response = await client.send(request, stream=True)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(f"HTTP error | url:{url} | error:{_describe(e)}")
        raise TransportError(f"request failed: POST {url}: {_describe(e)}", url=url) from e

    try:
        body = await response.aread()
    except httpx.TimeoutException as e:
        logger.error(f"HTTP error | url:{url} | error:{_describe(e)}")
        raise TransportError(f"request failed: POST {url}: {_describe(e)}", url=url) from e
    except httpx.HTTPError as e:
        logger.error(f"response read failed | status:{response.status_code} | error:{_describe(e)}")
        raise ReadError(f"failed to read response: {_describe(e)}", status_code=response.status_code) from e
    finally:
        await response.aclose()

    return RawResponse(
        status_code=response.status_code,
        reason_phrase=response.reason_phrase,
        body=body
    )


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__
