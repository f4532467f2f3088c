"""HTTP transport for the SDK handle.

Builds an httpx client honoring the proxy, SOCKS5 and TLS settings of a Config,
and wraps its transport so every outbound request carries the static headers.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

import httpx

from openai_shim.errors import ProxyError

if TYPE_CHECKING:
    from openai_shim.config import Config

logger = logging.getLogger(__name__)


def new_headers(items: Mapping[str, str] | Iterable[str] | None) -> dict[str, str]:
    """Normalize headers given as a mapping or as "Key=Value" strings.

    Entries without "=" or with an empty key are skipped.
    """
    if not items:
        return {}
    if isinstance(items, Mapping):
        return {str(k).strip(): str(v) for k, v in items.items() if str(k).strip()}

    headers = {}
    for item in items:
        key, sep, value = str(item).partition("=")
        key = key.strip()
        if not sep or not key:
            logger.warning("ignoring malformed header %r, expected Key=Value", item)
            continue
        headers[key] = value.strip()
    return headers


class HeaderTransport(httpx.BaseTransport):
    """Sets a fixed header set on every request, then hands it to the origin transport."""

    def __init__(self, origin: httpx.BaseTransport, headers: Mapping[str, str]):
        self.origin = origin
        self.headers = dict(headers)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        for key, value in self.headers.items():
            request.headers[key] = value
        return self.origin.handle_request(request)

    def close(self) -> None:
        self.origin.close()


def socks_proxy_url(address: str) -> str:
    """Turn a bare host:port SOCKS5 address into a proxy URL."""
    if "://" in address:
        return address
    return f"socks5://{address}"


def build_transport(config: "Config") -> httpx.HTTPTransport:
    """Create the base transport: TLS verification, then HTTP proxy or SOCKS5 proxy.

    The two proxy kinds never coexist; Config validation rejects that.
    """
    verify = not config.skip_verify
    if config.skip_verify:
        logger.debug("transport: TLS certificate verification disabled")

    if config.proxy_url:
        logger.debug("transport: using HTTP proxy %s", config.proxy_url)
        return httpx.HTTPTransport(verify=verify, proxy=config.proxy_url)

    if config.socks_url:
        url = socks_proxy_url(config.socks_url)
        logger.debug("transport: using SOCKS5 proxy %s", url)
        try:
            return httpx.HTTPTransport(verify=verify, proxy=url)
        except (ImportError, ValueError, httpx.InvalidURL) as e:
            raise ProxyError(f"can't connect to the proxy: {e}") from e

    return httpx.HTTPTransport(verify=verify)


def build_http_client(config: "Config") -> httpx.Client:
    """Create the httpx client handed to the SDK."""
    transport = HeaderTransport(build_transport(config), config.headers)
    # Environment proxies would mount transports that bypass the header wrapper.
    return httpx.Client(transport=transport, timeout=config.timeout, trust_env=False)
