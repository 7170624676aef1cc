"""Module source loader handed to the documentation extractor.

The extractor calls ``Loader.load`` once per import edge it discovers. The
loader must never raise: every failure degrades to ``None``, which the
extractor reads as "this import cannot be resolved" rather than aborting the
whole graph. The Loader receives an httpx.AsyncClient via constructor
injection; the server lifespan owns the client lifecycle.
"""

from __future__ import annotations

import ipaddress
from typing import TYPE_CHECKING
from urllib.parse import urljoin, urlparse

import httpx
import structlog

from moddoc.models.resources import CachedResource

if TYPE_CHECKING:
    from moddoc.config import FetcherSettings
    from moddoc.resources import ResourceCache

log = structlog.get_logger()

PRIVATE_NETWORKS: list[ipaddress.IPv4Network | ipaddress.IPv6Network] = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
]


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
        ),
    )


def is_private_host(url: str) -> bool:
    """Return True when the URL's host is a literal private or loopback IP."""
    hostname = urlparse(url).hostname or ""
    try:
        addr = ipaddress.ip_address(hostname)
    except ValueError:
        return False  # hostname is a domain name, not an IP
    return any(addr in net for net in PRIVATE_NETWORKS)


class Loader:
    """Scheme-dispatching loader backed by a ResourceCache."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: ResourceCache,
        *,
        max_redirects: int = 10,
        block_private_networks: bool = True,
    ) -> None:
        self._client = client
        self._cache = cache
        self._max_redirects = max_redirects
        self._block_private_networks = block_private_networks

    async def load(self, specifier: str) -> CachedResource | None:
        """Resolve one specifier to its source, or ``None`` if it cannot be loaded."""
        scheme = urlparse(specifier).scheme

        if scheme == "file":
            log.warning("local_specifier_requested", specifier=specifier)
            return None

        if scheme not in ("http", "https"):
            log.debug("unsupported_scheme", specifier=specifier, scheme=scheme)
            return None

        cached = self._cache.get(specifier)
        if cached is not None:
            log.debug("cache_hit", specifier=specifier)
            return cached

        try:
            return await self._fetch(specifier)
        except Exception:
            log.warning("load_failed", specifier=specifier, exc_info=True)
            return None

    async def _fetch(self, specifier: str) -> CachedResource | None:
        current_url = specifier

        for hop in range(self._max_redirects + 1):
            if self._block_private_networks and is_private_host(current_url):
                log.warning("private_network_blocked", specifier=specifier, url=current_url)
                return None

            async with self._client.stream("GET", current_url) as response:
                if response.is_redirect and "location" in response.headers:
                    if hop == self._max_redirects:
                        log.warning("too_many_redirects", specifier=specifier)
                        return None
                    current_url = urljoin(current_url, response.headers["location"])
                    continue

                # Read the whole body either way so the connection is released
                body = await response.aread()

                if response.status_code != 200:
                    log.info(
                        "load_unresolved",
                        specifier=specifier,
                        status_code=response.status_code,
                    )
                    return None

                resource = CachedResource(
                    specifier=specifier,
                    final_url=current_url,
                    headers={key.lower(): value for key, value in response.headers.items()},
                    content=response.text,
                    size_bytes=len(body),
                )

            self._cache.put(specifier, resource)
            log.info(
                "load_complete",
                specifier=specifier,
                final_url=resource.final_url,
                size_bytes=resource.size_bytes,
            )
            return resource

        # Unreachable but satisfies the type checker
        return None
