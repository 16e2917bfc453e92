"""Network fetching of calendar feeds with relay fallback."""

import logging
from urllib.parse import quote, urlparse

import httpx

from shiftpay.core.config import ICS_FETCH_TIMEOUT, ICS_PROXY_HOSTS, ICS_PROXY_URL
from shiftpay.core.models import FrozenModel

logger = logging.getLogger(__name__)


class IcsFetchError(Exception):
    """Calendar feed could not be downloaded."""

    pass


class FetchResult(FrozenModel):
    data: str
    used_proxy: bool


def should_use_proxy(url: str, proxy_hosts: tuple[str, ...] = ICS_PROXY_HOSTS) -> bool:
    """True if the URL's host is always fetched through the relay."""
    try:
        hostname = urlparse(url).hostname
    except ValueError as e:
        logger.warning("Invalid URL for proxy check %r: %s", url, e)
        return False
    return hostname is not None and hostname in proxy_hosts


def proxy_url_for(url: str, proxy_template: str = ICS_PROXY_URL) -> str:
    return proxy_template.format(url=quote(url, safe=""))


def fetch_ics_data(
    url: str,
    client: httpx.Client | None = None,
    proxy_hosts: tuple[str, ...] = ICS_PROXY_HOSTS,
    proxy_template: str = ICS_PROXY_URL,
) -> FetchResult:
    """
    Downloads calendar text.

    Hosts in ``proxy_hosts`` go straight through the relay. Other hosts are
    fetched directly first and retried once through the relay on failure.

    Raises:
        IcsFetchError: If the URL is empty or every attempt fails
    """
    if not url or not url.strip():
        raise IcsFetchError("URL cannot be empty")

    target = url.strip()
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=ICS_FETCH_TIMEOUT, follow_redirects=True)

    try:
        if should_use_proxy(target, proxy_hosts):
            logger.info("Host is in proxy list, using relay directly for %s", target)
            try:
                return FetchResult(data=_get_text(client, proxy_url_for(target, proxy_template)), used_proxy=True)
            except httpx.HTTPError as e:
                raise IcsFetchError(f"Proxy fetch failed: {e}") from e

        try:
            return FetchResult(data=_get_text(client, target), used_proxy=False)
        except httpx.HTTPError as direct_error:
            logger.info("Direct fetch failed, trying relay: %s", direct_error)

        try:
            return FetchResult(data=_get_text(client, proxy_url_for(target, proxy_template)), used_proxy=True)
        except httpx.HTTPError as e:
            raise IcsFetchError(f"Both direct fetch and proxy failed. Proxy error: {e}") from e
    finally:
        if owns_client:
            client.close()


def _get_text(client: httpx.Client, url: str) -> str:
    response = client.get(url)
    response.raise_for_status()
    return response.text
