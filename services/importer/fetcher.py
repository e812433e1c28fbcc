# services/importer/fetcher.py
"""
URL resolution and run‑scoped, memoized resource fetching.

Every run gets its own ``ResourceFetcher``; its memo table guarantees a
given URL string is read from the network or disk at most once per run,
whether the request comes from a media bundle or from a field selector.
"""

import re
from pathlib import Path
from typing import Dict, Mapping, NamedTuple, Optional, Protocol
from urllib.parse import urljoin

import httpx
from loguru import logger
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from models.entities import UrlRule
from .config_loader import ImporterSettings, get_settings
from .exceptions import DocumentFetchError
from .metrics import FETCH_CACHE_HITS, FETCH_ERRORS, FETCH_REQUESTS

NETWORK_URL = re.compile(r"^https?://", re.IGNORECASE)
FILE_SCHEME = "file://"


def is_network_url(url: str) -> bool:
    return bool(NETWORK_URL.match(url or ""))


class UrlResolution(NamedTuple):
    url: str
    rule: UrlRule


def resolve_url(url: str, base: Optional[str] = None) -> UrlResolution:
    """
    Turn a possibly relative ``url`` into something ``fetch`` understands.

    Rules, first match wins:
    1. already absolute (``http(s)://`` or ``file://``) → unchanged
    2. ``base`` is a network URL → joined with ``urljoin``
    3. ``base`` is a directory and the joined path exists → ``file://`` URL
    4. otherwise → unchanged, so the fetch step fails on it later
    """
    if is_network_url(url) or url.startswith(FILE_SCHEME):
        return UrlResolution(url, UrlRule.ABSOLUTE)
    if base is None:
        return UrlResolution(url, UrlRule.UNRESOLVED)
    if is_network_url(base):
        return UrlResolution(urljoin(base, url), UrlRule.JOINED_URL)

    candidate = Path(base) / url.lstrip("/")
    if url and candidate.exists():
        return UrlResolution(f"{FILE_SCHEME}{candidate}", UrlRule.LOCAL_FILE)
    return UrlResolution(url, UrlRule.UNRESOLVED)


# ----------------------------------------------------------------------
#  Fetch collaborator
# ----------------------------------------------------------------------
class FetchClient(Protocol):
    def get(self, url: str, headers: Optional[Mapping[str, str]] = None, timeout: float = 20.0) -> bytes:
        ...


class HttpxFetchClient:
    """``FetchClient`` backed by a shared ``httpx.Client``."""

    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client or httpx.Client(follow_redirects=True)

    def get(self, url: str, headers: Optional[Mapping[str, str]] = None, timeout: float = 20.0) -> bytes:
        resp = self._client.get(url, headers=dict(headers or {}), timeout=timeout)
        resp.raise_for_status()
        return resp.content

    def close(self) -> None:
        self._client.close()


def fetch_document(client: FetchClient, url: str, settings: Optional[ImporterSettings] = None) -> bytes:
    """
    Download an input document.  Transport errors are retried with
    exponential backoff; HTTP error statuses are not.

    Raises
    ------
    DocumentFetchError
        When every attempt failed.
    """
    settings = settings or get_settings()
    headers = {"User-Agent": settings.user_agent, "Accept": settings.document_accept}
    retryer = Retrying(
        stop=stop_after_attempt(settings.document_retries),
        wait=wait_exponential(multiplier=settings.document_retry_wait, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    try:
        return retryer(client.get, url, headers=headers, timeout=settings.document_timeout)
    except Exception as exc:  # pylint: disable=broad-except
        raise DocumentFetchError(url, str(exc)) from exc


# ----------------------------------------------------------------------
#  Run-scoped fetcher
# ----------------------------------------------------------------------
class ResourceFetcher:
    """
    Resolves and fetches media for one run.

    Args:
        client: network collaborator; ``None`` disables network fetches.
        base: directory or URL that relative references are resolved against.
        settings: engine settings (timeouts, user agent).
    """

    def __init__(
        self,
        client: Optional[FetchClient],
        base: Optional[str] = None,
        settings: Optional[ImporterSettings] = None,
    ):
        self._client = client
        self.base = base
        self._settings = settings or get_settings()
        self._memo: Dict[str, Optional[bytes]] = {}

    def resolve(self, url: str) -> UrlResolution:
        return resolve_url(url, self.base)

    def fetch(self, url: str) -> Optional[bytes]:
        """Bytes behind ``url`` or ``None``; failures are memoized too."""
        if url in self._memo:
            FETCH_CACHE_HITS.inc()
            return self._memo[url]
        data = self._load(url)
        if data is None:
            FETCH_ERRORS.inc()
        self._memo[url] = data
        return data

    # ------------------------------------------------------------------
    def _load(self, url: str) -> Optional[bytes]:
        if is_network_url(url):
            if self._client is None:
                logger.warning(f"No fetch client configured, cannot download {url}")
                return None
            FETCH_REQUESTS.inc()
            try:
                data = self._client.get(
                    url,
                    headers={"User-Agent": self._settings.user_agent},
                    timeout=self._settings.fetch_timeout,
                )
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning(f"Fetch failed for {url}: {exc}")
                return None
        elif url.startswith(FILE_SCHEME):
            FETCH_REQUESTS.inc()
            try:
                data = Path(url[len(FILE_SCHEME):]).read_bytes()
            except OSError as exc:
                logger.warning(f"Cannot read {url}: {exc}")
                return None
        else:
            logger.debug(f"Not fetchable (no scheme, not found locally): {url}")
            return None

        if not data:
            logger.warning(f"Empty body for {url}")
            return None
        return data
