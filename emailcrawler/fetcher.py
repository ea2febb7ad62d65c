from __future__ import annotations
import logging
import time
from typing import Optional

import requests

from emailcrawler.config import DEFAULT_USER_AGENT
from emailcrawler.errors import FetchError

logger = logging.getLogger(__name__)


def fetch_bytes(
    url: str,
    timeout: float = 10.0,
    retries: int = 2,
    backoff_seconds: float = 1.5,
    headers: Optional[dict[str, str]] = None,
    proxies: Optional[dict[str, str]] = None,
) -> tuple[int, bytes, str]:
    """
    GET a page for PageFetcher and return (status, body bytes, lower-cased content type).

    The status is not checked here; PageFetcher turns non-2xx into FetchError.
    Network errors are retried with exponential backoff (backoff_seconds * 2**attempt)
    and the last one is re-raised for the caller to wrap.
    """
    headers = headers or {"User-Agent": DEFAULT_USER_AGENT}
    last_exc: Exception | None = None
    for attempt in range(retries + 1):
        try:
            r = requests.get(url, headers=headers, timeout=timeout, allow_redirects=True, proxies=proxies)
            ctype = r.headers.get("Content-Type", "").lower()
            return r.status_code, r.content, ctype
        except requests.RequestException as exc:
            last_exc = exc
            if attempt >= retries:
                break
            wait = backoff_seconds * (2**attempt)
            logger.warning(
                "Request failed (%s). Retrying in %.1fs: %s",
                exc.__class__.__name__,
                wait,
                url,
            )
            time.sleep(wait)
    if last_exc:
        raise last_exc
    raise RuntimeError("fetch_bytes failed without an exception")


class PageFetcher:
    """GET a page and hand back the body, or raise FetchError."""

    def __init__(
        self,
        timeout: float = 10.0,
        retries: int = 2,
        backoff_seconds: float = 1.5,
        user_agent: str = DEFAULT_USER_AGENT,
        proxies: Optional[dict[str, str]] = None,
    ):
        self.timeout = timeout
        self.retries = retries
        self.backoff_seconds = backoff_seconds
        self.headers = {"User-Agent": user_agent}
        self.proxies = proxies

    @classmethod
    def from_config(cls, cfg) -> "PageFetcher":
        return cls(
            timeout=cfg.timeout,
            retries=cfg.retries,
            backoff_seconds=cfg.backoff_seconds,
            user_agent=cfg.user_agent,
            proxies=cfg.proxies,
        )

    def fetch(self, url: str) -> bytes:
        try:
            status, content, _ = fetch_bytes(
                url,
                timeout=self.timeout,
                retries=self.retries,
                backoff_seconds=self.backoff_seconds,
                headers=self.headers,
                proxies=self.proxies,
            )
        except requests.RequestException as exc:
            raise FetchError(url, exc.__class__.__name__) from exc
        if not 200 <= status < 300:
            raise FetchError(url, f"HTTP {status}", status=status)
        return content
