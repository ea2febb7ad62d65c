from __future__ import annotations


class CrawlerError(Exception):
    """Base class for everything the crawler raises on purpose."""


class ConfigError(CrawlerError):
    """Bad root url or bad config. Raised before any page is fetched."""


class FetchError(CrawlerError):
    def __init__(self, url: str, reason: str, status: int | None = None):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class ParseError(CrawlerError):
    pass


class LinkUnparsable(CrawlerError):
    def __init__(self, link: str, reason: str = "malformed url"):
        super().__init__(f"{link!r}: {reason}")
        self.link = link


class ValidationTimeout(CrawlerError):
    """DNS lookup for an email domain gave no answer in time."""

    def __init__(self, domain: str):
        super().__init__(f"dns lookup timed out: {domain}")
        self.domain = domain


class FrontierEmpty(CrawlerError):
    pass


class SnapshotError(CrawlerError):
    pass
