from __future__ import annotations
from collections import Counter

import pytest

from emailcrawler.emails import EmailExtractor
from emailcrawler.errors import FetchError, ValidationTimeout


class FakeFetcher:
    """Serves pages from a dict; unknown urls fail like a 404."""

    def __init__(self, pages: dict[str, str | bytes]):
        self.pages = pages
        self.calls: Counter[str] = Counter()

    def fetch(self, url: str) -> bytes:
        self.calls[url] += 1
        body = self.pages.get(url)
        if body is None:
            raise FetchError(url, "HTTP 404", status=404)
        if isinstance(body, Exception):
            raise body
        return body.encode("utf-8") if isinstance(body, str) else body


class FakeResolver:
    def __init__(self, domains=(), slow=()):
        self.domains = set(domains)
        self.slow = set(slow)
        self.lookups: list[str] = []

    def is_deliverable(self, addr: str) -> bool:
        domain = addr.rsplit("@", 1)[1]
        self.lookups.append(domain)
        if domain in self.slow:
            raise ValidationTimeout(domain)
        return domain in self.domains


def html(*links: str, text: str = "") -> str:
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    return f"<html><body>{anchors}<p>{text}</p></body></html>"


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver(domains={"example.com", "gmail.com", "site.com"})


@pytest.fixture
def extractor(resolver) -> EmailExtractor:
    return EmailExtractor(resolver=resolver)
