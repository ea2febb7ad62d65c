from __future__ import annotations
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from emailcrawler.errors import ParseError

_INVISIBLE_TAGS = ["script", "style", "noscript", "template"]


@dataclass
class ParsedPage:
    links: list[str] = field(default_factory=list)
    text: str = ""


class MarkupParser:
    """Pull anchor hrefs and visible text out of an HTML body."""

    def __init__(self, features: str = "html.parser"):
        self.features = features

    def parse(self, body: bytes) -> ParsedPage:
        # images, pdfs and other binaries that slipped past the extension filter
        if not body or b"\x00" in body[:1024]:
            return ParsedPage()
        try:
            soup = BeautifulSoup(body, self.features)
        except Exception as exc:
            raise ParseError(f"could not parse markup: {exc}") from exc

        links = []
        for a in soup.find_all("a", href=True):
            href = a["href"].strip()
            if href:
                links.append(href)

        for tag in soup(_INVISIBLE_TAGS):
            tag.decompose()
        text = soup.get_text(" ")
        return ParsedPage(links=links, text=text)
