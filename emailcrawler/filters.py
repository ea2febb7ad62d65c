from __future__ import annotations #annotations postpone the evaluation of annotations
import re
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

from emailcrawler.errors import ConfigError, LinkUnparsable

# extensions that are almost never parseable markup
BAD_EXTENSIONS = ("jpeg", "jpg", "pdf", "png", "css", "js", "coffee", "gif")

# whitespace, control chars and the characters RFC 3986 never allows unescaped
_FORBIDDEN = re.compile(r'[\s\x00-\x1f\x7f<>"{}|\\^`]')


@dataclass(frozen=True)
class RootContext:
    """
    Everything about the root url that link handling needs, parsed once.

    root_host is the lower-cased hostname used for scope checks, root_netloc keeps
    the port so host-less links land on the same server as the root.
    """
    root_url: str
    root_host: str
    root_scheme: str
    root_netloc: str

    @classmethod
    def from_url(cls, root_url: str) -> "RootContext":
        raw = (root_url or "").strip()
        if not raw:
            raise ConfigError("root url is empty")
        if "://" not in raw:
            raw = "http://" + raw
        try:
            p = urlsplit(raw)
            host = p.hostname
            p.port  # raises on a non-numeric port
        except ValueError as exc:
            raise ConfigError(f"unparsable root url {root_url!r}: {exc}") from exc
        if not host or _FORBIDDEN.search(raw):
            raise ConfigError(f"unparsable root url {root_url!r}")
        return cls(root_url=raw, root_host=host, root_scheme=p.scheme.lower(), root_netloc=p.netloc)


def normalize_url(link: str, ctx: RootContext) -> str:
    """
    Resolve a possibly-relative link against the root and render it absolute.

    examples (root http://example.com)

    /about          -> http://example.com/about
    about.html      -> http://example.com/about.html
    //cdn.other.io/ -> http://cdn.other.io/
    https://x.org/a -> https://x.org/a

    Nothing else is canonicalized: trailing slashes, queries and fragments stay as
    they are, so /a and /a/ are different urls.
    """
    if link is None or not link.strip():
        raise LinkUnparsable(link or "", "blank")
    link = link.strip()
    if _FORBIDDEN.search(link):
        raise LinkUnparsable(link, "illegal character")
    try:
        p = urlsplit(link)
        p.port
    except ValueError as exc:
        raise LinkUnparsable(link, str(exc)) from exc

    scheme, netloc, path = p.scheme, p.netloc, p.path
    if scheme and not netloc and path and not path.startswith("/"):
        # opaque uri (mailto:, javascript:, tel:) - there is no host to set
        raise LinkUnparsable(link, f"opaque {scheme}: uri")

    if not netloc:
        netloc = ctx.root_netloc
        if not path.startswith("/"):
            path = "/" + path
    if not scheme:
        scheme = ctx.root_scheme

    # correct format: (scheme, netloc, path, query, fragment)
    return urlunsplit((scheme, netloc, path, p.query, p.fragment))


def in_scope(url: str, ctx: RootContext) -> bool:
    try:
        host = urlsplit(url).hostname
    except (ValueError, TypeError, AttributeError):
        return False
    return host is not None and host == ctx.root_host


def probably_not_html(url: str) -> bool:
    try:
        path = urlsplit(url).path.lower()
    except (ValueError, AttributeError):
        return False
    return path.endswith(tuple("." + ext for ext in BAD_EXTENSIONS))
