from __future__ import annotations
from typing import Callable, Iterable
from urllib.parse import urlsplit

# listing / navigation sections that also end in numeric ids on profile-style sites
DEFAULT_EXCLUDED_SEGMENTS = ("list", "friends", "tags", "faqs", "blocked", "casting", "contests", "pic", "page")


class ScrapePolicy:
    """Decides per url whether the page text is worth running email extraction on."""

    name = "default"

    def should_scrape_emails(self, url: str) -> bool:
        return True


class DefaultPolicy(ScrapePolicy):
    pass


def _is_int_segment(segment: str) -> bool:
    try:
        return str(int(segment)) == segment
    except ValueError:
        return False


class ProfilePolicy(ScrapePolicy):
    """
    Only scrape pages that look like a single member's profile:
    the last path segment is a plain integer (/user/42) and no segment
    is one of the excluded section names (/user/42/list, /page/3).

    member_markers lets sites with non-numeric profile urls opt in,
    e.g. ("member.php",) for forum software.
    """

    name = "profile"

    def __init__(
        self,
        excluded_segments: Iterable[str] = DEFAULT_EXCLUDED_SEGMENTS,
        member_markers: Iterable[str] = (),
    ):
        self.excluded_segments = frozenset(excluded_segments)
        self.member_markers = tuple(member_markers)

    def should_scrape_emails(self, url: str) -> bool:
        try:
            path = urlsplit(url).path
        except ValueError:
            return False
        segments = [s for s in path.split("/") if s]
        if any(s in self.excluded_segments for s in segments):
            return False
        if any(marker in url for marker in self.member_markers):
            return True
        return bool(segments) and _is_int_segment(segments[-1])


class PredicatePolicy(ScrapePolicy):
    name = "predicate"

    def __init__(self, predicate: Callable[[str], bool]):
        self.predicate = predicate

    def should_scrape_emails(self, url: str) -> bool:
        return bool(self.predicate(url))


POLICIES = ("default", "profile")


def policy_from_config(cfg) -> ScrapePolicy:
    if cfg.policy == "profile":
        return ProfilePolicy(
            excluded_segments=cfg.profile_excluded_segments,
            member_markers=cfg.profile_member_markers,
        )
    return DefaultPolicy()
