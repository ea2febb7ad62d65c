from __future__ import annotations
import enum
import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Optional

from emailcrawler.emails import EmailExtractor
from emailcrawler.errors import ConfigError, FetchError, FrontierEmpty, LinkUnparsable, ParseError
from emailcrawler.fetcher import PageFetcher
from emailcrawler.filters import RootContext, in_scope, normalize_url, probably_not_html
from emailcrawler.frontier import Frontier
from emailcrawler.parser import MarkupParser
from emailcrawler.policy import DefaultPolicy, ScrapePolicy
from emailcrawler.storage import CrawlSnapshot, SnapshotStore

logger = logging.getLogger(__name__)


class CrawlStatus(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    FAILED = "failed"
    TERMINATED = "terminated"


@dataclass
class PageResult:
    url: str
    links: list[str] = field(default_factory=list)
    emails: set[str] = field(default_factory=set)
    failed: bool = False


class CrawlEngine:
    """
    Breadth-first crawl of one host, collecting email addresses.

    The thread calling run() is the only one that touches the frontier and the
    found-emails set. Up to `workers` pages are fetched/parsed/scanned at once on a
    thread pool; their results come back to run() to be merged.

    An unparsable root url leaves the engine FAILED; run() and restore() then raise
    the ConfigError.
    """

    def __init__(
        self,
        root_url: str,
        fetcher: Optional[PageFetcher] = None,
        parser: Optional[MarkupParser] = None,
        policy: Optional[ScrapePolicy] = None,
        extractor: Optional[EmailExtractor] = None,
        store: Optional[SnapshotStore] = None,
        workers: int = 1,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.status = CrawlStatus.IDLE
        self.error: Optional[ConfigError] = None
        self.ctx: Optional[RootContext] = None
        try:
            self.ctx = RootContext.from_url(root_url)
        except ConfigError as exc:
            logger.error("Cannot crawl %r: %s", root_url, exc)
            self.error = exc
            self.status = CrawlStatus.FAILED

        self.fetcher = fetcher or PageFetcher()
        self.parser = parser or MarkupParser()
        self.policy = policy or DefaultPolicy()
        self.extractor = extractor or EmailExtractor()
        self.store = store
        self.workers = workers

        self.frontier = Frontier()
        self.pages_crawled = 0
        self.pages_failed = 0
        self._found: set[str] = set()
        self._in_flight: dict[Future, str] = {}
        self._cancel = threading.Event()
        self._result: Optional[frozenset[str]] = None

    @property
    def root_url(self) -> Optional[str]:
        return self.ctx.root_url if self.ctx else None

    @property
    def found_emails(self) -> frozenset[str]:
        return frozenset(self._found)

    def cancel(self) -> None:
        """Stop issuing fetches; pages already in flight are still merged."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def restore(self) -> bool:
        """Merge a saved snapshot for this root into the fresh state. True if one was found."""
        self._raise_if_failed()
        if self.status is not CrawlStatus.IDLE:
            raise RuntimeError("restore() must be called before run()")
        if self.store is None:
            return False
        snap = self.store.load(self.ctx.root_url)
        if snap is None:
            return False
        self.frontier.restore(snap.frontier, snap.visited)
        self._found.update(snap.found_emails)
        logger.info(
            "Resumed %s: %d queued, %d seen, %d emails",
            self.ctx.root_url,
            len(snap.frontier),
            len(snap.visited),
            len(snap.found_emails),
        )
        return True

    def run(self) -> frozenset[str]:
        self._raise_if_failed()
        if self.status is CrawlStatus.TERMINATED:
            return self._result
        if self.status is not CrawlStatus.IDLE:
            raise RuntimeError(f"crawl is already {self.status.value}")

        self.status = CrawlStatus.RUNNING
        logger.info("Crawling site: %s (workers=%d)", self.ctx.root_url, self.workers)
        self.add_link(self.ctx.root_url)

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="fetch") as pool:
            try:
                self._loop(pool)
            except KeyboardInterrupt:
                logger.warning("Interrupted, waiting for %d in-flight page(s)", len(self._in_flight))
                self._cancel.set()
                self._drain()

        self.status = CrawlStatus.DRAINING
        if self._cancel.is_set():
            logger.info("Crawl cancelled with %d page(s) still queued", len(self.frontier))
        else:
            logger.info("Exhausted pages")
        self._save_snapshot()
        self._result = frozenset(self._found)
        self.status = CrawlStatus.TERMINATED
        logger.info(
            "Crawled %d page(s) (%d failed), found %d email(s)",
            self.pages_crawled,
            self.pages_failed,
            len(self._result),
        )
        return self._result

    def add_link(self, link: str) -> bool:
        """Normalize, scope-check and enqueue a discovered link. True if it was new."""
        try:
            url = normalize_url(link, self.ctx)
        except LinkUnparsable as exc:
            logger.debug("Dropping link %s", exc)
            return False
        if not in_scope(url, self.ctx):
            return False
        if self.frontier.try_enqueue(url):
            logger.debug("Adding url: %s", url)
            return True
        return False

    def _raise_if_failed(self) -> None:
        if self.status is CrawlStatus.FAILED:
            raise self.error

    def _loop(self, pool: ThreadPoolExecutor) -> None:
        while True:
            while not self._cancel.is_set() and len(self._in_flight) < self.workers:
                try:
                    url = self.frontier.dequeue()
                except FrontierEmpty:
                    break
                if self._skip(url):
                    continue
                self._in_flight[pool.submit(self.process_page, url)] = url

            if not self._in_flight:
                return

            done, _ = wait(list(self._in_flight), return_when=FIRST_COMPLETED)
            for fut in done:
                self._merge(self._in_flight.pop(fut), fut)

    def _drain(self) -> None:
        if self._in_flight:
            wait(list(self._in_flight))
        for fut in list(self._in_flight):
            self._merge(self._in_flight.pop(fut), fut)

    def _skip(self, url: str) -> bool:
        if not url or not url.strip():
            return True
        if probably_not_html(url):
            logger.debug("Skipping [%s]: probably not html", url)
            return True
        if not in_scope(url, self.ctx):
            logger.debug("Skipping [%s]: out of scope", url)
            return True
        return False

    def process_page(self, url: str) -> PageResult:
        """Fetch, parse and (if the policy allows) scan one page. Runs on a worker thread."""
        logger.info("Scraping page: %s", url)
        try:
            body = self.fetcher.fetch(url)
            page = self.parser.parse(body)
        except (FetchError, ParseError) as exc:
            logger.warning("Treating %s as empty: %s", url, exc)
            return PageResult(url, failed=True)

        emails: set[str] = set()
        if self.policy.should_scrape_emails(url):
            logger.debug("Scanning for email addresses: %s", url)
            try:
                emails = self.extractor.extract(page.text)
            except Exception:
                logger.exception("Email extraction failed on %s, keeping its links", url)
        return PageResult(url, links=page.links, emails=emails)

    def _merge(self, url: str, fut: Future) -> None:
        try:
            result = fut.result()
        except Exception:
            logger.exception("Unexpected error while processing %s", url)
            result = PageResult(url, failed=True)

        self.pages_crawled += 1
        if result.failed:
            self.pages_failed += 1
        added = sum(1 for link in result.links if self.add_link(link))
        new = result.emails - self._found
        self._found.update(result.emails)
        if new:
            logger.info("Found addresses on %s: %s", url, ", ".join(sorted(new)))
        logger.info("Queue length: %d (+%d from %s)", len(self.frontier), added, url)
        self._save_snapshot()

    def snapshot(self) -> CrawlSnapshot:
        in_flight = list(self._in_flight.values())
        return CrawlSnapshot(
            root_url=self.ctx.root_url,
            frontier=in_flight + self.frontier.pending(),
            visited=sorted(self.frontier.visited()),
            found_emails=sorted(self._found),
        )

    def _save_snapshot(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self.ctx.root_url, self.snapshot())
        except OSError as exc:
            logger.warning("Could not save snapshot for %s: %s", self.ctx.root_url, exc)
