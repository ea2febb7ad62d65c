from __future__ import annotations
import argparse
import logging
import sys
from typing import Optional, Sequence

from emailcrawler.config import CrawlConfig, load_config
from emailcrawler.emails import DnsResolver, EmailExtractor
from emailcrawler.engine import CrawlEngine
from emailcrawler.errors import ConfigError, SnapshotError
from emailcrawler.fetcher import PageFetcher
from emailcrawler.parser import MarkupParser
from emailcrawler.policy import POLICIES, policy_from_config
from emailcrawler.storage import SnapshotStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 2


def _configure_logging(verbose: bool = False) -> None:
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(levelname)s %(message)s")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="emailcrawler",
        description="Crawl one site breadth-first and print the email addresses found on it.",
    )
    p.add_argument("root_url", help="page to start from; only urls on its host are followed")
    p.add_argument("proxy_host", nargs="?", help="HTTP proxy host")
    p.add_argument("proxy_port", nargs="?", type=int, help="HTTP proxy port")
    p.add_argument("--config", help="YAML file with crawler settings")
    p.add_argument("--policy", choices=POLICIES, help="which pages to scan for emails")
    p.add_argument("--workers", type=int, help="pages fetched concurrently")
    p.add_argument("--data-dir", help="directory for resumable snapshots")
    p.add_argument("--no-resume", action="store_true", help="ignore any saved snapshot")
    p.add_argument("--no-dns", action="store_true", help="accept addresses on syntax alone")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def build_engine(root_url: str, cfg: CrawlConfig) -> CrawlEngine:
    resolver = DnsResolver(timeout=cfg.dns_timeout) if cfg.check_dns else None
    return CrawlEngine(
        root_url,
        fetcher=PageFetcher.from_config(cfg),
        parser=MarkupParser(),
        policy=policy_from_config(cfg),
        extractor=EmailExtractor(resolver=resolver, check_dns=cfg.check_dns),
        store=SnapshotStore(cfg.data_dir) if cfg.snapshot else None,
        workers=cfg.workers,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        cfg = load_config(
            args.config,
            proxy_host=args.proxy_host,
            proxy_port=args.proxy_port,
            policy=args.policy,
            workers=args.workers,
            data_dir=args.data_dir,
            resume=False if args.no_resume else None,
            check_dns=False if args.no_dns else None,
        )
    except ConfigError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG

    if cfg.proxies:
        logger.info("Setting proxy: %s %s", cfg.proxy_host, cfg.proxy_port)

    engine = build_engine(args.root_url, cfg)
    try:
        if cfg.resume:
            engine.restore()
        emails = engine.run()
    except ConfigError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG
    except SnapshotError as exc:
        logger.error("%s (rerun with --no-resume to start over)", exc)
        return EXIT_CONFIG

    print("--output--")
    for addr in sorted(emails):
        print(addr)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
