# emailcrawler/storage.py
from __future__ import annotations
import hashlib
import json
import logging
import os
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Optional

from emailcrawler.errors import SnapshotError

logger = logging.getLogger(__name__)


# flat record of a crawl; sets are stored as sorted lists so snapshots diff cleanly
@dataclass
class CrawlSnapshot:
    root_url: str
    frontier: list[str] = field(default_factory=list)
    visited: list[str] = field(default_factory=list)
    found_emails: list[str] = field(default_factory=list)


def snapshot_key(root_url: str) -> str:
    return hashlib.sha256(root_url.encode("utf-8")).hexdigest()


class SnapshotStore:
    """One JSON file per root url under data_dir, named by the url's sha256."""

    def __init__(self, data_dir: str | os.PathLike = "data"):
        self.data_dir = Path(data_dir)

    def path_for(self, root_url: str) -> Path:
        return self.data_dir / snapshot_key(root_url)

    def save(self, root_url: str, snapshot: CrawlSnapshot) -> None:
        path = self.path_for(root_url)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(asdict(snapshot), f, ensure_ascii=False)
        os.replace(tmp, path)
        logger.debug("Saved snapshot for %s to %s", root_url, path)

    def load(self, root_url: str) -> Optional[CrawlSnapshot]:
        path = self.path_for(root_url)
        if not path.exists():
            return None
        logger.info("Loading snapshot for %s from %s", root_url, path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise SnapshotError(f"cannot read snapshot {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SnapshotError(f"snapshot {path} is not a JSON object")
        try:
            return CrawlSnapshot(
                root_url=data.get("root_url", root_url),
                frontier=list(data.get("frontier", [])),
                visited=list(data.get("visited", [])),
                found_emails=list(data.get("found_emails", [])),
            )
        except TypeError as exc:
            raise SnapshotError(f"snapshot {path} has malformed fields: {exc}") from exc
