"""
Crawler configuration.

Defaults live on CrawlConfig; a YAML file (see crawler.yaml) can override any of
them and command-line flags override the file.
"""
from __future__ import annotations
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Optional

import yaml

from emailcrawler.errors import ConfigError
from emailcrawler.policy import DEFAULT_EXCLUDED_SEGMENTS, POLICIES

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; emailcrawler/0.1)"


@dataclass
class CrawlConfig:
    # fetching
    timeout: float = 10.0
    retries: int = 2
    backoff_seconds: float = 1.5
    user_agent: str = DEFAULT_USER_AGENT
    proxy_host: Optional[str] = None
    proxy_port: Optional[int] = None
    workers: int = 1

    # email validation
    check_dns: bool = True
    dns_timeout: float = 5.0

    # snapshots
    data_dir: str = "data"
    snapshot: bool = True
    resume: bool = True

    # scrape policy
    policy: str = "profile"
    profile_excluded_segments: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_SEGMENTS))
    profile_member_markers: list[str] = field(default_factory=list)

    def validate(self) -> "CrawlConfig":
        if self.policy not in POLICIES:
            raise ConfigError(f"unknown policy {self.policy!r} (expected one of {', '.join(POLICIES)})")
        for name in ("timeout", "dns_timeout", "workers"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive")
        for name in ("retries", "backoff_seconds"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative")
        if (self.proxy_host is None) != (self.proxy_port is None):
            raise ConfigError("proxy_host and proxy_port must be given together")
        return self

    @property
    def proxies(self) -> Optional[dict[str, str]]:
        if not self.proxy_host:
            return None
        proxy = f"http://{self.proxy_host}:{self.proxy_port}"
        return {"http": proxy, "https": proxy}


_FIELD_TYPES = {
    "timeout": (int, float),
    "retries": int,
    "backoff_seconds": (int, float),
    "user_agent": str,
    "proxy_host": str,
    "proxy_port": int,
    "workers": int,
    "check_dns": bool,
    "dns_timeout": (int, float),
    "data_dir": str,
    "snapshot": bool,
    "resume": bool,
    "policy": str,
    "profile_excluded_segments": list,
    "profile_member_markers": list,
}


def load_config(path: Optional[str] = None, **overrides) -> CrawlConfig:
    """
    Build a CrawlConfig from defaults, then the YAML file at path, then overrides.
    Overrides that are None are ignored so argparse defaults do not clobber the file.
    """
    values: dict = {}
    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as exc:
            raise ConfigError(f"cannot read config {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        logger.info("Loaded config from %s", path)
        values.update(data)

    values.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in dataclasses.fields(CrawlConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
    for key, value in values.items():
        expected = _FIELD_TYPES[key]
        # bool is an int subclass; do not let `workers: true` through
        if value is not None and (not isinstance(value, expected) or (isinstance(value, bool) and expected is not bool)):
            raise ConfigError(f"config key {key!r} has wrong type {type(value).__name__}")

    return CrawlConfig(**values).validate()
