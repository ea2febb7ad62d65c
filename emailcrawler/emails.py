"""
Email harvesting from page text.

Every whitespace-delimited token goes through two checks:
- stage 1: address grammar only (cheap, no network)
- stage 2: grammar + the domain must accept mail (MX, falling back to A/AAAA)

Tokens whose domain has no dot (user@gmail) get one more try as user@gmail.com.
"""
from __future__ import annotations
import logging
import re
import threading
from typing import Optional, Protocol, Set

import dns.exception
import email_validator
from email_validator import EmailNotValidError

from emailcrawler.errors import ValidationTimeout

logger = logging.getLogger(__name__)

_AROUND_AT = re.compile(r"\s*@\s*")

REPAIR_SUFFIX = ".com"


class MailResolver(Protocol):
    def is_deliverable(self, addr: str) -> bool: ...


class DnsResolver:
    """
    Deliverability checks through email_validator, sharing one caching dnspython
    resolver across worker threads.

    A lookup the library could not finish (timeout, no nameservers) raises
    ValidationTimeout. A machine with no usable resolver config treats every
    address as undeliverable instead of failing the page.
    """

    def __init__(self, timeout: float = 5.0, dns_resolver=None):
        self.timeout = timeout
        self._dns_resolver = dns_resolver
        self._setup_error: Optional[dns.exception.DNSException] = None
        self._lock = threading.Lock()

    def _resolver(self):
        with self._lock:
            if self._dns_resolver is None and self._setup_error is None:
                try:
                    self._dns_resolver = email_validator.caching_resolver(timeout=self.timeout)
                except dns.exception.DNSException as exc:
                    logger.warning("No usable DNS resolver, email domains cannot be checked: %s", exc)
                    self._setup_error = exc
            return self._dns_resolver

    def is_deliverable(self, addr: str) -> bool:
        resolver = self._resolver()
        if resolver is None:
            return False
        try:
            result = email_validator.validate_email(addr, check_deliverability=True, dns_resolver=resolver)
        except EmailNotValidError as exc:
            logger.debug("Undeliverable %s: %s", addr, exc)
            return False
        # the library accepts addresses whose lookup never got an answer
        if getattr(result, "mx", None) is None:
            raise ValidationTimeout(addr.rsplit("@", 1)[1])
        return True


def is_valid_syntax(addr: str) -> bool:
    """Address grammar only. Dotless domains pass here so they can be repaired later."""
    try:
        email_validator.validate_email(addr, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        return False
    return True


def validate_email_address(addr: str, check_dns: bool, resolver: Optional[MailResolver] = None) -> bool:
    """One validation pass: syntax, plus a deliverability lookup when check_dns is set."""
    if not is_valid_syntax(addr):
        return False
    if not check_dns:
        return True
    if resolver is None:
        raise ValueError("check_dns requires a resolver")
    try:
        return resolver.is_deliverable(addr)
    except ValidationTimeout as exc:
        logger.info("Treating %s as invalid: %s", addr, exc)
        return False


class EmailExtractor:
    def __init__(self, resolver: Optional[MailResolver] = None, check_dns: bool = True):
        if check_dns and resolver is None:
            resolver = DnsResolver()
        self.resolver = resolver
        self.check_dns = check_dns

    def check(self, token: str) -> Optional[str]:
        """Return the address to record for token (possibly repaired), or None."""
        if not validate_email_address(token, check_dns=False):
            return None
        if not self.check_dns:
            return token
        if validate_email_address(token, check_dns=True, resolver=self.resolver):
            return token
        domain = token.rsplit("@", 1)[1]
        if "." not in domain:
            repaired = token + REPAIR_SUFFIX
            if validate_email_address(repaired, check_dns=False) and validate_email_address(
                repaired, check_dns=True, resolver=self.resolver
            ):
                logger.debug("Repaired %s -> %s", token, repaired)
                return repaired
        return None

    def extract(self, page_text: str) -> Set[str]:
        if not page_text:
            return set()
        found: Set[str] = set()
        for token in _AROUND_AT.sub("@", page_text).split():
            if "@" not in token:
                continue
            addr = self.check(token)
            if addr:
                found.add(addr)
        return found


def extract_emails(page_text: str, resolver: Optional[MailResolver] = None, check_dns: bool = True) -> Set[str]:
    return EmailExtractor(resolver=resolver, check_dns=check_dns).extract(page_text)
