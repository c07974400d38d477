"""
Rate Limiter - Per-domain parallelism and random delay
======================================================

Limits outbound quote page requests with:
- Domain glob rules (``*finance.yahoo.*``)
- Maximum in-flight requests per rule
- Fixed plus random delay before each request to mimic human behavior

Requests to hosts that match no rule are not limited.
"""

import asyncio
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass
from fnmatch import fnmatch
from typing import AsyncIterator, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from quote_scraper.utils.logger import get_logger

log = get_logger(__name__)


@dataclass(slots=True)
class LimitRule:
    """
    Limit applied to every host matching ``domain_glob``.

    Attributes:
        domain_glob: fnmatch-style pattern matched against the request host
        parallelism: maximum concurrent in-flight requests for matching hosts
        delay: fixed delay in seconds before each request
        random_delay: upper bound of an extra uniform random delay in seconds
    """

    domain_glob: str
    parallelism: int = 2
    delay: float = 0.0
    random_delay: float = 0.0

    def __post_init__(self) -> None:
        if self.parallelism < 1:
            raise ValueError("parallelism must be at least 1")
        if self.delay < 0 or self.random_delay < 0:
            raise ValueError("delays must be non-negative")

    def matches(self, host: str) -> bool:
        return fnmatch(host.lower(), self.domain_glob.lower())


class DomainLimiter:
    """
    Bounds concurrent requests per domain glob.

    Example:
        >>> limiter = DomainLimiter([LimitRule("*finance.yahoo.*", parallelism=2, random_delay=2.0)])
        >>> async with limiter.slot(url):
        ...     response = await client.get(url)
    """

    def __init__(self, rules: Sequence[LimitRule] = ()):
        self.rules: List[LimitRule] = list(rules)
        self._semaphores = [asyncio.Semaphore(rule.parallelism) for rule in self.rules]
        self._in_flight = [0] * len(self.rules)
        self._peak = [0] * len(self.rules)

        for rule in self.rules:
            log.info(
                "LimitRule for {}: parallelism={}, delay={}s, random_delay<={}s",
                rule.domain_glob,
                rule.parallelism,
                rule.delay,
                rule.random_delay,
            )

    def _match(self, url: str) -> Optional[int]:
        host = urlparse(url).hostname or ""
        for idx, rule in enumerate(self.rules):
            if rule.matches(host):
                return idx
        return None

    def _calculate_delay(self, rule: LimitRule) -> float:
        if rule.random_delay <= 0:
            return rule.delay
        return rule.delay + random.uniform(0, rule.random_delay)

    @asynccontextmanager
    async def slot(self, url: str) -> AsyncIterator[None]:
        """
        Hold one in-flight slot for ``url`` for the duration of the block.

        The delay is served while holding the slot, so a rule's parallelism
        also bounds how many requests can be waiting out their delay.
        """
        idx = self._match(url)
        if idx is None:
            yield
            return

        rule = self.rules[idx]
        async with self._semaphores[idx]:
            delay = self._calculate_delay(rule)
            if delay > 0:
                log.debug("Waiting {:.2f}s before requesting {}", delay, url)
                await asyncio.sleep(delay)

            self._in_flight[idx] += 1
            self._peak[idx] = max(self._peak[idx], self._in_flight[idx])
            try:
                yield
            finally:
                self._in_flight[idx] -= 1

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        """
        Current and peak in-flight counts per rule.
        """
        return {
            rule.domain_glob: {
                "parallelism": rule.parallelism,
                "in_flight": self._in_flight[idx],
                "peak_in_flight": self._peak[idx],
            }
            for idx, rule in enumerate(self.rules)
        }


__all__ = ["LimitRule", "DomainLimiter"]
