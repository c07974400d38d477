"""
Headers Manager - Browser-like HTTP Headers
============================================

Manages browser-like HTTP headers for quote page requests with:
- User-Agent rotation on every request
- Referer management (previous page on the same host, else the site root)
"""

import random
from typing import Dict, List, Optional
from urllib.parse import urlparse

from quote_scraper.utils.logger import get_logger

log = get_logger(__name__)

# Realistic browser User-Agents
USER_AGENTS = [
    # Chrome on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    # Chrome on macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    # Chrome on Linux
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    # Firefox
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:133.0) Gecko/20100101 Firefox/133.0",
    "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0",
    # Safari on macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.5 Safari/605.1.15",
    # Edge on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36 Edg/131.0.0.0",
]

ACCEPT_LANGUAGES = [
    "en-US,en;q=0.9",
    "en-GB,en;q=0.8",
    "en-CA,en;q=0.9,fr-CA;q=0.7",
]


def site_root(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}/"


class HeaderManager:
    """
    Rotates HTTP headers to mimic real browsers
    """

    def __init__(self, user_agents: Optional[List[str]] = None):
        """
        Args:
            user_agents: Optional list of User-Agents to use
        """
        self.user_agents = user_agents or USER_AGENTS
        self._last_url_by_host: Dict[str, str] = {}
        log.debug("HeaderManager initialized with {} user agents", len(self.user_agents))

    def referer_for(self, url: str) -> str:
        """Previously visited URL on the same host, or the site root."""
        host = urlparse(url).netloc
        return self._last_url_by_host.get(host) or site_root(url)

    def remember(self, url: str) -> None:
        """Record ``url`` as the referer for the next request to its host."""
        self._last_url_by_host[urlparse(url).netloc] = url

    def get_headers(self, url: str, referer: Optional[str] = None, additional_headers: Optional[Dict] = None) -> Dict[str, str]:
        """
        Generate a fresh set of page-navigation headers for ``url``.
        """
        referer = referer or self.referer_for(url)
        same_site = urlparse(referer).netloc == urlparse(url).netloc

        headers = {
            "User-Agent": random.choice(self.user_agents),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
            "Accept-Language": random.choice(ACCEPT_LANGUAGES),
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Site": "same-origin" if same_site else "cross-site",
            "Referer": referer,
        }

        if additional_headers:
            headers.update(additional_headers)

        return headers


__all__ = ["HeaderManager", "USER_AGENTS", "site_root"]
