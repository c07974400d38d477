"""
Quote Page Parser - Price Extraction
====================================

Extracts the regular-market price from a Yahoo Finance quote page.

The price is the text of the ``span`` carrying ``data-reactid="32"`` inside
the ``div#quote-header-info`` block. This marker is tied to the page's
render tree and breaks whenever the page layout changes, so the selector is
configurable.
"""

import math
import re
from typing import Optional

from bs4 import BeautifulSoup

from quote_scraper.core.errors import ExtractionError
from quote_scraper.utils.logger import get_logger

log = get_logger(__name__)

DEFAULT_PRICE_SELECTOR = 'div#quote-header-info span[data-reactid="32"]'

# Thousands separators and surrounding whitespace, e.g. "1,234.50"
_NOISE = re.compile(r"[,\s]")


def parse_price_text(raw: Optional[str]) -> float:
    """
    Parse displayed price text as a float.

    Raises:
        ExtractionError: text is empty or not numeric
    """
    cleaned = _NOISE.sub("", raw or "")
    if not cleaned:
        raise ExtractionError("Price text is empty", raw_value=raw)
    try:
        value = float(cleaned)
    except ValueError as exc:
        raise ExtractionError(f"Price text is not a number: {raw!r}", raw_value=raw) from exc
    if not math.isfinite(value):
        raise ExtractionError(f"Price text is not a finite number: {raw!r}", raw_value=raw)
    return value


class YahooQuoteParser:
    """
    Parser for Yahoo Finance quote pages.
    """

    def __init__(self, selector: str = DEFAULT_PRICE_SELECTOR, features: str = "lxml"):
        self.selector = selector
        self.features = features

    def find_price_text(self, html: str) -> Optional[str]:
        """Text of the first element matching the selector, or None."""
        soup = BeautifulSoup(html, self.features)
        element = soup.select_one(self.selector)
        if element is None:
            return None
        return element.get_text(strip=True)

    def extract_price(self, html: str) -> Optional[float]:
        """
        Price on the page.

        Returns:
            The parsed price, or None when no element matches the selector.

        Raises:
            ExtractionError: the element exists but its text is not a number
        """
        text = self.find_price_text(html)
        if text is None:
            log.debug("Selector {} matched nothing", self.selector)
            return None
        try:
            return parse_price_text(text)
        except ExtractionError as exc:
            exc.selector = self.selector
            exc.details["selector"] = self.selector
            raise


__all__ = ["YahooQuoteParser", "parse_price_text", "DEFAULT_PRICE_SELECTOR"]
