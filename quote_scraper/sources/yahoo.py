"""
Yahoo Finance quote pages
=========================

Builds quote-detail page URLs for a ticker.
"""

from urllib.parse import quote

DEFAULT_QUOTE_URL_TEMPLATE = "https://finance.yahoo.com/quote/{ticker}?p={ticker}"


def build_quote_url(ticker: str, template: str = DEFAULT_QUOTE_URL_TEMPLATE) -> str:
    """
    Quote page URL for ``ticker``.

    The ticker is URL-encoded, so symbols like ``BRK.B`` or ``^GSPC`` are
    safe to pass through.

    >>> build_quote_url("VFV.TO")
    'https://finance.yahoo.com/quote/VFV.TO?p=VFV.TO'
    """
    ticker = ticker.strip()
    if not ticker:
        raise ValueError("ticker is required")
    return template.format(ticker=quote(ticker, safe="."))


class QuoteUrlBuilder:
    """Callable URL builder bound to a configured template."""

    def __init__(self, template: str = DEFAULT_QUOTE_URL_TEMPLATE):
        self.template = template

    def __call__(self, ticker: str) -> str:
        return build_quote_url(ticker, self.template)


__all__ = ["build_quote_url", "QuoteUrlBuilder", "DEFAULT_QUOTE_URL_TEMPLATE"]
