"""Quote page sources."""

from .yahoo import QuoteUrlBuilder, build_quote_url
from .yahoo_parser import YahooQuoteParser, parse_price_text

__all__ = ["QuoteUrlBuilder", "build_quote_url", "YahooQuoteParser", "parse_price_text"]
