"""Core paging, scraping and persistence modules."""

from .checkpoint import advance, next_checkpoint
from .errors import ConfigError, ExtractionError, PersistenceError, QuoteScraperError, ScrapeError

__all__ = [
    "advance",
    "next_checkpoint",
    "ConfigError",
    "ExtractionError",
    "PersistenceError",
    "QuoteScraperError",
    "ScrapeError",
]
