"""
Quote scraper error hierarchy for clear classification in logs.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class QuoteScraperError(Exception):
    """Base class for all quote scraper errors."""

    def __init__(
        self,
        message: str,
        *,
        ticker: Optional[str] = None,
        phase: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.ticker = ticker
        self.phase = phase
        self.details = details or {}

    def as_dict(self) -> Dict[str, Any]:
        """Serializable representation for logs."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "ticker": self.ticker,
            "phase": self.phase,
            "details": self.details,
        }


class ConfigError(QuoteScraperError):
    """Raised on missing/invalid configuration values. Fatal at startup."""

    def __init__(
        self,
        message: str,
        *,
        key: Optional[str] = None,
        section: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.key = key
        self.section = section
        if key is not None:
            self.details["key"] = key
        if section is not None:
            self.details["section"] = section


class PersistenceError(QuoteScraperError):
    """Raised when a document store operation (count/find/upsert) fails."""

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        collection: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.operation = operation
        self.collection = collection
        if operation is not None:
            self.details["operation"] = operation
        if collection is not None:
            self.details["collection"] = collection


class ScrapeError(QuoteScraperError):
    """Raised while fetching a quote page (transport, HTTP status, domain)."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.source = source
        self.status_code = status_code
        self.url = url
        if source is not None:
            self.details["source"] = source
        if status_code is not None:
            self.details["status_code"] = status_code
        if url is not None:
            self.details["url"] = url


class ExtractionError(QuoteScraperError):
    """Raised when a fetched page does not yield a parseable price."""

    def __init__(
        self,
        message: str,
        *,
        selector: Optional[str] = None,
        raw_value: Optional[str] = None,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.selector = selector
        self.raw_value = raw_value
        if selector is not None:
            self.details["selector"] = selector
        if raw_value is not None:
            self.details["raw_value"] = raw_value


__all__ = [
    "QuoteScraperError",
    "ConfigError",
    "PersistenceError",
    "ScrapeError",
    "ExtractionError",
]
