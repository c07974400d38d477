"""Checkpointed quote price scraper: Yahoo Finance quote pages to MongoDB."""

__version__ = "1.0.0"
