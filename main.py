#!/usr/bin/env python3
"""
Quote Scraper - Main Entry Point
================================

Scrapes the latest quote price for one page of assets per run and stores it
in MongoDB. The page advances through the asset collection via a persisted
checkpoint.

Usage:
    python main.py                          # One cycle from the checkpoint
    python main.py --mode once --page-size 20
    python main.py --mode once --all        # Every asset, checkpoint untouched
    python main.py --mode scheduler         # One cycle every interval
    python main.py --init-indexes           # Create MongoDB indexes and exit
    python main.py --help                   # Show help
"""

import sys

from quote_scraper.cli import main

if __name__ == "__main__":
    sys.exit(main())
