"""Fusion scraper: page fetching, extraction and listing crawls."""
