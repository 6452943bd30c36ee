# File: dealer_scout/crawler/__init__.py
"""dealer_scout.crawler: URL resolution, fetching and link extraction."""
