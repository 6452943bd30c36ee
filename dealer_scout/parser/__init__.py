# File: dealer_scout/parser/__init__.py
"""dealer_scout.parser: HTML parsing helpers shared by the scanners."""
