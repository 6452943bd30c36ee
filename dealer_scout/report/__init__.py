# File: dealer_scout/report/__init__.py
"""dealer_scout.report: JSON- и HTML-отчёты для CLI."""

from .html_report import render_html
from .json_report import render_json

__all__ = ["render_json", "render_html"]
