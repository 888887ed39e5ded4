"""Render a CSV (usually a published Google Sheet) as an RSS feed or HTML page."""

__version__ = '0.3.0'
