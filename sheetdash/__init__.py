"""Spreadsheet, dashboard and AI assistant backend"""

__version__ = "1.0.0"
