"""
Entra Directory CLI
===================

A command line client for querying an organizational directory service.

This package provides adapters, facades, and formatters for working with:
- Directory users, managers and groups (Microsoft Graph)
- Ad-hoc HTTP requests with flattened JSON display

For more information, see the README.md file.
"""

__version__ = "0.1.0"
