"""
Scripts package for the Entra Directory CLI.

This package contains command-line scripts organized by functionality.

Subpackages:
- directory: The directory lookup and ad-hoc HTTP request command line client
"""
