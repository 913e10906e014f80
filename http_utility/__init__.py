from .http_request import HttpRequestUtility, parse_headers

__all__ = ['HttpRequestUtility', 'parse_headers']
