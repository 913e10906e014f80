import logging
from typing import Any, Dict, Iterable, Optional

import requests
from requests.exceptions import JSONDecodeError
from rich.console import Console
from rich.text import Text

from formatting.json_flattener import render_as_single_row_table, render_indented

# Set up logging
logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ('GET', 'POST', 'PUT', 'DELETE')


def parse_headers(header_args: Optional[Iterable[str]]) -> Dict[str, str]:
    """
    Parse 'Key:Value' header arguments into a dictionary.

    Only the first colon separates key from value, so values such as URLs
    keep their colons. Entries without a colon or with an empty key are ignored.

    Args:
        header_args (Optional[Iterable[str]]): Raw header arguments.

    Returns:
        Dict[str, str]: Header names to values, both stripped.
    """
    headers = {}
    for header in header_args or []:
        name, separator, value = header.partition(':')
        if not separator or not name.strip():
            logger.warning(f"Ignoring malformed header: {header!r}")
            continue
        headers[name.strip()] = value.strip()
    return headers


class HttpRequestUtility:
    """
    Sends a single ad-hoc HTTP request and prints the response.

    JSON response bodies are shown both indented and flattened into a
    single-row table; anything else is printed as raw text.

    Attributes:
        timeout (int): Request timeout in seconds.
        console (Console): Console the response is printed to.
    """

    def __init__(self, timeout: int = 30, console: Optional[Console] = None):
        self.timeout = timeout
        self.console = console or Console()

    def execute(
        self,
        method: str,
        url: str,
        headers: Optional[Iterable[str]] = None,
        body: Optional[str] = None,
    ) -> Optional[requests.Response]:
        """
        Perform the request and display the result.

        Args:
            method (str): GET, POST, PUT or DELETE (case-insensitive).
            url (str): The URL to send the request to.
            headers (Optional[Iterable[str]]): Headers in 'Key:Value' format.
            body (Optional[str]): JSON body sent with POST and PUT.

        Returns:
            Optional[requests.Response]: The response, or None when the method
            is unsupported or the request could not be sent.
        """
        verb = (method or '').upper()
        if verb not in SUPPORTED_METHODS:
            logger.warning(f"Unsupported HTTP method: {method}")
            self.console.print(Text.assemble(('Unsupported HTTP method: ', 'red'), str(method)))
            return None

        request_headers = parse_headers(headers)
        logger.info(f"Sending {verb} request to {url}")

        try:
            if verb == 'GET':
                response = requests.get(url, headers=request_headers, timeout=self.timeout)
            elif verb == 'POST':
                response = requests.post(url, data=self._encode_body(body), headers=self._with_json_content_type(request_headers), timeout=self.timeout)
            elif verb == 'PUT':
                response = requests.put(url, data=self._encode_body(body), headers=self._with_json_content_type(request_headers), timeout=self.timeout)
            else:
                response = requests.delete(url, headers=request_headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Exception occurred during {verb} request: {str(e)}")
            self.console.print(Text.assemble(('Error occurred: ', 'red'), str(e)))
            return None

        self.display_response(response)
        return response

    @staticmethod
    def _encode_body(body: Optional[str]) -> bytes:
        return (body or '').encode('utf-8')

    @staticmethod
    def _with_json_content_type(headers: Dict[str, str]) -> Dict[str, str]:
        merged = {'Content-Type': 'application/json; charset=utf-8'}
        # Explicit headers win, whatever their capitalisation.
        if any(name.lower() == 'content-type' for name in headers):
            merged = {}
        merged.update(headers)
        return merged

    def display_response(self, response: requests.Response) -> None:
        """
        Print the outcome of a request.

        Args:
            response (requests.Response): The HTTP response object.
        """
        succeeded = 200 <= response.status_code < 300
        document = self._decode_body(response)

        if succeeded:
            logger.debug(f"{response.status_code} | Successful Request!")
            self.console.print('[green]Request succeeded![/]')
        else:
            logger.debug(f"{response.status_code} | Request failed")
            self.console.print(Text.assemble(
                ('Request failed with status code: ', 'red'), (str(response.status_code), 'yellow')
            ))

        if document is None:
            if response.text:
                self.console.print(Text(response.text))
            return

        render_indented(document, console=self.console)
        if succeeded:
            render_as_single_row_table(document, console=self.console)

    @staticmethod
    def _decode_body(response: requests.Response) -> Optional[Any]:
        if not response.text or not response.text.strip():
            return None
        try:
            return response.json()
        except (JSONDecodeError, ValueError):
            return None
