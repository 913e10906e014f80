import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

import requests
from requests.exceptions import JSONDecodeError

from ..exceptions import (
    DirectoryAuthenticationError,
    DirectoryObjectNotFoundError,
    DirectoryRequestError,
)

# Set up logging
logger = logging.getLogger(__name__)

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
NEXT_LINK_KEY = "@odata.nextLink"


def get_oauth_token(
    tenant_id: str,
    client_id: str,
    client_secret: str,
    authority: str = "https://login.microsoftonline.com",
    scope: str = GRAPH_SCOPE,
    timeout: int = 30,
) -> str:
    """
    Obtain an access token for the directory API using the client credentials flow.

    The exchange happens once per client; tokens are not cached or refreshed.

    Args:
        tenant_id (str): The directory tenant ID.
        client_id (str): The app registration client ID.
        client_secret (str): The app registration client secret.
        authority (str): The identity platform host the token endpoint lives under.
        scope (str): The requested scope for the token.
        timeout (int): Request timeout in seconds.

    Returns:
        str: The access token.

    Raises:
        DirectoryAuthenticationError: If the exchange fails or the response
        does not contain an access token.
    """
    token_url = f"{authority.rstrip('/')}/{tenant_id}/oauth2/v2.0/token"
    data = {
        "grant_type": "client_credentials",
        "client_id": client_id,
        "client_secret": client_secret,
        "scope": scope,
    }

    logger.debug(f"Requesting access token for tenant: {tenant_id}")

    try:
        response = requests.post(token_url, data=data, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"Token request failed with exception: {str(e)}")
        raise DirectoryAuthenticationError(f"Token request failed: {e}") from e

    if response.status_code != 200:
        logger.error(f"Token request failed: {response.status_code}")
        logger.error(f"Response: {response.text}")
        raise DirectoryAuthenticationError(
            f"Token request failed ({response.status_code}): {response.text}"
        )

    try:
        token_data = response.json()
    except JSONDecodeError as e:
        raise DirectoryAuthenticationError("Token response was not valid JSON") from e

    access_token = token_data.get("access_token")
    if not access_token:
        raise DirectoryAuthenticationError("Token response missing access_token")

    logger.debug(f"Access token obtained, expires in {token_data.get('expires_in', '?')} seconds")
    return access_token


def create_headers(access_token: str) -> Dict[str, str]:
    """
    Create HTTP headers for directory API requests.

    ConsistencyLevel is always sent because advanced filters ($count,
    startswith on some properties) are rejected without it.

    Args:
        access_token (str): The bearer token for authentication.

    Returns:
        Dict[str, str]: A dictionary containing the required HTTP headers.
    """
    return {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json",
        "ConsistencyLevel": "eventual",
    }


def odata_quote(value: str) -> str:
    """Quote a string literal for an OData $filter expression."""
    return "'" + str(value).replace("'", "''") + "'"


def walk_pages(
    first_page: Optional[Dict[str, Any]],
    fetch_page: Callable[[str], Optional[Dict[str, Any]]],
    first_link: Optional[str] = None,
) -> Iterator[Dict[str, Any]]:
    """
    Yield every item of a paginated collection, following next-links until exhausted.

    Args:
        first_page: The already fetched first page (a dict with 'value' and an
            optional '@odata.nextLink').
        fetch_page: Callable that fetches the page behind a next-link.
        first_link: URL the first page was fetched from; a next-link pointing
            back at it counts as a repeat.

    Yields:
        Dict[str, Any]: Items in page order, then in-page order.

    Raises:
        DirectoryRequestError: If the server hands back a next-link that was
        already followed.
    """
    followed = {first_link} if first_link else set()
    page = first_page

    while page:
        for item in page.get("value") or []:
            yield item

        next_link = page.get(NEXT_LINK_KEY)
        if not next_link:
            return

        if next_link in followed:
            raise DirectoryRequestError(f"Pagination did not advance: {next_link}")
        followed.add(next_link)

        logger.debug(f"Following next link: {next_link[:80]}...")
        page = fetch_page(next_link)


class GraphAPI:
    """
    Base class for interacting with the directory REST API.

    This class provides methods for making HTTP requests to the directory
    endpoints, handling responses and following paginated collections.

    Attributes:
        base_url (str): The base URL for the directory API (including version).
        headers (Dict[str, str]): HTTP headers to use for API requests.
        timeout (int): Request timeout in seconds.
    """

    def __init__(self, base_url: str, headers: Dict[str, str], timeout: int = 30):
        """
        Initialize the directory API client.

        Args:
            base_url (str): The base URL for the directory API.
            headers (Dict[str, str]): HTTP headers to use for API requests.
            timeout (int): Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.headers = headers
        self.timeout = timeout

    def _build_url(self, url_suffix: str) -> str:
        # next-links come back as absolute URLs
        if url_suffix.startswith("http"):
            return url_suffix
        return f"{self.base_url}/{url_suffix.lstrip('/')}"

    def get(
        self, url_suffix: str, params: Optional[Dict[str, Any]] = None
    ) -> Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]:
        """
        Perform a GET request to the specified directory endpoint.

        Args:
            url_suffix (str): The endpoint path to append to the base URL, or an
                absolute URL such as a next-link.
            params (Optional[Dict[str, Any]]): OData query parameters.

        Returns:
            Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]: The JSON response
            from the API, None for empty bodies.

        Raises:
            DirectoryRequestError: On transport failures and non-success statuses.
        """
        url = self._build_url(url_suffix)

        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Connection error during GET request: {str(e)} (URL: {url_suffix[:80]})")
            raise DirectoryRequestError(f"GET {url_suffix} failed: {e}") from e

        return self._handle_response(response)

    def iterate_pages(
        self, url_suffix: str, params: Optional[Dict[str, Any]] = None
    ) -> Iterator[Dict[str, Any]]:
        """
        Lazily iterate every item of a collection endpoint across all pages.

        Args:
            url_suffix (str): The collection endpoint path.
            params (Optional[Dict[str, Any]]): OData query parameters for the first page.
                Next-links already carry the query, so params are not resent.

        Yields:
            Dict[str, Any]: Raw directory objects.
        """
        first_page = self.get(url_suffix, params=params)
        first_link = requests.Request('GET', self._build_url(url_suffix), params=params).prepare().url
        yield from walk_pages(first_page, self.get, first_link=first_link)

    def _handle_response(
        self, response: requests.Response
    ) -> Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]:
        """
        Handle the HTTP response from the directory API.

        Args:
            response (requests.Response): The HTTP response object.

        Returns:
            Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]: The JSON response
            if successful, None when the body is empty.

        Raises:
            DirectoryObjectNotFoundError: For 404 responses.
            DirectoryRequestError: For every other non-success status.
        """
        if response.status_code in (200, 201):
            logger.debug(f"{response.status_code} | Successful Request!")
            try:
                return response.json()
            except (JSONDecodeError, ValueError):
                return None
        elif response.status_code == 204:
            logger.debug(f"{response.status_code} | No Content")
            return None

        error_code, error_message = self._parse_error(response)
        logger.debug(f"Request failed: {response.status_code} {error_code}")

        if response.status_code == 404:
            raise DirectoryObjectNotFoundError(
                error_message or "Resource not found",
                status_code=response.status_code,
                error_code=error_code,
            )

        raise DirectoryRequestError(
            f"Request failed ({response.status_code}): {error_message or response.text}",
            status_code=response.status_code,
            error_code=error_code,
        )

    @staticmethod
    def _parse_error(response: requests.Response):
        """Extract the OData error code and message from an error response body."""
        try:
            body = response.json()
        except (JSONDecodeError, ValueError):
            return None, None

        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            return None, None
        return error.get("code"), error.get("message")
