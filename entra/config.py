import os
from typing import Dict, Any, List
from dotenv import load_dotenv

from .exceptions import DirectoryConfigurationError

load_dotenv()

DEFAULT_BASE_URL = 'https://graph.microsoft.com/v1.0'
DEFAULT_AUTHORITY = 'https://login.microsoftonline.com'

# Primary variable name first, then the AzureAd:* style alias.
_CREDENTIAL_VARIABLES = {
    'tenant_id': ('AZURE_TENANT_ID', 'AZUREAD__TENANTID'),
    'client_id': ('GRAPH_CLIENT_ID', 'AZUREAD__CLIENTID'),
    'client_secret': ('GRAPH_CLIENT_SECRET', 'AZUREAD__CLIENTSECRET'),
}


def _first_env(*names: str) -> str:
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return ''


def _timeout_seconds(raw: str) -> int:
    try:
        timeout = int(raw.strip())
    except ValueError:
        raise DirectoryConfigurationError(
            f"GRAPH_TIMEOUT must be a whole number of seconds, got {raw!r}"
        ) from None
    if timeout <= 0:
        raise DirectoryConfigurationError(f"GRAPH_TIMEOUT must be positive, got {timeout}")
    return timeout


class EntraConfig:
    """Centralized directory configuration management."""

    @staticmethod
    def get_config() -> Dict[str, Any]:
        """
        Get directory configuration from environment variables.

        Raises:
            DirectoryConfigurationError: If GRAPH_TIMEOUT is not a positive integer.
        """
        config = {
            key: _first_env(*names) for key, names in _CREDENTIAL_VARIABLES.items()
        }
        config.update({
            'base_url': os.getenv('GRAPH_BASE_URL', DEFAULT_BASE_URL).rstrip('/'),
            'authority': os.getenv('GRAPH_AUTHORITY', DEFAULT_AUTHORITY).rstrip('/'),
            'timeout': _timeout_seconds(os.getenv('GRAPH_TIMEOUT', '30')),
        })
        return config

    @staticmethod
    def missing_credentials(config: Dict[str, Any]) -> List[str]:
        """Return the environment variable names of every credential missing from config."""
        return [
            names[0] for key, names in _CREDENTIAL_VARIABLES.items()
            if not config.get(key)
        ]

    @staticmethod
    def validate(config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Ensure the client id, client secret and tenant id are all present.

        Raises:
            DirectoryConfigurationError: If any credential is missing.
        """
        missing = EntraConfig.missing_credentials(config)
        if missing:
            raise DirectoryConfigurationError(
                f"Missing directory credentials: {', '.join(missing)}"
            )
        return config
