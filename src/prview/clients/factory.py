from typing import Any, Protocol
from urllib.parse import urlparse

from prview.client import CodeHostClient
from prview.exceptions import AuthenticationError, ConfigurationError, SecurityError


class ClientConfig(Protocol):
    @property
    def token(self) -> str | None: ...
    @property
    def base_url(self) -> str | None: ...
    @property
    def timeout(self) -> int: ...
    @property
    def per_page(self) -> int: ...


class ClientCreationError(ConfigurationError):
    pass


class CodeHostClientFactory:
    _FORBIDDEN_HOSTS = {
        "localhost",
        "127.0.0.1",
        "0.0.0.0",  # nosec B104 - Used for SSRF prevention, not binding
        "169.254.169.254",
        "::1",
        "[::1]",
    }

    @staticmethod
    def _validate_token(token: str | None) -> None:
        if not token:
            raise AuthenticationError("Invalid token: empty token")
        if any(ch.isspace() for ch in token):
            raise AuthenticationError("Invalid token: contains whitespace")

    @staticmethod
    def _validate_base_url(base_url: str | None) -> None:
        if not base_url:
            return

        parsed = urlparse(base_url)
        if parsed.scheme != "https":
            raise ConfigurationError(f"Invalid URL scheme: {parsed.scheme or 'none'}")
        if not parsed.netloc:
            raise ConfigurationError("Invalid URL: missing host")

        hostname = (parsed.hostname or "").lower()
        if hostname in CodeHostClientFactory._FORBIDDEN_HOSTS:
            raise SecurityError(
                f"Access to host '{hostname}' is not allowed for security reasons"
            )
        if hostname.startswith(("10.", "192.168.")):
            raise SecurityError("Access to private networks is not allowed")
        if hostname.startswith("172."):
            octets = hostname.split(".")
            if len(octets) >= 2 and octets[1].isdigit() and 16 <= int(octets[1]) <= 31:
                raise SecurityError("Access to private networks is not allowed")

    @staticmethod
    def _validate_numeric_params(config: ClientConfig) -> None:
        per_page = getattr(config, "per_page", 100)
        if not (1 <= per_page <= 100):
            raise ConfigurationError(
                f"per_page out of bounds: {per_page}. Must be between 1 and 100"
            )
        timeout = getattr(config, "timeout", 30)
        if not (1 <= timeout <= 300):
            raise ConfigurationError(
                f"timeout out of bounds: {timeout}. Must be between 1 and 300"
            )

    @staticmethod
    def _extract_config(config: ClientConfig) -> dict[str, Any]:
        return {
            "token": config.token,
            "base_url": config.base_url,
            "timeout": getattr(config, "timeout", 30),
            "per_page": getattr(config, "per_page", 100),
        }

    @staticmethod
    def create(config: ClientConfig) -> CodeHostClient:
        CodeHostClientFactory._validate_token(config.token)
        CodeHostClientFactory._validate_base_url(config.base_url)
        CodeHostClientFactory._validate_numeric_params(config)

        params = CodeHostClientFactory._extract_config(config)

        try:
            from prview.clients.github_client import GitHubClient

            return GitHubClient(**params)
        except ImportError as e:
            raise ClientCreationError(
                f"Failed to import GitHub client: {e}. "
                f"Ensure the required dependencies are installed."
            ) from e
        except Exception as e:
            raise ClientCreationError(f"Failed to create GitHub client: {e}") from e
