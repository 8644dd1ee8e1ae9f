from dataclasses import dataclass
import os
from pathlib import Path
import re
from typing import Any

import yaml

from prview.exceptions import ConfigurationError


_ENV_REFERENCE = re.compile(r"\$\{[^}]+\}|\$[A-Za-z_][A-Za-z0-9_]*(?![A-Za-z0-9_])")


def _split_list(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _as_tuple(value: Any, name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return _split_list(value)
    if isinstance(value, list):
        return tuple(str(item).strip() for item in value if str(item).strip())
    raise ConfigurationError(f"{name} must be a list or a comma-separated string")


@dataclass(frozen=True)
class DashboardConfig:
    """Dashboard settings.

    A missing token or repository list does not fail construction; requests
    that need them call ``require_token()``/``require_repositories()`` so the
    health endpoint can still report what is missing.
    """

    token: str | None = None
    repositories: tuple[str, ...] = ()
    team_members: tuple[str, ...] = ()
    base_url: str | None = None
    host: str = "127.0.0.1"
    port: int = 3001
    timeout: int = 30
    per_page: int = 100
    max_workers: int = 8
    cache_ttl: int = 300
    log_level: str = "INFO"
    log_format: str = "json"
    cors_origins: tuple[str, ...] = ("*",)
    work_item_url: str | None = None
    work_item_credential_command: str | None = None

    @staticmethod
    def _safe_parse_int(value: str, name: str, default: int) -> int:
        if not value:
            return default
        try:
            return int(value)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Invalid integer value for {name}: '{value}'. Must be a valid integer."
            ) from e

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ConfigurationError("port must be between 1 and 65535")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        if not 1 <= self.per_page <= 100:
            raise ConfigurationError("per_page must be between 1 and 100")
        if self.max_workers <= 0:
            raise ConfigurationError("max_workers must be positive")
        if self.cache_ttl < 0:
            raise ConfigurationError("cache_ttl must be non-negative")
        if self.log_format not in {"json", "text"}:
            raise ConfigurationError("log_format must be 'json' or 'text'")
        for repository in self.repositories:
            if repository.count("/") != 1:
                raise ConfigurationError(
                    f"Invalid repository '{repository}'. Expected format: owner/repo"
                )
        if self.work_item_url and "{id}" not in self.work_item_url:
            raise ConfigurationError("work_item_url must contain an '{id}' placeholder")

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    @property
    def work_items_enabled(self) -> bool:
        return bool(self.work_item_url)

    def require_token(self) -> str:
        if not self.token:
            raise ConfigurationError(
                "GitHub token not configured. "
                "Please set GITHUB_TOKEN in the environment or configuration file."
            )
        return self.token

    def require_repositories(self) -> tuple[str, ...]:
        if not self.repositories:
            raise ConfigurationError(
                "No repositories configured. "
                "Please set REPOSITORIES in the environment or configuration file."
            )
        return self.repositories

    @classmethod
    def from_env(cls) -> "DashboardConfig":
        env = os.environ
        return cls(
            token=env.get("GITHUB_TOKEN") or None,
            repositories=_split_list(env.get("REPOSITORIES")),
            team_members=_split_list(env.get("TEAM_MEMBERS")),
            base_url=env.get("GITHUB_BASE_URL") or None,
            host=env.get("PRVIEW_HOST", "127.0.0.1"),
            port=cls._safe_parse_int(env.get("PORT", ""), "PORT", 3001),
            timeout=cls._safe_parse_int(
                env.get("PRVIEW_TIMEOUT", ""), "PRVIEW_TIMEOUT", 30
            ),
            max_workers=cls._safe_parse_int(
                env.get("PRVIEW_MAX_WORKERS", ""), "PRVIEW_MAX_WORKERS", 8
            ),
            cache_ttl=cls._safe_parse_int(
                env.get("PRVIEW_CACHE_TTL", ""), "PRVIEW_CACHE_TTL", 300
            ),
            log_level=env.get("PRVIEW_LOG_LEVEL", "INFO"),
            log_format=env.get("PRVIEW_LOG_FORMAT", "json"),
            cors_origins=_split_list(env.get("PRVIEW_CORS_ORIGINS")) or ("*",),
            work_item_url=env.get("WORK_ITEM_URL") or None,
            work_item_credential_command=env.get("WORK_ITEM_CREDENTIAL_COMMAND")
            or None,
        )

    @staticmethod
    def _expand_token(token: str | None) -> str | None:
        if not token or not _ENV_REFERENCE.search(token):
            return token
        expanded = os.path.expandvars(token)
        if _ENV_REFERENCE.search(expanded):
            # Don't reveal the token value in error message
            raise ConfigurationError(
                "Token configuration error: Environment variable not found"
            )
        return expanded

    @classmethod
    def from_file(cls, path: str | Path) -> "DashboardConfig":
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e

        if not data:
            raise ConfigurationError("Configuration file is empty")
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration file must contain a mapping")

        github = data.get("github", {}) or {}
        server = data.get("server", {}) or {}
        logging = data.get("logging", {}) or {}
        performance = data.get("performance", {}) or {}
        work_items = data.get("work_items", {}) or {}

        return cls(
            token=cls._expand_token(github.get("token")),
            repositories=_as_tuple(data.get("repositories"), "repositories"),
            team_members=_as_tuple(data.get("team_members"), "team_members"),
            base_url=github.get("base_url"),
            host=server.get("host", "127.0.0.1"),
            port=server.get("port", 3001),
            cors_origins=_as_tuple(server.get("cors_origins"), "cors_origins")
            or ("*",),
            timeout=performance.get("timeout", 30),
            max_workers=performance.get("max_workers", 8),
            cache_ttl=performance.get("cache_ttl", 300),
            log_level=logging.get("level", "INFO"),
            log_format=logging.get("format", "json"),
            work_item_url=work_items.get("url"),
            work_item_credential_command=work_items.get("credential_command"),
        )
