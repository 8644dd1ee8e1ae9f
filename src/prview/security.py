from pathlib import Path
import re

from prview.exceptions import ConfigurationError, ValidationError


class SecurityValidator:
    _NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\-_.]{1,100}$")
    _MAX_PR_NUMBER = 2147483647

    @staticmethod
    def validate_config_path(path: str) -> Path:
        if not path:
            raise ConfigurationError("Config path cannot be empty")

        resolved = Path(path).resolve()
        if not resolved.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        if resolved.is_dir():
            raise ConfigurationError("Config path must be a file, not a directory")
        if resolved.suffix not in {".yaml", ".yml"}:
            raise ConfigurationError("Config file must be .yaml or .yml")

        max_size = 1024 * 1024
        if resolved.stat().st_size > max_size:
            raise ConfigurationError(f"Config file too large (max {max_size} bytes)")

        return resolved

    @staticmethod
    def validate_name(value: str, kind: str = "name") -> str:
        """Owner or repository path segment as accepted by the code host."""
        if not value:
            raise ValidationError(f"{kind.capitalize()} cannot be empty")
        value = value.strip()
        if value in {".", ".."} or not SecurityValidator._NAME_PATTERN.match(value):
            raise ValidationError(f"Invalid {kind}: {value}")
        return value

    @staticmethod
    def validate_repository(repository: str) -> tuple[str, str]:
        owner, sep, repo = (repository or "").strip().partition("/")
        if not sep:
            raise ValidationError(
                f"Invalid repository: {repository}. Expected format: owner/repo"
            )
        return (
            SecurityValidator.validate_name(owner, "owner"),
            SecurityValidator.validate_name(repo, "repository"),
        )

    @staticmethod
    def validate_pr_number(value: str | int) -> int:
        try:
            number = int(str(value).strip())
        except ValueError as e:
            raise ValidationError(f"Invalid pull request number: {value}") from e
        if not 1 <= number <= SecurityValidator._MAX_PR_NUMBER:
            raise ValidationError(f"Pull request number out of range: {number}")
        return number

    @staticmethod
    def sanitize_for_logging(text: str) -> str:
        if not text:
            return text
        patterns = [
            # URLs with embedded credentials
            (r"https?://[^:\s]+:[^@\s]+@[^\s]+", "https://[REDACTED]@..."),
            # GitHub tokens
            (r"gh[pousr]_[A-Za-z0-9]+", "gh_[REDACTED]"),
            (r"github_pat_[A-Za-z0-9_]+", "github_pat_[REDACTED]"),
            # Generic patterns
            (r"(password|token|secret|api_key|apikey)=[^\s&]+", r"\1=[REDACTED]"),
            (r"(Authorization):\s*(Bearer|token|Basic)\s+[^\s]+", r"\1: [REDACTED]"),
            # JWT tokens, as returned by the work-item credential bridge
            (
                r"eyJ[A-Za-z0-9_\-]+\.eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+",
                "[JWT_REDACTED]",
            ),
        ]

        for pattern, replacement in patterns:
            text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)

        return text

    @staticmethod
    def sanitize_error_message(error: Exception) -> str:
        return SecurityValidator.sanitize_for_logging(str(error))
