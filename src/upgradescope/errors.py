"""Custom exceptions for upgradescope with user-friendly error messages."""


class UpgradescopeError(Exception):
    """Base exception with user-friendly message and optional hint.

    Attributes:
        message: The main error message.
        hint: Optional hint for resolving the error.
    """

    def __init__(self, message: str, hint: str = "") -> None:
        """Initialize the exception.

        Args:
            message: The main error message.
            hint: Optional hint for resolving the error.
        """
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation."""
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message


class InvalidVersionError(UpgradescopeError):
    """A version supplied by the user is not a valid semantic version."""

    def __init__(
        self,
        from_version: str = "",
        to_version: str = "",
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            message = (
                f"Invalid version format for comparison: "
                f"from='{from_version}', to='{to_version}'."
            )
        if not hint:
            hint = "Use full semantic versions such as 1.2.3 or v2.0.0-rc.1."
        self.from_version = from_version
        self.to_version = to_version
        super().__init__(message, hint)


class RepositoryNotResolvedError(UpgradescopeError):
    """The package metadata does not point at a GitHub repository."""

    def __init__(
        self,
        package: str = "",
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            message = (
                f"Could not determine GitHub repository URL for {package}."
                if package
                else "Could not determine GitHub repository URL."
            )
        if not hint:
            hint = "Check the 'repository' field in the package's package.json."
        self.package = package
        super().__init__(message, hint)


class AuthenticationError(UpgradescopeError):
    """Authentication failed - missing or invalid credentials."""

    pass


class GitHubAuthenticationError(AuthenticationError):
    """GitHub authentication failed."""

    def __init__(
        self,
        message: str = "GitHub authentication failed",
        hint: str = "Check that GITHUB_TOKEN holds a valid personal access token.",
    ) -> None:
        super().__init__(message, hint)


class NotFoundError(UpgradescopeError):
    """Resource not found."""

    pass


class PackageNotFoundError(NotFoundError):
    """Package metadata could not be fetched from the registry."""

    def __init__(
        self,
        package: str = "",
        version: str | None = None,
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            target = f"{package}@{version}" if version else package
            message = f"Could not fetch package info for {target}."
        if not hint:
            hint = "Verify the package name and version exist on the npm registry."
        super().__init__(message, hint)


class GitHubNotFoundError(NotFoundError):
    """GitHub repository not found."""

    def __init__(
        self,
        repo: str = "",
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            message = (
                f"GitHub repository '{repo}' not found"
                if repo
                else "GitHub resource not found"
            )
        if not hint:
            hint = "Verify the repository (owner/repo) is correct and public."
        super().__init__(message, hint)


class RateLimitError(UpgradescopeError):
    """API rate limit exceeded."""

    def __init__(
        self,
        service: str,
        retry_after: int | None = None,
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            if retry_after:
                message = f"{service} rate limit exceeded. Retry after {retry_after} seconds."
            else:
                message = f"{service} rate limit exceeded."
        super().__init__(message, hint)


class GitHubRateLimitError(RateLimitError):
    """GitHub API rate limit exceeded."""

    def __init__(
        self,
        retry_after: int | None = None,
        authenticated: bool = True,
        message: str = "",
        hint: str = "",
    ) -> None:
        if not hint:
            if authenticated:
                hint = "Wait before retrying or check your rate limit status at https://api.github.com/rate_limit"
            else:
                hint = "Authenticate with GITHUB_TOKEN to increase limit from 60 to 5000 requests/hour."
        super().__init__("GitHub", retry_after, message, hint)


class ConfigurationError(UpgradescopeError):
    """Invalid configuration."""

    pass


class NetworkError(UpgradescopeError):
    """Network connectivity issue."""

    def __init__(
        self,
        service: str,
        original_error: Exception | None = None,
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            message = f"Failed to reach {service}"
            if original_error:
                message += f": {original_error}"
        if not hint:
            hint = "Check your internet connection and firewall settings."
        super().__init__(message, hint)


class ParseError(UpgradescopeError):
    """Failed to parse response or file."""

    pass


class ManifestParseError(ParseError):
    """Failed to parse package.json or a lockfile."""

    def __init__(
        self,
        filename: str = "package.json",
        detail: str = "",
        message: str = "",
        hint: str = "",
    ) -> None:
        if not message:
            message = f"Error parsing {filename} content"
            if detail:
                message += f": {detail}"
        if not hint:
            hint = "Ensure the file contains valid JSON."
        super().__init__(message, hint)


class CompatibilityError(UpgradescopeError):
    """Compatibility check could not be evaluated."""

    pass
