"""
Custom exception hierarchy for bumpwise.

This module defines structured exception types used across bumpwise.
All exceptions inherit from :class:`BumpwiseError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.

Only *fatal* outcomes are exceptions. A bump that conflicts with the rest
of the graph, or a requirement that cannot be rewritten, is reported as
``None`` / ``False`` by the update checker instead.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, MutableMapping, Optional


class BumpwiseError(Exception):
    """Base exception for all bumpwise errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class ParseError(BumpwiseError):
    """Raised when a version, constraint or manifest cannot be parsed.

    Args:
        message: Error description.
        value: The offending raw string, if any.
        file_path: File being parsed, if any.
    """

    __slots__ = ("value", "file_path")

    def __init__(
        self,
        message: str,
        *,
        value: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "value", value)
        _add_if(details, "file", file_path)

        super().__init__(message, details)

        self.value = value
        self.file_path = file_path


class ConfigError(BumpwiseError):
    """Raised when the configuration file is missing, unreadable or invalid.

    Args:
        message: Error description.
        config_path: Path of the configuration file.
        option: Offending option name, if a single option is at fault.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "config", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class NetworkError(BumpwiseError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class RegistryError(NetworkError):
    """Raised for failures related to a package registry.

    Args:
        message: Error description.
        package_name: Name of the package involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("package_name",)

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.package_name = package_name
        if package_name is not None:
            self.details["package"] = package_name


class DependencyFileNotResolvable(BumpwiseError):
    """The current manifest (and lockfile) do not resolve, before any bump."""

    __slots__ = ("dependency_name",)

    def __init__(
        self,
        message: str,
        *,
        dependency_name: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "dependency", dependency_name)
        super().__init__(message, details)
        self.dependency_name = dependency_name


class GitDependenciesNotReachable(BumpwiseError):
    """One or more git sources could not be reached.

    Args:
        dependency_urls: The unreachable repository URLs, as declared.
    """

    __slots__ = ("dependency_urls",)

    def __init__(self, dependency_urls: Iterable[str]) -> None:
        urls: List[str] = list(dict.fromkeys(dependency_urls))
        super().__init__(
            "The following git URLs could not be reached: " + ", ".join(urls),
            {"urls": urls},
        )
        self.dependency_urls = urls


class PrivateSourceAuthenticationFailure(BumpwiseError):
    """A private registry rejected the supplied credentials, or none were given.

    Args:
        source: Registry host, exactly as configured (e.g. ``php.fury.io``).
    """

    __slots__ = ("source",)

    def __init__(self, source: str) -> None:
        super().__init__(
            f"The registry at {source} could not be authenticated against",
            {"source": source},
        )
        self.source = source


class AllVersionsIgnored(BumpwiseError):
    """Every candidate newer than the current version is ignored."""

    __slots__ = ("dependency_name",)

    def __init__(self, dependency_name: str) -> None:
        super().__init__(
            f"All updates for {dependency_name} were ignored",
            {"dependency": dependency_name},
        )
        self.dependency_name = dependency_name


class ResolverError(BumpwiseError):
    """The resolver process failed in a way that could not be classified.

    Args:
        message: Error description.
        command: Command line that was executed.
        exit_code: Process exit code, if it ran.
        output: Combined process output, truncated for safety.
    """

    __slots__ = ("command", "exit_code", "output")

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        exit_code: Optional[int] = None,
        output: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "command", command)
        _add_if(details, "exit_code", exit_code)
        if output is not None:
            details["output"] = _truncate(output)

        super().__init__(message, details)

        self.command = command
        self.exit_code = exit_code
        self.output = output


class FileOperationError(BumpwiseError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error
