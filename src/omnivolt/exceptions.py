"""
Exceptions raised while resolving, provisioning and launching the language server.
"""


class OmniVoltException(Exception):
    """
    Base class of all errors which abort the handling of an initialize event.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message + (f"; Cause: {self.cause}" if self.cause else "")


class ConfigError(OmniVoltException):
    """Raised when user-supplied configuration cannot be used."""


class InvalidServerPathError(ConfigError):
    """Raised when the configured server path cannot be turned into a URI."""

    def __init__(self, server_path: str, cause: Exception | None = None) -> None:
        super().__init__(f"Invalid server path: {server_path!r}", cause)
        self.server_path = server_path


class PlatformError(OmniVoltException):
    """Raised when the host platform cannot be mapped to a release artifact."""


class UnsupportedPlatformError(PlatformError):
    def __init__(self, os_name: str) -> None:
        super().__init__(f"Unsupported operating system: {os_name}")
        self.os_name = os_name


class NetworkError(OmniVoltException):
    """Raised on transport failures, error status codes or undecodable response bodies."""


class MetadataError(OmniVoltException):
    """Raised when the release metadata lacks the expected fields."""


class FilesystemError(OmniVoltException):
    """Raised when creating, removing, reading or writing files fails."""


class ArchiveError(OmniVoltException):
    """Raised for corrupt archives or (in strict mode) entries with unsafe paths."""
