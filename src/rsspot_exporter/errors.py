from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class ExporterError(Exception):
    """Base error type for the Rackspace Spot exporter."""


class ConfigError(ExporterError):
    """Raised when required configuration is missing or invalid."""


class RequestError(ExporterError):
    """Raised when an HTTP request cannot be completed or decoded."""


@dataclass(eq=False)
class AuthenticationError(ExporterError):
    """Raised when the refresh-token exchange is rejected or unreachable."""

    status_code: int | None
    body: str | None = None

    def __str__(self) -> str:
        if self.status_code is None:
            return f"Failed to authenticate: {self.body or 'token endpoint unreachable'}"
        if not self.body:
            return f"Failed to authenticate: {self.status_code}"
        return f"Failed to authenticate: {self.status_code} - {self.body}"


@dataclass(eq=False)
class ApiError(RequestError):
    """Represents a non-success Rackspace Spot API response."""

    status_code: int
    message: str
    body: Any = None

    def __str__(self) -> str:
        if self.body:
            return f"{self.message}: HTTP {self.status_code} ({self.body})"
        return f"{self.message}: HTTP {self.status_code}"


@dataclass(eq=False)
class CollectionError(ExporterError):
    """Raised by a collection pass when one or more resource fetches failed."""

    errors: list[Exception] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.errors:
            self.__cause__ = self.errors[0]

    def __str__(self) -> str:
        if not self.errors:
            return "collection failed"
        return "collection failed: " + "; ".join(str(error) for error in self.errors)
