"""Error taxonomy for reference resolution.

Every failure raised by the parser, the provider registry, the adapters and
the assembler derives from :class:`SecretRefError`.  Errors raised while an
adapter is fetching carry the backend tag and location they were raised for,
attached by :class:`~secretref.core.resolver.ReferenceResolver`.
"""

from __future__ import annotations


class SecretRefError(Exception):
    """Base exception for all reference resolution errors.

    Args:
        message: Human-readable failure description.
        backend: Backend tag the failure belongs to, when known.
        location: Backend location the failure belongs to, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        backend: str | None = None,
        location: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.backend = backend
        self.location = location

    def add_context(self, backend: str, location: str | None = None) -> SecretRefError:
        """Attach backend context unless it is already set and return ``self``."""
        if self.backend is None:
            self.backend = backend
        if self.location is None:
            self.location = location
        return self

    def __str__(self) -> str:
        if self.backend is None:
            return self.message
        if self.location is None:
            return f"{self.backend}: {self.message}"
        return f"{self.backend}: {self.message} (location={self.location!r})"


class MalformedReferenceError(SecretRefError):
    """The reference string cannot be parsed."""

    def __init__(self, reference: str, reason: str) -> None:
        self.reference = reference
        self.reason = reason
        super().__init__(f"Malformed reference '{reference}': {reason}")


class UnknownBackendError(SecretRefError):
    """No backend is registered under the requested tag."""

    def __init__(self, backend: str) -> None:
        super().__init__(f"Unknown backend: {backend}", backend=backend)


class InvalidConfigError(SecretRefError):
    """Backend configuration is missing or invalid."""


class NotFoundError(SecretRefError):
    """The backend reports that the location does not exist."""


class AccessDeniedError(SecretRefError):
    """The backend refused access to the location."""


class BackendUnavailableError(SecretRefError):
    """Transport or connectivity failure talking to the backend."""


class DecodeError(SecretRefError):
    """A fetched payload is not the structured document the call requires."""


class MissingMetadataError(SecretRefError):
    """The meta document lacks the child-keys field."""


class InvalidMetadataError(SecretRefError):
    """The child-keys field of the meta document is not a list of strings."""


class AssemblyConflictError(SecretRefError):
    """Flat entries cannot be assembled into a nested mapping."""
