"""Exception taxonomy for wesabe.

Configuration errors are raised before any network I/O. Transport errors wrap
the underlying httpx exception. Outcome errors are only raised when a caller
asks an outcome to unwrap() into a body.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wesabe.models import RequestFailed


class WesabeError(Exception):
    """Base class for wesabe errors."""


class ConfigError(WesabeError):
    """Raised when a request, client or config file is misconfigured."""


# =============================================================================
# Transport errors
# =============================================================================


class TransportError(WesabeError):
    """Raised when the request could not be exchanged with the server."""


class ServerBrokeConnection(TransportError):
    """Raised when the connection is refused or drops mid-exchange."""


class RequestTimeout(TransportError):
    """Raised when the request takes too long."""


# =============================================================================
# Outcome errors
# =============================================================================


class OutcomeError(WesabeError):
    """Base class for non-success outcomes raised by unwrap()."""


class RedirectError(OutcomeError):
    """The server answered 301, 302 or 303."""

    def __init__(self, location: str) -> None:
        super().__init__(f"You've been redirected to {location}")
        self.location = location

    def __repr__(self) -> str:
        return f"{type(self).__name__}(location={self.location!r})"


class UnauthorizedError(OutcomeError):
    """The server answered 401."""


class ResourceNotFoundError(OutcomeError):
    """The server answered 404."""


class RequestFailedError(OutcomeError):
    """The server answered with any other status. str() is the API's message."""

    def __init__(self, outcome: RequestFailed) -> None:
        super().__init__(outcome.message)
        self.outcome = outcome

    @property
    def status_code(self) -> int:
        return self.outcome.status_code

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status_code={self.outcome.status_code}, "
            f"message={self.outcome.message!r})"
        )
