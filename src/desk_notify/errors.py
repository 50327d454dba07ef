from __future__ import annotations


class NotifyError(RuntimeError):
    """Base class for every failure the CLI reports as `error: ...`."""


class UsageError(NotifyError):
    """Conflicting input sources (stdin body with --file, card with a body)."""


class ValidationError(NotifyError):
    """A value parsed fine but is outside what the wire format accepts."""


class ParseError(NotifyError):
    """Malformed YAML payload, ID:LABEL / KEY:VALUE token or hint value."""


class InputReadError(NotifyError):
    """The YAML file or stdin could not be read."""


class TransportError(NotifyError):
    """Bus connection, call or signal subscription failure."""


class AwaitTimeoutError(NotifyError):
    """
    --await deadline exceeded.

    Kept separate from the other errors: the CLI maps it to exit status 124.
    """

    def __init__(self, timeout_ms: int, event: object | None = None) -> None:
        super().__init__(f"--await timed out after {int(timeout_ms)}ms")
        self.timeout_ms = int(timeout_ms)
        self.event = event
