"""
Console error hierarchy.

Every failure that reaches the user is eventually reduced to its message
text; the types exist so callers can tell configuration, transport and
server-side problems apart before that happens.
"""


class ConsoleError(Exception):
    """Base class for console errors."""
    pass


class ConfigError(ConsoleError):
    """Config file could not be read, parsed or written."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class FormValidationError(ConsoleError):
    """
    Form input cannot be turned into a request.

    Raised before anything is dispatched, so the message goes straight to
    the status line.
    """
    pass


class ServerConnectionError(ConsoleError):
    """Transport-level failure talking to the node (DNS, TLS, refused, timeout)."""
    pass


class LdkServerError(ConsoleError):
    """The node answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int = 0, endpoint: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint
