"""
RIGRELAY - Exceptions

Startup errors are fatal to the process; everything raised while handling a
single message is contained to that message.
"""


class RelayError(Exception):
    """Base class for relay errors."""


class ContentLoadError(RelayError):
    """A mandatory content blob could not be loaded."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not read required payload file {path}: {reason}")


class AssemblyError(RelayError):
    """Payload assembly failed for one request."""


class ListenError(RelayError):
    """A listening socket could not be bound."""

    def __init__(self, port: int, reason: str):
        self.port = port
        self.reason = reason
        super().__init__(f"Port {port} is already in use or unavailable: {reason}")
