class BridgeError(Exception):
    """Base class for wsbridge errors."""


class StartupConfigError(BridgeError):
    """Invalid command line or configuration; the server does not start."""


class ListenError(BridgeError):
    """The listening socket could not be bound or served."""


class DialError(BridgeError):
    """The target TCP service could not be reached."""

    def __init__(self, address, cause):
        super().__init__(f"{address}: {cause}")
        self.address = address
        self.cause = cause
