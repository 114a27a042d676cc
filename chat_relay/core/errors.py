"""Error types shared by the relay server and client."""


class RelayError(Exception):
    """Base class for relay errors."""


class RelayConnectionError(RelayError):
    """Socket could not be opened or written to."""


class ConfigError(RelayError):
    """Configuration is missing or invalid."""


class GatewayError(RelayError):
    """The answer gateway failed to produce a result."""
