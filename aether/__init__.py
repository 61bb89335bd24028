"""Binary TCP protocol, event bus, threaded TCP server, logger and shell client."""

__version__ = "0.1.0"