"""relaybot - routes IRC commands to relay peers and correlates their replies."""

__version__ = "1.0.0"
