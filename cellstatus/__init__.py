"""Cell status server: read-only cell status API for mobile clients on the LAN."""

__version__ = "0.1.0"
