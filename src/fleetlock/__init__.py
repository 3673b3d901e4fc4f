"""Fleet-wide serialization of actions through a shared coordination store."""

__version__ = "0.1.0"
