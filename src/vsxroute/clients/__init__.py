"""Registry client wrappers."""

from .logging import LoggingClient, logged_provider

__all__ = ["LoggingClient", "logged_provider"]
