"""Mail delivery adapters."""

from .console import ConsoleEmailSender

__all__ = ["ConsoleEmailSender"]
