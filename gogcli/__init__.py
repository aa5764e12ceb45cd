"""Command-line access to Gmail, Calendar, Contacts and Drive."""

__version__ = "0.1.0"
__all__ = ["__version__"]