"""
CLI Tools for Testing and Development
"""

from .event_cli import SocialCookingCLI, app

__all__ = [
    "SocialCookingCLI",
    "app",
]
