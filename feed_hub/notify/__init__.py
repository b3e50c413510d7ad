"""
Notification channels.

Currently only Discord webhooks are supported.
"""

from .discord import DiscordNotifier, build_embed

__all__ = ["DiscordNotifier", "build_embed"]
