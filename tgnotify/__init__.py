"""tgnotify: relay HTTP notifications to Telegram chats."""

__version__ = "0.1.0"
