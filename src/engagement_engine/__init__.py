"""Forum engagement monetization and moderation engine."""

__version__ = "0.1.0"
