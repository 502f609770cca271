"""SafeGuard AI: LLM-backed content moderation proxy and dashboard."""

__version__ = "2.4.0"
