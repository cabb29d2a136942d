from .client import LLMClient, LLMError, LLMNotConfigured, build_sentiment_messages  # noqa: F401

__all__ = ["LLMClient", "LLMError", "LLMNotConfigured", "build_sentiment_messages"]
