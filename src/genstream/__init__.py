"""Async client for OpenAI-compatible generation APIs with SSE streaming."""

__version__ = "0.1.0"
