"""Streaming chat backend for OpenAI-compatible LLM providers."""

__version__ = "0.1.0"
