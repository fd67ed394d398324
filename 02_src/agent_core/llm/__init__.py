"""LLM module."""

from .llm_provider import ILLMProvider, LLMProvider, create_llm_provider

__all__ = ["ILLMProvider", "LLMProvider", "create_llm_provider"]
