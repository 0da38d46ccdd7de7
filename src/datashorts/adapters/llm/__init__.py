"""LLM 어댑터 모듈."""

from datashorts.adapters.llm.openai_client import (
    OpenAIClient,
    RateLimitError,
    TimeoutError,
)

__all__ = ["OpenAIClient", "RateLimitError", "TimeoutError"]
