"""
Base AI Service Classes

Provides abstract base classes and utilities for AI service implementations
with standardized error handling, rate limiting, and provider abstraction.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

import tiktoken
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from app.core.config import settings

logger = logging.getLogger(__name__)


class AIProvider(str, Enum):
    """Supported AI providers"""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass
class AIUsageMetrics:
    """Tracks AI service usage for cost optimization"""
    provider: str
    model: str
    tokens_input: int = 0
    tokens_output: int = 0
    requests_count: int = 0
    total_cost: float = 0.0
    latency_ms: int = 0
    timestamp: float = 0.0

    def __post_init__(self):
        if self.timestamp == 0.0:
            self.timestamp = time.time()


@dataclass
class AIResponse:
    """Standardized AI response format"""
    content: str
    usage: AIUsageMetrics
    metadata: Dict[str, Any] = field(default_factory=dict)


class AIServiceError(Exception):
    """Base exception for AI service errors"""
    def __init__(self, message: str, provider: str = "", model: str = "", original_error: Exception = None):
        self.message = message
        self.provider = provider
        self.model = model
        self.original_error = original_error
        super().__init__(self.message)


class RateLimitError(AIServiceError):
    """Rate limit exceeded error (HTTP 429)"""
    pass


class QuotaExceededError(RateLimitError):
    """Account quota or credits exhausted"""
    pass


class TokenLimitError(AIServiceError):
    """Token limit exceeded error"""
    pass


class ProviderError(AIServiceError):
    """Provider-specific error"""
    pass


class AITimeoutError(ProviderError):
    """Provider did not answer within the configured timeout"""
    pass


class TokenCounter:
    """Utility class for counting tokens across different models"""

    def __init__(self):
        self._encoders = {}

    def count_tokens(self, text: str, model: str = "gpt-4-turbo") -> int:
        """Count tokens for given text and model"""
        try:
            # Map model names to tiktoken encodings
            encoding_map = {
                "gpt-4-turbo": "cl100k_base",
                "gpt-4o": "o200k_base",
                "gpt-4o-mini": "o200k_base",
                "gpt-3.5-turbo": "cl100k_base",
            }

            encoding_name = encoding_map.get(model, "cl100k_base")

            if encoding_name not in self._encoders:
                self._encoders[encoding_name] = tiktoken.get_encoding(encoding_name)

            return len(self._encoders[encoding_name].encode(text))

        except Exception as e:
            logger.warning(f"Failed to count tokens for model {model}: {e}")
            # Fallback: rough estimation (4 chars per token)
            return len(text) // 4


class RateLimiter:
    """Simple sliding-window rate limiter for AI API calls"""

    def __init__(self, max_requests: int = 60, time_window: int = 60):
        self.max_requests = max_requests
        self.time_window = time_window
        self.requests: List[float] = []

    async def acquire(self) -> bool:
        """Acquire permission to make a request"""
        current_time = time.time()

        # Remove old requests outside the time window
        self.requests = [req_time for req_time in self.requests
                         if current_time - req_time < self.time_window]

        if len(self.requests) >= self.max_requests:
            oldest_request = min(self.requests)
            wait_time = self.time_window - (current_time - oldest_request)

            if wait_time > 0:
                logger.info(f"Rate limit reached, waiting {wait_time:.2f} seconds")
                await asyncio.sleep(wait_time)

        self.requests.append(time.time())
        return True


class BaseAIService(ABC):
    """Abstract base class for all AI services"""

    retry_wait = wait_exponential(multiplier=1, min=4, max=10)

    def __init__(self, provider: AIProvider, model: str, timeout: Optional[float] = None):
        self.provider = provider
        self.model = model
        self.timeout = timeout or settings.AI_REQUEST_TIMEOUT
        self.token_counter = TokenCounter()
        self.rate_limiter = RateLimiter(settings.AI_RATE_LIMIT_REQUESTS, settings.AI_RATE_LIMIT_WINDOW)
        self.usage_metrics: List[AIUsageMetrics] = []

    @abstractmethod
    async def _make_request(self, prompt: str, **kwargs) -> AIResponse:
        """Make the actual API request to the AI provider"""
        pass

    async def validate_input(self, text: str, max_tokens: Optional[int] = None) -> bool:
        """Validate input before making AI request"""
        if not text or not text.strip():
            raise AIServiceError("Input text cannot be empty", self.provider, self.model)

        token_count = self.token_counter.count_tokens(text, self.model)
        max_allowed = max_tokens or settings.MAX_TOKENS_PER_REQUEST

        if token_count > max_allowed:
            raise TokenLimitError(
                f"Input token count ({token_count}) exceeds maximum ({max_allowed})",
                provider=self.provider,
                model=self.model
            )

        return True

    async def _request_with_timeout(self, prompt: str, **kwargs) -> AIResponse:
        try:
            return await asyncio.wait_for(self._make_request(prompt=prompt, **kwargs), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise AITimeoutError(
                f"{self.provider} request timed out after {self.timeout}s",
                self.provider, self.model, e
            )

    async def generate(self, prompt: str, **kwargs) -> AIResponse:
        """Generate content, retrying transient provider failures.

        Rate limit and quota errors are raised immediately so callers can
        switch to a fallback instead of waiting on retries.
        """
        await self.validate_input(prompt)
        await self.rate_limiter.acquire()

        start_time = time.time()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(settings.AI_MAX_RETRIES),
            wait=self.retry_wait,
            retry=retry_if_exception_type(ProviderError),
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._request_with_timeout(prompt, **kwargs)
        except AIServiceError as e:
            logger.error(f"AI generation failed ({self.provider}/{self.model}): {e.message}")
            raise

        response.usage.latency_ms = int((time.time() - start_time) * 1000)
        self.usage_metrics.append(response.usage)
        return response

    def get_usage_stats(self) -> Dict[str, Any]:
        """Get usage statistics for cost optimization"""
        if not self.usage_metrics:
            return {}

        total_requests = len(self.usage_metrics)
        total_cost = sum(m.total_cost for m in self.usage_metrics)

        return {
            "provider": self.provider,
            "model": self.model,
            "total_tokens_input": sum(m.tokens_input for m in self.usage_metrics),
            "total_tokens_output": sum(m.tokens_output for m in self.usage_metrics),
            "total_requests": total_requests,
            "total_cost": total_cost,
            "average_latency_ms": sum(m.latency_ms for m in self.usage_metrics) / total_requests,
            "cost_per_request": total_cost / total_requests
        }


class CostOptimizer:
    """Utilities for estimating AI service costs"""

    # Per 1K tokens
    PRICING = {
        "openai": {
            "gpt-4-turbo": {"input": 0.01, "output": 0.03},
            "gpt-4o": {"input": 0.0025, "output": 0.01},
            "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
            "gpt-3.5-turbo": {"input": 0.0015, "output": 0.002},
        },
        "anthropic": {
            "claude-3-sonnet-20240229": {"input": 0.003, "output": 0.015},
            "claude-3-haiku-20240307": {"input": 0.00025, "output": 0.00125},
        }
    }

    @classmethod
    def estimate_cost(cls, provider: str, model: str, input_tokens: int, output_tokens: int = 0) -> float:
        """Estimate cost based on token usage"""
        model_pricing = cls.PRICING.get(provider, {}).get(model)
        if not model_pricing:
            return 0.0

        cost = (input_tokens / 1000) * model_pricing["input"]
        if output_tokens > 0:
            cost += (output_tokens / 1000) * model_pricing["output"]

        return cost
