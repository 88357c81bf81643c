"""
AI Provider Implementations

Concrete implementations for different AI providers (OpenAI, Anthropic)
with standardized interfaces and error handling.
"""

from typing import Optional

import openai
import anthropic
from openai import AsyncOpenAI
from anthropic import AsyncAnthropic

from app.core.config import settings
from app.services.ai.base import (
    BaseAIService,
    AIProvider,
    AIResponse,
    AIUsageMetrics,
    AIServiceError,
    AITimeoutError,
    QuotaExceededError,
    RateLimitError,
    ProviderError,
    CostOptimizer
)

import logging

logger = logging.getLogger(__name__)


def _is_quota_error(error: Exception) -> bool:
    code = getattr(error, "code", None)
    if code == "insufficient_quota":
        return True
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("code") == "insufficient_quota":
            return True
    return False


class OpenAIService(BaseAIService):
    """OpenAI GPT service implementation"""

    def __init__(self, model: str = None, client: Optional[AsyncOpenAI] = None):
        model = model or settings.DEFAULT_TEXT_MODEL
        super().__init__(AIProvider.OPENAI, model)

        if client is None:
            if not settings.OPENAI_API_KEY:
                raise AIServiceError("OpenAI API key not configured", "openai", model)
            # Retries and timeouts are handled by BaseAIService
            client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.AI_REQUEST_TIMEOUT,
                max_retries=0
            )
        self.client = client

    async def _make_request(self, prompt: str, **kwargs) -> AIResponse:
        """Make request to OpenAI API"""
        max_tokens = kwargs.pop('max_tokens', 1000)
        temperature = kwargs.pop('temperature', 0.7)
        system_prompt = kwargs.pop('system_prompt', '')

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs
            )
        except openai.RateLimitError as e:
            if _is_quota_error(e):
                raise QuotaExceededError(f"OpenAI quota exceeded: {e}", "openai", self.model, e)
            raise RateLimitError(f"OpenAI rate limit exceeded: {e}", "openai", self.model, e)
        except openai.APITimeoutError as e:
            raise AITimeoutError(f"OpenAI request timed out: {e}", "openai", self.model, e)
        except openai.APIError as e:
            raise ProviderError(f"OpenAI API error: {e}", "openai", self.model, e)
        except Exception as e:
            raise AIServiceError(f"Unexpected OpenAI error: {e}", "openai", self.model, e)

        content = response.choices[0].message.content or ""
        usage = response.usage
        input_tokens = getattr(usage, "prompt_tokens", 0) or 0
        output_tokens = getattr(usage, "completion_tokens", 0) or 0

        return AIResponse(
            content=content,
            usage=AIUsageMetrics(
                provider=self.provider,
                model=self.model,
                tokens_input=input_tokens,
                tokens_output=output_tokens,
                requests_count=1,
                total_cost=CostOptimizer.estimate_cost("openai", self.model, input_tokens, output_tokens)
            ),
            metadata={
                "finish_reason": response.choices[0].finish_reason,
                "model": response.model
            }
        )


class AnthropicService(BaseAIService):
    """Anthropic Claude service implementation"""

    def __init__(self, model: str = None, client: Optional[AsyncAnthropic] = None):
        model = model or settings.DEFAULT_ANTHROPIC_MODEL
        super().__init__(AIProvider.ANTHROPIC, model)

        if client is None:
            if not settings.ANTHROPIC_API_KEY:
                raise AIServiceError("Anthropic API key not configured", "anthropic", model)
            client = AsyncAnthropic(
                api_key=settings.ANTHROPIC_API_KEY,
                timeout=settings.AI_REQUEST_TIMEOUT,
                max_retries=0
            )
        self.client = client

    async def _make_request(self, prompt: str, **kwargs) -> AIResponse:
        """Make request to Anthropic API"""
        max_tokens = kwargs.get('max_tokens', 1000)
        temperature = kwargs.get('temperature', 0.7)
        system_prompt = kwargs.get('system_prompt', '')

        # Anthropic has no JSON response mode; the prompt asks for JSON instead
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": prompt}]
            )
        except anthropic.RateLimitError as e:
            raise RateLimitError(f"Anthropic rate limit exceeded: {e}", "anthropic", self.model, e)
        except anthropic.APITimeoutError as e:
            raise AITimeoutError(f"Anthropic request timed out: {e}", "anthropic", self.model, e)
        except anthropic.APIError as e:
            raise ProviderError(f"Anthropic API error: {e}", "anthropic", self.model, e)
        except Exception as e:
            raise AIServiceError(f"Unexpected Anthropic error: {e}", "anthropic", self.model, e)

        content = response.content[0].text
        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens

        return AIResponse(
            content=content,
            usage=AIUsageMetrics(
                provider=self.provider,
                model=self.model,
                tokens_input=input_tokens,
                tokens_output=output_tokens,
                requests_count=1,
                total_cost=CostOptimizer.estimate_cost("anthropic", self.model, input_tokens, output_tokens)
            ),
            metadata={
                "stop_reason": response.stop_reason,
                "model": response.model
            }
        )


class AIServiceFactory:
    """Factory for creating AI service instances"""

    @staticmethod
    def create_text_service(provider: str = None, model: str = None) -> BaseAIService:
        """Create a text generation service"""
        provider = provider or settings.DEFAULT_MODEL_PROVIDER

        if provider == AIProvider.OPENAI:
            return OpenAIService(model)
        elif provider == AIProvider.ANTHROPIC:
            return AnthropicService(model)
        else:
            raise AIServiceError(f"Unsupported provider: {provider}")
