"""
OpenAI chat-completions provider.
"""
import logging
from typing import Dict, List, Optional

from openai import OpenAI, APIError

from jobscout.core.config import OPENAI_API_KEY
from jobscout.llm.provider import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)

# USD per 1M tokens (input/output)
MODEL_PRICING = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
}


class OpenAIProvider(LLMProvider):
    """Provider backed by the official OpenAI SDK."""

    name = "openai"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 60.0):
        self.api_key = api_key or OPENAI_API_KEY
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY not configured")
        # Generation is never retried; a failed call fails the prompt
        self.client = OpenAI(api_key=self.api_key, timeout=timeout, max_retries=0)
        logger.info("OpenAI provider initialized")

    def chat(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        response_format: Optional[Dict[str, str]] = None,
    ) -> LLMResponse:
        params = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            params["max_tokens"] = max_tokens
        if response_format:
            params["response_format"] = response_format

        try:
            response = self.client.chat.completions.create(**params)
        except APIError as e:
            logger.error(f"OpenAI API error: model={model}, error={e}")
            raise

        choice = response.choices[0] if response.choices else None
        usage = response.usage
        tokens_in = usage.prompt_tokens if usage else 0
        tokens_out = usage.completion_tokens if usage else 0

        return LLMResponse(
            content=choice.message.content if choice else None,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            model=response.model or model,
            cost_estimate=self.estimate_cost(tokens_in, tokens_out, model),
            finish_reason=choice.finish_reason if choice else None,
            metadata={"response_id": response.id},
        )

    def estimate_cost(self, tokens_in: int, tokens_out: int, model: str) -> float:
        pricing = MODEL_PRICING.get(model)
        if pricing is None:
            return 0.0
        return (tokens_in * pricing["input"] + tokens_out * pricing["output"]) / 1_000_000
