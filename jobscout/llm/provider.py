"""
Completion-service interface.

The content generator only needs one JSON-mode chat call per job posting, so
providers implement chat() and optionally price their own usage.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class LLMResponse:
    """Provider-neutral completion result."""
    content: Optional[str]
    tokens_in: int = 0
    tokens_out: int = 0
    model: str = ""
    cost_estimate: float = 0.0
    finish_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def truncated(self) -> bool:
        return self.finish_reason == "length"


class LLMProvider(ABC):
    """A chat-completion backend."""

    name = "base"

    @abstractmethod
    def chat(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        response_format: Optional[Dict[str, str]] = None,
    ) -> LLMResponse:
        """
        Run one chat completion.

        Args:
            messages: [{"role": ..., "content": ...}] in conversation order
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Completion token cap
            response_format: e.g. {"type": "json_object"} to force a JSON reply

        Raises:
            Any provider/transport exception; callers wrap it.
        """

    def estimate_cost(self, tokens_in: int, tokens_out: int, model: str) -> float:
        """USD estimate for a call; 0.0 when the provider has no price table."""
        return 0.0
