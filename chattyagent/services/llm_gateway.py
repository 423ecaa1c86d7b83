# chattyagent/services/llm_gateway.py
import asyncio
import logging
from typing import Dict, List, Optional

from openai import OpenAI, OpenAIError

from chattyagent.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)

MAX_TOKENS = 1000
TEMPERATURE = 0.7


class LLMGateway:
    """Single request/response chat completion against an OpenAI-compatible API.

    Every failure (transport error, non-2xx answer, empty content) surfaces as
    ``UpstreamFailure``; callers decide how to degrade.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        client=None,
    ):
        self.model = model
        self.client = client
        if self.client is None and api_key:
            # No retries: one provider call per message send
            self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

    @property
    def configured(self) -> bool:
        return self.client is not None

    def build_messages(self, system_prompt: str, recent_messages: List[Dict]) -> List[Dict]:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": m["role"], "content": m["content"]} for m in recent_messages)
        return messages

    async def complete(self, system_prompt: str, recent_messages: List[Dict]) -> str:
        if not self.configured:
            raise UpstreamFailure("LLM provider API key not configured")

        messages = self.build_messages(system_prompt, recent_messages)
        try:
            response = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=messages,
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            )
        except OpenAIError as e:
            logger.error(f"LLM provider error: {e}")
            raise UpstreamFailure(str(e))

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            content = None

        if not content:
            logger.error("LLM provider returned no content")
            raise UpstreamFailure("LLM provider returned no content")

        return content
