"""
Anthropic Provider

Generator implementation for the Anthropic Messages API, with tool use.
"""

import logging
from typing import Any, Sequence

import anthropic
from anthropic import AsyncAnthropic

from symlog.core.exceptions import (
    GeneratorError,
    GeneratorProviderError,
    GeneratorRateLimitError,
    GeneratorTimeoutError,
)
from symlog.core.schemas import Utterance
from symlog.llm.base import BaseGenerator, GeneratorReply, ToolCall, ToolDefinition

logger = logging.getLogger(__name__)


class AnthropicGenerator(BaseGenerator):
    """
    Anthropic Claude API provider.

    The system contract goes in the ``system`` parameter; the context summary
    is the first user turn. ``tool_use`` content blocks become tool calls.
    """

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        temperature: float = 0.0,
        max_tokens: int = 2048,
    ) -> None:
        super().__init__(model, api_key, base_url, timeout, max_retries, temperature, max_tokens)

        client_kwargs: dict[str, Any] = {
            "timeout": timeout,
            "max_retries": max_retries,
        }
        if api_key:
            client_kwargs["api_key"] = api_key
        if base_url:
            client_kwargs["base_url"] = base_url

        self._async_client = AsyncAnthropic(**client_kwargs)

    @property
    def name(self) -> str:
        return "anthropic"

    async def generate(
        self,
        system_contract: str,
        context_summary: str,
        history: Sequence[Utterance],
        tool_defs: Sequence[ToolDefinition],
    ) -> GeneratorReply:
        call_kwargs: dict[str, Any] = {
            "model": self._model,
            "system": system_contract,
            "messages": self._conversation_messages(context_summary, history),
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        if tool_defs:
            call_kwargs["tools"] = [t.to_anthropic() for t in tool_defs]

        try:
            response = await self._async_client.messages.create(**call_kwargs)
        except anthropic.RateLimitError as e:
            raise GeneratorRateLimitError(provider=self.name) from e
        except anthropic.APITimeoutError as e:
            raise GeneratorTimeoutError(self._timeout) from e
        except anthropic.APIStatusError as e:
            raise GeneratorProviderError(
                str(e), provider=self.name, status_code=e.status_code
            ) from e
        except anthropic.APIError as e:
            raise GeneratorProviderError(str(e), provider=self.name) from e
        except Exception as e:
            raise GeneratorError(f"Anthropic error: {e}") from e

        text_parts: list[str] = []
        calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                args = block.input if isinstance(block.input, dict) else {}
                calls.append(ToolCall(name=block.name, args=args, call_id=block.id))

        usage = {
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
        }
        body = "".join(text_parts)

        if calls:
            logger.debug(f"[Anthropic] Requested {len(calls)} tool call(s)")
            return GeneratorReply.tool_use(
                calls, body=body, model=response.model, provider=self.name, usage=usage
            )
        return GeneratorReply.text(body, model=response.model, provider=self.name, usage=usage)
