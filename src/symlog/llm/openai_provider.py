"""
OpenAI Provider

Generator implementation for the OpenAI Chat Completions API, with function
calling.
"""

import json
import logging
from typing import Any, Sequence

import openai
from openai import AsyncOpenAI

from symlog.core.exceptions import (
    GeneratorError,
    GeneratorProviderError,
    GeneratorRateLimitError,
    GeneratorTimeoutError,
)
from symlog.core.schemas import Utterance
from symlog.llm.base import BaseGenerator, GeneratorReply, ToolCall, ToolDefinition

logger = logging.getLogger(__name__)


class OpenAIGenerator(BaseGenerator):
    """
    OpenAI API provider.

    Supports GPT-4o class models with function calling.
    """

    def __init__(
        self,
        model: str = "gpt-4o",
        api_key: str | None = None,
        base_url: str | None = None,
        organization: str | None = None,
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
        if organization:
            client_kwargs["organization"] = organization

        self._async_client = AsyncOpenAI(**client_kwargs)

    @property
    def name(self) -> str:
        return "openai"

    async def generate(
        self,
        system_contract: str,
        context_summary: str,
        history: Sequence[Utterance],
        tool_defs: Sequence[ToolDefinition],
    ) -> GeneratorReply:
        messages: list[dict[str, Any]] = [{"role": "system", "content": system_contract}]
        messages.extend(self._conversation_messages(context_summary, history))

        call_kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        if tool_defs:
            call_kwargs["tools"] = [t.to_openai() for t in tool_defs]

        try:
            response = await self._async_client.chat.completions.create(**call_kwargs)
        except openai.RateLimitError as e:
            retry_after = None
            if getattr(e, "response", None) is not None:
                header = e.response.headers.get("Retry-After")
                retry_after = float(header) if header else None
            raise GeneratorRateLimitError(provider=self.name, retry_after=retry_after) from e
        except openai.APITimeoutError as e:
            raise GeneratorTimeoutError(self._timeout) from e
        except openai.APIStatusError as e:
            raise GeneratorProviderError(
                str(e), provider=self.name, status_code=e.status_code
            ) from e
        except openai.APIError as e:
            raise GeneratorProviderError(str(e), provider=self.name) from e
        except Exception as e:
            raise GeneratorError(f"OpenAI error: {e}") from e

        message = response.choices[0].message
        usage = {
            "input_tokens": response.usage.prompt_tokens if response.usage else 0,
            "output_tokens": response.usage.completion_tokens if response.usage else 0,
        }

        if message.tool_calls:
            calls = [
                ToolCall(
                    name=tc.function.name,
                    args=self._parse_arguments(tc.function.arguments),
                    call_id=tc.id,
                )
                for tc in message.tool_calls
            ]
            return GeneratorReply.tool_use(
                calls,
                body=message.content or "",
                model=response.model,
                provider=self.name,
                usage=usage,
            )

        return GeneratorReply.text(
            message.content or "", model=response.model, provider=self.name, usage=usage
        )

    @staticmethod
    def _parse_arguments(raw: str | None) -> dict[str, Any]:
        """Function arguments arrive as a JSON string; bad JSON yields no args."""
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding malformed tool arguments: {raw[:200]}")
            return {}
        return parsed if isinstance(parsed, dict) else {}
