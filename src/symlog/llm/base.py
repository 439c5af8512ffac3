"""
Generator Base

The generator is the external, non-deterministic text-generation service that
drives the conversation. This module defines the protocol the orchestrator
depends on, the reply/tool types exchanged with it, and a base class that
concrete providers extend.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence, runtime_checkable

from symlog.core.enums import GeneratorReplyKind, UtteranceRole
from symlog.core.schemas import Utterance


@dataclass(frozen=True)
class ToolDefinition:
    """A side operation the generator may request, described by JSON schema."""

    name: str
    description: str
    parameters: dict[str, Any]

    def to_anthropic(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }

    def to_openai(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(frozen=True)
class ToolCall:
    """One tool invocation requested by the generator."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    call_id: str | None = None


@dataclass
class GeneratorReply:
    """Reply from the generator: either text or a batch of tool calls."""

    kind: GeneratorReplyKind
    body: str = ""
    calls: list[ToolCall] = field(default_factory=list)
    model: str | None = None
    provider: str | None = None
    usage: dict[str, int] = field(default_factory=dict)

    @classmethod
    def text(cls, body: str, **kwargs: Any) -> "GeneratorReply":
        return cls(kind=GeneratorReplyKind.TEXT, body=body, **kwargs)

    @classmethod
    def tool_use(cls, calls: list[ToolCall], body: str = "", **kwargs: Any) -> "GeneratorReply":
        return cls(kind=GeneratorReplyKind.TOOL_USE, body=body, calls=calls, **kwargs)

    @property
    def is_tool_request(self) -> bool:
        return self.kind == GeneratorReplyKind.TOOL_USE and bool(self.calls)

    @property
    def total_tokens(self) -> int:
        return self.usage.get("input_tokens", 0) + self.usage.get("output_tokens", 0)


@runtime_checkable
class Generator(Protocol):
    """Protocol the orchestrator depends on. Injected, never a global."""

    async def generate(
        self,
        system_contract: str,
        context_summary: str,
        history: Sequence[Utterance],
        tool_defs: Sequence[ToolDefinition],
    ) -> GeneratorReply:
        """Produce the next reply for the conversation."""
        ...


class BaseGenerator(ABC):
    """
    Abstract base class for generator providers.

    Provides common functionality and enforces interface. Transport-level
    retries belong to the vendor SDK (``max_retries``); the logical retry and
    backoff policy lives in the orchestrator.
    """

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        temperature: float = 0.0,
        max_tokens: int = 2048,
    ) -> None:
        """
        Initialize provider.

        Args:
            model: Model identifier.
            api_key: API key (if required).
            base_url: Custom API endpoint.
            timeout: Request timeout in seconds.
            max_retries: Transport-level retry attempts.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.
        """
        self._model = model
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._max_retries = max_retries
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'anthropic', 'openai')."""
        ...

    @property
    def model(self) -> str:
        return self._model

    @abstractmethod
    async def generate(
        self,
        system_contract: str,
        context_summary: str,
        history: Sequence[Utterance],
        tool_defs: Sequence[ToolDefinition],
    ) -> GeneratorReply:
        ...

    @staticmethod
    def _conversation_messages(
        context_summary: str, history: Sequence[Utterance]
    ) -> list[dict[str, str]]:
        """
        Flatten context and history into alternating role/content dicts.

        The context summary leads as a user message. Consecutive messages with
        the same role (e.g. a tool result following the user's utterance) are
        merged so providers that require alternation accept the transcript.
        """
        messages: list[dict[str, str]] = []
        if context_summary:
            messages.append({"role": UtteranceRole.USER.value, "content": context_summary})

        for utterance in history:
            role = utterance.role.value
            if messages and messages[-1]["role"] == role:
                messages[-1]["content"] += "\n\n" + utterance.text
            else:
                messages.append({"role": role, "content": utterance.text})
        return messages
