"""
Tests for the generator layer: providers, factory, prompts and tool schemas.

Provider clients are replaced with mocks; nothing here talks to a network.
"""

from datetime import date, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from fakes import NOW, make_entry, run_async
from symlog.config import reset_settings
from symlog.core.enums import GeneratorReplyKind, Location
from symlog.core.exceptions import ConfigurationError, GeneratorError, MissingAPIKeyError
from symlog.core.schemas import EnrichedIssue, Utterance
from symlog.llm import create_generator, create_generator_with_fallback
from symlog.llm.anthropic_provider import AnthropicGenerator
from symlog.llm.base import BaseGenerator, Generator
from symlog.llm.openai_provider import OpenAIGenerator
from symlog.llm.prompts import build_context_summary, build_system_contract
from symlog.llm.tool_schemas import (
    EXTRACTION_ENVELOPE_SCHEMA,
    GET_HISTORY,
    MANAGE_TODOS,
    get_tool_definitions,
)

HISTORY = [
    Utterance.user("my head hurts"),
    Utterance.assistant("Calling tools: get_history({})", synthetic=True),
    Utterance.user("Result of get_history:\nNo entries", synthetic=True),
]


@pytest.fixture
def no_keys(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("LLM_DEFAULT_PROVIDER", raising=False)
    reset_settings()


class TestConversationMessages:
    def test_context_leads_and_same_roles_merge(self):
        messages = BaseGenerator._conversation_messages("CONTEXT", HISTORY)
        assert [m["role"] for m in messages] == ["user", "assistant", "user"]
        assert messages[0]["content"] == "CONTEXT\n\nmy head hurts"
        assert messages[2]["content"].startswith("Result of get_history")

    def test_no_context(self):
        messages = BaseGenerator._conversation_messages("", [Utterance.user("hi")])
        assert messages == [{"role": "user", "content": "hi"}]


class TestAnthropicGenerator:
    def _generator(self, response):
        generator = AnthropicGenerator(model="claude-test", api_key="test-key")
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=response)
        generator._async_client = client
        return generator, client

    def test_text_reply(self):
        response = SimpleNamespace(
            content=[SimpleNamespace(type="text", text='{"metadata": {}}')],
            usage=SimpleNamespace(input_tokens=10, output_tokens=5),
            model="claude-test",
        )
        generator, client = self._generator(response)

        reply = run_async(generator.generate("SYSTEM", "CONTEXT", HISTORY, get_tool_definitions()))

        assert reply.kind == GeneratorReplyKind.TEXT
        assert reply.body == '{"metadata": {}}'
        assert reply.total_tokens == 15
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "SYSTEM"
        assert [t["name"] for t in kwargs["tools"]] == [GET_HISTORY, MANAGE_TODOS]
        assert "input_schema" in kwargs["tools"][0]

    def test_tool_use_reply(self):
        response = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Let me check."),
                SimpleNamespace(
                    type="tool_use", id="tu_1", name=GET_HISTORY, input={"query_type": "recent"}
                ),
            ],
            usage=SimpleNamespace(input_tokens=1, output_tokens=1),
            model="claude-test",
        )
        generator, _ = self._generator(response)

        reply = run_async(generator.generate("S", "C", HISTORY, get_tool_definitions()))

        assert reply.is_tool_request
        assert reply.body == "Let me check."
        assert reply.calls[0].name == GET_HISTORY
        assert reply.calls[0].args == {"query_type": "recent"}
        assert reply.calls[0].call_id == "tu_1"

    def test_unexpected_error_wrapped(self):
        generator, client = self._generator(None)
        client.messages.create = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(GeneratorError, match="Anthropic error: boom"):
            run_async(generator.generate("S", "C", HISTORY, []))

    def test_satisfies_protocol(self):
        assert isinstance(AnthropicGenerator(api_key="test-key"), Generator)


class TestOpenAIGenerator:
    def _generator(self, message):
        generator = OpenAIGenerator(model="gpt-test", api_key="test-key")
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            usage=SimpleNamespace(prompt_tokens=3, completion_tokens=4),
            model="gpt-test",
        )
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=response)
        generator._async_client = client
        return generator, client

    def test_system_message_first(self):
        generator, client = self._generator(SimpleNamespace(content="{}", tool_calls=None))

        reply = run_async(generator.generate("SYSTEM", "CONTEXT", HISTORY, get_tool_definitions()))

        assert reply.body == "{}"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "SYSTEM"}
        assert kwargs["tools"][0]["type"] == "function"

    def test_tool_calls(self):
        tool_call = SimpleNamespace(
            id="call_1",
            function=SimpleNamespace(name=MANAGE_TODOS, arguments='{"operation": "list"}'),
        )
        generator, _ = self._generator(SimpleNamespace(content=None, tool_calls=[tool_call]))

        reply = run_async(generator.generate("S", "C", HISTORY, get_tool_definitions()))

        assert reply.is_tool_request
        assert reply.calls[0].args == {"operation": "list"}

    @pytest.mark.parametrize("raw", [None, "", "{not json", "[1, 2]"])
    def test_bad_arguments_become_empty(self, raw):
        assert OpenAIGenerator._parse_arguments(raw) == {}


class TestFactory:
    def test_missing_anthropic_key(self, no_keys):
        with pytest.raises(MissingAPIKeyError, match="ANTHROPIC_API_KEY"):
            create_generator("anthropic")

    def test_missing_openai_key(self, no_keys):
        with pytest.raises(MissingAPIKeyError, match="OPENAI_API_KEY"):
            create_generator("openai")

    def test_unknown_provider(self, no_keys):
        with pytest.raises(ConfigurationError, match="Unknown generator provider"):
            create_generator("parrot")

    def test_defaults_from_settings(self, no_keys, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        monkeypatch.setenv("ANTHROPIC_MODEL", "claude-custom")
        reset_settings()

        generator = create_generator()

        assert isinstance(generator, AnthropicGenerator)
        assert generator.model == "claude-custom"

    def test_fallback_to_openai(self, no_keys, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "test-key")
        reset_settings()
        assert create_generator_with_fallback().name == "openai"

    def test_fallback_with_nothing_configured(self, no_keys):
        with pytest.raises(ConfigurationError, match="No generator provider configured"):
            create_generator_with_fallback()


class TestPrompts:
    def test_system_contract_states_date_and_vocabulary(self):
        contract = build_system_contract(date(2025, 12, 11))
        assert "Today's date is 2025-12-11." in contract
        assert ", ".join(loc.value for loc in Location) in contract
        assert '"conversationComplete": boolean' in contract

    def test_context_summary_empty(self):
        summary = build_context_summary([], [], NOW.date())
        assert summary == "ACTIVE ISSUES: none\n\nRECENT ENTRIES: none"

    def test_context_summary_lists_issues_and_records(self):
        issue = EnrichedIssue(
            id="iss-1",
            name="Migraine",
            start_date=date(2025, 11, 1),
            last_entry_date=date(2025, 12, 9),
            last_entry_days_ago=2,
            last_entry_severity=6,
        )
        record = make_entry(
            "r1", NOW - timedelta(days=1), location="head", onset=date(2025, 12, 10),
            severity=6, description="throbbing", issue_id="iss-1",
        )

        summary = build_context_summary([issue], [record], NOW.date())

        assert (
            "- [iss-1] Migraine (since 2025-11-01; last entry 2025-12-09, 2 days ago, severity 6/10)"
            in summary
        )
        assert "- 2025-12-10 (1 days ago): head, severity 6/10, throbbing [issue iss-1]" in summary


class TestToolSchemas:
    def test_definitions(self):
        definitions = {d.name: d for d in get_tool_definitions()}
        history = definitions[GET_HISTORY].parameters
        assert history["required"] == ["query_type"]
        assert definitions[MANAGE_TODOS].to_openai()["function"]["name"] == MANAGE_TODOS

    def test_envelope_schema_lists_locations(self):
        location = EXTRACTION_ENVELOPE_SCHEMA["properties"]["metadata"]["properties"]["location"]
        assert "lower_back" in location["enum"]
