"""
Symlog Generator Layer

Provider-agnostic generator protocol, bundled providers and the schemas
published with each request.
"""

from symlog.llm.base import BaseGenerator, Generator, GeneratorReply, ToolCall, ToolDefinition
from symlog.llm.factory import create_generator, create_generator_with_fallback
from symlog.llm.prompts import build_context_summary, build_system_contract
from symlog.llm.tool_schemas import GET_HISTORY, MANAGE_TODOS, get_tool_definitions

__all__ = [
    "BaseGenerator",
    "Generator",
    "GeneratorReply",
    "ToolCall",
    "ToolDefinition",
    "create_generator",
    "create_generator_with_fallback",
    "build_context_summary",
    "build_system_contract",
    "GET_HISTORY",
    "MANAGE_TODOS",
    "get_tool_definitions",
]
