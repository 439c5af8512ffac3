"""
Generator Factory

Factory for creating generator instances based on configuration.

Provider order: Anthropic first (the default), OpenAI as fallback.
"""

import logging
from typing import Any, Literal

from symlog.config import get_settings
from symlog.core.exceptions import ConfigurationError, MissingAPIKeyError
from symlog.llm.base import BaseGenerator

logger = logging.getLogger(__name__)

ProviderType = Literal["anthropic", "openai"]


def create_generator(
    provider: ProviderType | None = None, model: str | None = None, **kwargs: Any
) -> BaseGenerator:
    """
    Create a generator instance.

    Args:
        provider: Provider name ('anthropic', 'openai').
                  Defaults to LLM_DEFAULT_PROVIDER.
        model: Model name. Defaults to the provider's configured model.
        **kwargs: Additional provider-specific arguments.

    Returns:
        Configured generator instance.

    Raises:
        MissingAPIKeyError: If the provider's API key is not configured.
        ConfigurationError: If the provider is unknown.
    """
    settings = get_settings()
    llm = settings.llm

    if provider is None:
        provider = llm.default_provider

    kwargs.setdefault("temperature", llm.temperature)
    kwargs.setdefault("max_tokens", llm.max_tokens)

    if provider == "anthropic":
        from symlog.llm.anthropic_provider import AnthropicGenerator

        api_key = kwargs.pop("api_key", None) or llm.anthropic_api_key
        if not api_key:
            raise MissingAPIKeyError("ANTHROPIC_API_KEY")

        return AnthropicGenerator(model=model or llm.anthropic_model, api_key=api_key, **kwargs)

    elif provider == "openai":
        from symlog.llm.openai_provider import OpenAIGenerator

        api_key = kwargs.pop("api_key", None) or llm.openai_api_key
        if not api_key:
            raise MissingAPIKeyError("OPENAI_API_KEY")

        return OpenAIGenerator(model=model or llm.openai_model, api_key=api_key, **kwargs)

    else:
        raise ConfigurationError(f"Unknown generator provider: {provider}")


def create_generator_with_fallback(model: str | None = None, **kwargs: Any) -> BaseGenerator:
    """
    Create a generator, trying the preferred provider first.

    Raises:
        ConfigurationError: If no provider is configured.
    """
    preferred = get_settings().llm.default_provider
    providers_to_try: list[ProviderType] = [preferred] + [
        p for p in ("anthropic", "openai") if p != preferred
    ]

    errors = []
    for provider_name in providers_to_try:
        try:
            generator = create_generator(provider_name, model, **kwargs)
            logger.info(f"[Generator Factory] Using provider: {provider_name}")
            return generator
        except ConfigurationError as e:
            errors.append(f"{provider_name}: {e.message}")

    raise ConfigurationError(
        f"No generator provider configured. Tried: {', '.join(providers_to_try)}. "
        f"Set ANTHROPIC_API_KEY or OPENAI_API_KEY. Errors: {'; '.join(errors)}"
    )
