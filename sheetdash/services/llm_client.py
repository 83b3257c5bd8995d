"""Chat model client for the assistant and table extraction"""
import logging
from typing import Dict, Optional

from langchain.chat_models import init_chat_model
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser

from ..config import settings
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)

# Agent provider -> langchain model_provider
PROVIDERS: Dict[str, str] = {
    "openai": "openai",
    "anthropic": "anthropic",
    "google": "google_genai",
    "mistral": "mistralai",
}


class LLMClient:
    """Client building langchain chat models for the configured providers"""

    def __init__(self):
        self.timeout = settings.LLM_TIMEOUT
        self.api_keys = {
            "openai": settings.OPENAI_API_KEY,
            "anthropic": settings.ANTHROPIC_API_KEY,
            "google": settings.GOOGLE_API_KEY,
            "mistral": settings.MISTRAL_API_KEY,
        }

    def has_key(self, provider: str) -> bool:
        return bool(self.api_keys.get(provider))

    def get_llm(
        self,
        provider: str,
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> BaseChatModel:
        """
        Get a chat model instance.

        Args:
            provider: openai, anthropic, google or mistral
            model: Provider model name
            temperature: Sampling temperature
            max_tokens: Completion token limit

        Returns:
            Chat model

        Raises:
            InvalidInputError: for an unsupported provider
        """
        model_provider = PROVIDERS.get(provider)
        if model_provider is None:
            raise InvalidInputError(f"Unsupported provider: {provider}")

        kwargs = {
            "model_provider": model_provider,
            "timeout": self.timeout,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        api_key = self.api_keys.get(provider)
        if api_key:
            kwargs["api_key"] = api_key

        return init_chat_model(model, **kwargs)

    async def complete(
        self,
        provider: str,
        model: str,
        system_prompt: str,
        user_message: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """Send a system + user message pair and return the reply text"""
        llm = self.get_llm(provider, model, temperature=temperature, max_tokens=max_tokens)
        logger.debug(f"Calling {provider}/{model} with {len(user_message)} chars of input")
        chain = llm | StrOutputParser()
        return await chain.ainvoke([
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_message),
        ])


# Global client instance
_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get global LLM client instance"""
    global _client
    if _client is None:
        _client = LLMClient()
    return _client
