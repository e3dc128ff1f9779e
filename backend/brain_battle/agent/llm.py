"""LLM client abstraction and provider backends.

Agents talk to an :class:`LLMClient`, never to a provider SDK. Both concrete
backends are LangChain ``ChatOpenAI`` models: one pointed at an
OpenAI-compatible endpoint, one routed through OpenRouter.
"""

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Literal, TypedDict

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from brain_battle.core.config import Settings, get_settings
from brain_battle.core.logging import get_logger

logger = get_logger(__name__)

ResponseFormat = Literal["text", "json_object"]

# OpenRouter caps completion length for the Moonshot models at 32k tokens
OPENROUTER_MAX_TOKENS = 32000
OPENROUTER_JSON_MAX_TOKENS = 32000
OPENROUTER_TEXT_MAX_TOKENS = 16000

OPENROUTER_MODEL_ALIASES = {
    "kimi-k2-thinking": "moonshotai/kimi-k2-thinking",
    "kimi-k2-0905-preview": "moonshotai/kimi-k2-0905",
    "kimi-k2-turbo-preview": "moonshotai/kimi-k2",
    "kimi-k2-thinking-turbo": "moonshotai/kimi-k2-thinking",
    "moonshot/moonshot-v1-128k": "moonshotai/kimi-k2-thinking",
    "moonshot/moonshot-v1-32k": "moonshotai/kimi-k2-thinking",
    "moonshot/moonshot-v1-8k": "moonshotai/kimi-k2:free",
}


class LLMConfigurationError(RuntimeError):
    """Raised when a provider cannot be constructed from the settings."""


class LLMResponseError(RuntimeError):
    """Raised when a provider answers without usable content."""


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletion(BaseModel):
    content: str
    usage: TokenUsage = TokenUsage()
    model: str | None = None


class LLMClient(ABC):
    """A chat-completion backend."""

    provider: str = "base"

    @abstractmethod
    async def chat_completion(
        self,
        messages: list[ChatMessage],
        *,
        response_format: ResponseFormat = "text",
        temperature: float = 0.2,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletion:
        """Send role-tagged messages and return the completion text and usage."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} provider={self.provider}>"


def to_langchain_messages(messages: list[ChatMessage]) -> list[BaseMessage]:
    converted: list[BaseMessage] = []
    for message in messages:
        role = message["role"]
        if role == "system":
            converted.append(SystemMessage(content=message["content"]))
        elif role == "user":
            converted.append(HumanMessage(content=message["content"]))
        elif role == "assistant":
            converted.append(AIMessage(content=message["content"]))
        else:
            raise ValueError(f"Unsupported message role: {role}")
    return converted


def _message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def _token_usage(message: BaseMessage) -> TokenUsage:
    usage = getattr(message, "usage_metadata", None) or {}
    prompt_tokens = usage.get("input_tokens", 0)
    completion_tokens = usage.get("output_tokens", 0)
    return TokenUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=usage.get("total_tokens", prompt_tokens + completion_tokens),
    )


class ChatModelClient(LLMClient):
    """LLMClient backed by a LangChain chat model."""

    def __init__(self, chat_model: BaseChatModel, provider: str = "openai") -> None:
        self.chat_model = chat_model
        self.provider = provider

    def _invocation_kwargs(
        self,
        response_format: ResponseFormat,
        temperature: float,
        model: str | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"temperature": temperature}
        if response_format == "json_object":
            kwargs["response_format"] = {"type": "json_object"}
        if model:
            kwargs["model"] = model
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        return kwargs

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        *,
        response_format: ResponseFormat = "text",
        temperature: float = 0.2,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletion:
        kwargs = self._invocation_kwargs(response_format, temperature, model, max_tokens)
        response = await self.chat_model.ainvoke(to_langchain_messages(messages), **kwargs)

        content = _message_text(response)
        if not content.strip():
            logger.error("Empty completion", provider=self.provider)
            raise LLMResponseError(f"No content in {self.provider} response")

        usage = _token_usage(response)
        logger.debug(
            "Completion received",
            provider=self.provider,
            content_length=len(content),
            total_tokens=usage.total_tokens,
        )
        return ChatCompletion(
            content=content,
            usage=usage,
            model=response.response_metadata.get("model_name"),
        )


def resolve_openrouter_model(model: str) -> str:
    """Map legacy Moonshot model names to their OpenRouter ids."""
    resolved = OPENROUTER_MODEL_ALIASES.get(model, model)
    if resolved != model:
        logger.debug("Mapped model to OpenRouter id", requested=model, resolved=resolved)
    return resolved


class OpenRouterClient(ChatModelClient):
    """ChatModelClient with OpenRouter's model naming and token limits."""

    def __init__(self, chat_model: BaseChatModel) -> None:
        super().__init__(chat_model, provider="openrouter")

    def _invocation_kwargs(
        self,
        response_format: ResponseFormat,
        temperature: float,
        model: str | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        if max_tokens is None:
            max_tokens = (
                OPENROUTER_JSON_MAX_TOKENS
                if response_format == "json_object"
                else OPENROUTER_TEXT_MAX_TOKENS
            )
        return super()._invocation_kwargs(
            response_format,
            temperature,
            resolve_openrouter_model(model) if model else None,
            min(max_tokens, OPENROUTER_MAX_TOKENS),
        )


def build_openai_client(settings: Settings) -> ChatModelClient:
    if not settings.OPENAI_API_KEY:
        raise LLMConfigurationError("OPENAI_API_KEY is required for the openai provider")

    kwargs: dict[str, Any] = {
        "model": settings.OPENAI_MODEL,
        "api_key": settings.OPENAI_API_KEY,
        "timeout": settings.LLM_TIMEOUT_SECONDS,
        "max_retries": 0,
    }
    if settings.OPENAI_API_BASE_URL:
        kwargs["base_url"] = settings.OPENAI_API_BASE_URL

    logger.info("Initializing LLM", provider="openai", model=settings.OPENAI_MODEL)
    return ChatModelClient(ChatOpenAI(**kwargs), provider="openai")


def build_openrouter_client(settings: Settings) -> OpenRouterClient:
    raw_key = settings.OPENROUTER_API_KEY or ""
    api_key = raw_key.strip()
    if not api_key:
        raise LLMConfigurationError("OPENROUTER_API_KEY is required for the openrouter provider")
    if len(api_key) < 10:
        raise LLMConfigurationError("OPENROUTER_API_KEY appears to be invalid (too short)")
    if api_key != raw_key:
        logger.warning("OpenRouter API key has surrounding whitespace, trimming")

    model = resolve_openrouter_model(settings.OPENROUTER_MODEL)
    chat_model = ChatOpenAI(
        model=model,
        api_key=api_key,
        base_url=settings.OPENROUTER_BASE_URL,
        timeout=settings.LLM_TIMEOUT_SECONDS,
        max_retries=0,
        default_headers={
            "HTTP-Referer": settings.APP_URL,
            "X-Title": settings.APP_NAME,
        },
    )
    logger.info("Initializing LLM", provider="openrouter", model=model)
    return OpenRouterClient(chat_model)


@lru_cache
def get_llm_client(provider: str | None = None) -> LLMClient:
    """Get the cached client for ``provider`` (defaults to LLM_PROVIDER)."""
    settings = get_settings()
    provider = provider or settings.LLM_PROVIDER

    if provider == "openai":
        return build_openai_client(settings)
    if provider == "openrouter":
        return build_openrouter_client(settings)
    raise LLMConfigurationError(f"Unknown LLM provider: {provider}")
