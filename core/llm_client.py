import logging
from typing import Optional, Sequence, Union
import httpx
import openai
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from core.config import Settings
from models import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.3

# role -> langchain message class
_MESSAGE_TYPES = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}

class LanguageModelError(Exception):
    """The LLM provider answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

def build_chat_model(settings: Settings, http_client: Optional[httpx.Client] = None) -> ChatOpenAI:
    # max_retries=0: a failed call fails the request, no backoff
    return ChatOpenAI(
        model=settings.openai_model,
        api_key=settings.openai_api_key or "not-configured",
        temperature=DEFAULT_TEMPERATURE,
        max_retries=0,
        http_client=http_client,
    )

def to_langchain_messages(messages: Sequence[Union[ChatMessage, dict]]) -> list[BaseMessage]:
    converted = []
    for message in messages:
        if isinstance(message, dict):
            message = ChatMessage.model_validate(message)
        converted.append(_MESSAGE_TYPES[message.role](content=message.content))
    return converted

class LanguageModelClient:
    def __init__(self, chat_model, http_client: Optional[httpx.Client] = None):
        self.chat_model = chat_model
        # Closed by close(), pass the same client given to build_chat_model
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "LanguageModelClient":
        http_client = httpx.Client()
        return cls(build_chat_model(settings, http_client), http_client=http_client)

    def complete(self, messages: Sequence[Union[ChatMessage, dict]], temperature: float = DEFAULT_TEMPERATURE) -> str:
        """Send the conversation to the model and return the text of its reply"""
        try:
            response = self.chat_model.invoke(to_langchain_messages(messages), temperature=temperature)
        except openai.APIStatusError as e:
            logger.error(f"OpenAI API Fehler {e.status_code}: {e.message}")
            raise LanguageModelError(
                f"OpenAI API failed: {e.response.reason_phrase}",
                status_code=e.status_code,
            ) from e

        return getattr(response, "content", "") or ""

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
