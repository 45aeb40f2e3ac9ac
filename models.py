from pydantic import BaseModel, Field
from typing import Any, List, Literal, Optional

# Message sent to the LLM
class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str

# User request body in POST /chat/completions
# Entries of messages are kept as sent: other roles (tool, function), non-objects
# and missing content are skipped, only "user" messages are used
class ChatCompletionRequest(BaseModel):
    messages: List[Any]
    mode: Any = "answer" # only "data" selects data mode, anything else behaves like "answer"

    def last_user_message(self) -> Optional[str]:
        user_messages = [m for m in self.messages if isinstance(m, dict) and m.get("role") == "user"]
        if not user_messages:
            return None
        content = user_messages[-1].get("content")
        # OpenAI content parts: [{"type": "text", "text": "..."}]
        if isinstance(content, list):
            content = "\n".join(
                part["text"] for part in content
                if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str)
            )
        if not isinstance(content, str):
            return None
        return content or None

# One row of the intent_index table
class IntentRecord(BaseModel):
    slug: str
    intent_group: Optional[str] = None

class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str

class Choice(BaseModel):
    index: int = 0
    message: AssistantMessage
    finish_reason: str = "stop"

# Token counts are placeholders, not measured
class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

# API response for POST /chat/completions (OpenAI compatible)
class ChatCompletionResponse(BaseModel):
    id: str
    object: Literal["chat.completion"] = "chat.completion"
    created: int
    model: str
    choices: List[Choice]
    usage: Usage = Field(default_factory=Usage)

class ErrorDetail(BaseModel):
    message: str
    type: Literal["invalid_request_error", "internal_error"]

class ErrorResponse(BaseModel):
    error: ErrorDetail
