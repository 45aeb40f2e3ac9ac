"""
Request pipeline for POST /chat/completions as a small state machine.

    RECEIVE_REQUEST -> VALIDATE_INPUT -> CLASSIFY_INTENT -> NO_INTENT_MATCH | RESOLVE_CASE
    RESOLVE_CASE -> NO_CASE_FOUND | RENDER_RESPONSE -> EMIT_RESPONSE

Any exception moves to EMIT_ERROR. Each state is one step of transition(),
run_pipeline() drives it until a terminal state and returns status code + payload.
"""
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from pydantic import ValidationError
from core.case_resolver import resolve_case
from core.intent_classifier import extract_intent
from core.llm_client import LanguageModelClient
from core.response_renderer import MODE_ANSWER, MODE_DATA, render_response
from core.supabase_client import SupabaseClient
from models import (AssistantMessage, ChatCompletionRequest, ChatCompletionResponse, Choice,
                    ErrorDetail, ErrorResponse, Usage)

logger = logging.getLogger(__name__)

CLARIFICATION_MESSAGE = (
    "Entschuldigung, ich konnte Ihre Anfrage keinem bekannten Vorgang zuordnen. "
    "Könnten Sie bitte präzisieren, worum es geht?"
)
NOT_FOUND_MESSAGE = "Entschuldigung, ich konnte keine Informationen zu diesem Vorgang finden."

INVALID_MESSAGES = "Invalid request: messages array required"
NO_USER_MESSAGE = "No user message found"

# Not measured, kept for clients that expect the fields
PLACEHOLDER_USAGE = Usage(prompt_tokens=100, completion_tokens=50, total_tokens=150)

class PipelineState(str, Enum):
    RECEIVE_REQUEST = "receive_request"
    VALIDATE_INPUT = "validate_input"
    CLASSIFY_INTENT = "classify_intent"
    NO_INTENT_MATCH = "no_intent_match"
    RESOLVE_CASE = "resolve_case"
    NO_CASE_FOUND = "no_case_found"
    RENDER_RESPONSE = "render_response"
    EMIT_RESPONSE = "emit_response"
    EMIT_ERROR = "emit_error"

TERMINAL_STATES = {PipelineState.EMIT_RESPONSE, PipelineState.EMIT_ERROR}

@dataclass
class PipelineContext:
    body: Any
    store: SupabaseClient
    llm: LanguageModelClient
    model_name: str
    mode: Any = MODE_ANSWER
    user_message: Optional[str] = None
    slug: Optional[str] = None
    record: Optional[dict] = None
    status_code: int = 200
    payload: dict = field(default_factory=dict)

@dataclass
class PipelineResult:
    status_code: int
    payload: dict
    state: PipelineState

def completion_payload(content: str, model_name: str, usage: Optional[Usage] = None) -> dict:
    now = time.time()
    response = ChatCompletionResponse(
        id=f"chatcmpl-{int(now * 1000)}",
        created=int(now),
        model=model_name,
        choices=[Choice(message=AssistantMessage(content=content))],
        usage=usage or Usage(),
    )
    return response.model_dump()

def error_payload(message: str, error_type: str) -> dict:
    return ErrorResponse(error=ErrorDetail(message=message, type=error_type)).model_dump()

def _reject(ctx: PipelineContext, message: str) -> PipelineState:
    ctx.status_code = 400
    ctx.payload = error_payload(message, "invalid_request_error")
    return PipelineState.EMIT_ERROR

def _validate(ctx: PipelineContext) -> PipelineState:
    if not isinstance(ctx.body, dict) or not isinstance(ctx.body.get("messages"), list):
        return _reject(ctx, INVALID_MESSAGES)
    try:
        request = ChatCompletionRequest.model_validate(ctx.body)
    except ValidationError as e:
        logger.info(f"Request validation failed: {e.errors()}")
        return _reject(ctx, INVALID_MESSAGES)

    user_message = request.last_user_message()
    if not user_message:
        return _reject(ctx, NO_USER_MESSAGE)

    ctx.user_message = user_message
    ctx.mode = request.mode
    logger.info(f'User: "{user_message}"')
    return PipelineState.CLASSIFY_INTENT

def _classify(ctx: PipelineContext) -> PipelineState:
    ctx.slug = extract_intent(ctx.store, ctx.llm, ctx.user_message)
    if ctx.slug is None:
        logger.info("  -> Intent: unknown")
        return PipelineState.NO_INTENT_MATCH
    logger.info(f"  -> Intent: {ctx.slug}")
    return PipelineState.RESOLVE_CASE

def _no_intent(ctx: PipelineContext) -> PipelineState:
    ctx.payload = completion_payload(CLARIFICATION_MESSAGE, ctx.model_name)
    return PipelineState.EMIT_RESPONSE

def _resolve(ctx: PipelineContext) -> PipelineState:
    ctx.record = resolve_case(ctx.store, ctx.slug)
    if ctx.record is None:
        logger.info("  -> Kein Vorgang gefunden")
        return PipelineState.NO_CASE_FOUND
    return PipelineState.RENDER_RESPONSE

def _no_case(ctx: PipelineContext) -> PipelineState:
    ctx.payload = completion_payload(NOT_FOUND_MESSAGE, ctx.model_name)
    return PipelineState.EMIT_RESPONSE

def _render(ctx: PipelineContext) -> PipelineState:
    content = render_response(ctx.llm, ctx.user_message, ctx.slug, ctx.record, ctx.mode)
    logger.info("  -> Mode: %s", "data (structured)" if ctx.mode == MODE_DATA else "answer (natural language)")
    logger.info(f"  -> Response generated ({len(content)} chars)")
    ctx.payload = completion_payload(content, ctx.model_name, PLACEHOLDER_USAGE)
    return PipelineState.EMIT_RESPONSE

_STEPS = {
    PipelineState.RECEIVE_REQUEST: lambda ctx: PipelineState.VALIDATE_INPUT,
    PipelineState.VALIDATE_INPUT: _validate,
    PipelineState.CLASSIFY_INTENT: _classify,
    PipelineState.NO_INTENT_MATCH: _no_intent,
    PipelineState.RESOLVE_CASE: _resolve,
    PipelineState.NO_CASE_FOUND: _no_case,
    PipelineState.RENDER_RESPONSE: _render,
}

def transition(state: PipelineState, ctx: PipelineContext) -> PipelineState:
    """Run one step. Exceptions from the store or the LLM end in EMIT_ERROR with a 500"""
    if state in TERMINAL_STATES:
        raise ValueError(f"{state} is terminal")
    try:
        return _STEPS[state](ctx)
    except Exception as e:
        logger.exception(f"Error in state {state.value}: {e}")
        ctx.status_code = 500
        ctx.payload = error_payload(str(e), "internal_error")
        return PipelineState.EMIT_ERROR

def run_pipeline(body: Any, store: SupabaseClient, llm: LanguageModelClient, model_name: str) -> PipelineResult:
    ctx = PipelineContext(body=body, store=store, llm=llm, model_name=model_name)
    state = PipelineState.RECEIVE_REQUEST
    while state not in TERMINAL_STATES:
        state = transition(state, ctx)
    return PipelineResult(status_code=ctx.status_code, payload=ctx.payload, state=state)
