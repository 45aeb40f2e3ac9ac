import json
import logging
from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from core.pipeline import run_pipeline

router = APIRouter()
logger = logging.getLogger(__name__)

def _parse_body(raw: bytes):
    try:
        return json.loads(raw) if raw else None
    except ValueError:
        return None

# curl -X POST http://localhost:3000/chat/completions -H "Content-Type: application/json" \
#   -d '{"messages": [{"role": "user", "content": "Wie lange dauert eine Ummeldung?"}]}'
# The body is validated by the pipeline (not by FastAPI) so that bad input gets an OpenAI style 400
@router.post("/chat/completions")
async def chat_completions(request: Request):
    body = _parse_body(await request.body())
    state = request.app.state

    # Supabase and OpenAI clients are blocking
    result = await run_in_threadpool(
        run_pipeline,
        body,
        store=state.store,
        llm=state.llm,
        model_name=state.settings.openai_model,
    )
    logger.debug("Pipeline finished in %s with %d", result.state.value, result.status_code)
    return JSONResponse(content=result.payload, status_code=result.status_code)
