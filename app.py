from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import Response
from routes import chat_completions, health

import json, logging

from core.config import Settings, load_settings
from core.llm_client import LanguageModelClient
from core.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_BODY_LIMIT = 500

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Requested-With",
}

def configure_logging(level: str = "INFO") -> None:
    # General logging settings
    logging.basicConfig(level=level, format=LOG_FORMAT)

def _log_body(raw: bytes) -> Optional[str]:
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")[:LOG_BODY_LIMIT]
    if not parsed:
        return None
    return json.dumps(parsed, indent=2, ensure_ascii=False)[:LOG_BODY_LIMIT]

def create_app(settings: Optional[Settings] = None,
               store: Optional[SupabaseClient] = None,
               llm: Optional[LanguageModelClient] = None) -> FastAPI:
    """
    Build the app. Clients are created from settings unless injected,
    they live on app.state and are shared read-only between requests
    """
    settings = settings or load_settings()
    owns_store = store is None
    if store is None:
        store = SupabaseClient(settings.supabase_url, settings.supabase_service_key, timeout=settings.http_timeout)
    owns_llm = llm is None
    if llm is None:
        llm = LanguageModelClient.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_store:
            store.close()
        if owns_llm:
            llm.close()

    app = FastAPI(title="KFZ Intent Middleware", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.llm = llm

    # Request logger
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        logger.debug("  Headers: %s", json.dumps(dict(request.headers), indent=2))
        body = _log_body(await request.body())
        if body:
            logger.info(f"  Body: {body}")
        return await call_next(request)

    # Added last so it runs first: OPTIONS never reaches the logger or the routes
    @app.middleware("http")
    async def cors(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    app.include_router(chat_completions.router)
    app.include_router(health.router)
    return app

def main() -> None:
    import uvicorn

    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)

    logger.info("ElevenLabs KFZ Middleware")
    logger.info(f"   Listening on http://localhost:{settings.port}")
    logger.info("   Endpoint: POST /chat/completions")
    logger.info("   Health: GET /health")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)

if __name__ == "__main__":
    main()
