from datetime import datetime, timezone
from fastapi import APIRouter, Request

router = APIRouter()

# curl -X GET http://localhost:3000/health
# Reports whether credentials are configured, not whether Supabase/OpenAI are reachable
@router.get("/health")
async def health_check(request: Request):
    settings = request.app.state.settings
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "supabase": settings.supabase_configured,
        "openai": settings.openai_configured,
    }
