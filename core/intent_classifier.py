import logging
from typing import Optional
from core.llm_client import LanguageModelClient
from core.supabase_client import SupabaseClient
from models import ChatMessage, IntentRecord

logger = logging.getLogger(__name__)

INTENT_TABLE = "intent_index"
ACTIVE_COLUMN = "aktiv"
UNKNOWN_INTENT = "unknown"
CLASSIFY_TEMPERATURE = 0.1

SYSTEM_PROMPT = """Du bist ein Intent-Klassifizierungs-System für eine KFZ-Zulassungsstelle.

Verfügbare Intent-Slugs:
- {slug_list}

Aufgabe: Bestimme welcher Slug am besten zur Benutzer-Anfrage passt.

Antworte NUR mit dem Slug (nichts anderes). Wenn keine Übereinstimmung gefunden wird, antworte mit "unknown"."""

def load_intent_catalog(store: SupabaseClient) -> list[IntentRecord]:
    """Fetch all active intents. Not cached, every call hits the store"""
    rows = store.query(INTENT_TABLE, {
        "select": "slug,intent_group",
        ACTIVE_COLUMN: "eq.true",
    })
    return [IntentRecord.model_validate(row) for row in rows]

def build_classification_prompt(slugs: list[str]) -> str:
    return SYSTEM_PROMPT.format(slug_list="\n- ".join(slugs))

def extract_intent(store: SupabaseClient, llm: LanguageModelClient, user_message: str) -> Optional[str]:
    """
    Map the user's message to a known intent slug.
    Returns None if the model answers "unknown" or names a slug outside the catalog.
    """
    catalog = load_intent_catalog(store)
    slugs = [intent.slug for intent in catalog]

    reply = llm.complete([
        ChatMessage(role="system", content=build_classification_prompt(slugs)),
        ChatMessage(role="user", content=user_message),
    ], temperature=CLASSIFY_TEMPERATURE)

    slug = reply.strip()
    logger.info(f"extract_intent label: {slug}")

    if slug == UNKNOWN_INTENT:
        return None

    if slug not in slugs:
        logger.warning("LLM returned slug %r which is not in the intent catalog (%d entries)", slug, len(slugs))
        return None

    return slug
