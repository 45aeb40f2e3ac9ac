import logging
from typing import Optional
from core.intent_classifier import ACTIVE_COLUMN
from core.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

CASE_TABLE = "kfz_vorgaenge" # vehicle registration office cases

def resolve_case(store: SupabaseClient, slug: str) -> Optional[dict]:
    """
    Return the active case record for the slug, or None.
    An unknown slug and a slug without an active record look the same.
    """
    results = store.query(CASE_TABLE, {
        "slug": f"eq.{slug}",
        ACTIVE_COLUMN: "eq.true",
        "select": "*",
    })

    if not results:
        return None
    if len(results) > 1:
        logger.debug("%d active records for slug %s, using the first", len(results), slug)
    return results[0]
