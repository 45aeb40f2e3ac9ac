import json
from core.llm_client import LanguageModelClient
from models import ChatMessage

MODE_ANSWER = "answer"
MODE_DATA = "data"

TITLE_FIELD = "titel"
BODY_FIELD = "inhalt"
ANSWER_TEMPERATURE = 0.7

ANSWER_PROMPT = """Du bist ein freundlicher Mitarbeiter einer KFZ-Zulassungsstelle.

Basierend auf den folgenden Informationen, beantworte die Frage des Benutzers klar und präzise:

TITEL: {title}

INHALT:
{body}

Antworte natürlich und hilfreich. Fasse dich kurz, aber bleibe vollständig."""

def render_data(slug: str, record: dict) -> str:
    return json.dumps({
        "intent": slug,
        "data": record,
        "needs_clarification": False,
    }, indent=2, ensure_ascii=False)

def render_answer(llm: LanguageModelClient, user_message: str, record: dict) -> str:
    prompt = ANSWER_PROMPT.format(
        title=record.get(TITLE_FIELD, ""),
        body=record.get(BODY_FIELD, ""),
    )
    return llm.complete([
        ChatMessage(role="system", content=prompt),
        ChatMessage(role="user", content=user_message),
    ], temperature=ANSWER_TEMPERATURE)

def render_response(llm: LanguageModelClient, user_message: str, slug: str, record: dict, mode: str = MODE_ANSWER) -> str:
    """Build the reply content: raw record as JSON in data mode, otherwise an LLM answer grounded in the record"""
    if mode == MODE_DATA:
        return render_data(slug, record)
    return render_answer(llm, user_message, record)
