import json

from fastapi.testclient import TestClient

from tests.fakes import INTENTS, FakeLLM, FakeStore
from app import create_app
from core.config import Settings
from core.pipeline import CLARIFICATION_MESSAGE
from core.supabase_client import DataStoreError

QUESTION = {"messages": [{"role": "user", "content": "Wie lange dauert eine Ummeldung?"}]}

def test_answer_mode_end_to_end(make_client, store):
    client = make_client(store, FakeLLM(["ummeldung_dauer", "Eine Ummeldung dauert etwa 15 Minuten."]))

    response = client.post("/chat/completions", json=QUESTION)

    assert response.status_code == 200
    data = response.json()
    assert data["object"] == "chat.completion"
    assert data["id"].startswith("chatcmpl-")
    assert data["model"] == "gpt-4o-mini"
    assert isinstance(data["created"], int)
    choice = data["choices"][0]
    assert choice["index"] == 0
    assert choice["message"]["role"] == "assistant"
    assert choice["message"]["content"] == "Eine Ummeldung dauert etwa 15 Minuten."
    assert choice["finish_reason"] == "stop"

def test_unknown_intent_asks_for_clarification(make_client, store):
    response = make_client(store, FakeLLM(["unknown"])).post("/chat/completions", json=QUESTION)

    assert response.status_code == 200
    data = response.json()
    assert data["choices"][0]["message"]["content"] == CLARIFICATION_MESSAGE
    assert data["usage"]["total_tokens"] == 0

def test_data_mode_returns_structured_record(make_client):
    record = {"slug": "x", "titel": "T", "inhalt": "I"}
    store = FakeStore({"intent_index": [{"slug": "x", "intent_group": "g"}], "kfz_vorgaenge": [record]})
    llm = FakeLLM(["x"])

    response = make_client(store, llm).post("/chat/completions", json={**QUESTION, "mode": "data"})

    assert response.status_code == 200
    content = json.loads(response.json()["choices"][0]["message"]["content"])
    assert content == {"intent": "x", "data": record, "needs_clarification": False}
    assert len(llm.calls) == 1

def test_messages_not_an_array_is_bad_request(make_client, store):
    llm = FakeLLM()
    response = make_client(store, llm).post("/chat/completions", json={"messages": "Hallo"})

    assert response.status_code == 400
    assert response.json()["error"]["type"] == "invalid_request_error"
    assert store.calls == [] and llm.calls == []

def test_invalid_json_is_bad_request(make_client, store):
    response = make_client(store, FakeLLM()).post(
        "/chat/completions", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["error"]["type"] == "invalid_request_error"

def test_store_failure_is_internal_error(make_client):
    store = FakeStore(error=DataStoreError("Supabase query failed: Service Unavailable", status_code=503))

    response = make_client(store, FakeLLM()).post("/chat/completions", json=QUESTION)

    assert response.status_code == 500
    assert response.json() == {"error": {"message": "Supabase query failed: Service Unavailable", "type": "internal_error"}}

def test_responses_carry_cors_headers(make_client, store):
    response = make_client(store, FakeLLM(["unknown"])).post("/chat/completions", json=QUESTION)

    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"

def test_options_short_circuits(make_client, store):
    llm = FakeLLM()
    response = make_client(store, llm).options("/chat/completions")

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-headers"] == "Content-Type, Authorization, X-Requested-With"
    assert store.calls == [] and llm.calls == []

def test_health_reports_configuration(make_client, store):
    response = make_client(store, FakeLLM()).get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["supabase"] is True
    assert data["openai"] is True
    assert data["timestamp"].endswith("Z")
    assert store.calls == []

def test_health_without_credentials(make_client, store):
    response = make_client(store, FakeLLM(), app_settings=Settings()).get("/health")

    data = response.json()
    assert data["supabase"] is False
    assert data["openai"] is False

def test_model_name_comes_from_settings(make_client):
    store = FakeStore({"intent_index": INTENTS})
    client = make_client(store, FakeLLM(["unknown"]), app_settings=Settings(openai_model="gpt-4o"))

    assert client.post("/chat/completions", json=QUESTION).json()["model"] == "gpt-4o"

def test_shutdown_closes_clients_built_by_the_app(settings, store):
    app = create_app(settings, store=store)

    with TestClient(app) as client:
        assert client.get("/health").status_code == 200
        http_client = app.state.llm._http_client
        assert not http_client.is_closed

    assert http_client.is_closed
