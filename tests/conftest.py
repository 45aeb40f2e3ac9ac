import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Settings
from tests.fakes import CASE_RECORD, INTENTS, FakeStore

@pytest.fixture
def settings():
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        openai_api_key="sk-test",
    )

@pytest.fixture
def store():
    return FakeStore({"intent_index": INTENTS, "kfz_vorgaenge": [CASE_RECORD]})

@pytest.fixture
def make_client(settings):
    def _make(store, llm, app_settings=None):
        app = create_app(app_settings or settings, store=store, llm=llm)
        return TestClient(app)
    return _make
