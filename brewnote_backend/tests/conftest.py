from __future__ import annotations
import os
import tempfile

# main.py builds a module-level app at import; keep it out of the repo's ./data
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="brewnote_data_"))
os.environ.pop("BREWNOTE_REMOTE_API_KEY", None)
os.environ.pop("OPENAI_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from brewnote_backend.app.config import Settings
from brewnote_backend.app.main import create_app
from brewnote_backend.app.services.container import build_services
from brewnote_backend.app.services.data_stores import BrewRepository, InMemoryStore


# --- Isolated data dir per test ---
@pytest.fixture
def tmp_data_tree(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    return tmp_path

# --- Core fixtures (no disk) ---
@pytest.fixture
def store():
    return InMemoryStore()

@pytest.fixture
def repo(store):
    return BrewRepository(store)

@pytest.fixture
def settings(tmp_path):
    # remote off, no settle wait: tests drive the transitions themselves
    return Settings(data_dir=tmp_path, remote_api_key=None, settle_delay_s=0.0)

@pytest.fixture
def services(settings, store):
    return build_services(settings=settings, store=store)

@pytest.fixture
def client(services):
    return TestClient(create_app(services))

# --- Sample data ---
@pytest.fixture
def bean(repo):
    return repo.create_bean({"name": "Ethiopia Guji", "origin": "Ethiopia", "roastLevel": "light"})

@pytest.fixture
def brew_payload(bean):
    def _make(method="pourover", taste=("balanced",), **fields):
        body = {"beanId": bean.id, "method": method, "taste": list(taste)}
        body.update(fields)
        return body
    return _make
