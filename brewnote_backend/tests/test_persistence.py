from fastapi.testclient import TestClient

from brewnote_backend.app.config import Settings
from brewnote_backend.app.main import create_app
from brewnote_backend.app.services.container import build_services
from brewnote_backend.app.services.data_stores import JsonFileStore, STORAGE_KEYS


def _fresh_client(data_dir) -> TestClient:
    settings = Settings(data_dir=data_dir, settle_delay_s=0.0)
    return TestClient(create_app(build_services(settings=settings)))

def test_beans_and_brews_persist_across_restarts(tmp_data_tree):
    c1 = _fresh_client(tmp_data_tree)
    bean = c1.post("/api/beans", json={"name": "Sumatra"}).json()
    c1.post("/api/brews", json={"beanId": bean["id"], "method": "mokapot", "taste": ["too_bitter"], "brewTimeMin": 4})

    # "new client" simulates restart
    c2 = _fresh_client(tmp_data_tree)
    assert [b["name"] for b in c2.get("/api/beans").json()] == ["Sumatra"]
    brews = c2.get(f"/api/beans/{bean['id']}/brews").json()
    assert len(brews) == 1 and brews[0]["method"] == "mokapot"
    cached = c2.get(f"/api/beans/{bean['id']}/suggestion", params={"method": "mokapot"}).json()
    assert cached["brewTime"] == 3.4

    assert (tmp_data_tree / "store" / "coffee_beans.json").exists()

def test_json_file_store_is_one_file_per_key(tmp_path):
    store = JsonFileStore(tmp_path)
    assert store.get(STORAGE_KEYS["PENDING"]) is None
    store.set(STORAGE_KEYS["PENDING"], b"[]")
    assert store.get(STORAGE_KEYS["PENDING"]) == b"[]"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["coffee_pending_brews.json"]

def test_queue_survives_restart_while_offline(tmp_data_tree):
    c1 = _fresh_client(tmp_data_tree)
    bean = c1.post("/api/beans", json={"name": "Yirgacheffe"}).json()
    c1.post("/api/sync/connectivity", json={"online": False})
    c1.post("/api/brews", json={"beanId": bean["id"], "method": "pourover", "taste": ["balanced"]})

    c2 = _fresh_client(tmp_data_tree)
    assert len(c2.get("/api/sync/pending").json()) == 1
    flushed = c2.post("/api/sync/flush").json()["flushed"]
    assert len(flushed) == 1
    assert c2.get("/api/sync/pending").json() == []
