import pytest

from brewnote_backend.app.errors import NotFoundFailure, StoreWriteFailure, ValidationFailure
from brewnote_backend.app.schemas import Suggestion
from brewnote_backend.app.services.data_stores import STORAGE_KEYS, BrewRepository


class ReadOnlyStore:
    def get(self, key):
        return None

    def set(self, key, value):
        raise PermissionError("read-only")


def test_create_bean_defaults_and_stamps(repo):
    bean = repo.create_bean({"name": "  Kenya AA  "})
    assert bean.name == "Kenya AA"
    assert bean.roast_level == "medium"
    assert bean.id and bean.created_at
    assert repo.get_bean(bean.id) == bean

@pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": "   "}, {"name": "x", "roastLevel": "burnt"}])
def test_invalid_bean_is_rejected_before_write(repo, store, body):
    with pytest.raises(ValidationFailure):
        repo.create_bean(body)
    assert store.get(STORAGE_KEYS["BEANS"]) is None

def test_update_bean_is_partial(repo, bean):
    updated = repo.update_bean(bean.id, {"notes": "jasmine"})
    assert updated.notes == "jasmine"
    assert updated.origin == "Ethiopia"
    assert updated.created_at == bean.created_at
    with pytest.raises(ValidationFailure):
        repo.update_bean(bean.id, {"name": ""})
    with pytest.raises(NotFoundFailure):
        repo.update_bean("nope", {"notes": "x"})

def test_save_bean_upserts(repo, bean):
    same = repo.save_bean({"id": bean.id, "name": "Renamed"})
    assert same.id == bean.id and same.name == "Renamed"
    other = repo.save_bean({"name": "Colombia"})
    assert other.id != bean.id
    assert len(repo.get_beans()) == 2

def test_save_brew_requires_known_bean_and_taste(repo, bean, brew_payload):
    with pytest.raises(NotFoundFailure):
        repo.save_brew({"beanId": "ghost", "method": "espresso", "taste": ["balanced"]})
    with pytest.raises(ValidationFailure):
        repo.save_brew(brew_payload(taste=()))
    with pytest.raises(ValidationFailure):
        repo.save_brew(brew_payload(method="siphon"))
    assert repo.get_raw_brews() == []

def test_save_brew_records_method_and_dedupes_taste(repo, brew_payload):
    brew = repo.save_brew(brew_payload("espresso", ["too_bitter", "too_bitter", "weak"], doseG=18, yieldG=36))
    raw = repo.get_raw_brews()[0]
    assert raw["method"] == raw["brewMethod"] == "espresso"
    assert raw["taste"] == ["too_bitter", "weak"]
    assert brew.primary_taste == "too_bitter"

def test_brews_for_bean_newest_first_with_method_filter(repo, bean, brew_payload):
    a = repo.save_brew(brew_payload("espresso"))
    b = repo.save_brew(brew_payload("pourover"))
    c = repo.save_brew(brew_payload("espresso"))
    assert [x.id for x in repo.get_brews_for_bean(bean.id)] == [c.id, b.id, a.id]
    assert [x.id for x in repo.get_brews_for_bean(bean.id, "espresso")] == [c.id, a.id]
    assert [x.id for x in repo.get_recent_brews(2)] == [c.id, b.id]

def test_delete_bean_cascades_only_its_brews(repo, bean, brew_payload):
    other = repo.create_bean({"name": "Brazil"})
    repo.save_brew(brew_payload())
    repo.save_brew(brew_payload("espresso"))
    kept = repo.save_brew({"beanId": other.id, "method": "mokapot", "taste": ["balanced"]})
    repo.enqueue_pending_brew(brew_payload())
    repo.enqueue_pending_brew({"beanId": other.id, "method": "mokapot", "taste": ["weak"]})

    counts = repo.delete_bean(bean.id)

    assert counts == {"beans": 1, "brews": 2, "pending": 1}
    assert [b.id for b in repo.get_brews()] == [kept.id]
    assert [p.bean_id for p in repo.get_pending_brews()] == [other.id]
    assert [b.id for b in repo.get_beans()] == [other.id]
    with pytest.raises(NotFoundFailure):
        repo.delete_bean(bean.id)

def test_delete_brew(repo, brew_payload):
    brew = repo.save_brew(brew_payload())
    repo.delete_brew(brew.id)
    assert repo.get_brews() == []
    with pytest.raises(NotFoundFailure):
        repo.delete_brew(brew.id)

def test_suggestion_cache_round_trip(repo, bean):
    s = Suggestion(method="mokapot", grind_size="medium-fine", ratio="10:1", brew_time=4,
                   water_temp_c=90, explanation="x", source="default")
    stored = repo.save_bean_suggestion(bean.id, "mokapot", s)
    assert stored.updated_at
    assert repo.get_bean_suggestion(bean.id, "mokapot") == stored
    assert repo.get_bean(bean.id).suggestions["mokapot"].ratio == "10:1"
    assert repo.get_bean_suggestion(bean.id, "espresso") is None
    with pytest.raises(NotFoundFailure):
        repo.save_bean_suggestion("ghost", "mokapot", s)

def test_corrupt_blob_reads_as_empty(store, caplog):
    store.set(STORAGE_KEYS["BREWS"], b"{not json")
    store.set(STORAGE_KEYS["BEANS"], b'{"a": 1}')
    repo = BrewRepository(store)
    assert repo.get_brews() == []
    assert repo.get_beans() == []
    assert any(r.levelname == "ERROR" for r in caplog.records)

def test_unparseable_record_is_skipped(repo, bean, brew_payload, store):
    repo.save_brew(brew_payload())
    raw = repo.get_raw_brews() + [{"id": "junk"}]
    repo.save_raw_brews(raw)
    assert len(repo.get_brews()) == 1
    assert len(repo.get_raw_brews()) == 2

def test_store_write_errors_are_wrapped():
    repo = BrewRepository(ReadOnlyStore())
    with pytest.raises(StoreWriteFailure):
        repo.create_bean({"name": "x"})

def test_onboarding_status(repo):
    assert repo.get_onboarding_status() == "not-started"
    assert repo.set_onboarding_status("completed") == "completed"
    assert repo.get_onboarding_status() == "completed"
    with pytest.raises(ValidationFailure):
        repo.set_onboarding_status("maybe")

def test_pending_queue_clear_and_partial_drop(repo, brew_payload):
    a = repo.enqueue_pending_brew(brew_payload())
    b = repo.enqueue_pending_brew(brew_payload("espresso", pending=False))
    assert [p.id for p in repo.get_pending_brews()] == [a.id, b.id]
    assert repo.get_pending_brews()[1].pending is True
    repo.drop_pending([a.id])
    assert [p.id for p in repo.get_pending_brews()] == [b.id]
    repo.clear_pending_brews()
    assert repo.get_pending_brews() == []
