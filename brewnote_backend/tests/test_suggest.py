import asyncio
import json

import httpx

from brewnote_backend.app.brewing.fallback import default_suggestion, suggest
from brewnote_backend.app.errors import RemoteSuggestionFailure
from brewnote_backend.app.schemas import Suggestion
from brewnote_backend.app.services.suggestions import (
    RemoteSuggestionClient, SuggestionSelector, SuggestionService,
)

HISTORY = [{"id": "x", "beanId": "b", "method": "pourover", "taste": ["too_sour"], "brewTimeSec": 200}]


class FailingRemote:
    def __init__(self):
        self.calls = 0

    async def fetch_remote_suggestion(self, history, method, bean_name=None):
        self.calls += 1
        raise RemoteSuggestionFailure("boom")


class SlowRemote:
    """Answers after `delays[method]` seconds, echoing which call it was."""

    def __init__(self, delays):
        self.delays = delays

    async def fetch_remote_suggestion(self, history, method, bean_name=None):
        await asyncio.sleep(self.delays.get(method, 0))
        return Suggestion(method=method, grind_size="medium", ratio="15:1", brew_time=200,
                          water_temp_c=94, explanation=f"remote for {method}", source="remote")


def test_no_remote_uses_fallback_rules(repo):
    service = SuggestionService(repo)
    s = asyncio.run(service.get_suggestion(HISTORY, "pourover"))
    assert s == suggest(HISTORY, "pourover")

def test_remote_failure_falls_back_without_raising(repo, caplog):
    remote = FailingRemote()
    service = SuggestionService(repo, remote=remote)
    s = asyncio.run(service.get_suggestion(HISTORY, "pourover", "Guji"))
    assert remote.calls == 1
    assert s.source == "fallback"
    assert s.brew_time == 220
    assert any("remote suggestion failed" in r.getMessage() for r in caplog.records)

def test_remote_http_error_falls_back(repo):
    remote = RemoteSuggestionClient("k", "https://remote.test/v1", "m",
                                    transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    s = asyncio.run(SuggestionService(repo, remote=remote).get_suggestion([], "espresso"))
    assert s == default_suggestion("espresso")

def test_remote_incomplete_reply_falls_back(repo):
    reply = {"choices": [{"message": {"content": json.dumps({"method": "espresso", "ratio": "2:1"})}}]}
    remote = RemoteSuggestionClient("k", "https://remote.test/v1", "m",
                                    transport=httpx.MockTransport(lambda r: httpx.Response(200, json=reply)))
    s = asyncio.run(SuggestionService(repo, remote=remote).get_suggestion([], "espresso"))
    assert s.source == "default"

def test_remote_success_is_used(repo):
    service = SuggestionService(repo, remote=SlowRemote({}))
    s = asyncio.run(service.get_suggestion(HISTORY, "pourover"))
    assert s.source == "remote"

def test_legacy_method_name_resolves(repo):
    s = asyncio.run(SuggestionService(repo).get_suggestion([], "french_press"))
    assert s.method == "frenchpress"


def test_refresh_caches_per_bean_and_method(repo, bean, brew_payload):
    repo.save_brew(brew_payload("espresso", ["too_bitter"], brewTimeSec=30))
    service = SuggestionService(repo)

    s = asyncio.run(service.refresh_for_bean(bean.id, "espresso"))
    assert s.brew_time == 27
    assert s.updated_at
    assert service.cached_suggestion(bean.id, "espresso") == s
    assert service.cached_suggestion(bean.id, "pourover") is None

def test_refresh_uses_only_that_methods_history(repo, bean, brew_payload):
    repo.save_brew(brew_payload("espresso", ["too_bitter"], brewTimeSec=30))
    s = asyncio.run(SuggestionService(repo).refresh_for_bean(bean.id, "pourover"))
    assert s.source == "default"

def test_superseded_refresh_does_not_overwrite_newer_one(repo, bean):
    service = SuggestionService(repo, remote=SlowRemote({"pourover": 0.05}))

    async def run_two():
        slow = asyncio.create_task(service.refresh_for_bean(bean.id, "pourover"))
        await asyncio.sleep(0.01)
        service.remote = SlowRemote({})
        fast = asyncio.create_task(service.refresh_for_bean(bean.id, "pourover"))
        return await slow, await fast

    older, newer = asyncio.run(run_two())
    assert older is None
    assert newer is not None
    assert service.cached_suggestion(bean.id, "pourover").updated_at == newer.updated_at


def test_selector_discards_response_for_previous_selection(repo):
    service = SuggestionService(repo, remote=SlowRemote({"espresso": 0.05, "pourover": 0}))
    selector = SuggestionSelector(service)

    async def switch_method():
        first = asyncio.create_task(selector.select("bean-1", "espresso", []))
        await asyncio.sleep(0.01)
        second = await selector.select("bean-1", "pourover", [])
        return await first, second

    stale, fresh = asyncio.run(switch_method())
    assert stale is None
    assert fresh.method == "pourover"
    assert selector.suggestion == fresh
    assert selector.current == ("bean-1", "pourover")

def test_remote_non_text_content_falls_back(repo):
    reply = {"choices": [{"message": {"content": {"method": "espresso", "grindSize": "fine"}}}]}
    remote = RemoteSuggestionClient("k", "https://remote.test/v1", "m",
                                    transport=httpx.MockTransport(lambda r: httpx.Response(200, json=reply)))
    s = asyncio.run(SuggestionService(repo, remote=remote).get_suggestion([], "espresso"))
    assert s == default_suggestion("espresso")
